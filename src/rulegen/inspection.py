"""Inspection diagnostics for generated meshes."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

import numpy as np

from rulegen.expansion import OutputMesh, bake


def summarize(
    meshes: Iterable[OutputMesh], *, workers: int | None = None, truncated: bool = False
) -> dict[str, object]:
    """Summarise a stream of generated meshes into a JSON-serialisable payload."""
    outputs = list(meshes)
    baked = bake(outputs, workers=workers)

    sources: Counter[str] = Counter()
    source_labels: dict[int, str] = {}
    for output in outputs:
        mesh = output.mesh
        label = source_labels.get(id(mesh))
        if label is None:
            label = source_labels[id(mesh)] = f"{mesh.name or 'mesh'}#{len(source_labels)}"
        sources[label] += 1

    colors = Counter(b.color.hex for b in baked)

    summary = {
        "mesh_count": len(baked),
        "vertex_count": sum(len(b.vertices) for b in baked),
        "face_count": sum(len(b.faces) for b in baked),
        "source_mesh_count": len(source_labels),
        "color_count": len(colors),
        "truncated": truncated,
        "bounds": _bounds([b.vertices for b in baked]),
    }
    return {
        "inspect_schema_version": 1,
        "summary": summary,
        "sources": [{"mesh": label, "instances": n} for label, n in sources.items()],
        "colors": [{"color": hex_, "instances": n} for hex_, n in sorted(colors.items())],
    }


def render_text(payload: dict[str, object]) -> str:
    """Render human-readable text output for an inspection payload."""
    lines: list[str] = []

    summary = payload["summary"]
    bounds = summary["bounds"]
    lines.append("summary:")
    lines.append(f"  mesh_count: {summary['mesh_count']}")
    lines.append(f"  vertex_count: {summary['vertex_count']}")
    lines.append(f"  face_count: {summary['face_count']}")
    lines.append(f"  source_mesh_count: {summary['source_mesh_count']}")
    lines.append(f"  color_count: {summary['color_count']}")
    if summary["truncated"]:
        lines.append("  truncated: true")
    lines.append(f"  bounds.min: {_fmt_vec(bounds['min'])}")
    lines.append(f"  bounds.max: {_fmt_vec(bounds['max'])}")

    lines.append("sources:")
    sources = payload.get("sources", [])
    if sources:
        for entry in sources:
            lines.append(f"  - mesh: {entry['mesh']} instances: {entry['instances']}")
    else:
        lines.append("  []")

    lines.append("colors:")
    colors = payload.get("colors", [])
    if colors:
        for entry in colors:
            lines.append(f"  - color: '{entry['color']}' instances: {entry['instances']}")
    else:
        lines.append("  []")

    return "\n".join(lines) + "\n"


def _bounds(vertex_arrays: list[np.ndarray]) -> dict[str, list[float]]:
    non_empty = [v for v in vertex_arrays if len(v)]
    if not non_empty:
        zero = [0.0, 0.0, 0.0]
        return {"min": zero, "max": list(zero)}
    stacked = np.concatenate(non_empty)
    return {
        "min": _to_list(stacked.min(axis=0)),
        "max": _to_list(stacked.max(axis=0)),
    }


def _to_list(vec: np.ndarray) -> list[float]:
    return [float(v) for v in vec.tolist()]


def _fmt_vec(vec: object) -> str:
    if not isinstance(vec, (list, tuple)):
        return str(vec)
    return "[" + ", ".join(f"{float(v):.6g}" for v in vec) + "]"
