"""Wavefront object (.obj) and material library (.mtl) writer."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from rulegen.config import ExportConfig, MeshGrouping
from rulegen.errors import MaterialWriteError, ObjectWriteError
from rulegen.expansion import OutputMesh

logger = logging.getLogger(__name__)


@dataclass
class ExportStats:
    """Counts of what a writer emitted."""

    meshes: int = 0
    vertices: int = 0
    normals: int = 0
    faces: int = 0
    materials: int = 0


def _write_obj(sink: TextIO, text: str) -> None:
    try:
        sink.write(text)
    except OSError as e:
        raise ObjectWriteError(f"Failed to write to obj file: {e}") from e


def _write_mtl(sink: TextIO, text: str) -> None:
    try:
        sink.write(text)
    except OSError as e:
        raise MaterialWriteError(f"Failed to write to material file: {e}") from e


def write_meshes(
    meshes: Iterable[OutputMesh],
    sink: TextIO,
    config: ExportConfig | None = None,
    material_sink: TextIO | None = None,
) -> ExportStats:
    """Write meshes as a Wavefront object to ``sink``.

    Face indices of each mesh are offset by the vertices written before it.
    When ``config.export_colors`` is set, the object references that material
    library and switches material per mesh; the materials themselves go to
    ``material_sink`` (each colour once) if one is given.

    Raises:
        ObjectWriteError: If writing to ``sink`` fails.
        MaterialWriteError: If writing to ``material_sink`` fails.
    """
    config = config or ExportConfig()
    stats = ExportStats()
    written_materials: set[str] = set()

    if config.export_colors is not None:
        _write_obj(sink, f"mtllib {config.export_colors}\n")

    for mesh in meshes:
        color = mesh.color
        color_hex = color.hex
        lines: list[str] = []

        if config.grouping is MeshGrouping.INDIVIDUAL:
            lines.append(f"g g{stats.vertices}")
        elif config.grouping is MeshGrouping.BY_COLOR:
            lines.append(f"g {color_hex}")

        if config.export_colors is not None:
            lines.append(f"usemtl {color_hex}")
            if material_sink is not None and color_hex not in written_materials:
                r, g, b = color.to_rgb()
                _write_mtl(material_sink, f"newmtl {color_hex}\nKd {r!r} {g!r} {b!r}\nillum 0\n")
                written_materials.add(color_hex)

        vertices = mesh.vertices()
        for x, y, z in vertices.tolist():
            lines.append(f"v {x!r} {y!r} {z!r}")

        normals = mesh.normals()
        if normals is not None:
            for x, y, z in normals.tolist():
                lines.append(f"vn {x!r} {y!r} {z!r}")

        vertex_offset = stats.vertices
        normal_offset = stats.normals
        for face in mesh.faces():
            if normals is not None:
                refs = " ".join(f"{i + vertex_offset}//{i + normal_offset}" for i in face)
            else:
                refs = " ".join(str(i + vertex_offset) for i in face)
            lines.append(f"f {refs}")

        lines.append("")
        _write_obj(sink, "\n".join(lines))

        stats.meshes += 1
        stats.vertices += len(vertices)
        stats.normals += 0 if normals is None else len(normals)
        stats.faces += len(mesh.faces())

    stats.materials = len(written_materials)
    return stats


def write_obj(
    path: Path, meshes: Iterable[OutputMesh], config: ExportConfig | None = None
) -> ExportStats:
    """Write meshes to an object file at ``path``.

    If ``config.export_colors`` names a material library, it is created next
    to the object file.
    """
    config = config or ExportConfig()
    path = Path(path)
    with ExitStack() as stack:
        try:
            obj_file = stack.enter_context(path.open("w", encoding="utf-8"))
        except OSError as e:
            raise ObjectWriteError(f"Cannot open obj file {path}: {e}") from e

        mtl_file = None
        if config.export_colors is not None:
            mtl_path = path.parent / config.export_colors
            try:
                mtl_file = stack.enter_context(mtl_path.open("w", encoding="utf-8"))
            except OSError as e:
                raise MaterialWriteError(f"Cannot open material file {mtl_path}: {e}") from e

        stats = write_meshes(meshes, obj_file, config, material_sink=mtl_file)

    logger.info(
        "Wrote %d meshes (%d vertices, %d faces) to %s",
        stats.meshes,
        stats.vertices,
        stats.faces,
        path,
    )
    return stats
