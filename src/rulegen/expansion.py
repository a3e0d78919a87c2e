"""Expansion: walk a rule graph into positioned, coloured mesh instances.

Traversal is driven by an explicit LIFO worklist of ``(transform, node)``
entries rather than by recursion, so memory stays proportional to depth times
branching and infinite rule graphs can be consumed lazily. Producers are
re-expanded on every visit; nothing is memoised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from rulegen.color import Hsv
from rulegen.mesh import Mesh
from rulegen.rule import Node, Rule
from rulegen.transforms import Transform, compose

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class OutputMesh:
    """A generated instance: the accumulated transform and the shared source mesh.

    Vertex data is never copied per instance; coordinates are computed on
    demand from ``transform`` and ``mesh``.
    """

    transform: Transform
    mesh: Mesh

    def vertices(self) -> np.ndarray:
        """The mesh vertices in world space, shape (N, 3)."""
        return self.transform.apply_to(self.mesh.vertices)

    def normals(self) -> np.ndarray | None:
        """World-space unit normals, or None if the mesh defines none."""
        if self.mesh.normals is None:
            return None
        return self.transform.apply_to_normals(self.mesh.normals)

    def faces(self) -> tuple[tuple[int, ...], ...]:
        """Faces of the output mesh.

        Faces are not necessarily triangles, and their vertex indices are
        1-based and local to this instance. Writers concatenating several
        instances must offset them.
        """
        return self.mesh.faces

    @property
    def color(self) -> Hsv:
        return self.transform.resolved_color()

    @property
    def rgb(self) -> tuple[float, float, float]:
        return self.color.to_rgb()


class MeshIterator:
    """Iterator over the meshes a rule generates.

    Each step pops one pending entry. A mesh is returned straight away; a
    producer is expanded and its invocations are pushed with their transforms
    composed onto the accumulated one. Entries are pushed in reverse so that
    meshes come out depth-first in declaration order.
    """

    def __init__(self, rule: Rule) -> None:
        self._pending: list[tuple[Transform, Node]] = [(Transform.identity(), rule)]
        self.expansions = 0

    def __iter__(self) -> MeshIterator:
        return self

    def __next__(self) -> OutputMesh:
        pending = self._pending
        while pending:
            transform, node = pending.pop()
            if isinstance(node, Mesh):
                return OutputMesh(transform, node)
            rule = node.expand()
            self.expansions += 1
            for invocation in reversed(rule.invocations):
                if invocation.transform is None:
                    pending.append((transform, invocation.child))
                else:
                    pending.append((compose(transform, invocation.transform), invocation.child))
        logger.debug("Expansion finished after %d producer expansions", self.expansions)
        raise StopIteration

    @property
    def pending(self) -> int:
        """Number of entries still waiting on the worklist."""
        return len(self._pending)


def generate(rule: Rule) -> MeshIterator:
    """Lazily expand ``rule``. Stop iterating whenever you like."""
    return MeshIterator(rule)


def build(rule: Rule) -> list[OutputMesh]:
    """Fully expand ``rule`` into a list.

    Never returns for rule graphs that recurse without bound; use ``generate``
    with a consumer-side cutoff for those.
    """
    meshes = list(generate(rule))
    logger.debug("Built %d meshes", len(meshes))
    return meshes


@dataclass
class BakedMesh:
    """An output mesh with its transform applied to the geometry."""

    vertices: np.ndarray  # (N, 3) float64
    normals: np.ndarray | None  # (N, 3) float64
    faces: tuple[tuple[int, ...], ...]
    color: Hsv


def bake_one(output: OutputMesh) -> BakedMesh:
    return BakedMesh(
        vertices=output.vertices(),
        normals=output.normals(),
        faces=output.faces(),
        color=output.color,
    )


def bake(outputs: Iterable[OutputMesh], workers: int | None = None) -> list[BakedMesh]:
    """Apply every accumulated transform to its mesh, in parallel.

    Each record only reads its own transform and the shared, read-only mesh,
    so records are baked independently on a thread pool. Results keep the
    input order. ``workers=1`` bakes inline.
    """
    outputs = list(outputs)
    if workers == 1 or len(outputs) < 2:
        return [bake_one(o) for o in outputs]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        baked = list(pool.map(bake_one, outputs))
    logger.debug("Baked %d meshes", len(baked))
    return baked
