"""Immutable, shareable mesh geometry."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def _readonly(values: Sequence[Sequence[float]] | np.ndarray, what: str) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    if arr.size == 0:
        arr = np.zeros((0, 3), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"{what} must have shape (N, 3), got {arr.shape}")
    arr.setflags(write=False)
    return arr


class Mesh:
    """A custom mesh described by vertices, optional normals and faces.

    This is a low-level type:

    1. If normals are given there is one per vertex.
    2. Each face lists the vertices it connects.
    3. Vertex indices start at 1, following the Wavefront object convention.

    Geometry is copied once on construction and never written again, so a
    single ``Mesh`` can back any number of generated instances. Meshes compare
    and hash by identity.
    """

    __slots__ = ("vertices", "normals", "faces", "name")

    def __init__(
        self,
        vertices: Sequence[Sequence[float]] | np.ndarray,
        faces: Sequence[Sequence[int]],
        normals: Sequence[Sequence[float]] | np.ndarray | None = None,
        name: str | None = None,
    ) -> None:
        self.vertices = _readonly(vertices, "vertices")
        self.normals = None if normals is None else _readonly(normals, "normals")
        if self.normals is not None and len(self.normals) != len(self.vertices):
            raise ValueError(
                f"Expected one normal per vertex ({len(self.vertices)}), got {len(self.normals)}"
            )
        self.faces: tuple[tuple[int, ...], ...] = tuple(
            tuple(int(i) for i in face) for face in faces
        )
        self.name = name

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return (
            f"<Mesh{label} vertices={self.vertex_count} faces={self.face_count}"
            f" normals={self.has_normals}>"
        )

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    @property
    def has_normals(self) -> bool:
        return self.normals is not None
