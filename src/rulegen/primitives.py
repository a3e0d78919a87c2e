"""Built-in primitive geometry.

Primitive meshes are built once, on first use, and shared by every rule and
every generated instance for the rest of the process.
"""

from __future__ import annotations

import functools
import math

import numpy as np

from rulegen.mesh import Mesh
from rulegen.rule import Rule


@functools.cache
def cube_mesh() -> Mesh:
    """Cube of size 1 centred at the origin: 8 verts, 6 quads, no normals."""
    return Mesh(
        vertices=[
            (-0.5, 0.5, 0.5),
            (-0.5, -0.5, 0.5),
            (0.5, -0.5, 0.5),
            (0.5, 0.5, 0.5),
            (-0.5, 0.5, -0.5),
            (-0.5, -0.5, -0.5),
            (0.5, -0.5, -0.5),
            (0.5, 0.5, -0.5),
        ],
        faces=[
            (1, 2, 3, 4),
            (8, 7, 6, 5),
            (4, 3, 7, 8),
            (5, 1, 4, 8),
            (5, 6, 2, 1),
            (2, 6, 7, 3),
        ],
        name="cube",
    )


@functools.cache
def icosphere_mesh() -> Mesh:
    """Icosphere of diameter 1 at resolution 0 (20 triangles)."""
    return _icosphere(0, name="icosphere")


def sphere(resolution: int) -> Mesh:
    """A sphere of diameter 1 made of ``20 * 4 ** resolution`` triangles.

    This builds a new mesh each call. Build it once and reuse the result
    wherever it is needed.
    """
    if resolution < 0:
        raise ValueError(f"Sphere resolution must be non-negative, got {resolution}")
    return _icosphere(resolution, name=f"sphere{resolution}")


def cube() -> Rule:
    """A rule invoking the shared unit cube."""
    return Rule().push(cube_mesh())


def icosphere() -> Rule:
    """A rule invoking the shared unit-diameter icosphere."""
    return Rule().push(icosphere_mesh())


def _icosphere(resolution: int, name: str) -> Mesh:
    """Subdivide an icosahedron ``resolution`` times and project onto the sphere."""
    t = (1.0 + math.sqrt(5.0)) / 2.0
    points: list[tuple[float, float, float]] = [
        (-1, t, 0), (1, t, 0), (-1, -t, 0), (1, -t, 0),
        (0, -1, t), (0, 1, t), (0, -1, -t), (0, 1, -t),
        (t, 0, -1), (t, 0, 1), (-t, 0, -1), (-t, 0, 1),
    ]  # fmt: skip
    triangles = [
        (0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
        (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
        (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
        (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1),
    ]  # fmt: skip

    for _ in range(resolution):
        midpoints: dict[tuple[int, int], int] = {}

        def midpoint(a: int, b: int) -> int:
            key = (a, b) if a < b else (b, a)
            index = midpoints.get(key)
            if index is None:
                pa, pb = points[a], points[b]
                points.append(((pa[0] + pb[0]) / 2, (pa[1] + pb[1]) / 2, (pa[2] + pb[2]) / 2))
                index = midpoints[key] = len(points) - 1
            return index

        subdivided = []
        for a, b, c in triangles:
            ab, bc, ca = midpoint(a, b), midpoint(b, c), midpoint(c, a)
            subdivided.extend([(a, ab, ca), (b, bc, ab), (c, ca, bc), (ab, bc, ca)])
        triangles = subdivided

    unit = np.array(points, dtype=np.float64)
    unit /= np.linalg.norm(unit, axis=1, keepdims=True)
    return Mesh(
        vertices=unit * 0.5,
        normals=unit,
        faces=[(a + 1, b + 1, c + 1) for a, b, c in triangles],
        name=name,
    )
