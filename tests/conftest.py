"""Shared test fixtures."""

import pytest

from rulegen.mesh import Mesh
from rulegen.primitives import cube_mesh


@pytest.fixture
def tower_yaml():
    return """\
version: "0.1"
start: tower
rules:
  tower:
    invocations:
      - transforms:
          - replicate: {count: 3, transforms: [{ty: 1.1}]}
        call: cube
"""


@pytest.fixture
def recursive_yaml():
    return """\
version: "0.1"
start: column
max_depth: 4
rules:
  column:
    invocations:
      - call: cube
      - transforms: [{ty: 1}, {s: 0.5}]
        call: column
"""


@pytest.fixture
def variants_yaml():
    return """\
version: "0.1"
start: pick
seed: 3
rules:
  pick:
    variants:
      - weight: 1
        invocations:
          - call: cube
      - weight: 1
        invocations:
          - call: icosphere
"""


@pytest.fixture
def triangle_mesh():
    return Mesh(
        vertices=[(0, 0, 0), (1, 0, 0), (0, 1, 0)],
        normals=[(0, 0, 1), (0, 0, 1), (0, 0, 1)],
        faces=[(1, 2, 3)],
        name="triangle",
    )


@pytest.fixture
def unit_cube():
    return cube_mesh()
