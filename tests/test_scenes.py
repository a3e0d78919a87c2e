"""Tests for the built-in example scenes."""

import random
from itertools import islice

import numpy as np
import pytest
from numpy.testing import assert_allclose

from rulegen.expansion import build, generate
from rulegen.primitives import cube_mesh
from rulegen.scenes import (
    SCENES,
    build_scene,
    city,
    cube_stack,
    grid2d,
    randtower,
    recursive_tile,
    spiral_tower,
    torus,
)


class TestScenes:
    def test_cube_stack(self):
        meshes = build(cube_stack())
        assert len(meshes) == 5
        assert_allclose([m.transform.spatial[1, 3] for m in meshes], [1.1, 2.2, 3.3, 4.4, 5.5])

    def test_grid2d(self):
        meshes = build(grid2d(10, 5))
        assert len(meshes) == 50
        positions = {tuple(np.round(m.transform.spatial[:3, 3], 6)) for m in meshes}
        assert len(positions) == 50

    def test_torus(self):
        meshes = build(torus())
        assert len(meshes) == 1296
        assert len({m.color.hex for m in meshes}) > 1
        assert all(m.mesh is cube_mesh() for m in meshes)

    def test_randtower_reproducible(self):
        first = [m.transform.spatial[0, 3] for m in build(randtower(random.Random(5)))]
        second = [m.transform.spatial[0, 3] for m in build(randtower(random.Random(5)))]
        assert len(first) == 4
        assert first == second
        assert set(first) <= {0.1, -0.1, 0.2, -0.2}

    def test_recursive_tile(self):
        meshes = build(recursive_tile(4))
        assert len(meshes) == 1 + 3 * 5

    def test_recursive_tile_shrinks(self):
        meshes = build(recursive_tile(2))
        scales = [m.transform.spatial[0, 0] for m in meshes[1:]]
        assert_allclose(scales, [0.4] * 3 + [0.2] * 3 + [0.1] * 3)

    def test_spiral_tower_is_lazy(self):
        meshes = list(islice(generate(spiral_tower()), 200))
        assert len(meshes) == 200
        heights = [m.transform.spatial[1, 3] for m in meshes]
        assert heights == sorted(heights)

    def test_city_generates(self):
        meshes = build(city(random.Random(2), size=3))
        assert len(meshes) > 9
        assert meshes[0].color.hex == "#ffffff"


class TestRegistry:
    def test_names(self):
        assert set(SCENES) == {
            "cube_stack",
            "grid2d",
            "torus",
            "randtower",
            "recursive_tile",
            "spiral_tower",
            "city",
        }

    def test_only_spiral_is_infinite(self):
        assert [name for name, info in SCENES.items() if info.infinite] == ["spiral_tower"]

    @pytest.mark.parametrize("name", ["cube_stack", "grid2d", "recursive_tile", "randtower"])
    def test_build_scene(self, name):
        assert len(build(build_scene(name, random.Random(0)))) > 0

    def test_unknown_scene(self):
        with pytest.raises(KeyError):
            build_scene("castle")
