"""Built-in example scenes.

Each scene builder returns a ``Rule``. Scenes that use randomness take an
optional ``random.Random`` so output can be reproduced with a seed.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from rulegen.color import Hsv
from rulegen.primitives import cube, icosphere, icosphere_mesh
from rulegen.rule import Rule
from rulegen.transforms import Tf, replicate

PALETTE: tuple[Hsv, ...] = tuple(
    Hsv.from_hex(h) for h in ("4F4052", "6D7577", "95A8A9", "A8C4BE", "AFD8DB")
)


def cube_stack(height: int = 5) -> Rule:
    """A column of ``height`` cubes with small gaps between them."""
    return Rule().push(replicate(height, Tf.translate(y=1.1)), cube())


def grid2d(rows: int = 10, cols: int = 5) -> Rule:
    """A ``rows`` by ``cols`` grid of cubes in the xy plane."""
    return (
        cube()
        .transformed(replicate(rows, Tf.translate(y=1.1)))
        .transformed(replicate(cols, Tf.translate(x=1.1)))
    )


def torus(rings: int = 36, segments: int = 36) -> Rule:
    """Cubes swept around two axes into a torus, with the hue drifting per segment."""
    ring = replicate(rings, [Tf.rotate_z(10), Tf.translate(y=0.1)])
    sweep = replicate(segments, [Tf.rotate_y(10), Tf.translate(z=1.2), Tf.hue(12)])
    return Rule().push([Tf.color(Hsv(0.0, 0.8, 0.9)), sweep * ring], cube())


class RandCube:
    """A cube nudged sideways by a random amount, picked afresh on every expansion."""

    OFFSETS = (0.1, -0.1, 0.2, -0.2)

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def expand(self) -> Rule:
        return Rule().push(Tf.translate(x=self.rng.choice(self.OFFSETS)), cube())


def randtower(rng: random.Random | None = None, height: int = 4) -> Rule:
    """A wobbly tower: every level is a ``RandCube``."""
    rng = rng or random.Random()
    return Rule().push(replicate(height, Tf.translate(y=1.0)), RandCube(rng))


@dataclass(frozen=True)
class RecursiveTile:
    """Three small cubes in a square, the fourth quarter tiled again one level down."""

    depth: int

    def expand(self) -> Rule:
        rule = Rule.of(
            *(
                ([Tf.scale(0.4), Tf.translate(x, y)], cube())
                for x, y in ((0.25, 0.25), (-0.25, -0.25), (-0.25, 0.25))
            )
        )
        if self.depth > 0:
            rule = rule.push(
                [Tf.scale(0.5), Tf.translate(0.25, -0.25)], RecursiveTile(self.depth - 1)
            )
        return rule


def recursive_tile(depth: int = 4) -> Rule:
    return Rule().push(Tf.translate(x=1.0), cube()).push(RecursiveTile(depth))


class SpiralTower:
    """An endless spiral: a cube, then the whole tower again, lifted and turned.

    This rule graph never bottoms out. Consume it lazily and stop when you
    have enough meshes.
    """

    def expand(self) -> Rule:
        return (
            Rule()
            .push(Tf.scale_by(1.0, 0.25, 1.0), cube())
            .push([Tf.translate(y=0.3), Tf.rotate_y(15), Tf.scale(0.97), Tf.hue(7)], self)
        )


def spiral_tower() -> Rule:
    return Rule().push(Tf.color(PALETTE[0]), SpiralTower())


class Pyramid:
    """A stack of shrinking slabs, each a cube or a sphere in a palette colour."""

    def __init__(self, levels: int, rng: random.Random) -> None:
        self.levels = levels
        self.rng = rng

    def expand(self) -> Rule:
        slabs = []
        thickness = (1.6 / self.levels) ** 2
        for i in range(self.levels):
            downscale = 1.0 - (i + 1) / self.levels
            slab = [
                Tf.scale_by(downscale, thickness, downscale),
                Tf.translate(y=i),
                Tf.color(self.rng.choice(PALETTE)),
            ]
            slabs.append((slab, self.rng.choice((cube(), icosphere()))))
        return Rule.of(*slabs)


class Tower:
    """A lattice tower of thin bars with a sphere at every level."""

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def expand(self) -> Rule:
        thin = 0.002
        bars = self.rng.randint(4, 19)
        height = 0.03 / bars
        bar = Rule()
        for offset, extents in (
            (Tf.translate(x=-0.5), (thin, height, 1.0)),
            (Tf.translate(x=0.5), (thin, height, 1.0)),
            (Tf.translate(z=-0.5), (1.0, height, thin)),
            (Tf.translate(z=0.5), (1.0, height, thin)),
        ):
            color = Tf.color(self.rng.choice(PALETTE))
            bar = bar.push([color, offset, Tf.scale_by(*extents)], cube())
        bar = bar.push([Tf.color(self.rng.choice(PALETTE)), Tf.scale(0.2)], icosphere_mesh())
        return Rule().push(replicate(bars, Tf.translate(y=height * 13.0)), bar)


class CityBlock:
    """One grid tile: a pyramid, a tower, or (above the depth limit) four smaller blocks."""

    def __init__(self, rng: random.Random, depth: int = 0) -> None:
        self.rng = rng
        self.depth = depth

    def expand(self) -> Rule:
        candidates: list[Callable[[], Rule]] = [
            lambda: Rule().push(Pyramid(self.rng.randint(4, 13), self.rng)),
            lambda: Rule().push(Tower(self.rng)),
        ]
        if self.depth < 3:
            candidates.append(
                lambda: Rule().push(
                    Tf.scale(0.5), grid(2, 2, lambda r, c: CityBlock(self.rng, self.depth + 1))
                )
            )
        return self.rng.choice(candidates)()


def grid(rows: int, cols: int, tile: Callable[[int, int], object]) -> Rule:
    """A centred ``rows`` by ``cols`` grid in the xz plane; ``tile(row, col)`` fills each cell."""
    cells = Rule.of(
        *(
            ([Tf.translate(x=c), Tf.translate(z=r)], tile(r, c))
            for r in range(rows)
            for c in range(cols)
        )
    )
    return cells.transformed(Tf.translate(x=(cols - 1) / -2.0, z=(rows - 1) / -2.0))


def city(rng: random.Random | None = None, size: int = 10) -> Rule:
    """A ground slab covered in a grid of recursively subdivided city blocks."""
    rng = rng or random.Random()
    return (
        Rule()
        .push([Tf.scale_by(size, 1.0, size), Tf.translate(y=-0.5), Tf.color("ffffff")], cube())
        .push(grid(size, size, lambda r, c: CityBlock(rng)))
    )


@dataclass(frozen=True)
class SceneInfo:
    builder: Callable[..., Rule]
    description: str
    # Infinite scenes never finish expanding; they need a mesh limit.
    infinite: bool = False
    randomized: bool = False


SCENES: dict[str, SceneInfo] = {
    "cube_stack": SceneInfo(cube_stack, "Five stacked cubes"),
    "grid2d": SceneInfo(grid2d, "A 10 by 5 grid of cubes"),
    "torus": SceneInfo(torus, "1296 cubes swept into a torus"),
    "randtower": SceneInfo(randtower, "A tower of randomly offset cubes", randomized=True),
    "recursive_tile": SceneInfo(recursive_tile, "A square tiled recursively four levels deep"),
    "spiral_tower": SceneInfo(spiral_tower, "An endless twisting tower", infinite=True),
    "city": SceneInfo(city, "A city of pyramids and lattice towers", randomized=True),
}


def build_scene(name: str, rng: random.Random | None = None) -> Rule:
    """Build the scene registered as ``name``.

    Raises:
        KeyError: If no scene has that name.
    """
    info = SCENES[name]
    if info.randomized:
        return info.builder(rng)
    return info.builder()
