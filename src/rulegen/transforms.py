"""Transform algebra: spatial affine maps paired with colour operators.

A ``Transform`` changes the space a rule is evaluated in. Composition follows
scene-graph nesting: in ``compose(outer, inner)`` the inner transform is
applied to a point first, then the outer one. Scale and rotation act about
the origin of the current frame; there is no pivot re-centering.

A ``TransformSet`` is an ordered group of transforms, one per invocation
branch. ``replicate`` and ``seq`` build sets, and ``cross`` multiplies
independent sets into their cartesian product.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Union

import numpy as np

from rulegen.color import (
    BASE_COLOR,
    ColorDelta,
    ColorOp,
    ColorOverride,
    Hsv,
    compose_color,
    resolve_color,
)


def _frozen(matrix: np.ndarray) -> np.ndarray:
    m = np.array(matrix, dtype=np.float64)
    if m.shape != (4, 4):
        raise ValueError(f"Spatial matrix must be 4x4, got shape {m.shape}")
    m.setflags(write=False)
    return m


_IDENTITY = _frozen(np.eye(4))


@dataclass(frozen=True, eq=False)
class Transform:
    """A spatial 4x4 affine matrix plus a colour operator."""

    spatial: np.ndarray = field(default_factory=lambda: _IDENTITY)
    color_op: ColorOp = field(default_factory=ColorDelta)

    def __post_init__(self) -> None:
        if self.spatial is not _IDENTITY:
            object.__setattr__(self, "spatial", _frozen(self.spatial))

    def __matmul__(self, inner: Transform) -> Transform:
        return compose(self, inner)

    def __repr__(self) -> str:
        return f"Transform(spatial={self.spatial.tolist()}, color_op={self.color_op!r})"

    @classmethod
    def identity(cls) -> Transform:
        return cls()

    def apply_to(self, points: Sequence[float] | np.ndarray) -> np.ndarray:
        """Apply the spatial matrix to one point (3,) or to an (N, 3) array of points."""
        pts = np.asarray(points, dtype=np.float64)
        single = pts.ndim == 1
        pts = pts.reshape(-1, 3)
        homogeneous = np.hstack([pts, np.ones((len(pts), 1), dtype=np.float64)])
        out = (self.spatial @ homogeneous.T).T[:, :3]
        return out[0] if single else out

    def apply_to_normals(self, normals: np.ndarray) -> np.ndarray:
        """Transform direction vectors with the inverse-transpose of the linear part."""
        ns = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
        linear = self.spatial[:3, :3]
        try:
            normal_matrix = np.linalg.inv(linear).T
        except np.linalg.LinAlgError:
            # Degenerate scale: keep the plain linear map.
            normal_matrix = linear
        out = ns @ normal_matrix.T
        lengths = np.linalg.norm(out, axis=1, keepdims=True)
        return np.divide(out, lengths, out=out, where=lengths > 0)

    def resolved_color(self, base: Hsv = BASE_COLOR) -> Hsv:
        """Absolute colour after folding this transform's colour operator onto ``base``."""
        return resolve_color(self.color_op, base)

    # Spatial constructors

    @classmethod
    def translate(cls, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> Transform:
        m = np.eye(4, dtype=np.float64)
        m[:3, 3] = (x, y, z)
        return cls(spatial=m)

    @classmethod
    def scale(cls, factor: float) -> Transform:
        return cls.scale_by(factor, factor, factor)

    @classmethod
    def scale_by(cls, x: float, y: float, z: float) -> Transform:
        return cls(spatial=np.diag([x, y, z, 1.0]))

    @classmethod
    def rotate_x(cls, degrees: float) -> Transform:
        c, s = _cos_sin(degrees)
        return cls(spatial=_embed([[1, 0, 0], [0, c, -s], [0, s, c]]))

    @classmethod
    def rotate_y(cls, degrees: float) -> Transform:
        c, s = _cos_sin(degrees)
        return cls(spatial=_embed([[c, 0, s], [0, 1, 0], [-s, 0, c]]))

    @classmethod
    def rotate_z(cls, degrees: float) -> Transform:
        c, s = _cos_sin(degrees)
        return cls(spatial=_embed([[c, -s, 0], [s, c, 0], [0, 0, 1]]))

    # Colour constructors

    @classmethod
    def color(cls, color: Hsv | str | Sequence[float]) -> Transform:
        """An override that takes precedence over colours set higher in the rule tree."""
        if isinstance(color, str):
            color = Hsv.from_hex(color)
        return cls(color_op=ColorOverride(Hsv(*color)))

    @classmethod
    def hue(cls, delta: float) -> Transform:
        """Add ``delta`` degrees to the current hue."""
        return cls(color_op=ColorDelta(hue=delta))

    @classmethod
    def saturation(cls, factor: float) -> Transform:
        """Multiply the current saturation by ``factor``."""
        return cls(color_op=ColorDelta(saturation=factor))

    @classmethod
    def value(cls, factor: float) -> Transform:
        """Multiply the current value by ``factor``."""
        return cls(color_op=ColorDelta(value=factor))


Tf = Transform


def compose(outer: Transform, inner: Transform) -> Transform:
    """Compose ``outer`` (ancestor) with ``inner`` (descendant)."""
    return Transform(
        spatial=outer.spatial @ inner.spatial,
        color_op=compose_color(outer.color_op, inner.color_op),
    )


def _cos_sin(degrees: float) -> tuple[float, float]:
    r = math.radians(degrees)
    return math.cos(r), math.sin(r)


def _embed(rotation: list[list[float]]) -> np.ndarray:
    m = np.eye(4, dtype=np.float64)
    m[:3, :3] = rotation
    return m


TransformArgument = Union[None, Transform, "TransformSet", Sequence["TransformArgument"]]


@dataclass(frozen=True)
class TransformSet:
    """An ordered collection of transforms, one per invocation branch.

    An empty set stands for "no transform": pushing it invokes the child once,
    untransformed.
    """

    branches: tuple[Transform, ...] = ()

    def __iter__(self) -> Iterator[Transform]:
        return iter(self.branches)

    def __len__(self) -> int:
        return len(self.branches)

    def __getitem__(self, index: int) -> Transform:
        return self.branches[index]

    def __mul__(self, other: TransformArgument) -> TransformSet:
        return cross(self, TransformSet.of(other))

    @classmethod
    def of(cls, arg: TransformArgument) -> TransformSet:
        """Normalise any transform argument into a set.

        ``None`` is the empty set, a ``Transform`` a single branch, and a list
        or tuple a sequence of stages (see ``seq``).
        """
        if arg is None:
            return cls()
        if isinstance(arg, TransformSet):
            return arg
        if isinstance(arg, Transform):
            return cls((arg,))
        if isinstance(arg, (list, tuple)):
            return seq(*arg)
        raise TypeError(f"Cannot use {type(arg).__name__} as a transform argument")


def cross(parents: TransformSet, children: TransformSet) -> TransformSet:
    """Multiplicatively branch: every parent composed with every child, parent-major."""
    return TransformSet(tuple(compose(p, c) for p in parents for c in children))


def replicate(n: int, source: TransformArgument) -> TransformSet:
    """Stack each source branch 1..n times.

    ``replicate(3, Tf.translate(y=1))`` gives offsets of 1, 2 and 3 units; there
    is no identity branch. The result holds ``n * len(source)`` branches.
    """
    if n < 0:
        raise ValueError(f"Replication count must be non-negative, got {n}")
    branches: list[Transform] = []
    for transform in TransformSet.of(source):
        stacked = transform
        for k in range(n):
            if k:
                stacked = compose(stacked, transform)
            branches.append(stacked)
    return TransformSet(tuple(branches))


def seq(*stages: TransformArgument) -> TransformSet:
    """Compose stages in order, branching on every multi-branch stage.

    The first stage varies slowest, so a sequence of single transforms
    collapses to their composition. ``None`` stages are skipped; an empty
    set empties the whole sequence.
    """
    emitted = TransformSet((Transform.identity(),))
    for stage in stages:
        if stage is not None:
            emitted = cross(emitted, TransformSet.of(stage))
    return emitted
