"""Colour operators carried by transforms: absolute overrides and relative deltas."""

from __future__ import annotations

import colorsys
from dataclasses import dataclass
from typing import NamedTuple, Union, cast


class Hsv(NamedTuple):
    """An HSV colour. Hue is in degrees, saturation and value nominally in [0, 1]."""

    hue: float
    saturation: float
    value: float

    @classmethod
    def from_hex(cls, text: str) -> Hsv:
        """Parse an sRGB hex colour such as ``"4F4052"`` or ``"#4f4052"``."""
        digits = text.strip().lstrip("#")
        if len(digits) != 6:
            raise ValueError(f"Expected a 6-digit hex colour, got {text!r}")
        raw = bytes.fromhex(digits)
        h, s, v = colorsys.rgb_to_hsv(raw[0] / 255.0, raw[1] / 255.0, raw[2] / 255.0)
        return cls(h * 360.0, s, v)

    def to_rgb(self) -> tuple[float, float, float]:
        """Convert to an (r, g, b) triple in [0, 1]."""
        hue = (self.hue % 360.0) / 360.0
        return colorsys.hsv_to_rgb(hue, _clamp01(self.saturation), _clamp01(self.value))

    @property
    def hex(self) -> str:
        r, g, b = self.to_rgb()
        return "#{:02x}{:02x}{:02x}".format(*(round(c * 255) for c in (r, g, b)))


BASE_COLOR = Hsv(0.0, 0.0, 1.0)


@dataclass(frozen=True)
class ColorOverride:
    """An absolute colour that replaces everything set by ancestors."""

    color: Hsv


@dataclass(frozen=True)
class ColorDelta:
    """A relative colour change: hue is added, saturation and value are multiplied."""

    hue: float = 0.0
    saturation: float = 1.0
    value: float = 1.0


ColorOp = Union[ColorOverride, ColorDelta]


def compose_color(outer: ColorOp, inner: ColorOp) -> ColorOp:
    """Compose two colour operators, ``outer`` being the ancestor.

    The innermost override always wins. A delta below an override shifts the
    overridden colour; two deltas fold into one.
    """
    if isinstance(inner, ColorOverride):
        return inner
    if isinstance(outer, ColorOverride):
        c = outer.color
        return ColorOverride(
            Hsv(c.hue + inner.hue, c.saturation * inner.saturation, c.value * inner.value)
        )
    return ColorDelta(
        outer.hue + inner.hue,
        outer.saturation * inner.saturation,
        outer.value * inner.value,
    )


def resolve_color(op: ColorOp, base: Hsv = BASE_COLOR) -> Hsv:
    """Fold ``op`` onto ``base`` to get an absolute colour."""
    # An override outer operator always composes to an override.
    return cast(ColorOverride, compose_color(ColorOverride(base), op)).color


def _clamp01(x: float) -> float:
    return min(max(x, 0.0), 1.0)
