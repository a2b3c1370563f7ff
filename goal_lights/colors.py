"""Colour conversion helpers for Hue lamps.

Colours are converted from hex or RGB into CIE 1931 xy chromaticity
coordinates and clamped to the triangle of colours a lamp can reproduce.
"""

from __future__ import annotations

import math
import random
import re
from dataclasses import dataclass

__all__ = [
    "FULL_BLUE",
    "FULL_GREEN",
    "FULL_RED",
    "FULL_WHITE",
    "HUE_GAMUT",
    "GamutTriangle",
    "InvalidColorFormat",
    "XYPoint",
    "cie_color",
    "clamp_to_gamut",
    "hex_to_rgb",
    "hex_to_xy",
    "random_color",
    "rgb_to_cie1931",
    "rgb_to_xy",
]

FULL_RED = "FF0000"
FULL_GREEN = "00FF00"
FULL_BLUE = "0000FF"
FULL_WHITE = "FFFFFF"

_HEX_PATTERN = re.compile(r"#?([0-9a-fA-F]{6})")
_CONTAINMENT_TOLERANCE = 1e-12


class InvalidColorFormat(ValueError):
    """Raised when a hex colour string cannot be decoded."""


@dataclass(frozen=True)
class XYPoint:
    """A CIE 1931 chromaticity coordinate pair."""

    x: float
    y: float

    def distance_to(self, other: XYPoint) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


def _cross(p1: XYPoint, p2: XYPoint) -> float:
    return p1.x * p2.y - p1.y * p2.x


def _closest_point_on_segment(a: XYPoint, b: XYPoint, p: XYPoint) -> XYPoint:
    ap = XYPoint(p.x - a.x, p.y - a.y)
    ab = XYPoint(b.x - a.x, b.y - a.y)
    ab2 = ab.x * ab.x + ab.y * ab.y
    t = (ap.x * ab.x + ap.y * ab.y) / ab2
    t = min(max(t, 0.0), 1.0)
    return XYPoint(a.x + ab.x * t, a.y + ab.y * t)


@dataclass(frozen=True)
class GamutTriangle:
    """Triangle of xy coordinates a lamp is able to reproduce."""

    red: XYPoint
    lime: XYPoint
    blue: XYPoint

    def __post_init__(self) -> None:
        v1 = XYPoint(self.lime.x - self.red.x, self.lime.y - self.red.y)
        v2 = XYPoint(self.blue.x - self.red.x, self.blue.y - self.red.y)
        if _cross(v1, v2) == 0:
            raise ValueError("Gamut vertices must not be collinear")

    def contains(self, point: XYPoint) -> bool:
        """Return whether ``point`` lies inside the triangle (edges included)."""

        v1 = XYPoint(self.lime.x - self.red.x, self.lime.y - self.red.y)
        v2 = XYPoint(self.blue.x - self.red.x, self.blue.y - self.red.y)
        q = XYPoint(point.x - self.red.x, point.y - self.red.y)

        denominator = _cross(v1, v2)
        s = _cross(q, v2) / denominator
        t = _cross(v1, q) / denominator

        tol = _CONTAINMENT_TOLERANCE
        return s >= -tol and t >= -tol and s + t <= 1.0 + tol

    def closest_point(self, point: XYPoint) -> XYPoint:
        """Return the point on the triangle's perimeter nearest to ``point``."""

        edges = (
            (self.red, self.lime),
            (self.blue, self.red),
            (self.lime, self.blue),
        )
        best: XYPoint | None = None
        lowest = math.inf
        for start, end in edges:
            candidate = _closest_point_on_segment(start, end, point)
            distance = point.distance_to(candidate)
            if distance < lowest:
                lowest = distance
                best = candidate
        assert best is not None
        return best


HUE_GAMUT = GamutTriangle(
    red=XYPoint(0.675, 0.322),
    lime=XYPoint(0.4091, 0.518),
    blue=XYPoint(0.167, 0.04),
)


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Decode a six digit hex colour such as ``FF00FF`` or ``#ff00ff``."""

    match = _HEX_PATTERN.fullmatch(hex_color) if isinstance(hex_color, str) else None
    if match is None:
        raise InvalidColorFormat(f"Invalid hex colour: {hex_color!r}")
    digits = match.group(1)
    return (
        int(digits[0:2], 16),
        int(digits[2:4], 16),
        int(digits[4:6], 16),
    )


def _gamma_expand(channel: float) -> float:
    if channel > 0.04045:
        return ((channel + 0.055) / (1.0 + 0.055)) ** 2.4
    return channel / 12.92


def rgb_to_xy(red: int, green: int, blue: int) -> XYPoint:
    """Convert 0-255 RGB channels to raw CIE 1931 xy coordinates.

    The result is not clamped to any gamut. Black maps to ``(0.0, 0.0)``.
    """

    r = _gamma_expand(red / 255.0)
    g = _gamma_expand(green / 255.0)
    b = _gamma_expand(blue / 255.0)

    x_ = r * 0.4360747 + g * 0.3850649 + b * 0.0930804
    y_ = r * 0.2225045 + g * 0.7168786 + b * 0.0406169
    z_ = r * 0.0139322 + g * 0.0971045 + b * 0.7141733

    total = x_ + y_ + z_
    if total == 0 or not math.isfinite(total):
        return XYPoint(0.0, 0.0)

    cx = x_ / total
    cy = y_ / total
    return XYPoint(
        cx if math.isfinite(cx) else 0.0,
        cy if math.isfinite(cy) else 0.0,
    )


def clamp_to_gamut(point: XYPoint, triangle: GamutTriangle = HUE_GAMUT) -> XYPoint:
    """Return ``point`` if reproducible, otherwise the nearest reproducible point."""

    if triangle.contains(point):
        return point
    return triangle.closest_point(point)


def rgb_to_cie1931(
    red: int, green: int, blue: int, triangle: GamutTriangle = HUE_GAMUT
) -> XYPoint:
    return clamp_to_gamut(rgb_to_xy(red, green, blue), triangle)


def hex_to_xy(hex_color: str, triangle: GamutTriangle = HUE_GAMUT) -> XYPoint:
    return rgb_to_cie1931(*hex_to_rgb(hex_color), triangle=triangle)


def random_color(
    rng: random.Random | None = None, triangle: GamutTriangle = HUE_GAMUT
) -> XYPoint:
    """Pick three uniform channels in ``[0, 255]`` and return the clamped colour."""

    source = rng or random
    channels = [source.randint(0, 255) for _ in range(3)]
    return rgb_to_cie1931(*channels, triangle=triangle)


def cie_color(hex_color: str | None = None, *, rng: random.Random | None = None) -> XYPoint:
    """Return the lamp colour for ``hex_color``, or a random one when omitted."""

    if hex_color is None:
        return random_color(rng)
    return hex_to_xy(hex_color)
