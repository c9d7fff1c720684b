"""
Coordinate algebra for the hexagonal grid.

Two coordinate kinds are used throughout the climate core:

- HexCoord: integer lattice address of a single cell (axial coordinates)
- PlanePoint: continuous position, usually inside the unit square, used for
  interpolation and geometry

A field of resolution R stores its cells in a flat array; the linear index of
a cell is ``x * R + y``.
"""

import math
from typing import List, NamedTuple


class PlanePoint(NamedTuple):
    """Continuous position on the plane."""

    x: float
    y: float

    def __add__(self, other: "PlanePoint") -> "PlanePoint":
        return PlanePoint(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "PlanePoint") -> "PlanePoint":
        return PlanePoint(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "PlanePoint":
        return PlanePoint(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __truediv__(self, factor: float) -> "PlanePoint":
        return PlanePoint(self.x / factor, self.y / factor)

    def __neg__(self) -> "PlanePoint":
        return PlanePoint(-self.x, -self.y)

    def rhombus(self) -> List["HexCoord"]:
        """Four lattice points surrounding this position."""
        xfl = int(self.x)
        yfl = int(self.y)
        return [
            HexCoord(xfl, yfl),
            HexCoord(xfl + 1, yfl),
            HexCoord(xfl, yfl + 1),
            HexCoord(xfl + 1, yfl + 1),
        ]

    def nearest(self) -> "HexCoord":
        """Closest lattice point by taxicab distance."""
        return min(
            self.rhombus(),
            key=lambda gon: abs(self.x - gon.x) + abs(self.y - gon.y),
        )

    def find(self, resolution: int) -> "HexCoord":
        """Lattice cell closest to this unit-square position."""
        return (self * resolution).nearest()

    def floor(self, resolution: int) -> "HexCoord":
        """Lattice cell found by truncating the scaled position."""
        return HexCoord(int(self.x * resolution), int(self.y * resolution))

    def tor(self) -> "PlanePoint":
        return PlanePoint(math.ceil(self.x) - self.x, math.ceil(self.y) - self.y)

    def distance(self, other: "PlanePoint") -> float:
        """
        Hexagonal distance on the unit torus.

        Both positions are taken inside the unit square; the result is scaled
        so that a third of the way along the diagonal measures one.
        """
        wrapped = (self - other).tor()
        best = min(
            _hex_metric(corner.x - wrapped.x, corner.y - wrapped.y)
            for corner in _UNIT_CORNERS
        )
        return best * 1.5


class HexCoord(NamedTuple):
    """Integer lattice address of a grid cell."""

    x: int
    y: int

    def __add__(self, other: "HexCoord") -> "HexCoord":
        return HexCoord(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "HexCoord") -> "HexCoord":
        return HexCoord(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: int) -> "HexCoord":
        return HexCoord(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __floordiv__(self, factor: int) -> "HexCoord":
        return HexCoord(self.x // factor, self.y // factor)

    def __neg__(self) -> "HexCoord":
        return HexCoord(-self.x, -self.y)

    def __mod__(self, modulus: int) -> "HexCoord":
        # Python's % is already the Euclidean remainder for positive moduli
        return HexCoord(self.x % modulus, self.y % modulus)

    def to_point(self) -> PlanePoint:
        return PlanePoint(float(self.x), float(self.y))

    def cast(self, resolution: int) -> PlanePoint:
        """Position of this cell inside the unit square."""
        return self.to_point() / resolution

    def to_index(self, resolution: int) -> int:
        """Linear index of the cell, wrapping out of range coordinates."""
        return (self.x % resolution) * resolution + self.y % resolution

    @classmethod
    def from_index(cls, index: int, resolution: int) -> "HexCoord":
        """Lattice coordinate of a linear index."""
        return cls(index // resolution, index % resolution)


_UNIT_CORNERS = (
    PlanePoint(0.0, 0.0),
    PlanePoint(1.0, 0.0),
    PlanePoint(0.0, 1.0),
    PlanePoint(1.0, 1.0),
)


def _hex_metric(dx, dy):
    return (abs(dx) + abs(dy) + abs(dx + dy)) / 2
