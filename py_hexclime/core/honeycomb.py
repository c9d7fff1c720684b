"""
Hexagonal topology on the plane and on the torus.

This module implements:
- Neighbour, ring and ball queries on an unbounded honeycomb
- The same queries wrapped around a torus of a given modulus
- Toroidal hexagonal distance and ball volumes
- Hexagon geometry (cell centres and corners) for rendering consumers
- A vectorised neighbour table used by the propagation algorithms

Callers must keep query radii below half of the modulus; larger radii visit
cells more than once on the torus.
"""

import math
from enum import IntEnum
from typing import List, Union

import numpy as np

from .datum import HexCoord, PlanePoint

SQRT3 = math.sqrt(3.0)


class Direction(IntEnum):
    """The six hexagonal directions in their fixed walking order."""

    XP = 0
    ZN = 1
    YP = 2
    XN = 3
    ZP = 4
    YN = 5

    @classmethod
    def of(cls, value: int) -> "Direction":
        """Direction for any integer, reduced modulo 6."""
        return cls(value % 6)

    def opposite(self) -> "Direction":
        return Direction.of(self + 3)


DIRECTION_OFFSETS = (
    HexCoord(1, 0),
    HexCoord(1, -1),
    HexCoord(0, -1),
    HexCoord(-1, 0),
    HexCoord(-1, 1),
    HexCoord(0, 1),
)


# Planar honeycomb


def neighbour_planar(coord: HexCoord, direction: int) -> HexCoord:
    """Adjacent cell in the given direction on the unbounded plane."""
    return coord + DIRECTION_OFFSETS[direction % 6]


def ambit_planar(coord: HexCoord) -> List[HexCoord]:
    """The six neighbours of a cell, in direction order."""
    return [coord + offset for offset in DIRECTION_OFFSETS]


def ring_planar(coord: HexCoord, radius: int) -> List[HexCoord]:
    """All cells at exactly ``radius`` steps from ``coord``."""
    if radius == 0:
        return [coord]

    gon = coord + HexCoord(-radius, radius)
    ring = []
    for direction in Direction:
        for _ in range(radius):
            ring.append(gon)
            gon = neighbour_planar(gon, direction)
    return ring


def ball_planar(coord: HexCoord, radius: int) -> List[HexCoord]:
    """All cells at most ``radius`` steps from ``coord``, ring by ring."""
    ball = []
    for j in range(radius + 1):
        ball.extend(ring_planar(coord, j))
    return ball


# Toroidal honeycomb


def neighbour_toroidal(coord: HexCoord, direction: int, modulus: int) -> HexCoord:
    """Adjacent cell in the given direction, wrapped onto the torus."""
    return neighbour_planar(coord, direction) % modulus


def ambit_toroidal(coord: HexCoord, modulus: int) -> List[HexCoord]:
    """The six toroidal neighbours of a cell, in direction order."""
    return [(coord + offset) % modulus for offset in DIRECTION_OFFSETS]


def ring_toroidal(coord: HexCoord, radius: int, modulus: int) -> List[HexCoord]:
    """Toroidal ring of cells at exactly ``radius`` steps."""
    if radius == 0:
        return [coord % modulus]

    gon = (coord + HexCoord(-radius, radius)) % modulus
    ring = []
    for direction in Direction:
        for _ in range(radius):
            ring.append(gon)
            gon = neighbour_toroidal(gon, direction, modulus)
    return ring


def ball_toroidal(coord: HexCoord, radius: int, modulus: int) -> List[HexCoord]:
    """Toroidal ball of cells at most ``radius`` steps away."""
    ball = []
    for j in range(radius + 1):
        ball.extend(ring_toroidal(coord, j, modulus))
    return ball


def dist_toroidal(a: HexCoord, b: HexCoord, modulus: int) -> int:
    """
    Hexagonal distance between two cells on the torus.

    The difference is reduced into the fundamental square and the shortest of
    its four torus images is measured with the hex metric.
    """
    d = (a - b) % modulus
    images = (
        HexCoord(0, 0),
        HexCoord(modulus, 0),
        HexCoord(0, modulus),
        HexCoord(modulus, modulus),
    )
    return min(
        (abs(z.x - d.x) + abs(z.y - d.y) + abs(z.x - d.x + z.y - d.y)) // 2
        for z in images
    )


def ball_volume(radius: int) -> int:
    """Number of cells in a ball of the given radius."""
    return 3 * radius * (radius + 1) + 1


def ball_cone_volume(radius: int) -> int:
    """Total weight of a ball whose rings are weighted ``radius + 1 - j``."""
    return (radius + 1) ** 3


def neighbour_table(resolution: int) -> np.ndarray:
    """
    Linear indices of the toroidal neighbours of every cell.

    Returns:
        Integer array of shape (resolution**2, 6); column d holds the
        neighbour in direction d.
    """
    index = np.arange(resolution * resolution)
    x = index // resolution
    y = index % resolution
    table = np.empty((index.size, 6), dtype=np.int64)
    for direction, offset in enumerate(DIRECTION_OFFSETS):
        table[:, direction] = ((x + offset.x) % resolution) * resolution + (
            y + offset.y
        ) % resolution
    return table


# Hexagon geometry


def centre(coord: Union[HexCoord, PlanePoint]) -> PlanePoint:
    """Centre of a cell on the plane under the hex packing basis."""
    return PlanePoint(
        coord.x * 1.5,
        coord.x * SQRT3 / 2.0 + coord.y * SQRT3,
    )


def corner(cell_centre: PlanePoint, direction: int) -> PlanePoint:
    """Corner of a unit hexagon in the given direction."""
    angle = (direction % 6) * math.tau / 6.0
    return cell_centre + PlanePoint(math.cos(angle), math.sin(angle))


def corners(coord: Union[HexCoord, PlanePoint]) -> List[PlanePoint]:
    """The six corners of a cell's hexagon."""
    cell_centre = centre(coord)
    return [corner(cell_centre, direction) for direction in Direction]
