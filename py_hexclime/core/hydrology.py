"""
Hydrology: evaporation, wind-driven rainfall and watershed accumulation.

Rainfall is spread inland from the oceans by a damped FIFO propagation.
Every cell may accept a limited number of updates; a strictly wetter
estimate replaces the stored value and re-queues the cell, any other
estimate is blended into it. The stored values live on a log2 scale and
are mapped back with 2**x - 1 once propagation has settled.

Watershed sums rainfall downstream along the drainage forest so that every
cell holds the water of its whole catchment.
"""

from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import structlog

from .circulation import edge_winds, wind_array
from .drainage import DrainageGraph
from .exceptions import ResolutionMismatchError
from .field import Field
from .honeycomb import Direction, neighbour_table
from .units import Precipitation

logger = structlog.get_logger()

# Lower bound of the evaporation potential
MIN_EVAPORATION = 1.0 / 216.0

# Neighbours of a cell in ring order, starting from (-1, +1)
RING_ORDER = (
    Direction.ZP,
    Direction.YN,
    Direction.XP,
    Direction.ZN,
    Direction.YP,
    Direction.XN,
)


@dataclass
class RainfallOptions:
    """Rainfall propagation options."""

    update_limit: int = 2  # Updates each cell may accept
    fresh_weight: float = 0.7  # Weight of a non-improving estimate when blended
    stale_weight: float = 0.3  # Weight of the stored value when blended


def evapotranspiration_potential(temperature: Field) -> Field:
    """
    Potential evaporation from raw temperature.

    Grows exponentially with temperature, is clamped below at 1/216 and
    comes out in raw precipitation units.
    """
    logger.info("Calculating evaporation potential", resolution=temperature.resolution)
    heat = np.maximum(temperature.grid.astype(np.float64), 0.0)
    grid = np.maximum(np.power(2.0, heat) - 1.0, MIN_EVAPORATION)
    return Field(grid, temperature.resolution, unit=Precipitation, variable="evaporation")


def _available(evaporation: float, precipitation: float) -> float:
    # a NaN on either side keeps the evaporation
    return precipitation if evaporation > precipitation else evaporation


def _inflow_tables(altitude: Field, temperature: Field):
    """
    Sources feeding every cell and the share of their water it receives.

    A source spreads its water over itself and its six neighbours in
    proportion to the wind towards each of them. Rows are in ball order:
    the cell itself, then its ring.
    """
    size = altitude.resolution * altitude.resolution
    table = neighbour_table(altitude.resolution)
    winds = edge_winds(altitude, temperature)
    share = 1.0 / (1.0 + winds.sum(axis=1))

    elevation = altitude.grid.astype(np.float64)
    heat = temperature.grid.astype(np.float64)
    still = wind_array(elevation, heat, elevation, heat)

    ring = [int(direction) for direction in RING_ORDER]
    back = [int(Direction(direction).opposite()) for direction in ring]
    sources = np.concatenate([np.arange(size)[:, None], table[:, ring]], axis=1)
    incoming = np.concatenate([still[:, None], winds[table[:, ring], back]], axis=1)
    return sources, incoming * share[sources]


def rainfall_relaxation(
    altitude: Field,
    temperature: Field,
    evaporation: Field,
    ocean: Field,
    continentality: Optional[Field] = None,
    options: Optional[RainfallOptions] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run the damped rainfall propagation on the log2 scale.

    Returns:
        Tuple of (settled values before the 2**x - 1 mapping, number of
        times each cell was taken off the frontier)
    """
    options = options or RainfallOptions()
    for other in (temperature, evaporation, ocean):
        altitude.check_aligned(other)
    if continentality is not None:
        altitude.check_aligned(continentality)

    size = altitude.resolution * altitude.resolution
    available = evaporation.grid.astype(np.float64)
    is_ocean = ocean.grid.astype(bool)

    if continentality is not None:
        distance = continentality.grid.astype(np.float64)
        # cells no ocean reaches start dry
        seed = np.where(np.isfinite(distance), available * (1.0 - distance), 0.0)
    else:
        seed = np.where(is_ocean, available, 0.0)

    sources, weights = _inflow_tables(altitude, temperature)
    neighbours = neighbour_table(altitude.resolution).tolist()
    sources = sources.tolist()
    weights = weights.tolist()
    available = available.tolist()
    precipitation = seed.tolist()
    budget = [options.update_limit] * size
    visits = [0] * size

    queue = deque(np.flatnonzero(is_ocean).tolist())
    while queue:
        cell = queue.popleft()
        visits[cell] += 1
        for target in neighbours[cell]:
            if budget[target] <= 0:
                continue
            rain = sum(
                _available(available[source], precipitation[source]) * weight
                for source, weight in zip(sources[target], weights[target])
            )
            stored = precipitation[target]
            budget[target] -= 1
            if stored < rain:
                precipitation[target] = rain
                queue.append(target)
            else:
                precipitation[target] = rain * options.fresh_weight + stored * options.stale_weight

    logger.debug("Rainfall settled", frontier_pops=sum(visits))
    return np.array(precipitation, dtype=np.float64), np.array(visits, dtype=np.int64)


def rainfall(
    altitude: Field,
    temperature: Field,
    evaporation: Field,
    ocean: Field,
    continentality: Optional[Field] = None,
    options: Optional[RainfallOptions] = None,
) -> Field:
    """
    Distribute precipitation inland from the oceans.

    Args:
        altitude: Raw altitude above ocean level
        temperature: Raw temperature
        evaporation: Evaporation potential
        ocean: Boolean field marking ocean cells
        continentality: Optional co-wind distance from the ocean; without it
            oceans start from their evaporation and land from zero
        options: Update limit and blending weights

    Returns:
        Precipitation field in raw units
    """
    logger.info("Calculating rainfall", resolution=altitude.resolution)
    settled, visits = rainfall_relaxation(
        altitude, temperature, evaporation, ocean, continentality, options
    )
    grid = np.power(2.0, settled) - 1.0
    logger.info(
        "Rainfall calculated",
        max_visits=int(visits.max()) if visits.size else 0,
        wettest=float(grid.max()) if grid.size else 0.0,
    )
    return Field(grid, altitude.resolution, unit=Precipitation, variable="rainfall")


def watershed(drainage: DrainageGraph, rainfall: Field) -> Field:
    """
    Accumulate rainfall downstream along the drainage forest.

    Each cell receives its own rainfall plus that of every cell draining
    into it. Totals are conserved: the roots together hold all the water.
    """
    if drainage.resolution != rainfall.resolution:
        logger.error(
            "Drainage and rainfall resolutions differ",
            drainage=drainage.resolution,
            rainfall=rainfall.resolution,
        )
        raise ResolutionMismatchError(drainage.resolution, rainfall.resolution)

    logger.info("Calculating watershed", roots=len(drainage.roots))
    grid = drainage.accumulate(rainfall.grid)
    return Field(grid, rainfall.resolution, unit=Precipitation, variable="watershed")

