"""
Continentality: wind-weighted distance from the nearest ocean.

Ocean cells start at zero and every other cell at infinity. A FIFO frontier
seeded with all ocean cells relaxes neighbours whenever the path through the
current cell is strictly cheaper. The step cost is the co-wind between two
neighbours scaled by the resolution, so the value approximates how far inland
air has to travel against the wind.

The relaxation is label correcting rather than Dijkstra: it may revisit
cells, but converges to the same minimum for non-negative costs and always
terminates because every accepted update strictly lowers a value bounded
below by zero.
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np
import structlog

from ..config import Settings
from .circulation import edge_cowinds
from .exceptions import PropagationError
from .field import Field
from .honeycomb import neighbour_table

logger = structlog.get_logger()


@dataclass
class ContinentalityOptions:
    """Continentality calculation options."""

    cost_scale: float = 8.0  # Multiplier of the co-wind step cost
    max_relaxations: int = 0  # Bound on accepted updates, 0 for unbounded

    @classmethod
    def from_settings(cls, config: Settings) -> "ContinentalityOptions":
        return cls(
            cost_scale=config.continentality_cost_scale,
            max_relaxations=config.max_relaxations,
        )


def continentality(
    altitude: Field,
    temperature: Field,
    ocean: Field,
    options: Optional[ContinentalityOptions] = None,
) -> Field:
    """
    Calculate the co-wind distance of every cell from the ocean.

    Args:
        altitude: Raw altitude above ocean level
        temperature: Raw temperature
        ocean: Boolean field marking ocean cells
        options: Cost scale and relaxation bound

    Returns:
        Non-negative field, zero exactly on ocean cells; cells that cannot be
        reached from any ocean stay infinite.
    """
    options = options or ContinentalityOptions()
    altitude.check_aligned(temperature)
    altitude.check_aligned(ocean)

    resolution = altitude.resolution
    logger.info("Calculating continentality", resolution=resolution)

    neighbours = neighbour_table(resolution).tolist()
    costs = (options.cost_scale * edge_cowinds(altitude, temperature) / resolution).tolist()

    distance = [math.inf] * (resolution * resolution)
    queue = deque()
    for index, is_ocean in enumerate(ocean.grid.tolist()):
        if is_ocean:
            distance[index] = 0.0
            queue.append(index)

    relaxations = 0
    while queue:
        here = queue.popleft()
        for target, cost in zip(neighbours[here], costs[here]):
            candidate = distance[here] + cost
            if distance[target] > candidate:
                distance[target] = candidate
                queue.append(target)
                relaxations += 1
                if options.max_relaxations and relaxations > options.max_relaxations:
                    logger.error(
                        "Continentality did not settle",
                        relaxations=relaxations,
                        limit=options.max_relaxations,
                    )
                    raise PropagationError(
                        f"continentality exceeded {options.max_relaxations} relaxations"
                    )

    grid = np.array(distance, dtype=np.float64)
    logger.info(
        "Continentality calculated",
        relaxations=relaxations,
        unreachable=int(np.isinf(grid).sum()),
    )
    return Field(grid, resolution, variable="continentality")
