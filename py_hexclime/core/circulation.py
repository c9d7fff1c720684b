"""
Surface wind model shared by the propagation algorithms.

Wind between two neighbouring cells grows with the temperature drop from
source to target and collapses when the target sits higher than the source.
Its complement, co-wind, is the cost of carrying air against the wind and
drives continentality.
"""

import math

import numpy as np

from .field import Field
from .honeycomb import neighbour_table

# Base of the exponential uphill damping
UPHILL_BASE = 18.0


def wind(
    elevation_source: float,
    temperature_source: float,
    elevation_target: float,
    temperature_target: float,
) -> float:
    """
    Wind strength from source to target, roughly between 0 and 2.

    0 means no wind and 2 means strong wind; all inputs are raw values.
    """
    uphill = min(elevation_source - elevation_target, 0.0) * math.pi / 2.0
    return max(
        (temperature_source - temperature_target) + UPHILL_BASE ** math.tan(uphill),
        0.0,
    )


def cowind(
    elevation_source: float,
    temperature_source: float,
    elevation_target: float,
    temperature_target: float,
) -> float:
    """Non-negative cost of moving air from source to target."""
    return max(
        2.0 - wind(elevation_source, temperature_source, elevation_target, temperature_target),
        0.0,
    )


def wind_array(elevation_source, temperature_source, elevation_target, temperature_target):
    """Vectorised wind over numpy arrays."""
    uphill = np.minimum(elevation_source - elevation_target, 0.0) * np.pi / 2.0
    return np.maximum(
        (temperature_source - temperature_target) + np.power(UPHILL_BASE, np.tan(uphill)),
        0.0,
    )


def edge_winds(altitude: Field, temperature: Field) -> np.ndarray:
    """
    Wind from every cell towards each of its six toroidal neighbours.

    Returns:
        Array of shape (R**2, 6) matching honeycomb.neighbour_table
    """
    altitude.check_aligned(temperature)
    table = neighbour_table(altitude.resolution)
    elevation = altitude.grid.astype(np.float64)
    heat = temperature.grid.astype(np.float64)
    return wind_array(
        elevation[:, None], heat[:, None], elevation[table], heat[table]
    )


def edge_cowinds(altitude: Field, temperature: Field) -> np.ndarray:
    """Co-wind cost from every cell towards each of its six neighbours."""
    return np.maximum(2.0 - edge_winds(altitude, temperature), 0.0)
