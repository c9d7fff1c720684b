"""
Climate pipeline over a toroidal elevation field.

This module implements:
- Ocean masking and altitude above ocean level
- Altitude temperature drop
- Continentality, evaporation and rainfall propagation
- Drainage and watershed accumulation
"""

from dataclasses import dataclass, field, fields
from typing import Optional

import numpy as np
import structlog

from ..config import Settings
from .continentality import ContinentalityOptions, continentality
from .drainage import DrainageGraph
from .field import Field
from .hydrology import (
    RainfallOptions,
    evapotranspiration_potential,
    rainfall,
    watershed,
)
from .units import Elevation, Temperature

logger = structlog.get_logger()

# Raw elevation of the ocean surface
OCEAN_LEVEL = 0.333333


@dataclass
class ClimateOptions:
    """Climate calculation options."""

    ocean_level: float = OCEAN_LEVEL  # Raw elevation below which cells are ocean
    lapse_rate: float = 1.0 / 162.0  # °C lost per metre of altitude
    use_continentality: bool = True  # Seed rainfall from continentality
    continentality: ContinentalityOptions = field(default_factory=ContinentalityOptions)
    rainfall: RainfallOptions = field(default_factory=RainfallOptions)

    @classmethod
    def from_settings(cls, config: Settings) -> "ClimateOptions":
        return cls(
            ocean_level=config.ocean_level,
            continentality=ContinentalityOptions.from_settings(config),
        )


def ocean_tiles(elevation: Field, level: float = OCEAN_LEVEL) -> Field:
    """Boolean field marking cells strictly below the ocean level."""
    return Field(elevation.grid < level, elevation.resolution, variable="ocean")


def altitude_above_ocean_level(elevation: Field, level: float = OCEAN_LEVEL) -> Field:
    """Raw height above the ocean surface, zero on the ocean."""
    grid = np.maximum(elevation.grid.astype(np.float64) - level, 0.0)
    return Field(grid, elevation.resolution, unit=Elevation, variable="altitude")


def temperature_at_altitude(
    temperature: Field, altitude: Field, lapse_rate: float = 1.0 / 162.0
) -> Field:
    """
    Cool ocean-level temperatures by the altitude of each cell.

    Altitude is converted to whole metres before the lapse rate is applied.
    """
    temperature.check_aligned(altitude)
    metres = np.trunc(altitude.grid.astype(np.float64) * Elevation.scale)
    celsius = Temperature.to_physical(temperature.grid) - metres * lapse_rate
    grid = np.asarray(Temperature.from_physical(celsius), dtype=np.float64)
    return Field(grid, temperature.resolution, unit=Temperature, variable="temperature")


@dataclass
class ClimateResult:
    """Fields produced by one climate run."""

    ocean: Field
    altitude: Field
    continentality: Field
    temperature: Field
    evaporation: Field
    rainfall: Field
    watershed: Field
    drainage: DrainageGraph

    def is_nan(self) -> bool:
        """True if any produced field holds NaN."""
        return any(
            getattr(self, item.name).is_nan()
            for item in fields(self)
            if isinstance(getattr(self, item.name), Field)
        )


class Climate:
    """Runs the climate stages over an elevation and temperature field."""

    def __init__(
        self,
        elevation: Field,
        temperature: Field,
        options: Optional[ClimateOptions] = None,
    ):
        """
        Initialize climate calculator.

        Args:
            elevation: Raw elevation, 0 deepest and 1 highest
            temperature: Raw temperature at ocean level
            options: Climate calculation options
        """
        elevation.check_aligned(temperature)
        self.elevation = elevation
        self.temperature_at_ocean = temperature
        self.options = options or ClimateOptions()

        self.ocean = None
        self.altitude = None
        self.continentality = None
        self.temperature = None
        self.evaporation = None
        self.precipitation = None
        self.drainage = None
        self.watershed = None

    def calculate_surface(self):
        """Mask the ocean and measure altitude above it."""
        logger.info("Calculating surface", ocean_level=self.options.ocean_level)
        self.ocean = ocean_tiles(self.elevation, self.options.ocean_level)
        self.altitude = altitude_above_ocean_level(self.elevation, self.options.ocean_level)
        logger.info("Surface calculated", ocean_cells=int(self.ocean.grid.sum()))
        if not self.ocean.grid.any():
            logger.warning("No ocean below ocean level, world stays dry")

    def calculate_continentality(self):
        self.continentality = continentality(
            self.altitude,
            self.temperature_at_ocean,
            self.ocean,
            self.options.continentality,
        )

    def calculate_temperatures(self):
        logger.info("Calculating temperatures", lapse_rate=self.options.lapse_rate)
        self.temperature = temperature_at_altitude(
            self.temperature_at_ocean, self.altitude, self.options.lapse_rate
        )

    def generate_precipitation(self):
        """Evaporate and spread rain inland from the ocean."""
        self.evaporation = evapotranspiration_potential(self.temperature)
        self.precipitation = rainfall(
            self.altitude,
            self.temperature,
            self.evaporation,
            self.ocean,
            self.continentality if self.options.use_continentality else None,
            self.options.rainfall,
        )

    def calculate_watershed(self):
        self.drainage = DrainageGraph.from_field(self.elevation)
        self.watershed = watershed(self.drainage, self.precipitation)

    def run(self) -> ClimateResult:
        """Run every stage in order and collect the results."""
        logger.info("Starting climate run", resolution=self.elevation.resolution)

        self.calculate_surface()
        self.calculate_continentality()
        self.calculate_temperatures()
        self.generate_precipitation()
        self.calculate_watershed()

        result = ClimateResult(
            ocean=self.ocean,
            altitude=self.altitude,
            continentality=self.continentality,
            temperature=self.temperature,
            evaporation=self.evaporation,
            rainfall=self.precipitation,
            watershed=self.watershed,
            drainage=self.drainage,
        )
        if result.is_nan():
            logger.warning("Climate run produced NaN values")
        logger.info("Climate run completed")
        return result
