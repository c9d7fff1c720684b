"""
Core climate functionality.
"""

from .datum import HexCoord, PlanePoint
from .field import Field
from .drainage import DrainageGraph
from .continentality import ContinentalityOptions, continentality
from .hydrology import RainfallOptions, evapotranspiration_potential, rainfall, watershed
from .climate import Climate, ClimateOptions, ClimateResult
from .raster import RasterStore, ResolutionIndex
from .units import Elevation, Precipitation, Temperature

__all__ = ['HexCoord', 'PlanePoint', 'Field', 'DrainageGraph',
           'ContinentalityOptions', 'continentality',
           'RainfallOptions', 'evapotranspiration_potential', 'rainfall', 'watershed',
           'Climate', 'ClimateOptions', 'ClimateResult',
           'RasterStore', 'ResolutionIndex',
           'Elevation', 'Precipitation', 'Temperature']
