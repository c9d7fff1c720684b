"""
Dense square fields over the toroidal hexagonal grid.

A field of resolution R owns exactly R**2 values in a flat numpy array. The
cell at lattice coordinate (x, y) lives at linear index x * R + y, and all
neighbourhood queries wrap around the torus.

This module implements:
- Parallel construction and mapping with index-ordered results
- Element-wise combination of fields with matching resolutions
- Point-sampled downsampling and toroidal bilinear resampling
- Summary statistics and normalisation
- Physical-unit tagging of raw [0, 1] values
"""

from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Type

import numpy as np
import structlog

from ..utils.parallel import parallel_map
from .datum import HexCoord, PlanePoint
from .exceptions import (
    DownsampleFactorError,
    EmptyFieldError,
    FieldError,
    ResolutionMismatchError,
)
from .honeycomb import ambit_toroidal
from .units import Unit

logger = structlog.get_logger()

# Sentinel meaning "carry over the unit of the source field"
_KEEP = object()


def _collect(values: Sequence[Any]):
    """Turn generated values into an array, unwrapping unit instances."""
    if isinstance(values, np.ndarray):
        return values, None

    values = list(values)
    if values and isinstance(values[0], Unit):
        unit = type(values[0])
        return np.array([value.raw for value in values], dtype=np.float64), unit

    grid = np.asarray(values) if values else np.zeros(0, dtype=np.float64)
    if grid.ndim != 1:
        # sequences as cell values (tuples, coordinates) stay opaque
        grid = np.empty(len(values), dtype=object)
        for j, value in enumerate(values):
            grid[j] = value
    return grid, None


def _check_resolution(resolution: int) -> int:
    if int(resolution) != resolution or resolution <= 0:
        raise FieldError(f"resolution must be a positive integer, got {resolution}")
    return int(resolution)


class Field:
    """Square grid of values addressed by hexagonal lattice coordinates."""

    def __init__(
        self,
        grid,
        resolution: int,
        unit: Optional[Type[Unit]] = None,
        variable: str = "field",
    ):
        """
        Wrap a flat array as a field.

        Args:
            grid: Flat sequence of resolution**2 values
            resolution: Side length of the square grid
            unit: Optional unit class describing raw float values
            variable: Name used for logging and persistence
        """
        if resolution < 0:
            raise FieldError(f"resolution must not be negative, got {resolution}")
        grid = grid if isinstance(grid, np.ndarray) else _collect(grid)[0]
        if grid.ndim != 1 or grid.size != resolution * resolution:
            raise FieldError(
                f"field of resolution {resolution} needs {resolution * resolution} "
                f"values, got shape {grid.shape}"
            )
        self.grid = grid
        self.resolution = int(resolution)
        self.unit = unit
        self.variable = variable

    # Construction

    @classmethod
    def from_values(
        cls,
        values: Sequence[Any],
        unit: Optional[Type[Unit]] = None,
        variable: str = "from-values",
    ) -> "Field":
        """Build a field from a flat square-length sequence."""
        grid, inferred = _collect(values)
        resolution = int(round(np.sqrt(grid.size)))
        if resolution * resolution != grid.size:
            logger.error("Cannot build field from unsquare vector", length=grid.size)
            raise FieldError(f"cannot build a field from {grid.size} values, not a square")
        return cls(grid, resolution, unit=unit or inferred, variable=variable)

    @classmethod
    def zeros(cls, resolution: int, unit: Optional[Type[Unit]] = None) -> "Field":
        resolution = _check_resolution(resolution)
        return cls(np.zeros(resolution * resolution), resolution, unit=unit, variable="zeros")

    @classmethod
    def full(cls, resolution: int, value, unit: Optional[Type[Unit]] = None) -> "Field":
        resolution = _check_resolution(resolution)
        if isinstance(value, Unit):
            unit, value = type(value), value.raw
        return cls(np.full(resolution * resolution, value), resolution, unit=unit, variable="full")

    @classmethod
    def create_by_index(
        cls,
        resolution: int,
        fn: Callable[[int], Any],
        workers: Optional[int] = None,
        unit: Optional[Type[Unit]] = None,
        variable: str = "field",
    ) -> "Field":
        """
        Generate a field by evaluating fn on every linear index.

        Cells are evaluated in parallel and collected in index order, so the
        result does not depend on the worker count.
        """
        resolution = _check_resolution(resolution)
        logger.debug("Creating field", variable=variable, resolution=resolution)
        values = parallel_map(fn, range(resolution * resolution), workers)
        grid, inferred = _collect(values)
        return cls(grid, resolution, unit=unit or inferred, variable=variable)

    @classmethod
    def create_by_coord(
        cls,
        resolution: int,
        fn: Callable[[HexCoord], Any],
        workers: Optional[int] = None,
        unit: Optional[Type[Unit]] = None,
        variable: str = "field",
    ) -> "Field":
        """Generate a field by evaluating fn on every lattice coordinate."""
        resolution = _check_resolution(resolution)
        return cls.create_by_index(
            resolution,
            lambda j: fn(HexCoord.from_index(j, resolution)),
            workers=workers,
            unit=unit,
            variable=variable,
        )

    @classmethod
    def create_by_point(
        cls,
        resolution: int,
        fn: Callable[[PlanePoint], Any],
        workers: Optional[int] = None,
        unit: Optional[Type[Unit]] = None,
        variable: str = "field",
    ) -> "Field":
        """Generate a field by evaluating fn at every cell's unit-square position."""
        resolution = _check_resolution(resolution)
        return cls.create_by_index(
            resolution,
            lambda j: fn(HexCoord.from_index(j, resolution).cast(resolution)),
            workers=workers,
            unit=unit,
            variable=variable,
        )

    def copy(self) -> "Field":
        return Field(self.grid.copy(), self.resolution, unit=self.unit, variable=self.variable)

    def _derive(self, grid, unit=_KEEP, variable: Optional[str] = None) -> "Field":
        return Field(
            grid,
            self.resolution,
            unit=self.unit if unit is _KEEP else unit,
            variable=variable or self.variable,
        )

    # Mapping

    def map_by_index(
        self,
        fn: Callable[[int], Any],
        workers: Optional[int] = None,
        unit: Optional[Type[Unit]] = None,
    ) -> "Field":
        """New field of fn(j) for every linear index j, evaluated in parallel."""
        grid, inferred = _collect(parallel_map(fn, range(self.grid.size), workers))
        return self._derive(grid, unit=unit or inferred)

    def map_by_value(
        self,
        fn: Callable[[Any], Any],
        workers: Optional[int] = None,
        unit: Optional[Type[Unit]] = None,
    ) -> "Field":
        """New field of fn(value) for every stored value, evaluated in parallel."""
        grid, inferred = _collect(parallel_map(fn, self.grid.tolist(), workers))
        return self._derive(grid, unit=unit or inferred)

    def apply(self, fn: Callable[[np.ndarray], np.ndarray], unit=_KEEP) -> "Field":
        """New field from a vectorised transform of the whole grid."""
        return self._derive(np.asarray(fn(self.grid)), unit=unit)

    def combine(self, other: "Field", fn: Callable[[np.ndarray, np.ndarray], np.ndarray], unit=_KEEP) -> "Field":
        """New field from a vectorised transform of two aligned grids."""
        self.check_aligned(other)
        return self._derive(np.asarray(fn(self.grid, other.grid)), unit=unit)

    def check_aligned(self, other: "Field") -> None:
        if self.resolution != other.resolution:
            logger.error(
                "Field resolution mismatch",
                left=self.variable,
                right=other.variable,
                left_resolution=self.resolution,
                right_resolution=other.resolution,
            )
            raise ResolutionMismatchError(self.resolution, other.resolution)

    def _operate(self, other, op) -> "Field":
        if isinstance(other, Field):
            return self.combine(other, op)
        if isinstance(other, Unit):
            other = other.raw
        return self.apply(lambda grid: op(grid, other))

    def __add__(self, other):
        return self._operate(other, np.add)

    def __sub__(self, other):
        return self._operate(other, np.subtract)

    def __mul__(self, other):
        return self._operate(other, np.multiply)

    def __truediv__(self, other):
        return self._operate(other, np.true_divide)

    def __rsub__(self, other):
        return self._operate(other, lambda grid, value: np.subtract(value, grid))

    def __rtruediv__(self, other):
        return self._operate(other, lambda grid, value: np.true_divide(value, grid))

    __radd__ = __add__
    __rmul__ = __mul__

    # Access

    def __len__(self) -> int:
        return self.grid.size

    def __iter__(self) -> Iterator[Any]:
        return iter(self.grid)

    def __repr__(self) -> str:
        unit = self.unit.__name__ if self.unit else None
        return f"Field(variable={self.variable!r}, resolution={self.resolution}, unit={unit})"

    def indices(self) -> range:
        return range(self.grid.size)

    def coords(self) -> Iterator[HexCoord]:
        """Lattice coordinates of all cells in index order."""
        return (HexCoord.from_index(j, self.resolution) for j in self.indices())

    def read(self, coord: HexCoord):
        """Value stored at a lattice coordinate (wrapped onto the torus)."""
        return self.grid[coord.to_index(self.resolution)]

    def get(self, point: PlanePoint):
        """Value of the cell nearest to a unit-square position."""
        return self.read(self.find(point))

    def find(self, point: PlanePoint) -> HexCoord:
        return point.find(self.resolution) % self.resolution

    def cast(self, coord: HexCoord) -> PlanePoint:
        return coord.cast(self.resolution)

    def ambit(self, coord: HexCoord) -> List[HexCoord]:
        return ambit_toroidal(coord, self.resolution)

    def quantity(self, index: int):
        """Value at a linear index, wrapped in the field's unit if it has one."""
        value = self.grid[index]
        return self.unit(value) if self.unit else value

    # Units

    def release(self) -> "Field":
        """Raw float copy without a unit tag."""
        return self._derive(self.grid.astype(np.float64), unit=None)

    def confine(self, unit: Type[Unit]) -> "Field":
        """Same raw values tagged with a unit."""
        return self._derive(self.grid.astype(np.float64), unit=unit)

    def physical(self) -> np.ndarray:
        """Values on the unit's physical scale."""
        if self.unit is None:
            raise FieldError(f"field {self.variable!r} has no unit")
        return self.unit.to_physical(self.grid)

    # Resolution changes

    def _square(self) -> np.ndarray:
        return self.grid.reshape(self.resolution, self.resolution)

    def downsample(self, factor: int) -> "Field":
        """Keep every factor-th row and column."""
        if factor <= 0 or self.resolution % factor:
            raise DownsampleFactorError(
                f"factor {factor} does not divide resolution {self.resolution}"
            )
        grid = self._square()[::factor, ::factor].ravel().copy()
        return Field(grid, self.resolution // factor, unit=self.unit, variable=self.variable)

    def resample(self, resolution: int) -> "Field":
        """
        Interpolate the field onto another resolution.

        Each target cell maps to the continuous source coordinate
        x * R_source / R_target and is blended bilinearly from the four
        source cells around it, first along y, then along x. The upper
        neighbours wrap around the torus.
        """
        resolution = _check_resolution(resolution)
        if resolution == self.resolution:
            return self.copy()

        logger.debug(
            "Resampling field",
            variable=self.variable,
            source=self.resolution,
            target=resolution,
        )
        source = self._square().astype(np.float64)
        lower, upper, weight = self._interpolation_axis(resolution)

        rows = source[:, lower] * (1.0 - weight) + source[:, upper] * weight
        grid = (
            rows[lower, :] * (1.0 - weight)[:, None]
            + rows[upper, :] * weight[:, None]
        )
        return Field(grid.ravel(), resolution, unit=self.unit, variable=self.variable)

    def _interpolation_axis(self, resolution: int):
        position = np.arange(resolution) * self.resolution / resolution
        lower = np.floor(position).astype(np.int64)
        weight = position - lower
        upper = (lower + 1) % self.resolution
        return lower % self.resolution, upper, weight

    # Statistics

    def _numeric(self) -> np.ndarray:
        if self.grid.size == 0:
            raise EmptyFieldError(f"field {self.variable!r} is empty")
        return self.grid.astype(np.float64)

    def minimum(self) -> float:
        return float(np.min(self._numeric()))

    def maximum(self) -> float:
        return float(np.max(self._numeric()))

    def quantile(self, q: float) -> float:
        """Value at position floor(q * (n - 1)) of the sorted cells."""
        if not 0.0 <= q <= 1.0:
            raise ValueError(f"quantile must lie in [0, 1], got {q}")
        ordered = np.sort(self._numeric())
        return float(ordered[int(q * (ordered.size - 1))])

    def median(self) -> float:
        return self.quantile(0.5)

    def mean(self) -> float:
        return float(np.mean(self._numeric()))

    def variance(self) -> float:
        """Sample variance; NaN for a single cell."""
        values = self._numeric()
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.sum((values - values.mean()) ** 2) / np.float64(values.size - 1))

    def std(self) -> float:
        return float(np.sqrt(self.variance()))

    def stats(self) -> Dict[str, float]:
        """Summary statistics of the field."""
        summary = {
            "min": self.minimum(),
            "median": self.median(),
            "mean": self.mean(),
            "max": self.maximum(),
            "std": self.std(),
        }
        logger.info("Field statistics", variable=self.variable, **summary)
        return summary

    def normalise(self) -> "Field":
        """Affine remap so the minimum becomes 0 and the maximum 1."""
        values = self._numeric()
        low, high = values.min(), values.max()
        with np.errstate(divide="ignore", invalid="ignore"):
            grid = np.clip((values - low) / (high - low), 0.0, 1.0)
        return self._derive(grid)

    def is_nan(self) -> bool:
        """True if any cell holds NaN."""
        if self.grid.dtype.kind != "f":
            return False
        return bool(np.isnan(self.grid).any())
