"""Tests for toroidal fields."""

import numpy as np
import pytest
from py_hexclime.core.datum import HexCoord, PlanePoint
from py_hexclime.core.exceptions import (
    DownsampleFactorError,
    EmptyFieldError,
    FieldError,
    ResolutionMismatchError,
)
from py_hexclime.core.field import Field
from py_hexclime.core.units import Elevation, Temperature


class TestFieldConstruction:
    """Test building fields."""

    def test_from_values(self):
        field = Field.from_values([0.0, 1.0, 2.0, 3.0])

        assert field.resolution == 2
        assert len(field) == 4
        assert field.read(HexCoord(1, 0)) == 2.0

    def test_from_values_rejects_unsquare_length(self):
        with pytest.raises(FieldError):
            Field.from_values([0.0, 1.0, 2.0])

    def test_length_must_match_resolution(self):
        with pytest.raises(FieldError):
            Field(np.zeros(5), 2)

    def test_negative_resolution_rejected(self):
        with pytest.raises(FieldError):
            Field(np.zeros(0), -1)

    def test_units_inferred_from_values(self):
        field = Field.from_values([Elevation(0.1), Elevation(0.2), Elevation(0.3), Elevation(0.4)])

        assert field.unit is Elevation
        assert field.grid.dtype == np.float64
        assert field.quantity(2) == Elevation(0.3)

    def test_zeros_and_full(self):
        assert Field.zeros(3).grid.tolist() == [0.0] * 9

        full = Field.full(2, Temperature(0.5))
        assert full.unit is Temperature
        np.testing.assert_allclose(full.physical(), [9.0] * 4)

    @pytest.mark.parametrize("workers", [1, 2, 8])
    def test_create_by_index_independent_of_workers(self, workers):
        """Parallel construction collects results in index order."""
        field = Field.create_by_index(7, lambda j: (j * j) % 11, workers=workers)

        assert field.grid.tolist() == [(j * j) % 11 for j in range(49)]

    def test_create_by_coord(self):
        field = Field.create_by_coord(3, lambda coord: coord.x * 10 + coord.y, workers=2)

        assert field.grid.tolist() == [0, 1, 2, 10, 11, 12, 20, 21, 22]

    def test_create_by_coord_keeps_tuples_opaque(self):
        """Sequence values are stored per cell, not spread into columns."""
        field = Field.create_by_coord(2, lambda coord: coord, workers=1)

        assert field.grid.shape == (4,)
        assert field.read(HexCoord(1, 0)) == HexCoord(1, 0)

    def test_create_by_point(self):
        field = Field.create_by_point(4, lambda point: point.x + point.y)

        assert field.read(HexCoord(2, 1)) == pytest.approx(0.75)


class TestFieldMapping:
    """Test whole-field transformations."""

    @pytest.fixture
    def field(self):
        return Field.from_values([1.0, 2.0, 3.0, 4.0], variable="sample")

    def test_map_by_value(self, field):
        doubled = field.map_by_value(lambda value: value * 2, workers=3)

        assert doubled.grid.tolist() == [2.0, 4.0, 6.0, 8.0]
        assert field.grid.tolist() == [1.0, 2.0, 3.0, 4.0]

    def test_map_by_index(self, field):
        shifted = field.map_by_index(lambda j: field.grid[(j + 1) % 4])

        assert shifted.grid.tolist() == [2.0, 3.0, 4.0, 1.0]

    def test_apply_and_combine(self, field):
        squared = field.apply(np.square)
        total = field.combine(squared, np.add)

        assert total.grid.tolist() == [2.0, 6.0, 12.0, 20.0]

    def test_operators(self, field):
        other = Field.full(2, 2.0)

        assert (field + other).grid.tolist() == [3.0, 4.0, 5.0, 6.0]
        assert (field - other).grid.tolist() == [-1.0, 0.0, 1.0, 2.0]
        assert (field * 2).grid.tolist() == [2.0, 4.0, 6.0, 8.0]
        assert (2 * field).grid.tolist() == [2.0, 4.0, 6.0, 8.0]
        assert (field / other).grid.tolist() == [0.5, 1.0, 1.5, 2.0]

    def test_reflected_operators(self, field):
        """Scalars on the left subtract and divide the field."""
        assert (1 - field).grid.tolist() == [0.0, -1.0, -2.0, -3.0]
        assert (12 / field).grid.tolist() == [12.0, 6.0, 4.0, 3.0]
        assert (Elevation(1.0) - field).grid.tolist() == [0.0, -1.0, -2.0, -3.0]

    def test_mismatched_resolutions_rejected(self, field):
        """Combining fields of different resolutions is fatal."""
        with pytest.raises(ResolutionMismatchError) as excinfo:
            field + Field.zeros(3)

        assert excinfo.value.left == 2
        assert excinfo.value.right == 3

    def test_unit_helpers(self):
        field = Field.from_values([0.0, 0.5, 0.5, 1.0])

        with pytest.raises(FieldError):
            field.physical()

        confined = field.confine(Temperature)
        assert confined.unit is Temperature
        np.testing.assert_allclose(confined.physical(), [-27.0, 9.0, 9.0, 45.0])
        assert confined.release().unit is None


class TestFieldAccess:
    """Test coordinate lookups."""

    def test_get_nearest_cell(self):
        field = Field.create_by_index(4, lambda j: j)

        assert field.find(PlanePoint(0.5, 0.5)) == HexCoord(2, 2)
        assert field.get(PlanePoint(0.5, 0.5)) == 10

    def test_find_wraps(self):
        field = Field.zeros(4)

        assert field.find(PlanePoint(0.99, 0.0)) == HexCoord(0, 0)

    def test_read_wraps(self):
        field = Field.create_by_index(3, lambda j: j)

        assert field.read(HexCoord(-1, 4)) == 7

    def test_coords_in_index_order(self):
        field = Field.zeros(2)

        assert list(field.coords()) == [
            HexCoord(0, 0),
            HexCoord(0, 1),
            HexCoord(1, 0),
            HexCoord(1, 1),
        ]

    def test_ambit(self):
        field = Field.zeros(4)

        assert len(field.ambit(HexCoord(0, 0))) == 6


class TestResolutionChanges:
    """Test downsampling and resampling."""

    def test_downsample_point_samples(self):
        field = Field.create_by_index(4, lambda j: float(j))
        small = field.downsample(2)

        assert small.resolution == 2
        assert small.grid.tolist() == [0.0, 2.0, 8.0, 10.0]

    def test_downsample_factor_must_divide(self):
        with pytest.raises(DownsampleFactorError):
            Field.zeros(4).downsample(3)

    def test_resample_identity(self):
        field = Field.from_values([0.0, 1.0, 2.0, 3.0])

        np.testing.assert_array_equal(field.resample(2).grid, field.grid)

    def test_resample_bilinear(self):
        """2x2 to 3x3 blends the four straddling cells around the torus."""
        field = Field.from_values([0.0, 1.0, 2.0, 3.0])

        resampled = field.resample(3)

        assert resampled.resolution == 3
        np.testing.assert_allclose(
            resampled.grid,
            [0.0, 2 / 3, 2 / 3, 4 / 3, 2.0, 2.0, 4 / 3, 2.0, 2.0],
            atol=1e-12,
        )

    def test_resample_keeps_constant(self):
        field = Field.full(3, 0.25, unit=Elevation)

        resampled = field.resample(7)

        assert resampled.unit is Elevation
        np.testing.assert_allclose(resampled.grid, 0.25)

    def test_upsample_then_downsample_recovers_samples(self):
        """Upsampling by an integer factor keeps the source cells."""
        field = Field.create_by_index(3, lambda j: float(j) / 9)

        recovered = field.resample(6).downsample(2)

        np.testing.assert_allclose(recovered.grid, field.grid)


class TestStatistics:
    """Test summary statistics."""

    @pytest.fixture
    def field(self):
        return Field.from_values([4.0, 1.0, 3.0, 2.0])

    def test_extrema_and_mean(self, field):
        assert field.minimum() == 1.0
        assert field.maximum() == 4.0
        assert field.mean() == 2.5

    def test_quantiles(self, field):
        assert field.quantile(0.0) == 1.0
        assert field.quantile(1.0) == 4.0
        assert field.median() == 2.0

        with pytest.raises(ValueError):
            field.quantile(1.5)

    def test_sample_variance(self, field):
        assert field.variance() == pytest.approx(5.0 / 3.0)
        assert field.std() == pytest.approx(np.sqrt(5.0 / 3.0))

    def test_stats_summary(self, field):
        summary = field.stats()

        assert set(summary) == {"min", "median", "mean", "max", "std"}

    def test_empty_field_statistics_fail(self):
        """Statistics on a field without cells raise."""
        empty = Field(np.zeros(0), 0)

        assert len(empty) == 0
        with pytest.raises(EmptyFieldError):
            empty.mean()
        with pytest.raises(EmptyFieldError):
            empty.quantile(0.5)

    def test_normalise(self):
        field = Field.from_values([2.0, 4.0, 6.0, 8.0])

        np.testing.assert_allclose(field.normalise().grid, [0.0, 1 / 3, 2 / 3, 1.0])

    def test_normalise_constant_yields_nan(self):
        """A constant field has no range; NaN propagates and is detectable."""
        field = Field.full(2, 3.0)

        assert not field.is_nan()
        assert field.normalise().is_nan()
