"""Tests for physical units and integer quantisation."""

import numpy as np
import pytest
from py_hexclime.core.units import (
    Elevation,
    Precipitation,
    Temperature,
    decode_raw,
    encode_raw,
)


class TestUnits:
    """Test raw to physical conversions."""

    def test_elevation_meters(self):
        assert Elevation(0.5).meters() == 6912
        assert Elevation(1.0).meters() == 13824
        assert Elevation(0.0001).meters() == 1

    def test_temperature_celsius(self):
        """Raw temperature maps affinely onto [-27, 45] °C."""
        assert Temperature(0.0).celsius() == -27.0
        assert Temperature(1.0).celsius() == 45.0
        assert Temperature.from_celsius(9.0).raw == pytest.approx(0.5)

    def test_precipitation_clamped_at_zero(self):
        assert Precipitation(1.0).millimeters() == 324.0
        assert Precipitation(-0.1).millimeters() == 0.0

    def test_array_conversion(self):
        celsius = Temperature.to_physical(np.array([0.0, 0.5, 1.0]))

        np.testing.assert_allclose(celsius, [-27.0, 9.0, 45.0])
        np.testing.assert_allclose(Temperature.from_physical(celsius), [0.0, 0.5, 1.0])

    def test_str_shows_physical_value(self):
        assert str(Elevation(0.5)) == "6912 m"
        assert str(Temperature(0.5)) == "9 °C"
        assert str(Precipitation(-0.1)) == "0 mm"

    def test_confine_release(self):
        value = Elevation.confine(0.25)

        assert isinstance(value, Elevation)
        assert value.release() == 0.25
        assert float(value) == 0.25


class TestUnitArithmetic:
    """Test arithmetic mirroring the raw values."""

    def test_same_unit_arithmetic(self):
        assert Elevation(0.25) + Elevation(0.5) == Elevation(0.75)
        assert Elevation(0.75) - Elevation(0.5) == Elevation(0.25)
        assert Elevation(0.25) * 2 == Elevation(0.5)
        assert 2 * Elevation(0.25) == Elevation(0.5)
        assert Elevation(0.5) / 2 == Elevation(0.25)
        assert -Elevation(0.5) == Elevation(-0.5)

    def test_mixed_units_rejected(self):
        """Different units never combine."""
        with pytest.raises(TypeError):
            Elevation(0.5) + Temperature(0.5)

        assert Elevation(0.5) != Temperature(0.5)

    def test_sum_and_ordering(self):
        values = [Precipitation(0.3), Precipitation(0.1), Precipitation(0.2)]

        assert sum(values).raw == pytest.approx(0.6)
        assert sorted(values) == [Precipitation(0.1), Precipitation(0.2), Precipitation(0.3)]
        assert max(values) == Precipitation(0.3)

    def test_hashable(self):
        assert len({Elevation(0.5), Elevation(0.5), Temperature(0.5)}) == 2


class TestQuantisation:
    """Test integer encodings of raw values."""

    def test_encode_16_bit(self):
        encoded = encode_raw([0.0, 0.5, 1.0, 0.5], 16)

        assert encoded.dtype == np.uint16
        assert encoded.tolist() == [0, 32768, 65535, 32768]

    def test_encode_8_bit(self):
        encoded = encode_raw([0.0, 0.25, 1.0], 8)

        assert encoded.dtype == np.uint8
        assert encoded.tolist() == [0, 64, 255]

    def test_encode_clips_out_of_range(self):
        assert encode_raw([-0.5, 1.5], 8).tolist() == [0, 255]

    @pytest.mark.parametrize("bits", [8, 16])
    def test_round_trip_within_one_step(self, bits):
        """Decoding an encoding lands within one quantisation unit."""
        raw = np.linspace(0.0, 1.0, 97)
        decoded = decode_raw(encode_raw(raw, bits), bits)

        np.testing.assert_allclose(decoded, raw, atol=1.0 / (2**bits - 1))

    def test_encoding_is_monotonic(self):
        raw = np.linspace(0.0, 1.0, 1000)

        assert np.all(np.diff(encode_raw(raw, 8).astype(int)) >= 0)

    def test_unsupported_bit_depth(self):
        with pytest.raises(ValueError):
            encode_raw([0.5], 12)
        with pytest.raises(ValueError):
            decode_raw([1], 32)
