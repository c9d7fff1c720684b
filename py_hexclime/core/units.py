"""
Physical units over the raw [0, 1] domain.

Every climate quantity is stored as a raw float in [0, 1]. A unit is a thin
wrapper around that raw value with an affine conversion policy onto its
physical scale:

- Elevation: metres = raw * 13824
- Temperature: degrees Celsius = -27 + 72 * raw
- Precipitation: millimetres = max(raw * 324, 0)

Fields keep raw floats in numpy arrays and carry the unit class as a tag, so
the wrappers are only materialised at the edges.
"""

import functools
import numbers
from typing import Optional

import numpy as np

SUPPORTED_BIT_DEPTHS = (8, 16)


@functools.total_ordering
class Unit:
    """Raw value with an affine mapping onto a physical scale."""

    scale: float = 1.0
    offset: float = 0.0
    floor: Optional[float] = None
    symbol: str = ""

    __slots__ = ("raw",)

    def __init__(self, raw: float):
        self.raw = float(raw)

    @classmethod
    def confine(cls, raw: float) -> "Unit":
        return cls(raw)

    def release(self) -> float:
        return self.raw

    @classmethod
    def to_physical(cls, raw):
        """Convert raw values (scalar or array) to the physical scale."""
        value = np.asarray(raw, dtype=np.float64) * cls.scale + cls.offset
        if cls.floor is not None:
            value = np.maximum(value, cls.floor)
        return value if value.ndim else float(value)

    @classmethod
    def from_physical(cls, value):
        """Convert physical values (scalar or array) back to raw."""
        raw = (np.asarray(value, dtype=np.float64) - cls.offset) / cls.scale
        return raw if raw.ndim else float(raw)

    def physical(self) -> float:
        return self.to_physical(self.raw)

    def _same(self, other) -> bool:
        return type(other) is type(self)

    def __add__(self, other):
        if self._same(other):
            return type(self)(self.raw + other.raw)
        return NotImplemented

    def __radd__(self, other):
        # lets sum() start from the integer zero
        if other == 0:
            return self
        return NotImplemented

    def __sub__(self, other):
        if self._same(other):
            return type(self)(self.raw - other.raw)
        return NotImplemented

    def __mul__(self, factor):
        if isinstance(factor, numbers.Real):
            return type(self)(self.raw * factor)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, factor):
        if isinstance(factor, numbers.Real):
            return type(self)(self.raw / factor)
        return NotImplemented

    def __neg__(self):
        return type(self)(-self.raw)

    def __eq__(self, other):
        if self._same(other):
            return self.raw == other.raw
        return NotImplemented

    def __lt__(self, other):
        if self._same(other):
            return self.raw < other.raw
        return NotImplemented

    def __hash__(self):
        return hash((type(self).__name__, self.raw))

    def __float__(self):
        return self.raw

    def __repr__(self):
        return f"{type(self).__name__}({self.raw!r})"

    def __str__(self):
        return f"{self.physical():g} {self.symbol}".rstrip()


class Elevation(Unit):
    """Height above the deepest point; 1.0 is 13824 metres."""

    scale = 13824.0
    symbol = "m"

    def meters(self) -> int:
        return int(self.raw * self.scale)


class Temperature(Unit):
    """Air temperature; raw 0 is -27 °C and raw 1 is 45 °C."""

    scale = 72.0
    offset = -27.0
    symbol = "°C"

    def celsius(self) -> float:
        return self.physical()

    @classmethod
    def from_celsius(cls, value: float) -> "Temperature":
        return cls(cls.from_physical(value))


class Precipitation(Unit):
    """Water column; raw 1.0 is 324 millimetres."""

    scale = 324.0
    floor = 0.0
    symbol = "mm"

    def millimeters(self) -> float:
        return self.physical()


def _integer_top(bits: int) -> int:
    if bits not in SUPPORTED_BIT_DEPTHS:
        raise ValueError(f"unsupported bit depth {bits}, expected one of {SUPPORTED_BIT_DEPTHS}")
    return 2**bits - 1


def encode_raw(values, bits: int) -> np.ndarray:
    """
    Quantise raw [0, 1] values to unsigned integers of the given bit depth.

    Args:
        values: Raw float values
        bits: 8 or 16

    Returns:
        uint8 or uint16 array of round(raw * (2**bits - 1))
    """
    top = _integer_top(bits)
    dtype = np.uint8 if bits == 8 else np.uint16
    scaled = np.round(np.asarray(values, dtype=np.float64) * top)
    return np.clip(scaled, 0, top).astype(dtype)


def decode_raw(values, bits: int) -> np.ndarray:
    """Inverse of encode_raw: integer samples back to raw floats."""
    top = _integer_top(bits)
    return np.asarray(values, dtype=np.float64) / top
