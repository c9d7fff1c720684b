"""
Raster persistence for fields.

Fields of raw [0, 1] values are quantised to 8 or 16 bit integers and
stored as numpy arrays named ``{name}-u{bits}-{resolution}.npy``. A
resolution index records which resolutions exist for each name and bit
depth, so loading by name picks the finest one without scanning the directory.
"""

from pathlib import Path
from typing import Dict, Optional, Set, Union

import numpy as np
import structlog

from ..config import Settings
from .exceptions import FieldLoadError
from .field import Field
from .units import decode_raw, encode_raw

logger = structlog.get_logger()


def encode(field: Field, bits: int) -> Field:
    """Integer field of round(raw * (2**bits - 1)), clipped to the range."""
    grid = encode_raw(field.grid, bits)
    return Field(grid, field.resolution, variable=field.variable)


def decode(field: Field, bits: int, unit=None) -> Field:
    """Float field of value / (2**bits - 1)."""
    grid = decode_raw(field.grid, bits)
    return Field(grid, field.resolution, unit=unit, variable=field.variable)


def raster_key(name: str, bits: int) -> str:
    """Registry key of a field name stored at a bit depth."""
    return f"{name}-u{bits}"


class ResolutionIndex:
    """Registry of the resolutions stored for each field name and bit depth."""

    def __init__(self, entries: Optional[Dict[str, Set[int]]] = None):
        self._entries: Dict[str, Set[int]] = {
            key: set(resolutions) for key, resolutions in (entries or {}).items()
        }

    def register(self, name: str, resolution: int, bits: int = 16) -> None:
        self._entries.setdefault(raster_key(name, bits), set()).add(int(resolution))

    def resolutions(self, name: str, bits: int = 16) -> Set[int]:
        return set(self._entries.get(raster_key(name, bits), ()))

    def best(self, name: str, bits: int = 16) -> int:
        """Highest resolution registered for name at this bit depth."""
        resolutions = self._entries.get(raster_key(name, bits))
        if not resolutions:
            raise FieldLoadError(f"no resolution registered for {raster_key(name, bits)!r}")
        return max(resolutions)

    def __contains__(self, key: str) -> bool:
        return bool(self._entries.get(key))


class RasterStore:
    """Saves and loads quantised fields in a directory."""

    def __init__(
        self,
        directory: Union[str, Path],
        index: Optional[ResolutionIndex] = None,
    ):
        self.directory = Path(directory)
        self.index = index if index is not None else ResolutionIndex()

    @classmethod
    def from_settings(
        cls, config: Settings, index: Optional[ResolutionIndex] = None
    ) -> "RasterStore":
        """Store rooted at the configured raster directory."""
        return cls(config.raster_directory, index)

    def path(self, name: str, bits: int, resolution: int) -> Path:
        return self.directory / f"{raster_key(name, bits)}-{resolution}.npy"

    def save(self, field: Field, name: Optional[str] = None, bits: int = 16) -> Path:
        """
        Quantise a field and write it to the store.

        Args:
            field: Field of raw [0, 1] values
            name: Key to store it under; defaults to the field's variable
            bits: 8 or 16

        Returns:
            Path of the written file
        """
        name = name or field.variable
        encoded = encode(field, bits)
        path = self.path(name, bits, field.resolution)

        logger.info("Saving field", name=name, bits=bits, resolution=field.resolution)
        self.directory.mkdir(parents=True, exist_ok=True)
        np.save(path, encoded.grid, allow_pickle=False)
        self.index.register(name, field.resolution, bits)
        return path

    def load(
        self,
        name: str,
        bits: int = 16,
        resolution: Optional[int] = None,
        unit=None,
    ) -> Field:
        """
        Load a field by name, at the finest registered resolution by default.

        Raises:
            FieldLoadError: If the file is missing or does not hold a field
        """
        resolution = resolution or self.index.best(name, bits)
        path = self.path(name, bits, resolution)
        logger.info("Loading field", name=name, bits=bits, resolution=resolution)

        try:
            grid = np.load(path, allow_pickle=False)
        except (OSError, ValueError) as e:
            logger.error("Field load failed", path=str(path), error=str(e))
            raise FieldLoadError(f"cannot load {name!r} from {path}") from e

        expected = np.uint8 if bits == 8 else np.uint16
        if grid.ndim != 1 or grid.size != resolution * resolution or grid.dtype != expected:
            logger.error(
                "Malformed field file",
                path=str(path),
                shape=grid.shape,
                dtype=str(grid.dtype),
            )
            raise FieldLoadError(f"{path} does not hold a {bits} bit field of resolution {resolution}")

        return decode(Field(grid, resolution, variable=name), bits, unit=unit)
