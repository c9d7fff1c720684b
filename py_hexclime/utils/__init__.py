"""Utilities shared by the climate core."""

from .logging_config import configure_logging
from .parallel import parallel_map

__all__ = ["configure_logging", "parallel_map"]
