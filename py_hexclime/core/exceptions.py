"""Exceptions raised by the climate core."""


class HexClimeError(Exception):
    """Base class for all climate core errors."""


class FieldError(HexClimeError, ValueError):
    """A field violates its shape contract."""


class ResolutionMismatchError(FieldError):
    """Two fields with different resolutions were combined."""

    def __init__(self, left: int, right: int):
        super().__init__(f"resolution mismatch: {left} != {right}")
        self.left = left
        self.right = right


class EmptyFieldError(FieldError):
    """A statistic was requested on a field without cells."""


class DownsampleFactorError(FieldError):
    """The downsample factor does not evenly divide the resolution."""


class FieldLoadError(HexClimeError):
    """A persisted field is missing or cannot be decoded."""


class PropagationError(HexClimeError):
    """A frontier relaxation exceeded its configured bound."""
