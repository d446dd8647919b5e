class SlicerError(Exception):
    """Base class for errors raised by the slicing pipeline."""


class InvalidMeshError(SlicerError):
    """Raised when no usable mesh could be produced from the input data."""


class ConfigError(SlicerError):
    """Raised for slicer settings that cannot produce a finite layer sequence."""


class GeometryWarning(UserWarning):
    """Recoverable geometric degeneracy found while slicing (e.g. NaN points)."""
