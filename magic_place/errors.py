"""
Magic Place Errors

Failures raised to the caller. "Box does not fit" and "no usable
position" are not errors: they come back as a PlacementResult status.
"""


class MagicPlaceError(Exception):
    """Base class for all placement engine errors."""
    pass


class DecodeError(MagicPlaceError):
    """The image source could not be loaded, fetched or decoded."""
    pass


class InvalidDimensionsError(MagicPlaceError, ValueError):
    """Original image width or height is zero or negative."""
    pass


class InvalidColorError(MagicPlaceError, ValueError):
    """A color string is not a valid 3- or 6-digit hex color."""
    pass
