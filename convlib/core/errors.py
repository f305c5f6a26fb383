"""Exceptions raised by convolution operators and cost functions.

Every exception derives from the builtin a caller would naturally expect
(``ValueError``, ``IndexError``, ...), so ``except ValueError`` keeps working.
"""

__all__ = [
    "ConvolutionError",
    "ShapeMismatchError",
    "InvalidWeightError",
    "NotInitializedError",
    "RegionError",
    "UnsupportedJobError",
]


class ConvolutionError(Exception):
    """Base class for all errors raised by convlib."""


class ShapeMismatchError(ConvolutionError, ValueError):
    """An array does not have the shape of the space it must belong to."""


class InvalidWeightError(ConvolutionError, ValueError):
    """Weights contain NaN, infinite or negative values."""


class NotInitializedError(ConvolutionError, RuntimeError):
    """An operator or cost is used before its PSF or data have been set."""


class RegionError(ConvolutionError, IndexError):
    """An offset, window or center index lies outside the object space."""


class UnsupportedJobError(ConvolutionError, NotImplementedError):
    """The requested operator job (e.g. inverse) is not implemented."""
