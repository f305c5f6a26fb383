"""Core data structures: shapes, regions, operator interface and errors."""

from .errors import (
    ConvolutionError,
    ShapeMismatchError,
    InvalidWeightError,
    NotInitializedError,
    RegionError,
    UnsupportedJobError,
)
from .shape import Shape, Region, ShapeLike
from .linop import Job, LinearOperator

__all__ = [
    "Shape",
    "Region",
    "ShapeLike",
    "Job",
    "LinearOperator",
    # Errors
    "ConvolutionError",
    "ShapeMismatchError",
    "InvalidWeightError",
    "NotInitializedError",
    "RegionError",
    "UnsupportedJobError",
]
