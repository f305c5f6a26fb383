"""Fourier transform, centering and padding utilities."""

from .fourier import (
    FrequencyTransform,
    geometric_center,
    best_fft_shape,
    roll_to_origin,
    complex_dtype_for,
)
from .padding import crop, zero_pad, pad_psf

__all__ = [
    # Fourier utilities
    "FrequencyTransform",
    "geometric_center",
    "best_fft_shape",
    "roll_to_origin",
    "complex_dtype_for",
    # Padding
    "crop",
    "zero_pad",
    "pad_psf",
]
