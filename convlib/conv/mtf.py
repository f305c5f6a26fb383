"""Modulation transfer function (MTF) computation.

The MTF is the forward FFT of the PSF once the PSF has been rolled so that
its center sits at index 0 along every axis. With this convention a unit
impulse at the PSF center gives an MTF equal to 1 everywhere and the
convolution is the identity.
"""

from typing import Optional, Sequence

import numpy as np

from ..core.errors import ShapeMismatchError
from ..utils.fourier import FrequencyTransform, geometric_center, roll_to_origin

__all__ = ["center_psf", "build_mtf"]


def center_psf(psf: np.ndarray, center: Optional[Sequence[int]] = None) -> np.ndarray:
    """Roll a PSF so that its center moves to the origin (index 0).

    Args:
        psf: Real N-dimensional PSF.
        center: Index of the PSF center, one per axis. If None, the geometric
            center ``dim//2`` is used.

    Returns:
        Rolled copy of the PSF.

    Raises:
        ShapeMismatchError: If ``center`` does not have one entry per axis.
        RegionError: If a center index is outside ``[0, dim)``.

    Example:
        ```python
        psf = np.array([0.0, 0.25, 0.5, 0.25])
        center_psf(psf, [2])  # -> [0.5, 0.25, 0.0, 0.25]
        ```
    """
    psf = np.asarray(psf)
    if center is None:
        center = geometric_center(psf.shape)
    return roll_to_origin(psf, center)


def build_mtf(
    psf: np.ndarray,
    center: Optional[Sequence[int]],
    transform: FrequencyTransform,
    out: Optional[np.ndarray] = None,
    normalize: bool = False,
) -> np.ndarray:
    """Compute the MTF of a PSF.

    The PSF is copied into the real part of a complex buffer (imaginary part
    set to zero), rolled so that ``center`` becomes the origin, and
    transformed once in place.

    Args:
        psf: Real PSF with exactly the shape of the transform.
        center: Index of the PSF center (None for the geometric center).
        transform: Frequency transform of the object space.
        out: Optional complex buffer to reuse for the result.
        normalize: If True, divide the PSF by its sum first.

    Returns:
        Complex array holding the MTF (``out`` if it was given).

    Raises:
        ShapeMismatchError: If the PSF (or ``out``) does not have the shape
            of the transform.
        RegionError: If ``center`` is out of range.
        ValueError: If ``normalize`` is requested for a PSF summing to zero.
    """
    psf = np.asarray(psf)
    if psf.shape != transform.shape.dims:
        raise ShapeMismatchError(
            f"PSF has shape {psf.shape}, expected {transform.shape.dims}"
        )
    if np.iscomplexobj(psf):
        raise TypeError("PSF must be real-valued")
    if out is None:
        out = np.empty(transform.shape.dims, dtype=transform.dtype)
    elif out.shape != transform.shape.dims or out.dtype != transform.dtype:
        raise ShapeMismatchError(
            f"MTF buffer must have shape {transform.shape.dims} and type "
            f"{transform.dtype}, got {out.shape} and {out.dtype}"
        )

    if normalize:
        total = float(np.sum(psf, dtype=np.float64))
        if total == 0.0:
            raise ValueError("Cannot normalize a PSF whose values sum to zero")
        psf = psf / total

    out.real = center_psf(psf, center)
    out.imag = 0
    return transform.forward(out)
