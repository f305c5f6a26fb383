"""Array padding and cropping utilities for Fourier-based operations."""

from typing import Optional, Sequence, Tuple

import numpy as np

from ..core.errors import RegionError, ShapeMismatchError
from ..core.shape import Region, Shape, ShapeLike
from .fourier import geometric_center

__all__ = ["crop", "zero_pad", "pad_psf"]


def crop(arr: np.ndarray, shape: ShapeLike, offset: Optional[Sequence[int]] = None) -> np.ndarray:
    """Extract an axis-aligned sub-region (the restriction operator R).

    Args:
        arr: N-dimensional input array.
        shape: Shape of the region to extract.
        offset: Position of the region in ``arr``. If None, the region is
            centered.

    Returns:
        Copy of the selected region.
    """
    region = Region.inside(arr.shape, shape, offset)
    return arr[region.slices].copy()


def zero_pad(
    arr: np.ndarray,
    output_shape: ShapeLike,
    offset: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """Zero-pad an array to a larger shape (the adjoint R* of :func:`crop`).

    Args:
        arr: N-dimensional input array.
        output_shape: Desired output shape (must be >= input shape in all dims).
        offset: Position of ``arr`` in the output. If None, ``arr`` is
            centered.

    Returns:
        Zero-padded array of the specified output shape.

    Raises:
        RegionError: If output_shape is smaller than input in any dimension.
    """
    region = Region.inside(output_shape, arr.shape, offset)
    result = np.zeros(Shape.of(output_shape).dims, dtype=arr.dtype)
    result[region.slices] = arr
    return result


def pad_psf(
    psf: np.ndarray,
    shape: ShapeLike,
    center: Optional[Sequence[int]] = None,
) -> Tuple[np.ndarray, Tuple[int, ...]]:
    """Zero-pad a PSF to the object shape, keeping track of its center.

    The PSF is placed so that its center lands on the geometric center of
    the output, which is where :meth:`Convolution.set_psf` expects it by
    default.

    Args:
        psf: PSF array, not larger than ``shape`` along any axis.
        shape: Object-space shape.
        center: Index of the PSF center in ``psf``. If None, the geometric
            center of ``psf`` is used.

    Returns:
        Tuple (padded, center) where ``padded`` has the requested shape and
        ``center`` is the index of the PSF center in ``padded``.

    Example:
        ```python
        padded, cen = pad_psf(small_psf, (256, 256))
        conv.set_psf(padded, cen)
        ```
    """
    shape = Shape.of(shape)
    psf = np.asarray(psf)
    if psf.ndim != shape.rank:
        raise ShapeMismatchError(
            f"PSF rank ({psf.ndim}) must match object rank ({shape.rank})"
        )
    if center is None:
        center = geometric_center(psf.shape)
    center = tuple(int(c) for c in center)
    if len(center) != psf.ndim:
        raise ShapeMismatchError(
            f"Center has {len(center)} coordinate(s), PSF has {psf.ndim} dimension(s)"
        )
    for k, (c, n) in enumerate(zip(center, psf.shape)):
        if c < 0 or c >= n:
            raise RegionError(f"PSF center {c} out of range [0, {n}) along axis {k}")

    target = geometric_center(shape)
    offset = tuple(t - c for t, c in zip(target, center))
    # Shift the placement when the PSF would stick out of the output
    offset = tuple(
        min(max(o, 0), n - m) for o, n, m in zip(offset, shape, psf.shape)
    )
    padded = zero_pad(psf, shape, offset)
    return padded, tuple(o + c for o, c in zip(offset, center))
