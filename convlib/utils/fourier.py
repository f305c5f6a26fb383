"""Fourier transform utilities.

The :class:`FrequencyTransform` adapter is the only place where the FFT
library is called. Transforms are taken in place on complex buffers and are
unnormalized in both directions: after a backward transform the caller
divides by the number of samples.
"""

from typing import Optional, Sequence, Tuple

import numpy as np
import scipy.fft
from scipy.fft import next_fast_len

from ..core.errors import RegionError, ShapeMismatchError
from ..core.shape import Shape, ShapeLike

__all__ = [
    "FrequencyTransform",
    "geometric_center",
    "best_fft_shape",
    "roll_to_origin",
    "complex_dtype_for",
]

_COMPLEX_FOR_REAL = {
    np.dtype(np.float32): np.dtype(np.complex64),
    np.dtype(np.float64): np.dtype(np.complex128),
}


def complex_dtype_for(dtype) -> np.dtype:
    """Complex type with the same precision as a real floating-point type.

    Raises:
        TypeError: If ``dtype`` is not float32 or float64.
    """
    dtype = np.dtype(dtype)
    try:
        return _COMPLEX_FOR_REAL[dtype]
    except KeyError:
        raise TypeError(
            f"Only float32 and float64 are supported, got {dtype}"
        ) from None


class FrequencyTransform:
    """In-place complex FFT of fixed shape and precision.

    Args:
        shape: Dimensions of the transformed arrays (rank 1, 2 or 3).
        dtype: Complex type of the buffers (complex64 or complex128).
        workers: Number of threads used by ``scipy.fft``. None lets scipy
            decide (single thread by default).

    Example:
        ```python
        fft = FrequencyTransform((64, 64))
        z = np.zeros((64, 64), dtype=np.complex128)
        z[0, 0] = 1.0
        fft.forward(z)   # z is now all ones
        fft.backward(z)  # z[0, 0] == 64*64
        ```
    """

    def __init__(
        self,
        shape: ShapeLike,
        dtype=np.complex128,
        workers: Optional[int] = None,
    ):
        self.shape = Shape.of(shape)
        if not 1 <= self.shape.rank <= 3:
            raise ValueError(
                f"Only 1D, 2D and 3D transforms are implemented, got rank {self.shape.rank}"
            )
        self.dtype = np.dtype(dtype)
        if self.dtype not in _COMPLEX_FOR_REAL.values():
            raise TypeError(f"Transform buffers must be complex64 or complex128, got {self.dtype}")
        self.workers = workers

    @property
    def number(self) -> int:
        """Number of samples N (the scale of a forward/backward round trip)."""
        return self.shape.number

    def _check(self, buffer: np.ndarray) -> None:
        if buffer.shape != self.shape.dims:
            raise ShapeMismatchError(
                f"Transform buffer has shape {buffer.shape} ({buffer.size} samples), "
                f"expected {self.shape.dims} ({self.number} samples)"
            )
        if buffer.dtype != self.dtype:
            raise TypeError(f"Transform buffer has type {buffer.dtype}, expected {self.dtype}")

    def forward(self, buffer: np.ndarray) -> np.ndarray:
        """Forward FFT of ``buffer``, in place."""
        self._check(buffer)
        buffer[...] = scipy.fft.fftn(buffer, overwrite_x=True, workers=self.workers)
        return buffer

    def backward(self, buffer: np.ndarray) -> np.ndarray:
        """Unnormalized backward FFT of ``buffer``, in place."""
        self._check(buffer)
        # norm="forward" puts the 1/N factor on the forward side, so the
        # inverse transform is left unscaled.
        buffer[...] = scipy.fft.ifftn(
            buffer, norm="forward", overwrite_x=True, workers=self.workers
        )
        return buffer

    def __repr__(self) -> str:
        return f"FrequencyTransform(shape={self.shape.dims}, dtype={self.dtype.name})"


def geometric_center(shape: ShapeLike) -> Tuple[int, ...]:
    """Index of the geometric center of an array: ``dim//2`` along each axis."""
    return tuple(d // 2 for d in Shape.of(shape))


def best_fft_shape(shape: ShapeLike) -> Tuple[int, ...]:
    """Smallest dimensions, not less than ``shape``, that are fast for the FFT.

    Example:
        >>> best_fft_shape((127, 64))
        (128, 64)
    """
    return tuple(next_fast_len(d) for d in Shape.of(shape))


def roll_to_origin(arr: np.ndarray, center: Sequence[int]) -> np.ndarray:
    """Cyclically shift ``arr`` so that ``arr[center]`` moves to index 0.

    Args:
        arr: N-dimensional array.
        center: One index per axis, each in ``[0, dim)``.

    Returns:
        Rolled copy of ``arr``.

    Raises:
        ShapeMismatchError: If ``center`` does not have one entry per axis.
        RegionError: If a center index is out of range.
    """
    center = tuple(int(c) for c in center)
    if len(center) != arr.ndim:
        raise ShapeMismatchError(
            f"Center has {len(center)} coordinate(s), array has {arr.ndim} dimension(s)"
        )
    for k, (c, n) in enumerate(zip(center, arr.shape)):
        if c < 0 or c >= n:
            raise RegionError(f"Center index {c} out of range [0, {n}) along axis {k}")
    return np.roll(arr, shift=tuple(-c for c in center), axis=tuple(range(arr.ndim)))
