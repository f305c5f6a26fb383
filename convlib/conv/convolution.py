"""FFT-based convolution operator.

The convolution operator H writes:

    H = R . F* . diag(F.h / N) . F . S

with F the (unnormalized) FFT, h the PSF rolled so that its center is at the
origin, S the operator which copies a real array into the complex workspace,
R the operator which selects the data region in the result and N the number
of samples of the object space. The adjoint is:

    H* = S* . F* . diag(conj(F.h) / N) . F . R*

where R* zero-pads the data region back into the object space. The FFT is
always taken over the whole object space, so that cyclic boundary
conditions are well defined; the data region only matters in ``push``-like
and ``pull``-like steps.

A single class handles 1D, 2D and 3D arrays in single or double precision.
"""

from functools import cached_property
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from ..core.errors import NotInitializedError, ShapeMismatchError
from ..core.linop import Job, LinearOperator
from ..core.shape import Region, Shape, ShapeLike
from ..utils.fourier import FrequencyTransform, complex_dtype_for
from .mtf import build_mtf

__all__ = ["Convolution"]


class Convolution(LinearOperator):
    """Convolution by a shift-invariant PSF, with exact adjoint.

    Args:
        object_shape: Shape of the object space (input of the direct
            operator, size of the FFT).
        data_shape: Shape of the data space (output of the direct
            operator). Must fit in the object space. Defaults to the object
            shape.
        offset: Position of the data region in the object space. Defaults to
            the centered position (all zeros when both shapes are equal).
        dtype: Real floating-point type, ``np.float32`` or ``np.float64``.
        workers: Number of FFT threads (passed to ``scipy.fft``).
        verbose: If True, print operator info. Default False.

    Example:
        ```python
        conv = Convolution((256, 256))
        conv.set_psf(psf, center=(128, 128))
        blurred = conv.apply(image)                 # H.x
        correlated = conv.apply(blurred, "adjoint")  # H*.y
        ```

    Note:
        Instances own a mutable workspace. Only one evaluation may run on a
        given instance at a time; use one instance per thread.
    """

    def __init__(
        self,
        object_shape: ShapeLike,
        data_shape: Optional[ShapeLike] = None,
        offset: Optional[Sequence[int]] = None,
        dtype=np.float64,
        workers: Optional[int] = None,
        verbose: bool = False,
    ):
        self._object_shape = Shape.of(object_shape)
        if not 1 <= self._object_shape.rank <= 3:
            raise ValueError(
                f"Only 1D, 2D and 3D convolution are implemented, got rank {self._object_shape.rank}"
            )
        self._region = Region.inside(self._object_shape, data_shape, offset)
        self._dtype = np.dtype(dtype)
        self._complex_dtype = complex_dtype_for(self._dtype)
        self._fast = self._region.is_full(self._object_shape)
        self._workers = workers
        self._mtf: Optional[np.ndarray] = None

        if verbose:
            print(
                f"Convolution: object {self._object_shape}, data {self._region.shape} "
                f"at offset {self._region.offset}, dtype={self._dtype.name}, "
                f"fast={self._fast}"
            )

    # ------------------------------------------------------------------ #
    # Geometry
    # ------------------------------------------------------------------ #

    @property
    def object_shape(self) -> Shape:
        return self._object_shape

    @property
    def data_shape(self) -> Shape:
        return self._region.shape

    @property
    def region(self) -> Region:
        """Data region within the object space."""
        return self._region

    @property
    def offset(self) -> Tuple[int, ...]:
        return self._region.offset

    @property
    def input_shape(self) -> Shape:
        return self._object_shape

    @property
    def output_shape(self) -> Shape:
        return self._region.shape

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def complex_dtype(self) -> np.dtype:
        return self._complex_dtype

    @property
    def rank(self) -> int:
        return self._object_shape.rank

    @property
    def number(self) -> int:
        """Number of samples (and of frequencies) of the object space."""
        return self._object_shape.number

    @property
    def scale(self) -> float:
        """Normalization applied after a forward/backward FFT round trip."""
        return 1.0 / self.number

    @property
    def fast(self) -> bool:
        """Whether the data space is the whole object space."""
        return self._fast

    # ------------------------------------------------------------------ #
    # Lazily created resources
    # ------------------------------------------------------------------ #

    @cached_property
    def transform(self) -> FrequencyTransform:
        """FFT of the object space, created on first use."""
        return FrequencyTransform(
            self._object_shape, dtype=self._complex_dtype, workers=self._workers
        )

    @cached_property
    def workspace(self) -> np.ndarray:
        """Complex work array of the object shape, created on first use."""
        return np.zeros(self._object_shape.dims, dtype=self._complex_dtype)

    @property
    def interleaved(self) -> np.ndarray:
        """Workspace seen as 2N interleaved real and imaginary parts."""
        return self.workspace.reshape(-1).view(self._dtype)

    # ------------------------------------------------------------------ #
    # PSF / MTF
    # ------------------------------------------------------------------ #

    @property
    def mtf(self) -> Optional[np.ndarray]:
        """Current MTF (None until a PSF or MTF has been set)."""
        return self._mtf

    def set_psf(
        self,
        psf: np.ndarray,
        center: Optional[Sequence[int]] = None,
        normalize: bool = False,
    ) -> None:
        """Set the PSF and recompute the MTF.

        Args:
            psf: Real PSF with the object shape, not yet centered.
            center: Index of the PSF center, one per axis. If None, the
                geometric center (``dim//2`` along each axis) is used.
            normalize: If True, divide the PSF by its sum.

        Raises:
            ShapeMismatchError: If the PSF does not have the object shape.
            RegionError: If ``center`` is out of range.
        """
        # The MTF buffer is allocated once and reused by later calls
        self._mtf = build_mtf(
            psf, center, self.transform, out=self._mtf, normalize=normalize
        )

    def set_mtf(self, mtf: np.ndarray) -> None:
        """Set the MTF directly (already in the frequency domain).

        The MTF is copied and converted to the complex type of the operator.
        """
        mtf = np.asarray(mtf)
        if mtf.shape != self._object_shape.dims:
            raise ShapeMismatchError(
                f"MTF has shape {mtf.shape}, expected {self._object_shape.dims}"
            )
        self._mtf = np.array(mtf, dtype=self._complex_dtype, copy=True)

    def _check_mtf(self) -> np.ndarray:
        if self._mtf is None:
            raise NotInitializedError("You must set the PSF (or the MTF) first")
        return self._mtf

    # ------------------------------------------------------------------ #
    # Elementary steps
    # ------------------------------------------------------------------ #

    def push(self, x: np.ndarray) -> None:
        """Copy a real object-space array into the workspace (operator S).

        Imaginary parts are set to zero.
        """
        x = np.asarray(x)
        if x.shape != self._object_shape.dims:
            raise ShapeMismatchError(
                f"Array of shape {x.shape} does not belong to the object space "
                f"{self._object_shape.dims}"
            )
        z = self.workspace
        z.real = x
        z.imag = 0

    def forward_transform(self) -> None:
        """In-place forward FFT of the workspace."""
        self.transform.forward(self.workspace)

    def backward_transform(self) -> None:
        """In-place (unnormalized) backward FFT of the workspace."""
        self.transform.backward(self.workspace)

    def multiply_by_mtf(self, conjugate: bool = False) -> None:
        """Multiply the workspace by the MTF or by its complex conjugate.

        The direct operator multiplies by h and the adjoint by conj(h): the
        transpose of a circulant matrix is diagonal in the Fourier basis
        with conjugated eigenvalues.
        """
        h = self._check_mtf()
        z = self.workspace
        if conjugate:
            z *= np.conj(h)
        else:
            z *= h

    def convolve(self, adjoint: bool = False) -> None:
        """Apply forward FFT, MTF product and backward FFT to the workspace.

        The result is not scaled; ``pull`` takes care of the 1/N factor.
        """
        self._check_mtf()
        self.forward_transform()
        self.multiply_by_mtf(conjugate=adjoint)
        self.backward_transform()

    def pull(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Extract the scaled real part of the data region (operator R).

        Args:
            out: Optional destination with the data shape.

        Returns:
            Array with the data shape.
        """
        out = self._destination(out, self.data_shape)
        real = self.workspace.real
        if self._fast:
            np.multiply(real, self.scale, out=out, casting="unsafe")
        else:
            np.multiply(real[self._region.slices], self.scale, out=out, casting="unsafe")
        return out

    def pull_full(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Extract the scaled real part of the whole workspace (operator S*)."""
        out = self._destination(out, self._object_shape)
        np.multiply(self.workspace.real, self.scale, out=out, casting="unsafe")
        return out

    def pull_adjoint(self, y: np.ndarray, weights: Optional[np.ndarray] = None) -> None:
        """Scatter a data-space array into the workspace (operator R*).

        The workspace is zero-filled and ``y`` (times ``weights`` if given)
        is written in the real part of the data region.
        """
        y = np.asarray(y)
        if y.shape != self.data_shape.dims:
            raise ShapeMismatchError(
                f"Array of shape {y.shape} does not belong to the data space "
                f"{self.data_shape.dims}"
            )
        if weights is not None:
            weights = np.asarray(weights)
            if weights.shape != y.shape:
                raise ShapeMismatchError(
                    f"Weights have shape {weights.shape}, expected {y.shape}"
                )
            y = weights * y
        z = self.workspace
        if self._fast:
            z.real = y
            z.imag = 0
        else:
            z.fill(0)
            z.real[self._region.slices] = y

    def _destination(self, out: Optional[np.ndarray], shape: Shape) -> np.ndarray:
        if out is None:
            return np.empty(shape.dims, dtype=self._dtype)
        if out.shape != shape.dims:
            raise ShapeMismatchError(
                f"Destination has shape {out.shape}, expected {shape.dims}"
            )
        return out

    # ------------------------------------------------------------------ #
    # Operator interface
    # ------------------------------------------------------------------ #

    def _apply(self, dst: np.ndarray, src: np.ndarray, job: Job) -> None:
        self._check_mtf()
        if job is Job.DIRECT:
            self.push(src)
            self.convolve(adjoint=False)
            self.pull(out=dst)
        else:
            self.pull_adjoint(src)
            self.convolve(adjoint=True)
            self.pull_full(out=dst)

    def as_functions(
        self,
    ) -> Tuple[Callable[[np.ndarray], np.ndarray], Callable[[np.ndarray], np.ndarray]]:
        """Return ``(C, C_adj)``, the direct and adjoint operators as functions.

        Example:
            ```python
            C, C_adj = conv.as_functions()
            restored = solve(observed, C, C_adj)
            ```
        """

        def forward(x: np.ndarray) -> np.ndarray:
            """Apply forward convolution: y = C(x) = PSF ⊛ x."""
            return self.apply(x, Job.DIRECT)

        def adjoint(y: np.ndarray) -> np.ndarray:
            """Apply adjoint (correlation): x = C^T(y) = PSF* ⊛ y."""
            return self.apply(y, Job.ADJOINT)

        return forward, adjoint

    def __repr__(self) -> str:
        return (
            f"Convolution(object_shape={self._object_shape.dims}, "
            f"data_shape={self.data_shape.dims}, offset={self.offset}, "
            f"dtype={self._dtype.name})"
        )
