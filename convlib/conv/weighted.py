"""Weighted least-squares cost for models given by FFT-based convolution.

The cost writes:

    f(x) = (H.x - y)^T . W . (H.x - y)

with H a :class:`Convolution` operator, y the data and W = diag(w) the
statistical weights of the data (the inverse of the noise variance, zero for
missing data). Its gradient is:

    grad f(x) = 2 H^T . W . (H.x - y)

Both are computed with one direct and one adjoint FFT convolution sharing the
workspace of the operator.
"""

from typing import Optional, Sequence

import numpy as np

from ..core.errors import (
    InvalidWeightError,
    NotInitializedError,
    ShapeMismatchError,
)
from ..core.shape import Shape, ShapeLike
from ..cost.base import DifferentiableCost
from ..cost.weighted_data import WeightedData
from .convolution import Convolution

__all__ = ["WeightedConvolutionCost"]


class WeightedConvolutionCost(DifferentiableCost):
    """Weighted quadratic data-fit term for a convolution model.

    The object space (variables x) may be larger than the data space; the
    data region is then selected in the result of the cyclic convolution
    (see :class:`Convolution`).

    Args:
        object_shape: Shape of the variables.
        data_shape: Shape of the data. Defaults to the object shape.
        offset: Position of the data in the object space (default: centered).
        dtype: ``np.float32`` or ``np.float64``.
        workers: Number of FFT threads.
        verbose: Print operator info.

    Example:
        ```python
        cost = WeightedConvolutionCost((256, 256), (200, 200))
        cost.set_psf(psf)                   # mandatory
        cost.set_weights_and_data(w, y)     # y mandatory, w may be None
        fx, gx = cost.compute_cost_and_gradient(1.0, x)
        ```

    Note:
        Weights must be nonnegative. Samples with a zero weight are never
        used, which is the way to indicate missing data.
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
        self._init(
            Convolution(
                object_shape,
                data_shape,
                offset=offset,
                dtype=dtype,
                workers=workers,
                verbose=verbose,
            )
        )

    @classmethod
    def from_convolution(cls, convolution: Convolution) -> "WeightedConvolutionCost":
        """Build a cost sharing an existing convolution operator.

        The PSF of the operator may not have been set yet.
        """
        self = cls.__new__(cls)
        self._init(convolution)
        return self

    def _init(self, convolution: Convolution) -> None:
        self._cnvl = convolution
        self._data: Optional[np.ndarray] = None
        self._weights: Optional[np.ndarray] = None
        self._mask: Optional[np.ndarray] = None

    @property
    def convolution(self) -> Convolution:
        return self._cnvl

    @property
    def input_shape(self) -> Shape:
        return self._cnvl.object_shape

    @property
    def object_shape(self) -> Shape:
        return self._cnvl.object_shape

    @property
    def data_shape(self) -> Shape:
        return self._cnvl.data_shape

    @property
    def dtype(self) -> np.dtype:
        return self._cnvl.dtype

    @property
    def data(self) -> Optional[np.ndarray]:
        return self._data

    @property
    def weights(self) -> Optional[np.ndarray]:
        """Weights of the data (None means uniform weights equal to 1)."""
        return self._weights

    # ------------------------------------------------------------------ #
    # Setters
    # ------------------------------------------------------------------ #

    def set_psf(
        self,
        psf: np.ndarray,
        center: Optional[Sequence[int]] = None,
        normalize: bool = False,
    ) -> None:
        """Set the PSF of the convolution (see :meth:`Convolution.set_psf`)."""
        self._cnvl.set_psf(psf, center, normalize=normalize)

    def set_mtf(self, mtf: np.ndarray) -> None:
        """Set the MTF of the convolution (see :meth:`Convolution.set_mtf`)."""
        self._cnvl.set_mtf(mtf)

    def set_weights_and_data(
        self, weights: Optional[np.ndarray], data: np.ndarray
    ) -> None:
        """Set the data and their weights together.

        Args:
            weights: Nonnegative weights with the data shape, or None for
                uniform weights.
            data: Data with the data shape. Must be finite wherever the
                weight is positive.

        Raises:
            ShapeMismatchError: If an array does not have the data shape.
            InvalidWeightError: If any weight is NaN, infinite or negative.
            ValueError: If a datum with a positive weight is not finite.
        """
        shape = self.data_shape.dims
        data = np.asarray(data)
        if data.shape != shape:
            raise ShapeMismatchError(
                f"Data have shape {data.shape}, expected {shape}"
            )
        if weights is None:
            if not np.all(np.isfinite(data)):
                raise ValueError(
                    "Data must be finite; use weights to mark missing data"
                )
            self._weights = None
            self._mask = None
            self._data = np.array(data, dtype=self.dtype, copy=True)
            return

        weights = np.asarray(weights)
        if weights.shape != shape:
            raise ShapeMismatchError(
                f"Weights have shape {weights.shape}, expected {shape}"
            )
        if not np.all(np.isfinite(weights)) or np.any(weights < 0):
            raise InvalidWeightError(
                "Weights must be finite and nonnegative (no NaN, Inf or negative values)"
            )
        mask = weights > 0
        if not np.all(np.isfinite(data[mask])):
            raise ValueError(
                "Data must be finite where weights are positive"
            )
        self._weights = np.array(weights, dtype=self.dtype, copy=True)
        self._mask = mask
        self._data = np.where(mask, data, 0).astype(self.dtype)

    def set_weighted_data(self, weighted_data: WeightedData) -> None:
        """Set the data and weights from a :class:`WeightedData` instance."""
        self.set_weights_and_data(weighted_data.weights, weighted_data.data)

    def _check_data(self) -> None:
        if self._data is None:
            raise NotInitializedError("You must set the data (and the weights) first")

    # ------------------------------------------------------------------ #
    # Cost and gradient
    # ------------------------------------------------------------------ #

    def _model(self, x: np.ndarray) -> np.ndarray:
        """Unscaled model over the data region (a view on the workspace)."""
        cnvl = self._cnvl
        cnvl.push(x)
        cnvl.convolve(adjoint=False)
        return cnvl.workspace.real[cnvl.region.slices]

    def _cost(self, alpha: float, x: np.ndarray) -> float:
        self._check_data()
        z = self._model(x)
        scale = self._cnvl.scale
        if self._weights is None:
            r = scale * z - self._data
            total = np.sum(r * r, dtype=np.float64)
        else:
            m = self._mask
            r = scale * z[m] - self._data[m]
            total = np.sum(self._weights[m] * r * r, dtype=np.float64)
        return alpha * total

    def _cost_and_gradient(
        self, alpha: float, x: np.ndarray, gx: np.ndarray, clear: bool
    ) -> float:
        self._check_data()
        cnvl = self._cnvl
        z = self._model(x)
        scale = cnvl.scale
        q = 2 * scale * alpha

        # Residuals scaled so that the unnormalized adjoint convolution
        # directly yields the gradient; weights are applied by the scatter.
        if self._weights is None:
            r = scale * z - self._data
            total = np.sum(r * r, dtype=np.float64)
            res = (q * r).astype(self.dtype, copy=False)
        else:
            m = self._mask
            r = scale * z[m] - self._data[m]
            total = np.sum(self._weights[m] * r * r, dtype=np.float64)
            res = np.zeros(self.data_shape.dims, dtype=self.dtype)
            res[m] = q * r

        cnvl.pull_adjoint(res, weights=self._weights)
        cnvl.convolve(adjoint=True)
        if clear:
            gx[...] = cnvl.workspace.real
        else:
            gx += cnvl.workspace.real
        return alpha * total
