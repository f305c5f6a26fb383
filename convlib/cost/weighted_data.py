"""Data with statistical weights.

Weights are the inverse of the noise variance of each sample. A zero weight
marks a missing or bad sample, which is never used by the costs. Non-finite
data are always given a zero weight.

Typical use with a detector noise model (Poisson photon noise plus Gaussian
read-out noise):

    >>> wd = WeightedData(image)
    >>> wd.compute_weights_from_data(alpha=1.0 / gain, beta=readout_sigma**2)
    >>> wd.mark_bad_data(saturated)
"""

from typing import Optional

import numpy as np

from ..core.errors import InvalidWeightError, ShapeMismatchError
from ..core.shape import Shape
from .base import DifferentiableCost

__all__ = ["WeightedData"]


class WeightedData(DifferentiableCost):
    """Data array paired with nonnegative weights.

    As a cost, ``WeightedData`` is the quadratic ``sum(w * (x - y)**2)``,
    the data term of a denoising problem.

    Args:
        data: Data array (any rank). Non-finite values are kept but get a
            zero weight.
        weights: Optional nonnegative weights with the shape of the data.
            If None, weights are 1 for finite data and 0 elsewhere.
    """

    def __init__(self, data: np.ndarray, weights: Optional[np.ndarray] = None):
        data = np.asarray(data)
        if not np.issubdtype(data.dtype, np.floating):
            data = data.astype(np.float64)
        self._data = np.array(data, copy=True)
        self._finite = np.isfinite(self._data)
        self._shape = Shape.of(self._data.shape)
        if weights is None:
            self._weights = self._finite.astype(self._data.dtype)
        else:
            self.set_weights(weights)

    @property
    def input_shape(self) -> Shape:
        return self._shape

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def data(self) -> np.ndarray:
        """Data with bad samples set to zero."""
        return np.where(self._weights > 0, self._data, 0).astype(self._data.dtype)

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @property
    def valid_count(self) -> int:
        """Number of samples with a positive weight."""
        return int(np.count_nonzero(self._weights > 0))

    @property
    def weighted_mean(self) -> float:
        """Weighted mean of the valid data (NaN if there are none)."""
        w = self._weights
        total = np.sum(w, dtype=np.float64)
        if total <= 0:
            return float("nan")
        return float(np.sum(w * self.data, dtype=np.float64) / total)

    def set_weights(self, weights: np.ndarray) -> None:
        """Set the weights (copied), zeroing those of non-finite data.

        Raises:
            ShapeMismatchError: If the weights and the data shapes differ.
            InvalidWeightError: If a weight is NaN, infinite or negative.
        """
        weights = np.asarray(weights)
        if weights.shape != self._shape.dims:
            raise ShapeMismatchError(
                f"Weights have shape {weights.shape}, expected {self._shape.dims}"
            )
        if not np.all(np.isfinite(weights)) or np.any(weights < 0):
            raise InvalidWeightError("Weights must be finite and nonnegative")
        self._weights = np.where(self._finite, weights, 0).astype(self._data.dtype)

    def compute_weights_from_data(self, alpha: float, beta: float) -> None:
        """Compute the weights from a Poisson + Gaussian noise model.

        The variance of a sample is modeled as ``alpha*max(y, 0) + beta`` and
        the weight is its inverse.

        Args:
            alpha: Inverse of the detector gain, ``alpha >= 0``.
            beta: Variance of the signal-independent noise, ``beta > 0``.
        """
        if not alpha >= 0:
            raise ValueError(f"alpha must be nonnegative, got {alpha}")
        if not beta > 0:
            raise ValueError(f"beta must be strictly positive, got {beta}")
        y = np.where(self._finite, self._data, 0)
        var = alpha * np.maximum(y, 0) + beta
        self._weights = np.where(self._finite, 1.0 / var, 0).astype(self._data.dtype)

    def mark_bad_data(self, bad: np.ndarray) -> None:
        """Give a zero weight to the samples where ``bad`` is True."""
        bad = np.asarray(bad, dtype=bool)
        if bad.shape != self._shape.dims:
            raise ShapeMismatchError(
                f"Mask has shape {bad.shape}, expected {self._shape.dims}"
            )
        self._weights[bad] = 0

    def _cost(self, alpha: float, x: np.ndarray) -> float:
        m = self._weights > 0
        r = x[m] - self._data[m]
        return alpha * np.sum(self._weights[m] * r * r, dtype=np.float64)

    def _cost_and_gradient(
        self, alpha: float, x: np.ndarray, gx: np.ndarray, clear: bool
    ) -> float:
        m = self._weights > 0
        r = np.zeros(self._shape.dims, dtype=np.float64)
        r[m] = x[m] - self._data[m]
        wr = self._weights * r
        if clear:
            gx[...] = 2 * alpha * wr
        else:
            gx += 2 * alpha * wr
        return alpha * np.sum(wr * r, dtype=np.float64)
