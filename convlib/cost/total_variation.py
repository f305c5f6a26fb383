"""Edge-preserving smoothness prior: hyperbolic (relaxed) total variation.

For an array x of rank 1, 2 or 3, the cost is computed over every block of
2^rank neighbouring samples:

    f(x) = sum_blocks ( sqrt( sum_k w_k * sum_{edges along k} d**2 + eps**2 ) - eps )

where d is the difference between the two ends of an edge of the block and
``delta_k`` is the sampling step along axis k. The weights are
``w_k = 1 / delta_k**2`` in 1D (a single edge) and ``w_k = 1 / (2 * delta_k**2)``
in 2D and 3D.
The cost is quadratic for small local gradients (|grad x| << eps) and
behaves as the total variation for large ones. Subtracting eps makes a flat
array cost zero.
"""

from itertools import product
from typing import List, Sequence, Tuple, Union

import numpy as np

from ..core.shape import Shape, ShapeLike
from .base import DifferentiableCost

__all__ = ["HyperbolicTotalVariation"]


class HyperbolicTotalVariation(DifferentiableCost):
    """Relaxed total variation of a 1D, 2D or 3D array.

    Args:
        shape: Shape of the variables.
        epsilon: Relaxation threshold, must be strictly positive.
        scale: Sampling step, one value for all axes or one per axis. Must be
            strictly positive.
    """

    def __init__(
        self,
        shape: ShapeLike,
        epsilon: float = 1e-3,
        scale: Union[float, Sequence[float]] = 1.0,
    ):
        self._shape = Shape.of(shape)
        if not 1 <= self._shape.rank <= 3:
            raise ValueError(
                f"Total variation is implemented for rank 1 to 3, got {self._shape.rank}"
            )
        self.epsilon = epsilon
        self.scale = scale

    @property
    def input_shape(self) -> Shape:
        return self._shape

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @epsilon.setter
    def epsilon(self, value: float) -> None:
        if not value > 0:
            raise ValueError(f"epsilon must be strictly positive, got {value}")
        self._epsilon = float(value)

    @property
    def scale(self) -> Tuple[float, ...]:
        return self._scale

    @scale.setter
    def scale(self, value: Union[float, Sequence[float]]) -> None:
        rank = self._shape.rank
        if np.isscalar(value):
            values = (float(value),) * rank
        else:
            values = tuple(float(v) for v in value)
            if len(values) != rank:
                raise ValueError(f"Expected {rank} scale values, got {len(values)}")
        if not all(v > 0 for v in values):
            raise ValueError(f"Scale must be strictly positive, got {values}")
        self._scale = values
        factor = 1.0 if rank == 1 else 2.0
        self._w = [1.0 / (factor * v * v) for v in values]

    def _corner(self, bits: Sequence[int]) -> Tuple[slice, ...]:
        """Slices selecting one corner of every block."""
        return tuple(slice(b, n - 1 + b) for b, n in zip(bits, self._shape.dims))

    def _edges(self) -> List[Tuple[int, Tuple[slice, ...], Tuple[slice, ...]]]:
        """List ``(axis, lower, upper)`` of all edges of a block."""
        rank = self._shape.rank
        edges = []
        for bits in product((0, 1), repeat=rank):
            for k in range(rank):
                if bits[k] == 0:
                    upper = list(bits)
                    upper[k] = 1
                    edges.append((k, self._corner(bits), self._corner(upper)))
        return edges

    def _norms(self, x: np.ndarray):
        x = np.asarray(x, dtype=np.float64)
        diffs = []
        sq = None
        for k, lo, hi in self._edges():
            d = x[hi] - x[lo]
            term = self._w[k] * d * d
            sq = term if sq is None else sq + term
            diffs.append((k, lo, hi, d))
        r = np.sqrt(sq + self._epsilon ** 2)
        return r, diffs

    def _cost(self, alpha: float, x: np.ndarray) -> float:
        r, _ = self._norms(x)
        return alpha * np.sum(r - self._epsilon, dtype=np.float64)

    def _cost_and_gradient(
        self, alpha: float, x: np.ndarray, gx: np.ndarray, clear: bool
    ) -> float:
        r, diffs = self._norms(x)
        g = np.zeros(self._shape.dims, dtype=np.float64)
        q = alpha / r
        for k, lo, hi, d in diffs:
            t = self._w[k] * q * d
            g[hi] += t
            g[lo] -= t
        if clear:
            gx[...] = g
        else:
            gx += g
        return alpha * np.sum(r - self._epsilon, dtype=np.float64)
