"""Weighted sum of differentiable costs."""

from typing import List, Sequence, Tuple

import numpy as np

from ..core.errors import ShapeMismatchError
from ..core.shape import Shape
from .base import DifferentiableCost

__all__ = ["CompositeCost"]


class CompositeCost(DifferentiableCost):
    """Cost ``f(x) = sum_i mu_i * f_i(x)``.

    All terms must share the same input shape. Gradients are accumulated in
    the caller's array: the first term overwrites it (when ``clear``), the
    following ones add to it.

    Example:
        ```python
        cost = CompositeCost([(1.0, data_term), (1e-2, tv)])
        fx, gx = cost.compute_cost_and_gradient(1.0, x)
        ```
    """

    def __init__(self, terms: Sequence[Tuple[float, DifferentiableCost]]):
        if len(terms) == 0:
            raise ValueError("A composite cost needs at least one term")
        self._terms: List[Tuple[float, DifferentiableCost]] = []
        for mu, cost in terms:
            self.add(mu, cost)

    def add(self, mu: float, cost: DifferentiableCost) -> None:
        """Append the term ``mu * cost``."""
        if self._terms and cost.input_shape != self.input_shape:
            raise ShapeMismatchError(
                f"Cost term has input shape {cost.input_shape}, expected {self.input_shape}"
            )
        self._terms.append((float(mu), cost))

    @property
    def terms(self) -> List[Tuple[float, DifferentiableCost]]:
        return list(self._terms)

    @property
    def input_shape(self) -> Shape:
        return self._terms[0][1].input_shape

    def _cost(self, alpha: float, x: np.ndarray) -> float:
        return sum(cost.evaluate(alpha * mu, x) for mu, cost in self._terms)

    def _cost_and_gradient(
        self, alpha: float, x: np.ndarray, gx: np.ndarray, clear: bool
    ) -> float:
        total = 0.0
        for mu, cost in self._terms:
            if mu == 0.0:
                continue
            fx, _ = cost.compute_cost_and_gradient(alpha * mu, x, gx, clear)
            total += fx
            clear = False
        if clear:
            gx.fill(0)
        return total
