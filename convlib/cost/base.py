"""Base class for differentiable cost functions."""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from ..core.errors import ShapeMismatchError
from ..core.shape import Shape

__all__ = ["DifferentiableCost"]


class DifferentiableCost(ABC):
    """Abstract differentiable cost function f(x).

    Every cost is evaluated with a multiplier ``alpha`` so that weighted sums
    of costs can be built without temporaries. Gradients are either stored
    into or added to a caller-supplied array (see ``clear``), which is how
    composite costs accumulate the gradient of their terms.
    """

    @property
    @abstractmethod
    def input_shape(self) -> Shape:
        """Shape of the variables of the cost."""

    @abstractmethod
    def _cost(self, alpha: float, x: np.ndarray) -> float:
        """Return alpha*f(x) (``alpha`` is non-zero, ``x`` is checked)."""

    @abstractmethod
    def _cost_and_gradient(
        self, alpha: float, x: np.ndarray, gx: np.ndarray, clear: bool
    ) -> float:
        """Return alpha*f(x) and store (or add) its gradient in ``gx``."""

    def evaluate(self, alpha: float, x: np.ndarray) -> float:
        """Compute ``alpha*f(x)``."""
        x = self._check_variables(x)
        if alpha == 0.0:
            return 0.0
        return float(self._cost(alpha, x))

    def compute_cost_and_gradient(
        self,
        alpha: float,
        x: np.ndarray,
        gx: Optional[np.ndarray] = None,
        clear: bool = True,
    ) -> Tuple[float, np.ndarray]:
        """Compute ``alpha*f(x)`` and its gradient.

        Args:
            alpha: Multiplier of the cost.
            x: Variables.
            gx: Array receiving the gradient. Allocated if None.
            clear: If True, overwrite ``gx`` with the gradient; otherwise add
                the gradient to the contents of ``gx``.

        Returns:
            Tuple (cost, gx).
        """
        x = self._check_variables(x)
        if gx is None:
            gx = np.zeros(self.input_shape.dims, dtype=np.result_type(x.dtype, np.float32))
            clear = True
        elif gx.shape != self.input_shape.dims:
            raise ShapeMismatchError(
                f"Gradient has shape {gx.shape}, expected {self.input_shape.dims}"
            )
        if alpha == 0.0:
            if clear:
                gx.fill(0)
            return 0.0, gx
        return float(self._cost_and_gradient(alpha, x, gx, clear)), gx

    def __call__(self, x: np.ndarray) -> float:
        return self.evaluate(1.0, x)

    def _check_variables(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x)
        if x.shape != self.input_shape.dims:
            raise ShapeMismatchError(
                f"Variables have shape {x.shape}, expected {self.input_shape.dims}"
            )
        return x
