"""Finite-difference check of analytic gradients."""

from typing import Optional, Sequence

import numpy as np

from .base import DifferentiableCost

__all__ = ["GradientChecker"]

_SCHEMES = ("forward", "backward", "centered")


class GradientChecker:
    """Compare the gradient of a cost with finite differences.

    Args:
        cost: Differentiable cost to check.
        scheme: ``"forward"``, ``"backward"`` or ``"centered"`` differences.
        step: Finite-difference step. If None, a step relative to the
            magnitude of the variables is used.
        verbose: If True, print one line per checked index.

    Example:
        ```python
        checker = GradientChecker(cost, scheme="centered")
        errors = checker.check(x, number=20)
        assert errors.max() < 1e-5
        ```
    """

    def __init__(
        self,
        cost: DifferentiableCost,
        scheme: str = "centered",
        step: Optional[float] = None,
        verbose: bool = False,
    ):
        if scheme not in _SCHEMES:
            raise ValueError(f"Unknown finite-difference scheme '{scheme}', expected one of {_SCHEMES}")
        if step is not None and not step > 0:
            raise ValueError(f"step must be strictly positive, got {step}")
        self.cost = cost
        self.scheme = scheme
        self.step = step
        self.verbose = verbose

    def _step_for(self, x: np.ndarray) -> float:
        if self.step is not None:
            return self.step
        # ~ cube root of machine precision for centered differences
        eps = np.finfo(np.float64).eps
        base = eps ** (1 / 3) if self.scheme == "centered" else np.sqrt(eps)
        return base * max(1.0, float(np.max(np.abs(x))))

    def numerical_derivative(self, x: np.ndarray, index: int) -> float:
        """Finite-difference partial derivative along flat ``index``."""
        x = np.array(x, dtype=np.float64, copy=True)
        flat = x.reshape(-1)
        h = self._step_for(x)
        x0 = flat[index]
        if self.scheme == "forward":
            f0 = self.cost.evaluate(1.0, x)
            flat[index] = x0 + h
            f1 = self.cost.evaluate(1.0, x)
            return (f1 - f0) / h
        if self.scheme == "backward":
            f1 = self.cost.evaluate(1.0, x)
            flat[index] = x0 - h
            f0 = self.cost.evaluate(1.0, x)
            return (f1 - f0) / h
        flat[index] = x0 + h
        fp = self.cost.evaluate(1.0, x)
        flat[index] = x0 - h
        fm = self.cost.evaluate(1.0, x)
        return (fp - fm) / (2 * h)

    def check(
        self,
        x: np.ndarray,
        indices: Optional[Sequence[int]] = None,
        number: int = 10,
        rng: Optional[np.random.Generator] = None,
    ) -> np.ndarray:
        """Return the relative errors between analytic and numerical derivatives.

        Args:
            x: Point at which the gradient is checked.
            indices: Flat indices to check. If None, ``number`` indices are
                drawn at random.
            number: Number of random indices.
            rng: Random generator for the indices.

        Returns:
            Array of relative errors ``|g - g_num| / max(|g|, |g_num|, tiny)``.
        """
        x = np.asarray(x, dtype=np.float64)
        if indices is None:
            rng = rng if rng is not None else np.random.default_rng()
            indices = rng.choice(x.size, size=min(number, x.size), replace=False)
        _, gx = self.cost.compute_cost_and_gradient(1.0, x)
        g = gx.reshape(-1)

        errors = np.empty(len(indices))
        for i, index in enumerate(indices):
            num = self.numerical_derivative(x, int(index))
            ana = float(g[index])
            denom = max(abs(ana), abs(num), np.finfo(np.float64).tiny)
            errors[i] = abs(ana - num) / denom
            if self.verbose:
                print(
                    f"  index {int(index):6d}: analytic = {ana: .6e}, "
                    f"numerical = {num: .6e}, rel_error = {errors[i]:.2e}"
                )
        return errors
