"""Base types for deconvolution algorithms."""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

__all__ = ["DeconvolutionConfig", "DeconvolutionResult"]


@dataclass
class DeconvolutionConfig:
    """Parameters of the regularized deconvolution solver.

    Attributes:
        max_iter: Maximum number of iterations of the optimizer.
        tol: Convergence tolerance passed to ``scipy.optimize.minimize``.
        lower_bound: Lower bound on the restored values (None for no bound).
            Default 0 enforces positivity.
        upper_bound: Upper bound on the restored values (None for no bound).
        regularization: Weight of the total variation prior (0 disables it).
        tv_epsilon: Relaxation threshold of the total variation.
        tv_scale: Sampling step used by the total variation.
        normalize_psf: If True, the PSF is divided by its sum.
        fast_shape: If True and no object shape is given, the object space is
            the data shape enlarged to FFT-friendly dimensions.
        verbose: If True, print progress.
    """

    max_iter: int = 100
    tol: float = 1e-8
    lower_bound: Optional[float] = 0.0
    upper_bound: Optional[float] = None
    regularization: float = 0.0
    tv_epsilon: float = 1e-3
    tv_scale: float = 1.0
    normalize_psf: bool = True
    fast_shape: bool = False
    verbose: bool = False

    def __post_init__(self):
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be at least 1, got {self.max_iter}")
        if not self.tol > 0:
            raise ValueError(f"tol must be strictly positive, got {self.tol}")
        if (
            self.lower_bound is not None
            and self.upper_bound is not None
            and self.lower_bound > self.upper_bound
        ):
            raise ValueError(
                f"lower_bound ({self.lower_bound}) must not exceed upper_bound ({self.upper_bound})"
            )
        if self.regularization < 0:
            raise ValueError(
                f"regularization must be nonnegative, got {self.regularization}"
            )
        if not self.tv_epsilon > 0:
            raise ValueError(f"tv_epsilon must be strictly positive, got {self.tv_epsilon}")
        if not self.tv_scale > 0:
            raise ValueError(f"tv_scale must be strictly positive, got {self.tv_scale}")


@dataclass
class DeconvolutionResult:
    """Result from a deconvolution algorithm.

    Attributes:
        restored: The restored object (object-space array).
        iterations: Number of iterations performed.
        loss_history: Loss/objective value at each iteration (if tracked).
        converged: Whether the algorithm converged to tolerance.
        metadata: Optional algorithm-specific metadata.
    """

    restored: np.ndarray
    iterations: int
    loss_history: List[float] = field(default_factory=list)
    converged: bool = False
    metadata: dict = field(default_factory=dict)
