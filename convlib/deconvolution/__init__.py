"""Image deconvolution with FFT convolution models.

The deconvolution problem is formulated as:
    y = H(x) + noise

where:
    - y: observed blurred data
    - x: unknown object
    - H: forward operator (convolution with the PSF, then data selection)

Example:
    >>> from convlib.deconvolution import DeconvolutionConfig, solve_deconvolution
    >>> from toy import make_blur_problem
    >>>
    >>> truth, psf, center, blurred = make_blur_problem((64, 64), sigma=2.0)
    >>> result = solve_deconvolution(blurred, psf, center=center)
"""

from .base import (
    DeconvolutionConfig,
    DeconvolutionResult,
)
from .solver import (
    solve_deconvolution,
)

__all__ = [
    # Base types
    "DeconvolutionConfig",
    "DeconvolutionResult",
    # Solvers
    "solve_deconvolution",
]
