"""Synthetic blur problems for convolution and deconvolution research.

Example:
    >>> from toy import make_blur_problem, add_poisson_noise
    >>> from convlib.deconvolution import solve_deconvolution
    >>>
    >>> # Generate test problem
    >>> x_true, psf, center, blurred = make_blur_problem((64, 64), sigma=2.0)
    >>> noisy = add_poisson_noise(blurred, peak_photons=1000)
    >>>
    >>> # Restore
    >>> result = solve_deconvolution(noisy, psf, center=center)
"""

from .problems import (
    gaussian_psf,
    make_blur_problem,
    add_poisson_noise,
    add_gaussian_noise,
)

__all__ = [
    "gaussian_psf",
    "make_blur_problem",
    "add_poisson_noise",
    "add_gaussian_noise",
]
