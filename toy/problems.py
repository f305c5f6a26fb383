"""Synthetic blur problems for testing convolution models and solvers.

The problems are discretized shift-invariant blurs:
    y = h * x

with a Gaussian PSF h and a piecewise-smooth ground truth x made of a few
boxes and Gaussian blobs, which is naturally non-negative.
"""

from typing import Optional, Sequence, Tuple, Union

import numpy as np


def gaussian_psf(
    shape: Sequence[int],
    sigma: Union[float, Sequence[float]] = 1.5,
    center: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """Generate a sampled Gaussian PSF normalized to unit sum.

    Args:
        shape: Shape of the PSF array (rank 1, 2 or 3).
        sigma: Standard deviation in samples, one value or one per axis.
        center: Index of the PSF peak. Defaults to ``dim//2`` along each axis.

    Returns:
        PSF array of the requested shape.

    Example:
        >>> psf = gaussian_psf((64, 64), sigma=2.0)
        >>> assert abs(psf.sum() - 1.0) < 1e-12
        >>> assert np.unravel_index(psf.argmax(), psf.shape) == (32, 32)
    """
    shape = tuple(int(n) for n in shape)
    if center is None:
        center = tuple(n // 2 for n in shape)
    sigmas = np.broadcast_to(np.asarray(sigma, dtype=np.float64), (len(shape),))

    # Separable: product of 1D Gaussians
    psf = np.ones(shape)
    for axis, (n, c, s) in enumerate(zip(shape, center, sigmas)):
        t = np.arange(n) - c
        g = np.exp(-(t**2) / (2 * s**2))
        view = [1] * len(shape)
        view[axis] = n
        psf = psf * g.reshape(view)

    return psf / psf.sum()


def make_blur_problem(
    shape: Sequence[int] = (64, 64),
    sigma: Union[float, Sequence[float]] = 2.0,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[np.ndarray, np.ndarray, Tuple[int, ...], np.ndarray]:
    """Generate a blurred test object with its PSF.

    The blur is cyclic (computed by FFT), so ``blurred`` is exactly the
    model of :class:`convlib.Convolution` with the returned PSF and center.

    Args:
        shape: Shape of the object (rank 1, 2 or 3).
        sigma: Standard deviation of the Gaussian PSF in samples.
        rng: NumPy random generator for the blob positions. If None, uses a
            generator seeded with 0 so that problems are reproducible.

    Returns:
        x_true: Ground truth object.
        psf: Gaussian PSF with the object shape.
        center: Index of the PSF center.
        blurred: Exact (noise-free) blurred data.

    Example:
        >>> x_true, psf, center, blurred = make_blur_problem((32, 32))
        >>> assert blurred.shape == x_true.shape == psf.shape
    """
    if rng is None:
        rng = np.random.default_rng(0)
    shape = tuple(int(n) for n in shape)
    center = tuple(n // 2 for n in shape)
    psf = gaussian_psf(shape, sigma, center)

    # Ground truth: a flat box plus a few Gaussian blobs on a small background
    x_true = np.full(shape, 0.1)
    box = tuple(slice(n // 4, n // 4 + max(1, n // 4)) for n in shape)
    x_true[box] += 1.0
    grids = np.meshgrid(*[np.arange(n) for n in shape], indexing="ij")
    for _ in range(3):
        pos = [rng.uniform(0.2 * n, 0.8 * n) for n in shape]
        width = 0.05 * min(shape) + 1.0
        r2 = sum((g - p) ** 2 for g, p in zip(grids, pos))
        x_true += 2.0 * np.exp(-r2 / (2 * width**2))

    # Cyclic convolution with the PSF rolled to the origin
    h = np.roll(psf, [-c for c in center], axis=tuple(range(len(shape))))
    blurred = np.real(np.fft.ifftn(np.fft.fftn(x_true) * np.fft.fftn(h)))

    return x_true, psf, center, blurred


def add_poisson_noise(
    b_exact: np.ndarray,
    peak_photons: float = 1000.0,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Add Poisson noise to exact data.

    Scales data so peak equals peak_photons, applies Poisson sampling,
    then scales back to original units.

    Args:
        b_exact: Exact (noise-free) data. Should be non-negative.
        peak_photons: Number of photons at the peak intensity.
            Higher values = less relative noise.
        rng: NumPy random generator. If None, uses default.

    Returns:
        Noisy data with Poisson statistics, in the precision of ``b_exact``.
    """
    if rng is None:
        rng = np.random.default_rng()
    b_exact = np.asarray(b_exact)

    b_nonneg = np.maximum(b_exact, 0.0)
    peak_val = np.max(b_nonneg)
    if peak_val <= 0:
        return b_exact.copy()

    scale = peak_photons / peak_val
    counts = rng.poisson(b_nonneg * scale)
    return (counts / scale).astype(np.result_type(b_exact.dtype, np.float32))


def add_gaussian_noise(
    b_exact: np.ndarray,
    noise_level: float = 0.01,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Add Gaussian white noise to exact data.

    Args:
        b_exact: Exact (noise-free) data.
        noise_level: Standard deviation of noise relative to ||b_exact||_2.
            E.g., 0.01 means 1% noise level.
        rng: NumPy random generator. If None, uses default.

    Returns:
        Noisy data: b_exact + noise where ||noise||_2 / ||b_exact||_2 = noise_level.
    """
    if rng is None:
        rng = np.random.default_rng()
    b_exact = np.asarray(b_exact)

    b_norm = np.linalg.norm(b_exact)
    if b_norm <= 0:
        return b_exact.copy()

    noise = rng.standard_normal(b_exact.shape)
    noise *= noise_level * b_norm / np.linalg.norm(noise)
    return b_exact + noise
