"""Tests for the frequency transform and the centering/padding helpers."""

import numpy as np
import pytest

from convlib.core import RegionError, ShapeMismatchError
from convlib.utils import (
    FrequencyTransform,
    best_fft_shape,
    crop,
    geometric_center,
    pad_psf,
    roll_to_origin,
    zero_pad,
)


class TestFrequencyTransform:
    """Tests for the in-place FFT adapter."""

    def test_impulse_forward(self):
        """The forward FFT of an impulse at the origin is all ones."""
        fft = FrequencyTransform((8, 6))
        z = np.zeros((8, 6), dtype=np.complex128)
        z[0, 0] = 1.0
        out = fft.forward(z)
        assert out is z
        np.testing.assert_allclose(z, np.ones((8, 6)), atol=1e-12)

    def test_backward_is_not_forward(self):
        """Backward transform undoes the forward one (up to N).

        A shifted impulse tells both directions apart: applying the forward
        transform twice would mirror the impulse to the opposite index.
        """
        fft = FrequencyTransform((4,))
        z = np.array([0, 1, 0, 0], dtype=np.complex128)
        fft.forward(z)
        fft.backward(z)
        np.testing.assert_allclose(z, [0, 4, 0, 0], atol=1e-12)

    @pytest.mark.parametrize("shape", [(16,), (6, 10), (4, 6, 5)])
    @pytest.mark.parametrize(
        "dtype,rtol", [(np.complex128, 1e-12), (np.complex64, 1e-5)]
    )
    def test_round_trip_is_unnormalized(self, shape, dtype, rtol):
        """forward then backward multiplies by the number of samples."""
        rng = np.random.default_rng(0)
        z0 = (rng.standard_normal(shape) + 1j * rng.standard_normal(shape)).astype(dtype)
        z = z0.copy()
        fft = FrequencyTransform(shape, dtype=dtype)
        fft.forward(z)
        fft.backward(z)
        assert z.dtype == dtype
        np.testing.assert_allclose(z / fft.number, z0, rtol=rtol, atol=rtol)

    def test_matches_numpy(self):
        """Forward transform agrees with numpy.fft.fftn."""
        rng = np.random.default_rng(1)
        x = rng.standard_normal((5, 7)) + 0j
        z = x.copy()
        FrequencyTransform((5, 7)).forward(z)
        np.testing.assert_allclose(z, np.fft.fftn(x), rtol=1e-12, atol=1e-12)

    def test_buffer_checks(self):
        """Buffers of the wrong shape or type are rejected."""
        fft = FrequencyTransform((4, 4))
        with pytest.raises(ShapeMismatchError):
            fft.forward(np.zeros(15, dtype=np.complex128))
        with pytest.raises(ShapeMismatchError):
            fft.forward(np.zeros((2, 8), dtype=np.complex128))
        with pytest.raises(TypeError):
            fft.backward(np.zeros((4, 4), dtype=np.complex64))

    def test_rank_limits(self):
        """Only ranks 1 to 3 are supported."""
        with pytest.raises(ValueError, match="rank 4"):
            FrequencyTransform((2, 2, 2, 2))
        with pytest.raises(TypeError):
            FrequencyTransform((4,), dtype=np.float64)


class TestCenteringHelpers:
    """Tests for center computation and cyclic rolls."""

    def test_geometric_center(self):
        """The geometric center is dim//2 along each axis."""
        assert geometric_center((4, 5, 1)) == (2, 2, 0)

    def test_best_fft_shape(self):
        """Dimensions are enlarged to FFT-friendly lengths."""
        assert best_fft_shape((127, 64)) == (128, 64)
        for n, m in zip((97, 130, 1), best_fft_shape((97, 130, 1))):
            assert m >= n

    def test_roll_to_origin(self):
        """The center sample moves to index 0."""
        psf = np.array([0.0, 0.25, 0.5, 0.25])
        np.testing.assert_array_equal(roll_to_origin(psf, [2]), [0.5, 0.25, 0.0, 0.25])

    def test_roll_to_origin_2d(self):
        """Rolling works along every axis."""
        arr = np.zeros((5, 4))
        arr[3, 1] = 1.0
        rolled = roll_to_origin(arr, (3, 1))
        assert rolled[0, 0] == 1.0
        assert rolled.sum() == 1.0

    def test_roll_to_origin_errors(self):
        """Bad centers are rejected."""
        with pytest.raises(RegionError):
            roll_to_origin(np.zeros(4), [4])
        with pytest.raises(RegionError):
            roll_to_origin(np.zeros(4), [-1])
        with pytest.raises(ShapeMismatchError):
            roll_to_origin(np.zeros((4, 4)), [1])


class TestPadding:
    """Tests for crop, zero_pad and pad_psf."""

    def test_crop_zero_pad_adjoint(self):
        """zero_pad is the adjoint of crop: <crop(x), y> = <x, zero_pad(y)>."""
        rng = np.random.default_rng(42)
        x = rng.standard_normal((12, 9))
        y = rng.standard_normal((5, 4))
        offset = (3, 2)
        lhs = np.sum(crop(x, y.shape, offset) * y)
        rhs = np.sum(x * zero_pad(y, x.shape, offset))
        np.testing.assert_allclose(lhs, rhs, rtol=1e-12)

    def test_zero_pad_centered(self):
        """Without offset the array is centered."""
        padded = zero_pad(np.ones((2, 2)), (6, 6))
        np.testing.assert_array_equal(padded[2:4, 2:4], np.ones((2, 2)))
        assert padded.sum() == 4

    def test_zero_pad_too_small(self):
        """Padding to a smaller shape fails."""
        with pytest.raises(RegionError):
            zero_pad(np.ones((4, 4)), (3, 8))

    def test_pad_psf_keeps_center(self):
        """The PSF center ends at the geometric center of the output."""
        psf = np.zeros((5, 5))
        psf[2, 2] = 1.0
        padded, center = pad_psf(psf, (16, 16))
        assert padded.shape == (16, 16)
        assert center == (8, 8)
        assert padded[center] == 1.0

    def test_pad_psf_off_center(self):
        """An off-center PSF keeps its peak at the returned center."""
        psf = np.zeros((6,))
        psf[1] = 1.0
        padded, center = pad_psf(psf, (10,), center=(1,))
        assert padded[center] == 1.0
        assert padded.sum() == 1.0

    def test_pad_psf_rank_mismatch(self):
        """PSF and object ranks must agree."""
        with pytest.raises(ShapeMismatchError):
            pad_psf(np.ones((3, 3)), (8,))
