"""Tests for the FFT convolution operator.

Uses the dot-product test to verify adjoint correctness:
    ⟨H(x), y⟩ = ⟨x, H^T(y)⟩

For random vectors x and y, both inner products should be equal
(up to floating-point precision).
"""

import numpy as np
import pytest

from convlib.conv import Convolution, build_mtf, center_psf
from convlib.core import (
    Job,
    NotInitializedError,
    RegionError,
    ShapeMismatchError,
    UnsupportedJobError,
)
from convlib.utils import FrequencyTransform, zero_pad


def dot_product_test(
    forward,
    adjoint,
    x_shape: tuple,
    y_shape: tuple,
    dtype=np.float64,
    rtol: float = 1e-10,
) -> tuple:
    """Verify adjoint correctness via dot-product test.

    Tests that ⟨A(x), y⟩ = ⟨x, A^T(y)⟩ for random x and y.

    Args:
        forward: Forward operator A
        adjoint: Adjoint operator A^T
        x_shape: Shape of input to forward operator
        y_shape: Shape of input to adjoint operator (output of forward)
        dtype: Data type of the test vectors
        rtol: Relative tolerance for comparison

    Returns:
        Tuple of (lhs, rhs, relative_error)
    """
    rng = np.random.default_rng(42)
    x = rng.standard_normal(x_shape).astype(dtype)
    y = rng.standard_normal(y_shape).astype(dtype)

    # Compute ⟨A(x), y⟩
    Ax = forward(x)
    lhs = float(np.sum(Ax * y, dtype=np.float64))

    # Compute ⟨x, A^T(y)⟩
    Aty = adjoint(y)
    rhs = float(np.sum(x * Aty, dtype=np.float64))

    rel_error = abs(lhs - rhs) / (0.5 * (abs(lhs) + abs(rhs)) + 1e-12)

    assert rel_error < rtol, (
        f"Dot-product test failed: ⟨Ax, y⟩ = {lhs:.12e}, ⟨x, A^T y⟩ = {rhs:.12e}, "
        f"relative error = {rel_error:.2e} (tolerance = {rtol:.2e})"
    )

    return lhs, rhs, rel_error


def asymmetric_psf(shape, seed=0):
    """Random positive PSF with no symmetry (so that H != H^T)."""
    rng = np.random.default_rng(seed)
    psf = rng.uniform(0.0, 1.0, shape)
    return psf / psf.sum()


def reference_convolution(x, psf, center):
    """Cyclic convolution computed directly with numpy.fft."""
    h = np.roll(psf, [-c for c in center], axis=tuple(range(psf.ndim)))
    return np.real(np.fft.ifftn(np.fft.fftn(x) * np.fft.fftn(h)))


class TestAdjoint:
    """Dot-product tests for every rank and precision."""

    @pytest.mark.parametrize(
        "object_shape,data_shape",
        [
            ((32,), (32,)),
            ((32,), (20,)),
            ((16, 12), (16, 12)),
            ((16, 12), (9, 7)),
            ((8, 6, 10), (8, 6, 10)),
            ((8, 6, 10), (5, 4, 6)),
        ],
    )
    @pytest.mark.parametrize("dtype,rtol", [(np.float64, 1e-10), (np.float32, 1e-4)])
    def test_dot_product(self, object_shape, data_shape, dtype, rtol):
        """⟨Hx, y⟩ = ⟨x, H^T y⟩ with full and windowed data spaces."""
        conv = Convolution(object_shape, data_shape, dtype=dtype)
        conv.set_psf(asymmetric_psf(object_shape))
        C, C_adj = conv.as_functions()
        dot_product_test(C, C_adj, object_shape, data_shape, dtype=dtype, rtol=rtol)

    def test_explicit_offset(self):
        """Dot-product test with a data window in a corner."""
        conv = Convolution((20, 15), (6, 5), offset=(14, 0))
        conv.set_psf(asymmetric_psf((20, 15), seed=3), center=(2, 11))
        dot_product_test(conv, conv.adjoint, (20, 15), (6, 5))

    def test_adjoint_is_correlation(self):
        """The adjoint multiplies by the conjugate MTF (correlation)."""
        rng = np.random.default_rng(7)
        psf = asymmetric_psf((16,), seed=7)
        y = rng.standard_normal(16)
        conv = Convolution((16,))
        conv.set_psf(psf, center=(8,))
        h = np.fft.fftn(np.roll(psf, -8))
        expected = np.real(np.fft.ifftn(np.fft.fftn(y) * np.conj(h)))
        np.testing.assert_allclose(conv.apply(y, Job.ADJOINT), expected, atol=1e-12)


class TestDirect:
    """Tests for the direct operator."""

    @pytest.mark.parametrize("shape", [(17,), (10, 8), (6, 5, 4)])
    def test_matches_reference(self, shape):
        """Direct operator equals the numpy cyclic convolution."""
        rng = np.random.default_rng(1)
        x = rng.standard_normal(shape)
        psf = asymmetric_psf(shape, seed=2)
        center = tuple(n // 3 for n in shape)
        conv = Convolution(shape)
        conv.set_psf(psf, center)
        np.testing.assert_allclose(
            conv(x), reference_convolution(x, psf, center), atol=1e-12
        )

    def test_windowed_is_crop_of_full(self):
        """The data window selects a region of the full convolution."""
        rng = np.random.default_rng(4)
        x = rng.standard_normal((12, 10))
        psf = asymmetric_psf((12, 10), seed=5)
        full = Convolution((12, 10))
        full.set_psf(psf)
        window = Convolution((12, 10), (5, 6), offset=(4, 1))
        window.set_psf(psf)
        np.testing.assert_allclose(window(x), full(x)[4:9, 1:7], atol=1e-12)

    def test_fast_and_windowed_paths_agree(self, monkeypatch):
        """Full-copy and window-selection extraction give identical results."""
        rng = np.random.default_rng(6)
        x = rng.standard_normal((9, 14))
        conv = Convolution((9, 14))
        assert conv.fast
        conv.set_psf(asymmetric_psf((9, 14)))
        fast_direct = conv.apply(x)
        y = rng.standard_normal((9, 14))
        fast_adjoint = conv.apply(y, Job.ADJOINT)

        monkeypatch.setattr(conv, "_fast", False)
        np.testing.assert_array_equal(conv.apply(x), fast_direct)
        np.testing.assert_array_equal(conv.apply(y, Job.ADJOINT), fast_adjoint)

    def test_output_buffer(self):
        """The result is stored in the supplied destination."""
        conv = Convolution((8,), (4,))
        conv.set_psf(asymmetric_psf((8,)))
        out = np.empty(4)
        result = conv.apply(np.ones(8), out=out)
        assert result is out
        with pytest.raises(ShapeMismatchError):
            conv.apply(np.ones(8), out=np.empty(8))


class TestScatter:
    """Tests for the zero-padding of data-space arrays into the workspace."""

    @pytest.mark.parametrize(
        "object_shape, data_shape, offset",
        [((8, 6), (8, 6), None), ((8, 6), (5, 4), (2, 1)), ((9,), (4,), (0,))],
    )
    def test_weighted_scatter_is_zero_padding(self, object_shape, data_shape, offset):
        """pull_adjoint(y, w) writes zero_pad(w * y) with no imaginary part."""
        rng = np.random.default_rng(4)
        conv = Convolution(object_shape, data_shape, offset=offset)
        y = rng.standard_normal(data_shape)
        w = rng.uniform(0.0, 2.0, data_shape)
        # Leftovers of a previous evaluation must be overwritten
        conv.workspace[...] = 1.0 + 1.0j

        conv.pull_adjoint(y, weights=w)
        expected = zero_pad(w * y, object_shape, conv.offset)
        np.testing.assert_array_equal(conv.workspace.real, expected)
        np.testing.assert_array_equal(conv.workspace.imag, 0.0)

        conv.pull_adjoint(y)
        np.testing.assert_array_equal(
            conv.workspace.real, zero_pad(y, object_shape, conv.offset)
        )

    def test_windowed_path_matches_fast_path(self, monkeypatch):
        """With equal shapes, the windowed scatter gives the fast result."""
        rng = np.random.default_rng(5)
        y = rng.standard_normal((6, 5))
        w = rng.uniform(0.0, 2.0, (6, 5))
        conv = Convolution((6, 5))
        conv.pull_adjoint(y, weights=w)
        fast = conv.workspace.copy()
        monkeypatch.setattr(conv, "_fast", False)
        conv.workspace[...] = 3.0j
        conv.pull_adjoint(y, weights=w)
        np.testing.assert_array_equal(conv.workspace, fast)

    def test_weights_shape(self):
        """Weights must have the data shape."""
        conv = Convolution((8,), (4,))
        with pytest.raises(ShapeMismatchError):
            conv.pull_adjoint(np.ones(4), weights=np.ones(5))


class TestCentering:
    """Tests for the PSF centering convention."""

    @pytest.mark.parametrize(
        "shape,center", [((9,), (4,)), ((8, 6), (3, 2)), ((4, 5, 6), (0, 4, 1))]
    )
    @pytest.mark.parametrize("dtype", [np.float64, np.float32])
    def test_impulse_is_identity(self, shape, center, dtype):
        """An impulse at the center gives MTF = 1 and the identity operator."""
        psf = np.zeros(shape)
        psf[center] = 1.0
        conv = Convolution(shape, dtype=dtype)
        conv.set_psf(psf, center)
        tol = 1e-12 if dtype == np.float64 else 1e-5
        np.testing.assert_allclose(conv.mtf, np.ones(shape), atol=tol)

        x = np.random.default_rng(0).standard_normal(shape).astype(dtype)
        np.testing.assert_allclose(conv(x), x, rtol=tol, atol=tol)
        np.testing.assert_allclose(conv.adjoint(x), x, rtol=tol, atol=tol)

    def test_default_center(self):
        """Without a center the geometric center is used."""
        psf = np.zeros((6, 7))
        psf[3, 3] = 1.0
        conv = Convolution((6, 7))
        conv.set_psf(psf)
        np.testing.assert_allclose(conv.mtf, np.ones((6, 7)), atol=1e-12)

    def test_center_psf(self):
        """center_psf moves the center to the origin."""
        np.testing.assert_array_equal(
            center_psf(np.array([0.0, 0.25, 0.5, 0.25]), [2]), [0.5, 0.25, 0.0, 0.25]
        )

    def test_build_mtf(self):
        """build_mtf equals the FFT of the rolled PSF."""
        psf = asymmetric_psf((6, 4))
        fft = FrequencyTransform((6, 4))
        mtf = build_mtf(psf, (1, 3), fft)
        np.testing.assert_allclose(
            mtf, np.fft.fftn(np.roll(psf, (-1, -3), axis=(0, 1))), atol=1e-12
        )

    def test_build_mtf_normalize(self):
        """Normalized PSFs have an MTF equal to 1 at zero frequency."""
        fft = FrequencyTransform((8,))
        mtf = build_mtf(np.arange(8.0), None, fft, normalize=True)
        np.testing.assert_allclose(mtf[0], 1.0)
        with pytest.raises(ValueError, match="sum to zero"):
            build_mtf(np.zeros(8), None, fft, normalize=True)

    def test_build_mtf_errors(self):
        """Bad PSFs are rejected."""
        fft = FrequencyTransform((8,))
        with pytest.raises(ShapeMismatchError):
            build_mtf(np.ones(7), None, fft)
        with pytest.raises(TypeError):
            build_mtf(np.ones(8, dtype=complex), None, fft)
        with pytest.raises(RegionError):
            build_mtf(np.ones(8), [8], fft)


class TestFourSamples:
    """Identity kernel on a 4-sample object."""

    def test_identity_full(self):
        """x = [2, 5, -1, 3] is reproduced by the identity kernel."""
        conv = Convolution((4,))
        conv.set_psf(np.array([1.0, 0.0, 0.0, 0.0]), center=[0])
        np.testing.assert_allclose(conv.apply([2.0, 5.0, -1.0, 3.0]), [2, 5, -1, 3], atol=1e-12)

    def test_identity_first_two_samples(self):
        """With a 2-sample data window at offset 0, pull gives [2, 5]."""
        conv = Convolution((4,), (2,), offset=[0])
        conv.set_psf(np.array([1.0, 0.0, 0.0, 0.0]), center=[0])
        conv.push(np.array([2.0, 5.0, -1.0, 3.0]))
        conv.convolve()
        np.testing.assert_allclose(conv.pull(), [2, 5], atol=1e-12)
        np.testing.assert_allclose(conv.apply([2.0, 5.0, -1.0, 3.0]), [2, 5], atol=1e-12)


class TestPSFUpdates:
    """Tests for MTF caching and updates."""

    def test_set_psf_twice_is_idempotent(self):
        """Setting the same PSF again gives bit-identical MTF and results."""
        psf = asymmetric_psf((10, 8))
        x = np.random.default_rng(3).standard_normal((10, 8))
        conv = Convolution((10, 8))
        conv.set_psf(psf, (5, 4))
        mtf1 = conv.mtf.copy()
        y1 = conv(x)
        buffer = conv.mtf
        conv.set_psf(psf, (5, 4))
        assert conv.mtf is buffer
        np.testing.assert_array_equal(conv.mtf, mtf1)
        np.testing.assert_array_equal(conv(x), y1)

    def test_new_psf_updates_results(self):
        """A different PSF changes results without rebuilding the operator."""
        x = np.random.default_rng(3).standard_normal(16)
        conv = Convolution((16,))
        conv.set_psf(asymmetric_psf((16,), seed=1))
        conv(x)
        psf2 = asymmetric_psf((16,), seed=2)
        conv.set_psf(psf2)
        fresh = Convolution((16,))
        fresh.set_psf(psf2)
        np.testing.assert_array_equal(conv(x), fresh(x))

    def test_set_mtf(self):
        """An MTF can be given directly."""
        conv = Convolution((8,))
        conv.set_mtf(np.ones(8))
        x = np.arange(8.0)
        np.testing.assert_allclose(conv(x), x, atol=1e-12)
        with pytest.raises(ShapeMismatchError):
            conv.set_mtf(np.ones(4))


class TestErrors:
    """Tests for precondition violations."""

    def test_apply_before_psf(self):
        """Applying before setting a PSF raises NotInitializedError."""
        conv = Convolution((8,))
        with pytest.raises(NotInitializedError):
            conv.apply(np.ones(8))
        with pytest.raises(RuntimeError):
            conv.multiply_by_mtf()

    def test_inverse_is_unsupported(self):
        """Only direct and adjoint jobs are available."""
        conv = Convolution((8,))
        conv.set_psf(asymmetric_psf((8,)))
        with pytest.raises(UnsupportedJobError):
            conv.apply(np.ones(8), "inverse")
        with pytest.raises(NotImplementedError):
            conv.apply(np.ones(8), 3)

    def test_shape_errors(self):
        """Wrongly shaped arrays are rejected."""
        conv = Convolution((8, 4), (4, 4))
        with pytest.raises(ShapeMismatchError):
            conv.set_psf(np.ones((4, 4)))
        conv.set_psf(np.ones((8, 4)))
        with pytest.raises(ShapeMismatchError):
            conv.apply(np.ones((4, 4)))
        with pytest.raises(ShapeMismatchError):
            conv.apply(np.ones((8, 4)), Job.ADJOINT)
        with pytest.raises(ShapeMismatchError):
            conv.push(np.ones(32))

    def test_bad_geometry(self):
        """Bad ranks, regions and types are rejected at construction."""
        with pytest.raises(ValueError, match="rank 4"):
            Convolution((2, 2, 2, 2))
        with pytest.raises(RegionError):
            Convolution((8,), (4,), offset=(6,))
        with pytest.raises(RegionError):
            Convolution((8,), (10,))
        with pytest.raises(TypeError):
            Convolution((8,), dtype=np.int32)


class TestResources:
    """Tests for lazily created resources."""

    def test_lazy_workspace(self):
        """The workspace is created once, with the object shape."""
        conv = Convolution((6, 5), (3, 3), dtype=np.float32)
        assert "workspace" not in conv.__dict__
        z = conv.workspace
        assert z.shape == (6, 5)
        assert z.dtype == np.complex64
        assert conv.workspace is z
        assert conv.interleaved.shape == (60,)
        assert conv.interleaved.dtype == np.float32

    def test_interleaved_layout(self):
        """Real and imaginary parts alternate in the interleaved view."""
        conv = Convolution((3,))
        conv.workspace[:] = [1 + 2j, 3 + 4j, 5 + 6j]
        np.testing.assert_array_equal(conv.interleaved, [1, 2, 3, 4, 5, 6])

    def test_properties(self):
        """Geometry properties of the operator."""
        conv = Convolution((10, 9), (4, 4))
        assert conv.object_shape == (10, 9)
        assert conv.data_shape == (4, 4)
        assert conv.offset == (3, 2)
        assert conv.number == 90
        assert conv.scale == pytest.approx(1 / 90)
        assert not conv.fast
        assert conv.mtf is None
        assert "Convolution" in repr(conv)
