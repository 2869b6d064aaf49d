"""Tests for the propagation primitives."""

import math

import numpy as np
import pytest

from influence.diffusion import (
    Decay, Propagation, convolve_kernel, decay_factor, decayed_dominance, gaussian_kernel,
    inject, normalize_kernel, propagate, smooth,
)
from influence.errors import InvalidParameters


def full_mask(nx, ny):
    return np.ones((nx, ny), dtype=bool)


class TestKernels:
    def test_gaussian_kernel_normalized_and_symmetric(self):
        k = gaussian_kernel(1.0)
        assert k.shape == (3, 3)
        assert k.sum() == pytest.approx(1.0)
        np.testing.assert_allclose(k, k.T)
        np.testing.assert_allclose(k, k[::-1, ::-1])
        assert k[1, 1] > k[0, 1] > k[0, 0]

    def test_gaussian_kernel_rejects_bad_sigma(self):
        with pytest.raises(InvalidParameters):
            gaussian_kernel(0.0)

    def test_normalize_accepts_flat_nine(self):
        k = normalize_kernel([1] * 9)
        np.testing.assert_allclose(k, np.full((3, 3), 1 / 9))

    @pytest.mark.parametrize(
        "weights",
        [
            [[1, 1], [1, 1]],
            [[0, 0, 0], [0, 0, 0], [0, 0, 0]],
            [[0, 0, 0], [0, float("nan"), 0], [0, 0, 1]],
            "abc",
        ],
    )
    def test_normalize_rejects(self, weights):
        with pytest.raises(InvalidParameters):
            normalize_kernel(weights)


class TestInjection:
    def test_stronger_base_overrides(self):
        out = inject(np.array([0.1]), np.array([0.5]))
        assert out[0] == 0.5

    def test_weaker_base_keeps_current(self):
        out = inject(np.array([0.5]), np.array([0.1]))
        assert out[0] == 0.5

    def test_magnitude_not_sign(self):
        out = inject(np.array([0.3, -0.3, 0.4]), np.array([-0.6, 0.2, -0.4]))
        np.testing.assert_array_equal(out, [-0.6, -0.3, 0.4])


class TestConvolution:
    def test_offsets_follow_kernel_layout(self):
        # Only the N weight (row 0, col 1) set: each cell copies its northern neighbour.
        kernel = np.zeros((3, 3))
        kernel[0, 1] = 1.0
        src = np.zeros((3, 3))
        src[1, 0] = 0.7  # x=1, y=0
        out = convolve_kernel(src, full_mask(3, 3), kernel)
        assert out[1, 1] == pytest.approx(0.7)
        assert out.sum() == pytest.approx(0.7)

    def test_unregistered_neighbours_contribute_nothing(self):
        kernel = np.full((3, 3), 1 / 9)
        src = np.array([[0.9], [0.9], [0.9]])  # width 3, height 1
        mask = np.array([[True], [False], [True]])
        out = convolve_kernel(src, mask, kernel)
        assert out[0, 0] == pytest.approx(0.9 / 9)
        assert out[1, 0] == 0.0

    def test_interior_total_preserved(self):
        src = np.zeros((7, 7))
        src[3, 3] = 1.0
        out = convolve_kernel(src, full_mask(7, 7), gaussian_kernel())
        assert out.sum() == pytest.approx(1.0)

    def test_edge_loses_mass(self):
        src = np.zeros((4, 4))
        src[0, 0] = 1.0
        out = convolve_kernel(src, full_mask(4, 4), gaussian_kernel())
        assert out.sum() < 1.0


class TestDominance:
    def test_picks_larger_magnitude(self):
        pending = np.array([[-0.8], [0.0], [0.5]])
        out = decayed_dominance(pending, full_mask(3, 1), 1.0)
        assert out[1, 0] == pytest.approx(-0.8)

    def test_tie_favours_max(self):
        pending = np.array([[0.5], [0.0], [-0.5]])
        out = decayed_dominance(pending, full_mask(3, 1), 1.0)
        assert out[1, 0] == pytest.approx(0.5)

    def test_ignores_diagonals(self):
        pending = np.zeros((3, 3))
        pending[0, 0] = 1.0
        out = decayed_dominance(pending, full_mask(3, 3), 1.0)
        assert out[1, 1] == 0.0
        assert out[1, 0] == 1.0
        assert out[0, 1] == 1.0

    def test_isolated_cell_gets_zero(self):
        pending = np.array([[0.7], [0.0], [0.4]])
        mask = np.array([[True], [False], [True]])
        out = decayed_dominance(pending, mask, 1.0)
        np.testing.assert_array_equal(out, np.zeros((3, 1)))

    def test_no_wraparound(self):
        pending = np.array([[0.0], [0.0], [0.9]])
        out = decayed_dominance(pending, full_mask(3, 1), 1.0)
        assert out[0, 0] == 0.0


class TestDecay:
    def test_exponential(self):
        assert decay_factor(Decay.EXPONENTIAL, 0.0) == 1.0
        assert decay_factor(Decay.EXPONENTIAL, 0.5) == pytest.approx(math.exp(-0.5))

    def test_linear(self):
        assert decay_factor(Decay.LINEAR, 0.25) == 0.25

    def test_propagate_dominance_applies_decay(self):
        pending = np.array([[0.8], [0.0]])
        out = propagate(pending, full_mask(2, 1), Propagation.DECAYED_DOMINANCE, None, Decay.LINEAR, 0.5)
        assert out[1, 0] == pytest.approx(0.4)

    def test_propagate_kernel_applies_decay(self):
        pending = np.full((3, 3), 0.5)
        out = propagate(
            pending, full_mask(3, 3), Propagation.KERNEL, gaussian_kernel(), Decay.EXPONENTIAL, 1.0
        )
        assert out[1, 1] == pytest.approx(0.5 * math.exp(-1.0))


class TestSmoothing:
    def test_interpolates_previous_and_provisional(self):
        out = smooth(np.array([0.2]), np.array([1.0]), 0.75)
        assert out[0] == pytest.approx(0.2 * 0.75 + 1.0 * 0.25)

    def test_momentum_one_keeps_previous(self):
        prev = np.array([0.3, -0.6])
        np.testing.assert_array_equal(smooth(prev, np.array([1.0, 1.0]), 1.0), prev)
