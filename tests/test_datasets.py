"""Tests for toy point-cloud datasets."""

import pytest
import torch

from diffusion_anim.datasets import (
    DISTRIBUTIONS_1D, DISTRIBUTIONS_2D, data_seed, eps_seed, sample_1d, sample_2d
)
from diffusion_anim.rng import Mulberry32


class TestSample1D:
    @pytest.mark.parametrize("dist", DISTRIBUTIONS_1D)
    def test_shape_and_dtype(self, dist):
        samples = sample_1d(300, dist, Mulberry32(1))
        assert samples.shape == (300,)
        assert samples.dtype == torch.float32

    def test_uniform_range(self):
        samples = sample_1d(1000, 'uniform', Mulberry32(2))
        assert samples.min() >= -4.0
        assert samples.max() <= 4.0

    def test_spiky_near_integers(self):
        samples = sample_1d(1000, 'spiky', Mulberry32(3))
        distance = torch.abs(samples - torch.round(samples))
        assert float(distance.mean()) < 0.2

    def test_unknown(self):
        with pytest.raises(ValueError):
            sample_1d(10, 'ring', Mulberry32(0))


class TestSample2D:
    @pytest.mark.parametrize("dist", DISTRIBUTIONS_2D)
    def test_shape_and_reproducible(self, dist):
        xs, ys = sample_2d(100, dist, Mulberry32(9))
        xs2, ys2 = sample_2d(100, dist, Mulberry32(9))

        assert xs.shape == ys.shape == (100,)
        assert torch.equal(xs, xs2)
        assert torch.equal(ys, ys2)

    def test_ring_radius(self):
        xs, ys = sample_2d(500, 'ring', Mulberry32(4))
        r = torch.sqrt(xs ** 2 + ys ** 2)
        assert float(r.min()) >= 2.05 - 1e-5
        assert float(r.max()) <= 2.35 + 1e-5

    def test_unknown(self):
        with pytest.raises(ValueError):
            sample_2d(10, 'uniform', Mulberry32(0))


class TestSeeds:
    def test_data_seed_changes_with_controls(self):
        assert data_seed('2d', 600, 50, 'ring') != data_seed('2d', 600, 50, 'spiral')
        assert data_seed('1d', 600, 50) != data_seed('1d', 601, 50)

    def test_unknown_dim(self):
        with pytest.raises(ValueError):
            data_seed('3d', 10, 10)

    def test_eps_seed_differs(self):
        seed = data_seed('2d', 600, 50, 'spiral')
        assert eps_seed(seed) != seed
        assert 0 <= eps_seed(seed) <= 0xFFFFFFFF


if __name__ == "__main__":
    pytest.main([__file__])
