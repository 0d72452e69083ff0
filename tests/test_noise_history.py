"""Tests for the cumulative point-cloud noise mode."""

import pytest
import torch

from diffusion_anim.datasets import sample_2d
from diffusion_anim.noise_history import (
    NoiseStep, apply_noise_history, history_base_seed, noise_step, step_seed
)
from diffusion_anim.rng import Mulberry32


@pytest.fixture
def ring():
    return sample_2d(200, 'ring', Mulberry32(1234))


class TestNoiseHistory:
    """Test folding a list of steps over clean points."""

    def test_empty_history_is_identity(self, ring):
        xs, ys = ring
        result = apply_noise_history(xs, ys, [], base_seed=7)

        assert torch.equal(result.xs, xs)
        assert torch.equal(result.ys, ys)
        assert torch.count_nonzero(result.applied_x) == 0

    def test_inputs_not_mutated(self, ring):
        xs, ys = ring
        xs_copy, ys_copy = xs.clone(), ys.clone()
        apply_noise_history(xs, ys, [NoiseStep()] * 3, base_seed=7)

        assert torch.equal(xs, xs_copy)
        assert torch.equal(ys, ys_copy)

    def test_deterministic(self, ring):
        xs, ys = ring
        history = [NoiseStep(), NoiseStep(mean_x=1.0, var_y=0.5)]

        a = apply_noise_history(xs, ys, history, base_seed=11)
        b = apply_noise_history(xs, ys, history, base_seed=11)

        assert torch.equal(a.xs, b.xs)
        assert torch.equal(a.ys, b.ys)

    def test_prefix_matches_shorter_history(self, ring):
        """Replaying n steps equals folding n-1 steps and applying the last."""
        xs, ys = ring
        history = [NoiseStep(), NoiseStep(mean_y=-1.0), NoiseStep(var_x=2.0)]
        base = 19

        partial = apply_noise_history(xs, ys, history[:2], base_seed=base)
        last = noise_step(partial.xs, partial.ys, history[2], step_seed(base, 2))
        full = apply_noise_history(xs, ys, history, base_seed=base)

        assert torch.allclose(full.xs, last.xs)
        assert torch.allclose(full.ys, last.ys)
        assert torch.allclose(full.applied_x, last.applied_x)

    def test_converges_toward_target(self, ring):
        """Many steps pull the cloud mean toward the step mean."""
        xs, ys = ring
        history = [NoiseStep(mean_x=2.0, mean_y=-1.0, var_x=0.1, var_y=0.1)] * 30
        result = apply_noise_history(xs, ys, history, base_seed=5)

        assert float(result.xs.mean()) == pytest.approx(2.0, abs=0.1)
        assert float(result.ys.mean()) == pytest.approx(-1.0, abs=0.1)


class TestNoiseStep:
    """Test a single nudge."""

    def test_zero_variance_pure_shift(self):
        xs = torch.tensor([1.0, -1.0])
        ys = torch.tensor([0.0, 2.0])
        step = NoiseStep(mean_x=0.0, mean_y=0.0, var_x=0.0, var_y=0.0)

        result = noise_step(xs, ys, step, seed=3, shift_frac=0.5)

        assert torch.allclose(result.xs, torch.tensor([0.5, -0.5]), atol=1e-3)
        assert torch.allclose(result.ys, torch.tensor([0.0, 1.0]), atol=1e-3)

    def test_applied_noise_recorded(self):
        xs = torch.zeros(100)
        ys = torch.zeros(100)
        result = noise_step(xs, ys, NoiseStep(), seed=1)

        assert torch.allclose(result.xs, result.applied_x)
        assert torch.allclose(result.ys, result.applied_y)


class TestSeeds:
    def test_base_seed_depends_on_dist(self):
        assert history_base_seed('ring', 50) != history_base_seed('spiral', 50)

    def test_step_seeds_distinct(self):
        seeds = {step_seed(123, i) for i in range(50)}
        assert len(seeds) == 50

    def test_seeds_are_32_bit(self):
        assert 0 <= step_seed(0xFFFFFFFF, 10) <= 0xFFFFFFFF


if __name__ == "__main__":
    pytest.main([__file__])
