"""
Cumulative "nudge toward a Gaussian" noise mode for 2-D point clouds.

Each click in the interactive view appends a ``NoiseStep``; the displayed
cloud is a left fold of the steps over the clean points. Step ``s`` draws its
jitter from its own seed, so the result only depends on the list of steps.
"""

import math
from dataclasses import dataclass
from functools import reduce
from typing import NamedTuple, Sequence, Tuple

import torch

from .rng import Mulberry32, standard_normal


SHIFT_FRAC = 0.3
NOISE_FRAC = 0.35
STEP_SEED_STRIDE = 101_003


@dataclass(frozen=True)
class NoiseStep:
    mean_x: float = 0.0
    mean_y: float = 0.0
    var_x: float = 1.0
    var_y: float = 1.0


class NoiseHistoryResult(NamedTuple):
    xs: torch.Tensor
    ys: torch.Tensor
    applied_x: torch.Tensor
    applied_y: torch.Tensor


def history_base_seed(dist: str, steps: int) -> int:
    """Base seed of the per-step streams; independent of the point count."""
    return (911_000_123 + (17 if dist == 'ring' else 31) + (steps << 1)) & 0xFFFFFFFF


def step_seed(base_seed: int, index: int) -> int:
    return (base_seed + index * STEP_SEED_STRIDE) & 0xFFFFFFFF


def noise_step(
    xs: torch.Tensor,
    ys: torch.Tensor,
    step: NoiseStep,
    seed: int,
    shift_frac: float = SHIFT_FRAC,
    noise_frac: float = NOISE_FRAC
) -> NoiseHistoryResult:
    """
    Apply one step: move each point a fraction toward the step mean and add
    scaled Gaussian jitter.

    Args:
        xs, ys: Current coordinates (not modified)
        step: Target mean and variance
        seed: Seed of this step's jitter stream
        shift_frac: Fraction of the distance to the mean covered per step
        noise_frac: Scale applied to the jitter

    Returns:
        New coordinates and the noise term applied to each point
    """
    rng = Mulberry32(seed)
    std_x = math.sqrt(max(1e-8, step.var_x))
    std_y = math.sqrt(max(1e-8, step.var_y))

    n = xs.numel()
    jitter = torch.empty(n, 2, dtype=torch.float64)
    for i in range(n):
        jitter[i, 0] = std_x * standard_normal(rng)
        jitter[i, 1] = std_y * standard_normal(rng)

    applied_x = (noise_frac * jitter[:, 0]).to(xs.dtype)
    applied_y = (noise_frac * jitter[:, 1]).to(ys.dtype)

    new_xs = xs + shift_frac * (step.mean_x - xs) + applied_x
    new_ys = ys + shift_frac * (step.mean_y - ys) + applied_y
    return NoiseHistoryResult(new_xs, new_ys, applied_x, applied_y)


def apply_noise_history(
    xs: torch.Tensor,
    ys: torch.Tensor,
    history: Sequence[NoiseStep],
    base_seed: int,
    shift_frac: float = SHIFT_FRAC,
    noise_frac: float = NOISE_FRAC
) -> NoiseHistoryResult:
    """Fold every step of ``history`` over the clean points.

    Returns:
        Final coordinates and the noise applied by the last step (zeros for an
        empty history)
    """
    xs = torch.as_tensor(xs, dtype=torch.float32).clone()
    ys = torch.as_tensor(ys, dtype=torch.float32).clone()
    start = NoiseHistoryResult(xs, ys, torch.zeros_like(xs), torch.zeros_like(ys))

    def fold(state: NoiseHistoryResult, indexed: Tuple[int, NoiseStep]) -> NoiseHistoryResult:
        index, step = indexed
        return noise_step(
            state.xs, state.ys, step, step_seed(base_seed, index),
            shift_frac=shift_frac, noise_frac=noise_frac
        )

    return reduce(fold, enumerate(history), start)
