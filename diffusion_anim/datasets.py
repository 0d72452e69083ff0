"""Toy 1-D and 2-D point clouds used as x_0 for the diffusion animations."""

import math
from typing import Optional, Tuple

import torch

from .rng import Mulberry32, standard_normal, standard_normal_pair


DISTRIBUTIONS_1D = ('uniform', 'spiky')
DISTRIBUTIONS_2D = ('ring', 'spiral')


def sample_1d(n: int, dist: str, rng: Mulberry32) -> torch.Tensor:
    """
    Sample a 1-D dataset.

    Args:
        n: Number of points
        dist: 'uniform' (flat on [-4, 4]) or 'spiky' (narrow bumps at -3..3)
        rng: Uniform stream

    Returns:
        float32 tensor of shape (n,)
    """
    out = torch.empty(n, dtype=torch.float32)
    if dist == 'uniform':
        for i in range(n):
            out[i] = (rng() * 2 - 1) * 4
    elif dist == 'spiky':
        for i in range(n):
            k = math.floor(rng() * 7) - 3
            out[i] = k + 0.15 * standard_normal(rng)
    else:
        raise ValueError(f"Unknown 1-D distribution: {dist!r} (expected one of {DISTRIBUTIONS_1D})")
    return out


def sample_2d(n: int, dist: str, rng: Mulberry32) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Sample a 2-D dataset.

    Args:
        n: Number of points
        dist: 'ring' (radius ~2.2) or 'spiral' (Archimedean arm with jitter)
        rng: Uniform stream

    Returns:
        Tuple of (xs, ys), each float32 of shape (n,)
    """
    xs = torch.empty(n, dtype=torch.float32)
    ys = torch.empty(n, dtype=torch.float32)

    if dist == 'ring':
        for i in range(n):
            theta = rng() * math.pi * 2
            r = 2.2 + (rng() - 0.5) * 0.3
            xs[i] = r * math.cos(theta)
            ys[i] = r * math.sin(theta)
    elif dist == 'spiral':
        for i in range(n):
            a = rng() * 5.5 * math.pi
            r = 0.2 + 0.15 * a
            e0, e1 = standard_normal_pair(rng)
            xs[i] = r * math.cos(a) + 0.1 * e0
            ys[i] = r * math.sin(a) + 0.1 * e1
    else:
        raise ValueError(f"Unknown 2-D distribution: {dist!r} (expected one of {DISTRIBUTIONS_2D})")

    return xs, ys


def data_seed(dim: str, n: int, steps: int, dist: Optional[str] = None) -> int:
    """Stable seed for a dataset so the same controls redraw the same points."""
    if dim == '1d':
        seed = 8081 + n * 7 + (steps << 2) + (100 if dist == 'spiky' else 0)
    elif dim == '2d':
        seed = 9092 + n * 7 + (steps << 2) + (200 if dist == 'ring' else 0)
    else:
        raise ValueError(f"Unknown dimension: {dim!r}")
    return seed & 0xFFFFFFFF


def eps_seed(seed: int) -> int:
    """Seed for the ε stream paired with a dataset seed."""
    return (seed ^ 0x9E3779B9) & 0xFFFFFFFF
