"""Seeded random streams and Gaussian sampling.

The animations need noise that is reproducible from a single integer seed so
the same ε can be replayed for the noising and the denoising half of an
episode. ``Mulberry32`` is a small counter-based 32-bit generator; because
each output only depends on the incremented state, a block of draws can be
computed with numpy in one shot and still match the scalar stream bit for bit.
"""

import math
from typing import Tuple

import numpy as np
import torch


MASK32 = 0xFFFFFFFF
GOLDEN_GAMMA = 0x6D2B79F5
TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply on unsigned ints."""
    return (a * b) & MASK32


class Mulberry32:
    """Deterministic uniform [0, 1) generator with a mutable 32-bit state."""

    def __init__(self, seed: int):
        self.state = int(seed) & MASK32

    def __call__(self) -> float:
        self.state = (self.state + GOLDEN_GAMMA) & MASK32
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / TWO_POW_32

    def uniforms(self, n: int) -> np.ndarray:
        """Draw ``n`` values at once; equivalent to ``n`` scalar calls.

        Args:
            n: Number of draws

        Returns:
            float64 array of shape (n,)
        """
        if n <= 0:
            return np.zeros(0, dtype=np.float64)

        mask = np.uint64(MASK32)
        steps = np.arange(1, n + 1, dtype=np.uint64)
        t = (np.uint64(self.state) + steps * np.uint64(GOLDEN_GAMMA)) & mask

        t = ((t ^ (t >> np.uint64(15))) * (t | np.uint64(1))) & mask
        t = t ^ ((t + (((t ^ (t >> np.uint64(7))) * (t | np.uint64(61))) & mask)) & mask)
        out = ((t ^ (t >> np.uint64(14))) & mask).astype(np.float64) / TWO_POW_32

        self.state = (self.state + n * GOLDEN_GAMMA) & MASK32
        return out


def _nonzero_uniform(rng) -> float:
    u = 0.0
    while u == 0.0:
        u = rng()
    return u


def standard_normal(rng) -> float:
    """Box-Muller transform: one N(0, 1) deviate from two uniform draws.

    ``rng`` is any zero-argument callable returning floats in [0, 1). Zero
    draws are resampled so ``log(u)`` stays finite.
    """
    u = _nonzero_uniform(rng)
    v = _nonzero_uniform(rng)
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def standard_normal_pair(rng) -> Tuple[float, float]:
    """Both Box-Muller outputs (cosine and sine branch) for one (u, v) draw."""
    u = _nonzero_uniform(rng)
    v = _nonzero_uniform(rng)
    m = math.sqrt(-2.0 * math.log(u))
    return m * math.cos(2.0 * math.pi * v), m * math.sin(2.0 * math.pi * v)


def _box_muller_block(rng: Mulberry32, n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Radius and angle arrays for ``n`` consecutive (u, v) pairs.

    Falls back to the scalar loop when the block contains a zero uniform,
    since the resampling shifts every later draw.
    """
    start = rng.state
    draws = rng.uniforms(2 * n)
    u, v = draws[0::2], draws[1::2]
    if np.all(u > 0.0) and np.all(v > 0.0):
        return np.sqrt(-2.0 * np.log(u)), 2.0 * np.pi * v

    rng.state = start
    radius = np.empty(n, dtype=np.float64)
    angle = np.empty(n, dtype=np.float64)
    for i in range(n):
        radius[i] = math.sqrt(-2.0 * math.log(_nonzero_uniform(rng)))
        angle[i] = 2.0 * math.pi * _nonzero_uniform(rng)
    return radius, angle


def normal_buffer(
    seed: int,
    length: int,
    mean: float = 0.0,
    var: float = 1.0
) -> torch.Tensor:
    """Generate a fixed noise buffer ε for one animation episode.

    Element i equals ``mean + sqrt(var) * standard_normal(rng)`` for the i-th
    call on ``Mulberry32(seed)``.

    Args:
        seed: Episode seed (reduced to 32 bits)
        length: Number of scalar components
        mean: Mean of the noise
        var: Variance of the noise, floored at 1e-8

    Returns:
        float32 tensor of shape (length,)
    """
    if length < 0:
        raise ValueError(f"length must be non-negative, got {length}")

    rng = Mulberry32(seed)
    radius, angle = _box_muller_block(rng, length)
    z = radius * np.cos(angle)
    std = math.sqrt(max(1e-8, var))
    return torch.from_numpy(mean + std * z).to(torch.float32)


def normal_pair_buffers(seed: int, length: int) -> Tuple[torch.Tensor, torch.Tensor]:
    """Two independent-looking ε buffers from the paired Box-Muller outputs.

    Used for 2-D point clouds, where point i takes both coordinates from the
    same (u, v) draw.
    """
    if length < 0:
        raise ValueError(f"length must be non-negative, got {length}")

    rng = Mulberry32(seed)
    radius, angle = _box_muller_block(rng, length)
    ex = torch.from_numpy(radius * np.cos(angle)).to(torch.float32)
    ey = torch.from_numpy(radius * np.sin(angle)).to(torch.float32)
    return ex, ey
