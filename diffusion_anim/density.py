"""
Histogram, kernel density and Gaussian-fit helpers for the sampling demos.
"""

import math
from typing import List, Sequence, Tuple

import torch

from .rng import standard_normal


VARIANCE_FLOOR = 1e-6
SIGMA_VARIANCE_FLOOR = 1e-9


def silverman_bandwidth(samples: torch.Tensor) -> float:
    """Rule-of-thumb bandwidth h = 1.06 * σ̂ * n^(-1/5)."""
    n = max(1, samples.numel())
    if samples.numel() > 1:
        var = float(torch.var(samples, unbiased=True))
    else:
        var = 0.0
    std = math.sqrt(max(VARIANCE_FLOOR, var))
    return 1.06 * std * n ** (-1 / 5)


def kernel_density_estimate(
    samples: Sequence[float],
    grid: Sequence[float],
    chunk_size: int = 4096
) -> torch.Tensor:
    """
    Gaussian KDE evaluated on a fixed grid.

    Args:
        samples: Observed values
        grid: Evaluation points
        chunk_size: Samples processed per block, bounds memory at chunk x |grid|

    Returns:
        Density at each grid point, float64 tensor of len(grid)
    """
    samples = torch.as_tensor(samples, dtype=torch.float64).flatten()
    grid = torch.as_tensor(grid, dtype=torch.float64).flatten()

    density = torch.zeros_like(grid)
    if samples.numel() == 0:
        return density

    n = samples.numel()
    h = silverman_bandwidth(samples)
    norm = 1.0 / (math.sqrt(2 * math.pi) * h * n)

    for start in range(0, n, chunk_size):
        block = samples[start:start + chunk_size]
        z = (grid[:, None] - block[None, :]) / h
        density += torch.exp(-0.5 * z * z).sum(dim=1)

    return density * norm


def make_bin_edges(x_min: float, x_max: float, bins: int) -> List[float]:
    """Equal-width bin edges, ``bins + 1`` values."""
    if bins < 1:
        raise ValueError(f"bins must be positive, got {bins}")
    step = (x_max - x_min) / bins
    return [x_min + i * step for i in range(bins + 1)]


def find_bin(x: float, edges: Sequence[float]) -> int:
    """Index of the bin containing ``x``; out-of-range values go to the end bins."""
    bins = len(edges) - 1
    if x <= edges[0]:
        return 0
    if x >= edges[bins]:
        return bins - 1
    for i in range(bins):
        if edges[i] <= x < edges[i + 1]:
            return i
    return bins - 1


def histogram_add(hist: Sequence[int], samples: Sequence[float], edges: Sequence[float]) -> List[int]:
    """Return a new histogram with ``samples`` counted in."""
    new_hist = list(hist)
    for x in samples:
        new_hist[find_bin(x, edges)] += 1
    return new_hist


def histogram_midpoint_samples(hist: Sequence[int], edges: Sequence[float]) -> List[float]:
    """Approximate the underlying samples by repeating each bin midpoint."""
    approx = []
    for i, count in enumerate(hist):
        mid = (edges[i] + edges[i + 1]) / 2
        approx.extend([mid] * int(count))
    return approx


def sample_mean(xs: Sequence[float]) -> float:
    return sum(xs) / len(xs) if len(xs) else 0.0


def sample_variance(xs: Sequence[float]) -> float:
    """Unbiased (n-1) variance; 0 for fewer than two samples."""
    n = len(xs)
    if n <= 1:
        return 0.0
    m = sample_mean(xs)
    return sum((x - m) ** 2 for x in xs) / (n - 1)


def fit_gaussian_1d(xs: Sequence[float]) -> Tuple[float, float]:
    """Estimate (μ̂, σ̂); a single sample gets unit variance."""
    mu = sample_mean(xs)
    var = sample_variance(xs) if len(xs) > 1 else 1.0
    return mu, math.sqrt(max(SIGMA_VARIANCE_FLOOR, var))


def fit_gaussian_2d(points: Sequence[Tuple[float, float]]) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Diagonal Gaussian fit: ((μx, μy), (σx, σy))."""
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    mu_x, sigma_x = fit_gaussian_1d(xs)
    mu_y, sigma_y = fit_gaussian_1d(ys)
    return (mu_x, mu_y), (sigma_x, sigma_y)


def reparameterized_samples(mu: float, sigma: float, rng, n: int = 1) -> List[float]:
    """Draw x = μ + σ·ε with ε ~ N(0, 1) from ``rng``."""
    return [mu + sigma * standard_normal(rng) for _ in range(n)]
