"""
Noise schedules for the diffusion animations: linear, cosine, quadratic, sigmoid.

Every builder returns the cumulative retained-signal curve ᾱ_t for
t = 0..T-1. The three β-shapes accumulate ᾱ_t = Π_{i<=t} (1 - β_i); the
cosine shape is evaluated directly from its closed form.
"""

import logging
import math
from typing import Callable, Dict

import torch


logger = logging.getLogger(__name__)

BETA_CLAMP = 0.999

LINEAR_BETA_MIN = 1e-4
LINEAR_BETA_MAX = 0.2

QUADRATIC_BETA_MIN = 1e-4
QUADRATIC_BETA_MAX = 0.35

SIGMOID_BETA_MIN = 1e-4
SIGMOID_BETA_MAX = 0.3
SIGMOID_STEEPNESS = 8.0

COSINE_S = 0.008

SCHEDULE_LABELS = {
    'linear': 'Linear',
    'cosine': 'Cosine',
    'quadratic': 'Quadratic',
    'sigmoid': 'Sigmoid',
}
SCHEDULE_SHAPES = tuple(SCHEDULE_LABELS)


def _check_steps(T: int) -> None:
    if T < 2:
        raise ValueError(f"T must be at least 2, got {T}")


def _normalized_time(T: int) -> torch.Tensor:
    """r = t / (T - 1) for t = 0..T-1."""
    return torch.arange(T, dtype=torch.float64) / (T - 1)


def _alpha_bars_from_betas(betas: torch.Tensor) -> torch.Tensor:
    betas = torch.clamp(betas, max=BETA_CLAMP)
    return torch.cumprod(1.0 - betas, dim=0)


def alpha_bar_linear(
    T: int,
    beta_min: float = LINEAR_BETA_MIN,
    beta_max: float = LINEAR_BETA_MAX
) -> torch.Tensor:
    """
    Linear variance schedule: β_t grows linearly from beta_min to beta_max.

    Args:
        T: Number of diffusion steps (>= 2)
        beta_min: β at t=0
        beta_max: β at t=T-1

    Returns:
        ᾱ_t of shape (T,), float64
    """
    _check_steps(T)
    r = _normalized_time(T)
    return _alpha_bars_from_betas(beta_min + r * (beta_max - beta_min))


def alpha_bar_quadratic(
    T: int,
    beta_min: float = QUADRATIC_BETA_MIN,
    beta_max: float = QUADRATIC_BETA_MAX
) -> torch.Tensor:
    """
    Quadratic variance schedule: β_t grows with r², so most noise lands late.

    Args:
        T: Number of diffusion steps (>= 2)
        beta_min: β at t=0
        beta_max: β at t=T-1

    Returns:
        ᾱ_t of shape (T,), float64
    """
    _check_steps(T)
    r = _normalized_time(T)
    return _alpha_bars_from_betas(beta_min + (r ** 2) * (beta_max - beta_min))


def alpha_bar_sigmoid(
    T: int,
    beta_min: float = SIGMOID_BETA_MIN,
    beta_max: float = SIGMOID_BETA_MAX,
    steepness: float = SIGMOID_STEEPNESS
) -> torch.Tensor:
    """
    Sigmoid variance schedule: slow start, fast middle, flat end.

    Args:
        T: Number of diffusion steps (>= 2)
        beta_min: Lower β asymptote
        beta_max: Upper β asymptote
        steepness: Logistic slope k in σ(k (r - 0.5))

    Returns:
        ᾱ_t of shape (T,), float64
    """
    _check_steps(T)
    r = _normalized_time(T)
    sig = torch.sigmoid(steepness * (r - 0.5))
    return _alpha_bars_from_betas(beta_min + sig * (beta_max - beta_min))


def alpha_bar_cosine(T: int, s: float = COSINE_S) -> torch.Tensor:
    """
    Cosine schedule from "Improved Denoising Diffusion Probabilistic Models".

    ᾱ_t = f(t) / f(0) with f(u) = cos²(((u/T + s) / (1 + s)) · π/2), computed
    directly rather than through a β product, so ᾱ_0 is exactly 1.

    Args:
        T: Number of diffusion steps (>= 2)
        s: Small offset keeping β from vanishing near t=0

    Returns:
        ᾱ_t of shape (T,), float64
    """
    _check_steps(T)

    def f(u: torch.Tensor) -> torch.Tensor:
        return torch.cos((u / T + s) / (1 + s) * (math.pi / 2)) ** 2

    timesteps = torch.arange(T, dtype=torch.float64)
    return f(timesteps) / f(torch.zeros(1, dtype=torch.float64))


SCHEDULE_BUILDERS: Dict[str, Callable[[int], torch.Tensor]] = {
    'linear': alpha_bar_linear,
    'cosine': alpha_bar_cosine,
    'quadratic': alpha_bar_quadratic,
    'sigmoid': alpha_bar_sigmoid,
}


def build_schedule(T: int, shape: str = 'linear') -> torch.Tensor:
    """
    Build the ᾱ_t curve for a named schedule shape.

    Args:
        T: Number of diffusion steps, must be >= 2
        shape: One of 'linear', 'cosine', 'quadratic', 'sigmoid'

    Returns:
        Non-increasing ᾱ_t values in (0, 1], shape (T,), float64

    Raises:
        ValueError: If T < 2 or the shape is unknown
    """
    try:
        builder = SCHEDULE_BUILDERS[shape]
    except KeyError:
        raise ValueError(
            f"Unknown schedule: {shape!r} (expected one of {', '.join(SCHEDULE_SHAPES)})"
        ) from None
    return builder(T)


def betas_from_alpha_bars(alpha_bars: torch.Tensor) -> torch.Tensor:
    """Recover per-step β_t = 1 - ᾱ_t / ᾱ_{t-1}, with β_0 = 1 - ᾱ_0."""
    betas = torch.empty_like(alpha_bars)
    betas[0] = 1.0 - alpha_bars[0]
    betas[1:] = 1.0 - alpha_bars[1:] / alpha_bars[:-1]
    return torch.clamp(betas, 0.0, BETA_CLAMP)


def get_schedule(T: int, shape: str = 'linear') -> Dict[str, torch.Tensor]:
    """
    Get the full schedule dictionary for a shape.

    Returns:
        Dictionary with 'betas', 'alphas', 'alpha_bars', 'snr'
    """
    alpha_bars = build_schedule(T, shape)
    betas = betas_from_alpha_bars(alpha_bars)
    alphas = 1.0 - betas
    snr = alpha_bars / torch.clamp(1.0 - alpha_bars, min=1e-12)

    return {
        'betas': betas,
        'alphas': alphas,
        'alpha_bars': alpha_bars,
        'snr': snr
    }


def get_schedule_stats(schedule: Dict[str, torch.Tensor]) -> dict:
    """Summary numbers for a schedule dictionary from ``get_schedule``."""
    betas = schedule['betas']
    alpha_bars = schedule['alpha_bars']

    return {
        "T": len(alpha_bars),
        "beta_min": float(betas.min()),
        "beta_max": float(betas.max()),
        "alpha_bar_min": float(alpha_bars.min()),
        "alpha_bar_max": float(alpha_bars.max()),
        "alpha_bar_final": float(alpha_bars[-1]),
    }


def validate_schedule(schedule: Dict[str, torch.Tensor], tol: float = 1e-9) -> bool:
    """
    Validate a schedule dictionary:
    - ᾱ ∈ (0, 1]
    - ᾱ non-increasing (within tol)
    - β ∈ [0, 1)
    - All tensors have the same length
    """
    betas = schedule['betas']
    alpha_bars = schedule['alpha_bars']

    if not torch.all((alpha_bars > 0) & (alpha_bars <= 1)):
        logger.error("alpha_bars not in (0, 1]")
        return False

    if not torch.all(alpha_bars[1:] <= alpha_bars[:-1] + tol):
        logger.error("alpha_bars not monotonically non-increasing")
        return False

    if not torch.all((betas >= 0) & (betas < 1)):
        logger.error("betas not in [0, 1)")
        return False

    T = len(alpha_bars)
    if not all(len(tensor) == T for tensor in schedule.values()):
        logger.error("schedule tensors have different lengths")
        return False

    return True
