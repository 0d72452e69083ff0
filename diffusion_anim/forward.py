"""Forward diffusion sampler: x_t = sqrt(ᾱ_t) * x_0 + sqrt(1 - ᾱ_t) * ε."""

import math
from typing import Optional, Sequence, Union

import torch


ScheduleLike = Union[torch.Tensor, Sequence[float]]

SIGNAL_FLOOR = 1e-8


def alpha_bar_at(schedule: ScheduleLike, t: float) -> float:
    """Evaluate ᾱ at a continuous time position by linear interpolation.

    Args:
        schedule: Discrete ᾱ values, length T >= 2
        t: Time position, clamped to [0, T-1]

    Returns:
        Interpolated ᾱ; integer positions return the stored value exactly
    """
    T = len(schedule)
    if T < 2:
        raise ValueError(f"schedule must have at least 2 entries, got {T}")

    k = int(math.floor(min(max(t, 0.0), T - 2)))
    frac = min(max(t - k, 0.0), 1.0)

    lo = float(schedule[k])
    hi = float(schedule[k + 1])
    if frac == 0.0:
        return lo
    if frac == 1.0:
        return hi
    return lo + (hi - lo) * frac


def forward_sample(
    x0: torch.Tensor,
    eps: torch.Tensor,
    ab: float,
    out: Optional[torch.Tensor] = None
) -> torch.Tensor:
    """Closed-form sample of q(x_t | x_0) with a fixed noise draw.

    Args:
        x0: Clean signal, any shape (scalars, (N, 2) points, flat pixels)
        eps: Noise with the same shape as x0
        ab: ᾱ at the current time position
        out: Optional preallocated output buffer, written in place

    Returns:
        x_t with the shape of x0 (``out`` itself when given)
    """
    x0 = torch.as_tensor(x0)
    if not x0.is_floating_point():
        x0 = x0.to(torch.get_default_dtype())
    eps = torch.as_tensor(eps, dtype=x0.dtype, device=x0.device)

    if eps.shape != x0.shape:
        raise ValueError(f"eps shape {tuple(eps.shape)} does not match x0 shape {tuple(x0.shape)}")

    signal_scale = math.sqrt(max(ab, SIGNAL_FLOOR))
    noise_scale = math.sqrt(max(1.0 - ab, 0.0))

    if out is None:
        out = torch.empty_like(x0)
    elif out.shape != x0.shape:
        raise ValueError(f"out shape {tuple(out.shape)} does not match x0 shape {tuple(x0.shape)}")

    torch.mul(x0, signal_scale, out=out)
    out.add_(eps, alpha=noise_scale)
    return out


def forward_sample_at(
    x0: torch.Tensor,
    eps: torch.Tensor,
    schedule: ScheduleLike,
    t: float,
    out: Optional[torch.Tensor] = None
) -> torch.Tensor:
    """Sample x_t at a continuous time position of a schedule."""
    return forward_sample(x0, eps, alpha_bar_at(schedule, t), out=out)


def snr(alpha_bars: torch.Tensor) -> torch.Tensor:
    """Signal-to-noise ratio ᾱ / (1 - ᾱ)."""
    return alpha_bars / torch.clamp(1.0 - alpha_bars, min=1e-12)


def snr_db(alpha_bars: torch.Tensor) -> torch.Tensor:
    """SNR in decibels."""
    return 10.0 * torch.log10(snr(alpha_bars) + 1e-8)


def compute_mse_to_x0(x_t: torch.Tensor, x0: torch.Tensor) -> float:
    """Mean squared distance between a noised signal and its clean source."""
    return float(torch.mean((torch.as_tensor(x_t) - torch.as_tensor(x0)) ** 2))
