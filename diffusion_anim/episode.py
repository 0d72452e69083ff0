"""
Frame timing for diffusion episodes.

An episode maps video frames onto continuous diffusion time. The config is
immutable and every function here is a pure function of (config, frame);
the noise buffer and the clean signal are owned by the caller, so replaying a
frame always gives the same x_t.
"""

import math
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Tuple

import torch

from .forward import alpha_bar_at, forward_sample
from .schedules import SCHEDULE_SHAPES, build_schedule


DIRECTIONS = ('forward', 'reverse', 'roundtrip')

MIN_STEPS = 20
MAX_STEPS = 400


def clamp_steps(steps: int, lo: int = MIN_STEPS, hi: int = MAX_STEPS) -> int:
    """Clamp a user-supplied step count into the supported range."""
    return int(max(lo, min(hi, int(steps))))


@dataclass(frozen=True)
class EpisodeConfig:
    """Parameters of one animation episode."""

    steps: int
    shape: str = 'linear'
    frames_per_step: int = 6
    tail_hold_frames: int = 120
    direction: str = 'roundtrip'

    def __post_init__(self):
        if self.steps < 2:
            raise ValueError(f"steps must be at least 2, got {self.steps}")
        if self.shape not in SCHEDULE_SHAPES:
            raise ValueError(f"Unknown schedule: {self.shape!r}")
        if self.direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {self.direction!r} (expected one of {DIRECTIONS})")

    @property
    def active_frames(self) -> int:
        return max(1, self.steps * self.frames_per_step)

    @property
    def total_frames(self) -> int:
        return self.active_frames + max(0, self.tail_hold_frames)


class FrameState(NamedTuple):
    frame: int
    t: float
    alpha_bar: float
    phase: str


def frame_progress(config: EpisodeConfig, frame: int) -> float:
    """Fraction of the active part of the episode reached at ``frame``.

    Frames inside the tail hold repeat the last active frame.
    """
    active = config.active_frames
    if active <= 1:
        return 0.0
    f = min(max(frame, 0), active - 1)
    return f / (active - 1)


def time_position(config: EpisodeConfig, frame: int) -> Tuple[float, str]:
    """Continuous diffusion time t in [0, T-1] and the phase for a frame."""
    progress = frame_progress(config, frame)
    t_max = max(1, config.steps - 1)

    if config.direction == 'forward':
        return progress * t_max, 'noising'

    if config.direction == 'reverse':
        return (config.steps - 1) - progress * t_max, 'denoising'

    # roundtrip: noise for the first half, mirror back over the same ε
    if progress <= 0.5:
        return min(progress * 2.0, 1.0) * t_max, 'noising'
    return min((1.0 - progress) * 2.0, 1.0) * t_max, 'denoising'


def frame_state(config: EpisodeConfig, schedule: torch.Tensor, frame: int) -> FrameState:
    t, phase = time_position(config, frame)
    return FrameState(frame=frame, t=t, alpha_bar=alpha_bar_at(schedule, t), phase=phase)


def describe(state: FrameState, steps: int) -> str:
    """On-screen caption, e.g. ``noising • t=3/50 • ᾱ≈0.0234``."""
    t_display = int(math.floor(state.t + 0.5)) + 1
    return f"{state.phase} • t={t_display}/{steps} • ᾱ≈{state.alpha_bar:.4f}"


def iter_episode(
    config: EpisodeConfig,
    x0: torch.Tensor,
    eps: torch.Tensor,
    stride: int = 1
) -> Iterator[Tuple[FrameState, torch.Tensor]]:
    """Yield (state, x_t) for the active frames of an episode.

    The same output buffer is reused for every frame; copy it if a frame has
    to outlive the next iteration.

    Args:
        config: Episode parameters
        x0: Clean signal
        eps: Fixed noise for the whole episode
        stride: Emit every ``stride``-th frame; the last active frame is
            always emitted
    """
    schedule = build_schedule(config.steps, config.shape)
    x0 = torch.as_tensor(x0)
    buffer = None

    last = config.active_frames - 1
    frames = list(range(0, config.active_frames, max(1, stride)))
    if frames[-1] != last:
        frames.append(last)

    for frame in frames:
        state = frame_state(config, schedule, frame)
        buffer = forward_sample(x0, eps, state.alpha_bar, out=buffer)
        yield state, buffer
