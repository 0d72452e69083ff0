"""Visualization: schedule comparison plots, episode GIFs and density figures."""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import torch

from .density import kernel_density_estimate
from .episode import EpisodeConfig, describe, iter_episode
from .forward import snr_db
from .image_noise import pixels_to_image
from .schedules import SCHEDULE_LABELS, SCHEDULE_SHAPES, get_schedule
from .utils import close_figure, figure_to_array, save_animation


COLORS = {'linear': 'tab:blue', 'cosine': 'tab:red', 'quadratic': 'tab:green', 'sigmoid': 'tab:orange'}


def plot_schedules(
    T: int,
    shapes: Sequence[str] = SCHEDULE_SHAPES,
    save_path: Optional[Union[str, Path]] = None,
    highlight: Optional[str] = None,
    figsize: Tuple[int, int] = (15, 5)
) -> None:
    """Plot β_t, ᾱ_t and SNR (dB) for several schedule shapes side by side.

    Args:
        T: Number of diffusion steps
        shapes: Schedule shapes to include
        save_path: Optional path to save the figure
        highlight: Shape drawn with a thicker line
        figsize: Figure size
    """
    fig, axes = plt.subplots(1, 3, figsize=figsize)
    timesteps = np.arange(T)

    for shape in shapes:
        schedule = get_schedule(T, shape)
        color = COLORS.get(shape, 'black')
        width = 3.5 if shape == highlight else 2
        label = SCHEDULE_LABELS.get(shape, shape)

        axes[0].plot(timesteps, schedule['betas'].numpy(), label=label, color=color, linewidth=width)
        axes[1].plot(timesteps, schedule['alpha_bars'].numpy(), label=label, color=color, linewidth=width)
        axes[2].plot(timesteps, snr_db(schedule['alpha_bars']).numpy(), label=label, color=color, linewidth=width)

    axes[0].set_title('Beta Schedule')
    axes[0].set_ylabel(r'$\beta_t$')
    axes[1].set_title('Cumulative Alpha')
    axes[1].set_ylabel(r'$\bar{\alpha}_t$')
    axes[2].set_title('Signal-to-Noise Ratio')
    axes[2].set_ylabel('SNR (dB)')
    axes[2].axhline(y=0, color='black', linestyle='--', alpha=0.5)

    for ax in axes:
        ax.set_xlabel('Timestep t')
        ax.legend()
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    close_figure(fig, save_path)


def image_episode_frames(
    config: EpisodeConfig,
    pixels: torch.Tensor,
    eps: torch.Tensor,
    size: int
) -> List[np.ndarray]:
    """Render one frame per diffusion step of an image episode, plus the final frame."""
    frames = []
    for _, x_t in iter_episode(config, pixels, eps, stride=config.frames_per_step):
        frames.append(np.asarray(pixels_to_image(x_t, size)))
    return frames


def save_image_episode(
    config: EpisodeConfig,
    pixels: torch.Tensor,
    eps: torch.Tensor,
    size: int,
    save_path: Union[str, Path],
    fps: int = 20
) -> int:
    """Save an image noising/denoising episode as a GIF.

    Returns:
        Number of frames written
    """
    frames = image_episode_frames(config, pixels, eps, size)
    save_animation(frames, save_path, fps=fps)
    return len(frames)


def save_point_cloud_episode(
    config: EpisodeConfig,
    xs: torch.Tensor,
    ys: torch.Tensor,
    eps_x: torch.Tensor,
    eps_y: torch.Tensor,
    save_path: Union[str, Path],
    fps: int = 20,
    extent: float = 4.5,
    figsize: Tuple[int, int] = (5, 5)
) -> int:
    """Save a 2-D point-cloud episode as a GIF.

    Returns:
        Number of frames written
    """
    x0 = torch.stack([torch.as_tensor(xs), torch.as_tensor(ys)], dim=1)
    eps = torch.stack([torch.as_tensor(eps_x), torch.as_tensor(eps_y)], dim=1)

    fig, ax = plt.subplots(figsize=figsize)
    frames = []
    for state, x_t in iter_episode(config, x0, eps, stride=config.frames_per_step):
        ax.clear()
        ax.scatter(x0[:, 0].numpy(), x0[:, 1].numpy(), s=4, color='lightgray', alpha=0.6)
        ax.scatter(x_t[:, 0].numpy(), x_t[:, 1].numpy(), s=6, color='tab:orange')
        ax.set_xlim(-extent, extent)
        ax.set_ylim(-extent, extent)
        ax.set_aspect('equal')
        ax.set_title(describe(state, config.steps), fontsize=10)
        frames.append(figure_to_array(fig))

    close_figure(fig)
    save_animation(frames, save_path, fps=fps)
    return len(frames)


def save_density_episode(
    config: EpisodeConfig,
    x0: torch.Tensor,
    eps: torch.Tensor,
    save_path: Union[str, Path],
    fps: int = 20,
    extent: float = 6.0,
    grid_points: int = 260,
    figsize: Tuple[int, int] = (6, 3)
) -> int:
    """Save a 1-D episode as a GIF: KDE of the current samples over the x_0 KDE.

    Both curves are scaled to a peak of 1 so the shape stays readable while the
    density flattens toward N(0, 1).

    Returns:
        Number of frames written
    """
    x0 = torch.as_tensor(x0)
    grid = torch.linspace(-extent, extent, grid_points, dtype=torch.float64)
    target = kernel_density_estimate(x0, grid)
    target = target / max(float(target.max()), 1e-6)

    fig, ax = plt.subplots(figsize=figsize)
    frames = []
    for state, x_t in iter_episode(config, x0, eps, stride=config.frames_per_step):
        density = kernel_density_estimate(x_t, grid)
        density = density / max(float(density.max()), 1e-6)

        ax.clear()
        ax.plot(grid.numpy(), target.numpy(), color='lightgray', linewidth=2, label='x_0 density')
        ax.plot(grid.numpy(), density.numpy(), color='tab:orange', linewidth=2, label='current density (KDE)')
        ax.plot(torch.clamp(x_t, -extent, extent).numpy(), np.full(x_t.numel(), -0.04),
                '|', color='tab:blue', alpha=0.4, markersize=6)
        ax.set_xlim(-extent, extent)
        ax.set_ylim(-0.1, 1.1)
        ax.set_yticks([])
        ax.legend(loc='upper right', fontsize=8)
        ax.set_title(describe(state, config.steps), fontsize=10)
        frames.append(figure_to_array(fig))

    close_figure(fig)
    save_animation(frames, save_path, fps=fps)
    return len(frames)


def plot_histogram_kde(
    hist: Sequence[int],
    edges: Sequence[float],
    kde_grid: Sequence[float],
    kde: Sequence[float],
    save_path: Optional[Union[str, Path]] = None,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (8, 4)
) -> None:
    """Plot a normalized histogram with its KDE curve on top."""
    edges = np.asarray(edges, dtype=np.float64)
    counts = np.asarray(hist, dtype=np.float64)
    widths = np.diff(edges)
    total = counts.sum()
    heights = counts / (total * widths) if total > 0 else counts

    fig, ax = plt.subplots(figsize=figsize)
    ax.bar(edges[:-1], heights, width=widths, align='edge', alpha=0.5, color='tab:blue', label='histogram')
    ax.plot(np.asarray(kde_grid), np.asarray(kde), color='tab:orange', linewidth=2, label='KDE')
    ax.set_xlabel('x')
    ax.set_ylabel('density')
    ax.legend()
    ax.grid(True, alpha=0.3)
    if title:
        ax.set_title(title)

    plt.tight_layout()
    close_figure(fig, save_path)
