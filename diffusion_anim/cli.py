"""Command-line interface for the diffusion animation engine."""

import argparse
import sys
from pathlib import Path

import torch
from omegaconf import OmegaConf
from rich.progress import track
from rich.table import Table

from .datasets import data_seed, eps_seed, sample_1d, sample_2d
from .density import (
    histogram_add, kernel_density_estimate, make_bin_edges, reparameterized_samples
)
from .episode import DIRECTIONS, EpisodeConfig, clamp_steps
from .image_noise import gradient_pixels, load_image_pixels
from .puzzle import seeded_permutation_shuffle
from .rng import Mulberry32, normal_buffer, normal_pair_buffers
from .schedules import SCHEDULE_SHAPES, get_schedule, get_schedule_stats, validate_schedule
from .utils import console, create_output_dirs, setup_logger
from .visualize import (
    plot_histogram_kde, plot_schedules, save_density_episode, save_image_episode,
    save_point_cloud_episode
)


def load_config(config_path: str):
    """Load configuration from YAML file."""
    try:
        return OmegaConf.load(config_path)
    except Exception as e:
        console.print(f"[red]Error loading config {config_path}: {e}[/red]")
        sys.exit(1)


def setup_experiment(args):
    """Load config, apply CLI overrides and prepare output directories."""
    config = load_config(args.config)

    schedule = getattr(args, 'schedule', None)
    if schedule:
        config.diffusion.schedule = schedule
    steps = getattr(args, 'steps', None)
    if steps:
        config.diffusion.steps = steps
    direction = getattr(args, 'direction', None)
    if direction:
        config.diffusion.direction = direction

    if config.diffusion.schedule not in SCHEDULE_SHAPES:
        console.print(f"[red]Unknown schedule '{config.diffusion.schedule}', "
                      f"expected one of {', '.join(SCHEDULE_SHAPES)}[/red]")
        sys.exit(1)

    logger = setup_logger(log_file=config.log.log_file)
    create_output_dirs(config.log.out_dir)

    console.print(f"[green]Diffusion steps: {config.diffusion.steps}[/green]")
    console.print(f"[green]Schedule: {config.diffusion.schedule}[/green]")

    return config, logger


def episode_from_config(config) -> EpisodeConfig:
    return EpisodeConfig(
        steps=clamp_steps(config.diffusion.steps),
        shape=config.diffusion.schedule,
        frames_per_step=config.diffusion.frames_per_step,
        tail_hold_frames=config.diffusion.tail_hold_frames,
        direction=config.diffusion.direction,
    )


def cmd_schedules_table(args):
    """Print summary statistics for every schedule shape."""
    config, logger = setup_experiment(args)
    T = clamp_steps(config.diffusion.steps)

    table = Table(title=f"Noise schedules (T={T})")
    for column in ["schedule", "β min", "β max", "ᾱ final", "valid"]:
        table.add_column(column)

    for shape in SCHEDULE_SHAPES:
        schedule = get_schedule(T, shape)
        stats = get_schedule_stats(schedule)
        table.add_row(
            shape,
            f"{stats['beta_min']:.6f}",
            f"{stats['beta_max']:.6f}",
            f"{stats['alpha_bar_final']:.6f}",
            "yes" if validate_schedule(schedule) else "[red]no[/red]",
        )

    console.print(table)


def cmd_schedules_plot(args):
    """Plot all schedule shapes side by side."""
    config, logger = setup_experiment(args)
    T = clamp_steps(config.diffusion.steps)

    save_path = Path(config.log.out_dir) / "plots" / f"schedules_T{T}.png"
    plot_schedules(T, SCHEDULE_SHAPES, save_path=save_path, highlight=config.diffusion.schedule)
    logger.info(f"Saved schedule plots to {save_path}")


def cmd_image_animate(args):
    """Noise an image and reverse the noise with the same ε."""
    config, logger = setup_experiment(args)
    episode = episode_from_config(config)
    size = config.image.size

    image_path = args.image or config.image.path
    if image_path:
        pixels = load_image_pixels(image_path, size)
        logger.info(f"Loaded {image_path} at {size}x{size}")
    else:
        pixels = gradient_pixels(size)
        logger.info("No image given, using synthetic gradient image")

    eps = normal_buffer(config.seed, pixels.numel())

    save_path = Path(config.log.out_dir) / "animations" / f"image_{episode.shape}_{episode.direction}.gif"
    n_frames = save_image_episode(episode, pixels, eps, size, save_path, fps=config.log.fps)
    logger.info(f"Saved {n_frames} frames to {save_path}")


def cmd_points_animate(args):
    """Diffuse a 1-D sample set (KDE view) or a 2-D point cloud."""
    config, logger = setup_experiment(args)
    episode = episode_from_config(config)

    n = config.data.n
    dim = config.data.dim
    animations_dir = Path(config.log.out_dir) / "animations"

    if dim == '1d':
        dist = config.data.get('dist_1d', 'uniform')
        seed = data_seed('1d', n, episode.steps, dist)
        x0 = sample_1d(n, dist, Mulberry32(seed))
        eps = normal_buffer(eps_seed(seed), n)

        save_path = animations_dir / f"points1d_{dist}_{episode.direction}.gif"
        n_frames = save_density_episode(episode, x0, eps, save_path, fps=config.log.fps)
    elif dim == '2d':
        dist = config.data.dist
        seed = data_seed('2d', n, episode.steps, dist)
        xs, ys = sample_2d(n, dist, Mulberry32(seed))
        eps_x, eps_y = normal_pair_buffers(eps_seed(seed), n)

        save_path = animations_dir / f"points_{dist}_{episode.direction}.gif"
        n_frames = save_point_cloud_episode(episode, xs, ys, eps_x, eps_y, save_path, fps=config.log.fps)
    else:
        console.print(f"[red]Unknown data.dim '{dim}', expected 1d or 2d[/red]")
        sys.exit(1)

    logger.info(f"Saved {n_frames} frames to {save_path}")


def cmd_kde_plot(args):
    """Histogram and KDE of Box-Muller samples."""
    config, logger = setup_experiment(args)
    d = config.density

    rng = Mulberry32(d.seed)
    edges = make_bin_edges(d.x_min, d.x_max, d.bins)
    hist = [0] * d.bins

    batch = max(1, d.n // 10)
    samples = []
    for _ in track(range(0, d.n, batch), description="Sampling..."):
        drawn = reparameterized_samples(d.mu, d.sigma, rng, min(batch, d.n - len(samples)))
        samples.extend(drawn)
        hist = histogram_add(hist, drawn, edges)

    grid = torch.linspace(d.x_min, d.x_max, d.grid_points, dtype=torch.float64)
    kde = kernel_density_estimate(samples, grid)

    save_path = Path(config.log.out_dir) / "plots" / "histogram_kde.png"
    plot_histogram_kde(
        hist, edges, grid, kde, save_path=save_path,
        title=f"N(μ={d.mu}, σ={d.sigma}), n={len(samples)}"
    )
    logger.info(f"Saved histogram/KDE plot to {save_path}")


def cmd_puzzle_shuffle(args):
    """Print a seeded puzzle layout."""
    perm = seeded_permutation_shuffle(args.grid, args.seed)
    for r in range(args.grid):
        row = perm[r * args.grid:(r + 1) * args.grid]
        console.print(" ".join(f"{v:3d}" for v in row))


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Diffusion animation engine CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    config_parser = argparse.ArgumentParser(add_help=False)
    config_parser.add_argument('--config', type=str, default='configs/default.yaml',
                               help='Path to configuration file')

    common_parser = argparse.ArgumentParser(add_help=False, parents=[config_parser])
    common_parser.add_argument('--schedule', choices=SCHEDULE_SHAPES, help='Override schedule shape')
    common_parser.add_argument('--steps', type=int, help='Override number of diffusion steps')
    common_parser.add_argument('--direction', choices=DIRECTIONS, help='Override episode direction')

    subparsers.add_parser('schedules.table', parents=[common_parser],
                          help='Print schedule statistics')
    subparsers.add_parser('schedules.plot', parents=[common_parser],
                          help='Plot schedule comparison')

    image_parser = subparsers.add_parser('image.animate', parents=[common_parser],
                                         help='Animate image noising and denoising')
    image_parser.add_argument('--image', type=str, help='Image file to diffuse')

    subparsers.add_parser('points.animate', parents=[common_parser],
                          help='Animate 1-D samples or a 2-D point cloud')
    subparsers.add_parser('kde.plot', parents=[config_parser],
                          help='Plot histogram and KDE of Gaussian samples')

    puzzle_parser = subparsers.add_parser('puzzle.shuffle', help='Print a seeded puzzle layout')
    puzzle_parser.add_argument('--grid', type=int, default=3, help='Tiles per side')
    puzzle_parser.add_argument('--seed', type=int, default=42, help='Shuffle seed')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    command_map = {
        'schedules.table': cmd_schedules_table,
        'schedules.plot': cmd_schedules_plot,
        'image.animate': cmd_image_animate,
        'points.animate': cmd_points_animate,
        'kde.plot': cmd_kde_plot,
        'puzzle.shuffle': cmd_puzzle_shuffle,
    }

    try:
        command_map[args.command](args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise


if __name__ == "__main__":
    main()
