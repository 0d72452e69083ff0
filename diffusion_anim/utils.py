"""
Utility functions: logging, output directories, frame and GIF I/O.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Union

import imageio
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
from PIL import Image
from rich.console import Console
from rich.logging import RichHandler

console = Console()


def setup_logger(name: str = "diffusion_anim", log_file: Optional[str] = None) -> logging.Logger:
    """Setup rich logger with optional file output."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=True
    )
    console_handler.setLevel(logging.INFO)
    logger.addHandler(console_handler)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def create_output_dirs(base_dir: Union[str, Path]) -> None:
    """Create output directory structure."""
    base_path = Path(base_dir)
    for subdir in ['plots', 'animations', 'logs']:
        (base_path / subdir).mkdir(parents=True, exist_ok=True)


def figure_to_array(fig) -> np.ndarray:
    """Rasterize a matplotlib figure to an (H, W, 3) uint8 array."""
    fig.canvas.draw()
    rgba = np.asarray(fig.canvas.buffer_rgba())
    return rgba[..., :3].copy()


def save_animation(
    frames: Sequence[Union[np.ndarray, Image.Image]],
    path: Union[str, Path],
    fps: int = 20,
    loop: int = 0
) -> None:
    """
    Save frames as an animated GIF.

    Args:
        frames: List of (H, W, 3) uint8 arrays or PIL images
        path: Output path
        fps: Frames per second
        loop: Number of loops (0 = infinite)
    """
    if len(frames) == 0:
        raise ValueError("cannot save an animation without frames")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    np_frames: List[np.ndarray] = [np.asarray(frame, dtype=np.uint8) for frame in frames]
    imageio.mimsave(path, np_frames, duration=1000.0 / fps, loop=loop)


def close_figure(fig, save_path: Optional[Union[str, Path]] = None, dpi: int = 150) -> None:
    """Save a figure if a path is given, then release it."""
    if save_path:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
