"""Pixel-buffer helpers: loading images as flat RGB floats and viewing noise as images."""

from pathlib import Path
from typing import Sequence, Union

import numpy as np
import torch
from PIL import Image


def cover_crop(img: Image.Image, size: int) -> Image.Image:
    """Scale so the image covers a size x size square, then centre-crop."""
    iw, ih = img.size
    scale = max(size / iw, size / ih)
    w = max(size, round(iw * scale))
    h = max(size, round(ih * scale))
    img = img.resize((w, h), Image.Resampling.BILINEAR)
    left = (w - size) // 2
    top = (h - size) // 2
    return img.crop((left, top, left + size, top + size))


def image_to_pixels(img: Image.Image, size: int) -> torch.Tensor:
    """Flat HWC float32 buffer in [0, 1] of length size * size * 3."""
    square = cover_crop(img.convert('RGB'), size)
    array = np.asarray(square, dtype=np.float32) / 255.0
    return torch.from_numpy(array.reshape(-1).copy())


def load_image_pixels(path: Union[str, Path], size: int = 256) -> torch.Tensor:
    """Load an image file into a flat RGB pixel buffer."""
    with Image.open(path) as img:
        return image_to_pixels(img, size)


def gradient_pixels(size: int = 128) -> torch.Tensor:
    """Synthetic test image: red/green ramps with a blue disc."""
    coords = torch.linspace(0.0, 1.0, size)
    yy, xx = torch.meshgrid(coords, coords, indexing='ij')
    disc = (((xx - 0.5) ** 2 + (yy - 0.5) ** 2) < 0.09).float()
    img = torch.stack([xx, yy, disc], dim=-1)
    return img.reshape(-1).contiguous()


def pixels_to_image(buffer: torch.Tensor, size: int) -> Image.Image:
    """Clamp a flat HWC buffer to [0, 1] and quantize to an RGB image."""
    buffer = torch.as_tensor(buffer)
    if buffer.numel() != size * size * 3:
        raise ValueError(f"buffer has {buffer.numel()} values, expected {size * size * 3}")
    array = torch.round(torch.clamp(buffer, 0.0, 1.0) * 255).to(torch.uint8)
    return Image.fromarray(array.reshape(size, size, 3).cpu().numpy())


def reshape_flat_noise(
    data: Sequence[float],
    height: int,
    width: int,
    channels: int
) -> torch.Tensor:
    """
    Arrange a flat noise vector as an image tensor.

    The vector is read as channel-interleaved (HWC) data, truncated or
    zero-padded to height * width * channels values. Channels are clamped to
    1..3.

    Returns:
        Tensor of shape (C, H, W)
    """
    ch = min(3, max(1, channels))
    expected = height * width * ch
    flat = torch.as_tensor(data, dtype=torch.float32).flatten()[:expected]
    if flat.numel() < expected:
        flat = torch.cat([flat, torch.zeros(expected - flat.numel())])
    return flat.reshape(height, width, ch).permute(2, 0, 1).contiguous()


def squash_for_display(x: torch.Tensor) -> torch.Tensor:
    """Map unbounded noise into [0, 1] with 0.5 + 0.5 * tanh(x)."""
    return torch.clamp(0.5 + 0.5 * torch.tanh(torch.as_tensor(x)), 0.0, 1.0)
