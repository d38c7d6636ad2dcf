"""Image export utilities for rendered images.

Rendered images are float32 RGBA arrays of shape (H, W, 4) with channels in
[0, 1], top row first. They are stored as 8-bit RGBA PNG files through Pillow
with the conversion byte = round(clamp(value, 0, 1) * 255).

Example:
    >>> from src.raybake.preview.export import save_png
    >>> from src.raybake.core.integrator import get_image_numpy
    >>>
    >>> save_png(get_image_numpy(), "output.png")
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def to_rgba8(image: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Convert a float image to 8-bit RGBA.

    Args:
        image: Array of shape (H, W, 4), or (H, W, 3) in which case the
            alpha channel is set to fully opaque.

    Returns:
        Array of shape (H, W, 4) with dtype uint8.

    Raises:
        ValueError: If the array is not (H, W, 3) or (H, W, 4).
    """
    pixels = np.asarray(image, dtype=np.float64)
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError(f"Expected an (H, W, 3) or (H, W, 4) image, got {pixels.shape}")

    if pixels.shape[2] == 3:
        alpha = np.ones(pixels.shape[:2] + (1,), dtype=np.float64)
        pixels = np.concatenate([pixels, alpha], axis=2)

    return np.round(np.clip(pixels, 0.0, 1.0) * 255.0).astype(np.uint8)


def save_png(image: npt.ArrayLike, filepath: str | Path) -> Path:
    """Save a float image as an RGBA PNG file.

    Args:
        image: Array of shape (H, W, 4) or (H, W, 3), values in [0, 1].
        filepath: Output file path (should end in .png). Missing parent
            directories are created.

    Returns:
        The path written.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    pil_image = PILImage.fromarray(to_rgba8(image), mode="RGBA")
    pil_image.save(path)
    return path


def load_png(filepath: str | Path) -> npt.NDArray[np.float32]:
    """Load a PNG as a float32 RGBA array in [0, 1]."""
    with PILImage.open(filepath) as pil_image:
        pixels = np.asarray(pil_image.convert("RGBA"), dtype=np.float32)
    return pixels / 255.0


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
