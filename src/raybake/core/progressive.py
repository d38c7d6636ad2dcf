"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks and a generator-based variant
- Easy reset and re-render functionality

A call that adds more than one sample jitters every batch; a single-sample
call is a centered, unjittered pass. Sample indices continue across batches,
so a render split into batches reproduces the single-pass render with the
same seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raybake.core.progressive import ProgressiveRenderer
    >>> from src.raybake.scene.presets import three_spheres_scene
    >>> from src.raybake.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = three_spheres_scene()
    >>> setup_camera(camera, 16.0 / 9.0)
    >>>
    >>> renderer = ProgressiveRenderer(480, 270)
    >>> renderer.render(100, batch_size=10)
    >>> image = renderer.get_image_numpy()
"""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from src.raybake.core.integrator import (
    MAX_DEPTH,
    clear_render_target,
    get_image,
    get_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.raybake.preview.export import save_png, to_rgba8

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps its own width, height, depth and seed and delegates
    to the global integrator buffers (which are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum bounces per path.
        seed: Render seed.
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH, seed: int = 0) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Maximum bounces per path.
            seed: Render seed.

        Raises:
            ValueError: If dimensions are out of range.
        """
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.seed = seed
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulated samples without changing the image size."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions are out of range.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def _render_batch(self, batch: int, jitter: bool) -> None:
        render_image(batch, max_depth=self.max_depth, seed=self.seed, jitter=jitter)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback called after each batch with
                (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        if num_samples <= 0:
            return

        batch_size = max(1, batch_size)
        jitter = num_samples > 1
        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._render_batch(batch, jitter)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image(self) -> Any:
        """Get the raw Taichi RGBA buffer (full preallocated size)."""
        return get_image()

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Args:
            gamma: Gamma applied to the RGB channels. Default 1.0 (linear,
                as rendered).

        Returns:
            NumPy array of shape (height, width, 4) with dtype float32.
        """
        image = get_image_numpy()

        if gamma != 1.0:
            image[..., :3] = np.power(image[..., :3], 1.0 / gamma)

        return image

    def get_image_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit RGBA array."""
        return to_rgba8(self.get_image_numpy(gamma=gamma))

    def save_image(self, filepath: str | Path, gamma: float = 1.0) -> Path:
        """Save the rendered image as an RGBA PNG."""
        return save_png(self.get_image_numpy(gamma=gamma), filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count}, max_depth={self.max_depth}, seed={self.seed})"
        )
