#!/usr/bin/env python3
"""Render one of the sphere scenes.

Usage:
    python -m examples.render_spheres [options]

Options:
    --preset {three,random}  Scene to render (default: three)
    --width WIDTH            Image width in pixels (default: 480)
    --samples SAMPLES        Number of samples per pixel (default: 100)
    --depth DEPTH            Maximum bounces per path (default: 50)
    --seed SEED              Render seed (default: 0)
    --output OUTPUT          Output file path (default: spheres.png)
    --batch-size SIZE        Samples per progress update (default: 10)
    --quiet                  Suppress progress output

The image height follows the 16:9 aspect ratio of the presets.

Example:
    python -m examples.render_spheres --preset random --width 320 --samples 20
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--preset",
        choices=("three", "random"),
        default="three",
        help="Scene to render (default: three)",
    )
    parser.add_argument("--width", type=int, default=480, help="Image width in pixels (default: 480)")
    parser.add_argument(
        "--samples", type=int, default=100, help="Number of samples per pixel (default: 100)"
    )
    parser.add_argument("--depth", type=int, default=50, help="Maximum bounces per path (default: 50)")
    parser.add_argument("--seed", type=int, default=0, help="Render seed (default: 0)")
    parser.add_argument(
        "--output", type=str, default="spheres.png", help="Output file path (default: spheres.png)"
    )
    parser.add_argument(
        "--batch-size", type=int, default=10, help="Samples per progress update (default: 10)"
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_spheres(
    preset: str = "three",
    width: int = 480,
    num_samples: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    output_path: str = "spheres.png",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save it as PNG.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.raybake.camera.thin_lens import setup_camera
    from src.raybake.core.progressive import ProgressiveRenderer
    from src.raybake.scene.presets import (
        DEFAULT_ASPECT_RATIO,
        default_image_height,
        random_scene,
        three_spheres_scene,
    )

    height = default_image_height(width, DEFAULT_ASPECT_RATIO)
    if not quiet:
        print(f"Creating {preset} scene ({width}x{height})...")

    if preset == "random":
        scene, camera = random_scene(seed=seed)
    else:
        scene, camera = three_spheres_scene()

    setup_camera(camera, width / height)

    renderer = ProgressiveRenderer(width, height, max_depth=max_depth, seed=seed)

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel ({scene.get_sphere_count()} spheres)...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(num_samples=num_samples, batch_size=batch_size, callback=progress_callback)

    if not quiet:
        print()

    output_file = renderer.save_image(output_path)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    ti.init(arch=ti.cpu)

    try:
        render_spheres(
            preset=args.preset,
            width=args.width,
            num_samples=args.samples,
            max_depth=args.depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
