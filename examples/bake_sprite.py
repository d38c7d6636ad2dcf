#!/usr/bin/env python3
"""Bake normal and diffuse sprites, re-baking whenever the config changes.

Usage:
    python -m examples.bake_sprite [options]

Options:
    --config PATH       JSON render settings to watch (default: cfg.json)
    --out-dir DIR       Directory for normal.png and diffuse.png (default: .)
    --interval SECONDS  Poll interval (default: 0.1)
    --once              Bake a single time and exit
    --quiet             Only log warnings and errors

Example config:
    {
        "camera_settings": {
            "eye": [0, 0, 5], "target": [0, 0, 0], "up": [0, 1, 0],
            "v_fov_degrees": 30, "aperture": 0, "focal_length": 1,
            "perspective_mode": {"kind": "orthographic", "scale": 2}
        },
        "image_width": 128,
        "image_height": 128,
        "mesh_file": "ship.obj",
        "blacken_normal_map": true
    }
"""

from __future__ import annotations

import argparse
import logging
import sys

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Bake sprite normal and diffuse maps from a mesh.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, default="cfg.json", help="JSON render settings (default: cfg.json)")
    parser.add_argument("--out-dir", type=str, default=".", help="Output directory (default: .)")
    parser.add_argument("--interval", type=float, default=0.1, help="Poll interval in seconds (default: 0.1)")
    parser.add_argument("--once", action="store_true", help="Bake a single time and exit")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ti.init(arch=ti.cpu)

    from src.raybake.sprite.watcher import watch

    try:
        watch(args.config, args.out_dir, interval=args.interval, max_passes=1 if args.once else None)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
