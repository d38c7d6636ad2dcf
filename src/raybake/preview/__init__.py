"""Preview module: image output.

Components:
    export: RGBA PNG export (Pillow) and image comparison helpers
"""

from src.raybake.preview.export import compute_rmse, load_png, save_png, to_rgba8

__all__ = [
    "compute_rmse",
    "load_png",
    "save_png",
    "to_rgba8",
]
