"""Sprite / normal-map generator front-end.

Components:
    settings: RenderSettings parsed from a JSON config file
    watcher: ConfigWatcher and the hot-reload bake loop
    renderer: SpriteRenderer (allocates Taichi fields; import after ti.init)
"""

from src.raybake.sprite.settings import RenderSettings
from src.raybake.sprite.watcher import ConfigWatcher, bake, watch

__all__ = [
    "ConfigWatcher",
    "RenderSettings",
    "bake",
    "watch",
]
