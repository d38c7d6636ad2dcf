"""Camera module for view and ray generation.

Components:
    settings: CameraSettings / PerspectiveMode / Projection plain dataclasses
    thin_lens: Derived camera state in Taichi fields, setup_camera and get_ray

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image

Only the settings are re-exported here. thin_lens allocates Taichi fields
when imported, so import it explicitly once ti.init() has run.
"""

from .settings import CameraSettings, PerspectiveMode, Projection

__all__ = [
    "CameraSettings",
    "PerspectiveMode",
    "Projection",
]
