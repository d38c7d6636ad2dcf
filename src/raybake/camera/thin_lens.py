"""Thin-lens camera model for primary ray generation.

This module turns a CameraSettings into the derived camera state the render
kernels read, and generates rays from it. It supports:
- Look-at positioning (eye, target, up)
- Vertical field of view and arbitrary aspect ratios
- Depth of field by sampling ray origins over a lens disk of radius
  aperture / 2; points at focal_length from the eye stay sharp
- Orthographic projection, where every ray travels along the view direction
  and only the origin varies across the viewport

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from target toward eye (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raybake.camera.settings import CameraSettings
    >>> from src.raybake.camera.thin_lens import setup_camera, get_ray
    >>> setup_camera(CameraSettings(eye=(0.0, 0.0, 3.0), target=(0.0, 0.0, 0.0)), 16.0 / 9.0)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray, rng = get_ray(0.5, 0.5, rng)  # Ray through image center
"""

import math

import numpy as np
import taichi as ti

from src.raybake.core.ray import make_ray, vec3
from src.raybake.core.sampler import random_in_unit_disk

from .settings import CameraSettings, Projection

# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

_lens_radius = ti.field(dtype=ti.f32, shape=())
_orthographic = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(settings: CameraSettings, aspect_ratio: float) -> None:
    """Initialize camera state from configuration.

    Perspective cameras place the viewport at focal_length in front of the
    eye with extents scale * focal_length * viewport size, so the field of
    view does not depend on the focus distance. Orthographic cameras use
    extents scale * viewport size and place the viewport focal_length
    *behind* the eye; rays start on that plane and travel along -w.

    Args:
        settings: Camera position, orientation, lens and projection.
        aspect_ratio: Image width divided by height.

    Raises:
        ValueError: If aspect_ratio or the field of view is out of range, or
            the view basis is degenerate (eye == target, or up parallel to
            the view direction).
    """
    if aspect_ratio <= 0.0:
        raise ValueError(f"Aspect ratio must be positive, got {aspect_ratio}")
    if not 0.0 < settings.v_fov_degrees < 180.0:
        raise ValueError(f"Vertical FOV must be in (0, 180) degrees, got {settings.v_fov_degrees}")

    theta = math.radians(settings.v_fov_degrees)
    h = math.tan(theta / 2.0)

    viewport_height = 2.0 * h
    viewport_width = aspect_ratio * viewport_height

    # Basis is computed in float64 and stored as float32
    eye = np.array(settings.eye, dtype=np.float64)
    target = np.array(settings.target, dtype=np.float64)
    up = np.array(settings.up, dtype=np.float64)

    w = eye - target
    w_norm = np.linalg.norm(w)
    if w_norm == 0.0:
        raise ValueError("Camera eye and target must differ")
    w = w / w_norm

    u = np.cross(up, w)
    u_norm = np.linalg.norm(u)
    if u_norm == 0.0:
        raise ValueError("Camera up vector must not be parallel to the view direction")
    u = u / u_norm

    v = np.cross(w, u)

    scale = settings.perspective_mode.scale
    focal_length = settings.focal_length
    orthographic = settings.perspective_mode.kind == Projection.ORTHOGRAPHIC

    if orthographic:
        horizontal = (scale * viewport_width) * u
        vertical = (scale * viewport_height) * v
        lower_left = eye - horizontal / 2.0 - vertical / 2.0 + focal_length * w
        lens_radius = 0.0
    else:
        horizontal = (focal_length * scale * viewport_width) * u
        vertical = (focal_length * scale * viewport_height) * v
        lower_left = eye - horizontal / 2.0 - vertical / 2.0 - focal_length * w
        lens_radius = settings.aperture / 2.0

    _camera_origin[None] = eye.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = lens_radius
    _orthographic[None] = 1 if orthographic else 0


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, rng: ti.u32):
    """Generate a ray through normalized image coordinates (s, t).

    The coordinates are normalized:
    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    A lens sample is only drawn for perspective cameras with a non-zero
    aperture, so pinhole and orthographic cameras leave rng untouched.

    Returns:
        A tuple (ray, rng). The ray direction is not normalized.
    """
    point_on_viewport = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )

    origin = _camera_origin[None]
    direction = vec3(0.0, 0.0, 0.0)

    if _orthographic[None] == 1:
        origin = point_on_viewport
        direction = -_camera_w[None]
    else:
        if _lens_radius[None] > 0.0:
            disk, rng = random_in_unit_disk(rng)
            rd = _lens_radius[None] * disk
            origin = origin + _camera_u[None] * rd.x + _camera_v[None] * rd.y
        direction = point_on_viewport - origin

    return make_ray(origin, direction), rng


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float | bool]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left,
        lens_radius and orthographic.
    """

    def _triple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _triple(_camera_origin),
        "u": _triple(_camera_u),
        "v": _triple(_camera_v),
        "w": _triple(_camera_w),
        "horizontal": _triple(_viewport_horizontal),
        "vertical": _triple(_viewport_vertical),
        "lower_left": _triple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
        "orthographic": bool(_orthographic[None]),
    }
