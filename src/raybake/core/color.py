"""Color constants and the background sky.

Radiance is carried as an RGB ``vec3`` inside the integrators; the render
target stores RGBA ``vec4`` values in [0, 1] so that the sprite passes can mark
background pixels as fully transparent.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3
vec4 = tm.vec4

# Color returned when a path is absorbed or runs out of bounces
MISS_COLOR = vec3(0.0, 0.0, 0.0)

# RGBA written where a sprite pass sees no geometry
TRANSPARENT = vec4(0.0, 0.0, 0.0, 0.0)

# Sky gradient end points: white at the horizon, light blue at the zenith
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Evaluate the vertical sky gradient seen along a ray direction.

    The y-component of the unit direction is remapped from [-1, 1] to [0, 1]
    and used to blend from SKY_HORIZON_COLOR to SKY_ZENITH_COLOR.
    """
    unit_direction = tm.normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def with_alpha(rgb: vec3, alpha: ti.f32) -> vec4:
    return vec4(rgb.x, rgb.y, rgb.z, alpha)
