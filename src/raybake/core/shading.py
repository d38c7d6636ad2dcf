"""Single-bounce shading passes for sprite baking.

Unlike the path tracer, a shading pass looks at the first surface only:
- DIFFUSE writes the flat material color of the hit primitive
- NORMAL writes the facing normal remapped from [-1, 1]^3 to [0, 1]^3
Both passes write alpha = 1 on a hit and a fully transparent pixel on a miss,
so the background can be composited away.

Each pass takes one unjittered sample per pixel at u = i / (W - 1),
v = j / (H - 1) and overwrites the render target of core.integrator.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.raybake.camera.thin_lens import get_ray
from src.raybake.core.color import TRANSPARENT, with_alpha
from src.raybake.core.integrator import (
    get_image,
    get_image_dimensions,
    get_sample_count,
)
from src.raybake.core.sampler import seed_rng
from src.raybake.materials.registry import material_color
from src.raybake.scene.intersection import intersect_scene

vec3 = tm.vec3
vec4 = tm.vec4

# Self-intersection guard for the sprite passes
SPRITE_T_MIN = 1e-4
SPRITE_T_MAX = 1e10


class ShadingMode(IntEnum):
    DIFFUSE = 0
    NORMAL = 1


@ti.func
def shade(origin: vec3, direction: vec3, mode: ti.i32) -> vec4:
    """Shade the first surface along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        mode: ShadingMode value (0 diffuse, 1 normal).

    Returns:
        RGBA color; TRANSPARENT on a miss.
    """
    result = TRANSPARENT
    rec = intersect_scene(origin, direction, SPRITE_T_MIN, SPRITE_T_MAX)
    if rec.hit == 1:
        if mode == int(ShadingMode.NORMAL):
            result = with_alpha(0.5 * (rec.normal + vec3(1.0, 1.0, 1.0)), 1.0)
        else:
            result = with_alpha(material_color(rec.material_id), 1.0)
    return result


@ti.kernel
def _shade_pass(
    buffer: ti.template(),
    counts: ti.template(),
    width: ti.i32,
    height: ti.i32,
    mode: ti.i32,
):
    for i, j in ti.ndrange(width, height):
        u = ti.cast(i, ti.f32) / ti.cast(ti.max(width - 1, 1), ti.f32)
        v = ti.cast(j, ti.f32) / ti.cast(ti.max(height - 1, 1), ti.f32)

        # Only a lens camera draws from this; each pixel gets its own stream
        rng = seed_rng(i, j, 0, 0)
        ray, rng = get_ray(u, v, rng)

        buffer[i, j] = shade(ray.origin, ray.direction, mode)
        counts[i, j] = 1


def render_shading_pass(mode: ShadingMode) -> None:
    """Overwrite the render target with one shading pass.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    buffer = get_image()
    width, height = get_image_dimensions()
    _shade_pass(buffer, get_sample_count(), width, height, int(mode))
