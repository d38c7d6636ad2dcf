"""Core rendering module.

Components:
    ray: Ray data structure and vector transforms
    sampler: Explicit per-sample random number generation
    color: Sky gradient and color constants
    integrator: Render target and the path tracing pass
    shading: Single-bounce diffuse / normal passes for sprite baking
    progressive: ProgressiveRenderer wrapper around the integrator

Each hot routine is a Taichi function; render passes are Taichi kernels
looping over all pixels in parallel.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .sampler import (
    next_u32,
    random_f32,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    seed_rng,
    wang_hash,
)

# Note: integrator, shading and progressive allocate Taichi fields on import
# and are NOT imported here. Import them directly once ti.init() has run:
#   from src.raybake.core.progressive import ProgressiveRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "wang_hash",
    "seed_rng",
    "next_u32",
    "random_f32",
    "random_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
