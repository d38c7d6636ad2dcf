"""Metal (specular reflective) material.

Metals reflect the unit incident direction about the normal and perturb the
mirror direction by ``fuzz`` times a random point in the unit ball. A perturbed
direction that ends up pointing into the surface is absorbed, which is the only
way a path can be absorbed by a material.

The reflection formula is:
    R = I - 2(I . N)N
"""

import math

import taichi as ti
import taichi.math as tm

from src.raybake.core.ray import reflect
from src.raybake.core.sampler import random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Perturbation radius; clamped to [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.
        rng: Generator state.

    Returns:
        A tuple (scattered_direction, attenuation, did_scatter, rng) where
        did_scatter is 0 when the perturbed direction points into the surface
        (dot(scattered, normal) <= 0).
    """
    fuzz_clamped = tm.clamp(fuzz, 0.0, 1.0)

    reflected = reflect(tm.normalize(incident_direction), normal)
    offset, rng = random_in_unit_sphere(rng)
    scattered_direction = reflected + fuzz_clamped * offset

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter, rng


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value to [0, 1].

    Raises:
        ValueError: If fuzz is NaN.
    """
    if math.isnan(fuzz):
        raise ValueError("Fuzz must be a number, got NaN")
    return min(max(float(fuzz), 0.0), 1.0)
