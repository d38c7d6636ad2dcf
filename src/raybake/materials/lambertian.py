"""Lambertian (ideal diffuse) material.

A diffuse surface scatters the incoming ray toward normal + a random unit
vector. Offsetting a uniformly distributed unit vector by the normal yields
directions distributed proportionally to cos(theta) about the normal, which
is exactly the Lambertian distribution, so the attenuation is simply the
albedo and no pdf weighting is required.

Example:
    >>> # Inside a Taichi kernel:
    >>> # direction, attenuation, rng = scatter_lambertian(albedo, normal, rng)
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from src.raybake.core.ray import near_zero
from src.raybake.core.sampler import random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, rng: ti.u32):
    """Sample a diffuse scatter direction.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The unit surface normal, facing the incoming ray.
        rng: Generator state.

    Returns:
        A tuple (scattered_direction, attenuation, rng). The direction is not
        normalized; if normal + random unit vector cancels out, the normal
        itself is used so the direction is never the zero vector.
    """
    offset, rng = random_unit_vector(rng)
    scattered_direction = normal + offset

    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, rng


def validate_albedo(albedo: Sequence[float]) -> tuple[float, float, float]:
    """Check an RGB albedo and return it as a float triple.

    Attenuation components outside [0, 1] would add energy at every bounce,
    so they are rejected rather than clamped.

    Raises:
        ValueError: If albedo does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return (float(albedo[0]), float(albedo[1]), float(albedo[2]))
