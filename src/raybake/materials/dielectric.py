"""Dielectric (glass/water) material.

Dielectrics never absorb: the attenuation is always white. At each hit the
material either reflects or refracts:
    - Snell's law: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when ratio * sin(theta) > 1
    - Otherwise reflect with probability given by Schlick's approximation

The choice is a random draw per hit, not a blend, so glass converges to the
right mix of reflection and refraction only over many samples.

Example:
    >>> # Inside a Taichi kernel:
    >>> # direction, attenuation, rng = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, rng
    >>> # )
"""

import math

import taichi as ti
import taichi.math as tm

from src.raybake.core.ray import reflect, refract, schlick_reflectance
from src.raybake.core.sampler import random_f32

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Return n_incident / n_transmitted: 1/ior when entering, ior when leaving."""
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Return 1 if the ray is totally internally reflected, 0 otherwise."""
    ratio = refraction_ratio(ior, front_face)
    unit_direction = tm.normalize(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(1.0 - cos_theta * cos_theta, 0.0))
    return 1 if ratio * sin_theta > 1.0 else 0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Schlick reflectance for the given incidence, in [0, 1]."""
    ratio = refraction_ratio(ior, front_face)
    unit_direction = tm.normalize(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    return schlick_reflectance(cos_theta, ratio)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if the ray enters the material, 0 if it leaves it.
        rng: Generator state.

    Returns:
        A tuple (scattered_direction, attenuation, rng). The attenuation is
        always white and the direction is unit length.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    ratio = refraction_ratio(ior, front_face)
    unit_direction = tm.normalize(incident_direction)

    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(1.0 - cos_theta * cos_theta, 0.0))

    # Checked before refract() so the square root there never sees a negative
    cannot_refract = ratio * sin_theta > 1.0

    draw, rng = random_f32(rng)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or schlick_reflectance(cos_theta, ratio) > draw:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, attenuation, rng


def validate_ior(ior: float) -> float:
    """Check an index of refraction.

    Values below 1.0 are allowed (e.g. an air bubble modelled inside water
    with ior = 1 / 1.33); only non-positive and non-finite values are rejected.

    Raises:
        ValueError: If ior is not a finite positive number.
    """
    if not math.isfinite(ior) or ior <= 0.0:
        raise ValueError(
            f"Index of refraction = {ior} is invalid. "
            "IOR must be a finite positive number."
        )
    return float(ior)
