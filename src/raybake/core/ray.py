"""Ray data structure and vector utilities.

This module provides the Ray dataclass and the small set of vector transforms
the engine needs (reflection, refraction, Schlick reflectance). Everything is a
Taichi function so it can be inlined into the render kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Threshold below which every component of a vector counts as zero
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). It is not required
            to be unit length; intersection tests work with any length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point origin + t * direction."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi scope."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Callers are expected to guard against zero-length input (see near_zero).
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if all components of v are below NEAR_ZERO_EPSILON in magnitude.

    Used to catch degenerate scatter directions before they are turned into rays.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, normal: vec3) -> vec3:
    """Mirror v about the surface normal: v - 2 (v . n) n.

    Args:
        v: The incoming direction (pointing toward the surface).
        normal: The unit surface normal.

    Returns:
        The reflected direction. Its length equals the length of v.
    """
    return v - 2.0 * tm.dot(v, normal) * normal


@ti.func
def refract(uv: vec3, normal: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted ray is split into the part perpendicular to the normal and
    the part parallel to it:
        r_perp = eta * (uv + cos_theta * n)
        r_par  = -sqrt(|1 - |r_perp|^2|) * n

    Callers must rule out total internal reflection beforehand
    (eta * sin_theta > 1); the absolute value only keeps the square root
    finite for rays sitting exactly on the critical angle.

    Args:
        uv: The incoming unit direction.
        normal: The unit surface normal, facing the incoming ray.
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction (unit length up to rounding).
    """
    cos_theta = tm.min(tm.dot(-uv, normal), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick's approximation of Fresnel reflectance.

    r0 = ((1 - ratio) / (1 + ratio))^2
    R(cos) = r0 + (1 - r0) (1 - cos)^5
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
