"""Hit record shared by all primitives.

Every primitive reports its raw geometric ("outward") normal and lets
make_hit_record orient it. After construction the stored normal always
opposes the incoming ray, i.e. dot(normal, ray_direction) < 0 for any ray
that is not tangent to the surface, and front_face remembers whether the
outward normal already did so (ray arriving from outside the surface).
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: Parametric distance along the ray. Only valid if hit == 1.
        point: World-space intersection point. Only valid if hit == 1.
        normal: Unit surface normal, oriented against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the outward normal already faced the ray (the ray
            is entering the surface), 0 if it had to be flipped.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_hit_record(t: ti.f32, point: vec3, outward_normal: vec3, ray_direction: vec3) -> HitRecord:
    """Build a hit record, flipping the normal to face the incoming ray.

    Args:
        t: Parametric distance of the hit.
        point: The intersection point.
        outward_normal: The primitive's geometric normal at the hit (unit length).
        ray_direction: Direction of the ray that produced the hit.

    Returns:
        A HitRecord with hit == 1.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return HitRecord(hit=1, t=t, point=point, normal=normal, front_face=front_face)


@ti.func
def make_miss_record() -> HitRecord:
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )
