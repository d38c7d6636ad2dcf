"""Scene-level primitive intersection testing.

The scene is one insertion-ordered primitive table. Each row holds a kind tag
(sphere or triangle), the index into that kind's storage, and a material id.
intersect_scene walks the table in insertion order and keeps a new hit only
if it is strictly closer than the current one, so when two primitives are hit
at exactly the same distance the one added first wins.

Primitive storage is Structure of Arrays in preallocated Taichi fields.
Triangles are uploaded in bulk from NumPy arrays (see add_triangles), which
is how meshes get into the scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raybake.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

from enum import IntEnum

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.raybake.geometry.hit_record import HitRecord, make_miss_record
from src.raybake.geometry.sphere import Sphere, hit_sphere
from src.raybake.geometry.triangle import Triangle, hit_triangle

vec3 = tm.vec3


class PrimitiveKind(IntEnum):
    SPHERE = 0
    TRIANGLE = 1


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: 1 if the ray intersected any primitive, 0 on a miss.
        t: Parametric distance of the closest hit. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal facing the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray hit the outside of the surface.
        material_id: Material of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024
MAX_TRIANGLES = 65536
MAX_PRIMITIVES = MAX_SPHERES + MAX_TRIANGLES

# Primitive table, in insertion order
primitive_kinds = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_indices = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_material_ids = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
num_primitives = ti.field(dtype=ti.i32, shape=())

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Triangle storage (edge form, see geometry.triangle)
triangle_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_edge1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_edge2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_primitives[None] = 0
    num_spheres[None] = 0
    num_triangles[None] = 0


def _append_primitive(kind: PrimitiveKind, index: int, material_id: int) -> int:
    p = num_primitives[None]
    primitive_kinds[p] = int(kind)
    primitive_indices[p] = index
    primitive_material_ids[p] = material_id
    num_primitives[None] = p + 1
    return p


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. A negative radius keeps the same
            surface but flips the normal (hollow shell).
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    num_spheres[None] = idx + 1
    _append_primitive(PrimitiveKind.SPHERE, idx, material_id)
    return idx


@ti.kernel
def _upload_triangles(
    v0: ti.types.ndarray(),
    edge1: ti.types.ndarray(),
    edge2: ti.types.ndarray(),
    normals: ti.types.ndarray(),
    count: ti.i32,
    first_triangle: ti.i32,
    first_primitive: ti.i32,
    material_id: ti.i32,
):
    for k in range(count):
        idx = first_triangle + k
        triangle_v0[idx] = vec3(v0[k, 0], v0[k, 1], v0[k, 2])
        triangle_edge1[idx] = vec3(edge1[k, 0], edge1[k, 1], edge1[k, 2])
        triangle_edge2[idx] = vec3(edge2[k, 0], edge2[k, 1], edge2[k, 2])
        triangle_normals[idx] = vec3(normals[k, 0], normals[k, 1], normals[k, 2])

        p = first_primitive + k
        primitive_kinds[p] = int(PrimitiveKind.TRIANGLE)
        primitive_indices[p] = idx
        primitive_material_ids[p] = material_id


def add_triangles(
    v0: npt.ArrayLike,
    edge1: npt.ArrayLike,
    edge2: npt.ArrayLike,
    normals: npt.ArrayLike,
    material_id: int = 0,
) -> int:
    """Add a batch of triangles sharing one material.

    The inputs are the per-triangle arrays produced by
    geometry.triangle.triangle_frames, each of shape (n, 3).

    Returns:
        The index of the first added triangle.

    Raises:
        ValueError: If the arrays do not all have shape (n, 3).
        RuntimeError: If the maximum number of triangles is exceeded.
    """
    arrays = [np.ascontiguousarray(a, dtype=np.float32) for a in (v0, edge1, edge2, normals)]
    count = arrays[0].shape[0] if arrays[0].ndim == 2 else -1
    for a in arrays:
        if a.ndim != 2 or a.shape != (count, 3):
            raise ValueError(f"Triangle arrays must all have shape (n, 3), got {a.shape}")

    first_triangle = num_triangles[None]
    if first_triangle + count > MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")

    if count > 0:
        _upload_triangles(*arrays, count, first_triangle, num_primitives[None], material_id)
        num_triangles[None] = first_triangle + count
        num_primitives[None] = num_primitives[None] + count
    return first_triangle


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_triangle_count() -> int:
    """Get the number of triangles in the scene."""
    return int(num_triangles[None])


def get_primitive_count() -> int:
    return int(num_primitives[None])


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_scene_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def intersect_primitive(
    p: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test a ray against one row of the primitive table."""
    rec = make_miss_record()
    idx = primitive_indices[p]
    if primitive_kinds[p] == int(PrimitiveKind.SPHERE):
        sphere = Sphere(center=sphere_centers[idx], radius=sphere_radii[idx])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
    else:
        triangle = Triangle(
            v0=triangle_v0[idx],
            edge1=triangle_edge1[idx],
            edge2=triangle_edge2[idx],
            normal=triangle_normals[idx],
        )
        rec = hit_triangle(ray_origin, ray_direction, triangle, t_min, t_max)
    return rec


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest primitive hit along a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord for the closest hit, or a miss record. Among hits
        at exactly the same t, the earliest inserted primitive is kept.
    """
    closest_t = t_max
    result = _make_scene_miss_record()

    for p in range(num_primitives[None]):
        rec = intersect_primitive(p, ray_origin, ray_direction, t_min, closest_t)
        if rec.hit == 1 and (result.hit == 0 or rec.t < closest_t):
            closest_t = rec.t
            result = _to_scene_hit_record(rec, primitive_material_ids[p])

    return result
