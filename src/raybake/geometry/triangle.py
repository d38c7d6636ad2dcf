"""Triangle primitive with Moller-Trumbore intersection.

A triangle is stored as its first vertex plus the two edge vectors leaving it,
together with the precomputed unit face normal normalize(cross(edge1, edge2)).
Meshes are plain runs of triangles sharing one material (see
src.raybake.scene.manager.SceneManager.add_mesh).

The host-side helper triangle_frames derives edges, normals and centroids for
a whole (n, 3, 3) vertex array with NumPy before the data is uploaded to the
scene fields.
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from .hit_record import HitRecord, make_hit_record, make_miss_record

vec3 = tm.vec3

# Determinant threshold below which the ray is treated as parallel to the plane
PARALLEL_EPSILON = 1e-7


@ti.dataclass
class Triangle:
    """A triangle in edge form.

    Attributes:
        v0: The first vertex.
        edge1: v1 - v0.
        edge2: v2 - v0.
        normal: Unit face normal, normalize(cross(edge1, edge2)).
    """

    v0: vec3
    edge1: vec3
    edge2: vec3
    normal: vec3


@ti.func
def make_triangle(v0: vec3, v1: vec3, v2: vec3) -> Triangle:
    edge1 = v1 - v0
    edge2 = v2 - v0
    return Triangle(v0=v0, edge1=edge1, edge2=edge2, normal=tm.normalize(tm.cross(edge1, edge2)))


@ti.func
def intersect_triangle_mt(
    ray_origin: vec3,
    ray_direction: vec3,
    triangle: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Moller-Trumbore ray-triangle test.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (need not be normalized).
        triangle: The triangle to test.
        t_min: Minimum accepted t (inclusive).
        t_max: Maximum accepted t (inclusive).

    Returns:
        Tuple of (hit, t, u, v) where u and v are the barycentric weights of
        edge1 and edge2. Only valid if hit == 1, in which case u >= 0,
        v >= 0 and u + v <= 1.
    """
    hit = 0
    t = 0.0
    u = 0.0
    v = 0.0

    h = tm.cross(ray_direction, triangle.edge2)
    a = tm.dot(triangle.edge1, h)

    if ti.abs(a) >= PARALLEL_EPSILON:
        f = 1.0 / a
        s = ray_origin - triangle.v0
        u = f * tm.dot(s, h)
        if u >= 0.0 and u <= 1.0:
            q = tm.cross(s, triangle.edge1)
            v = f * tm.dot(ray_direction, q)
            if v >= 0.0 and u + v <= 1.0:
                t = f * tm.dot(triangle.edge2, q)
                if t >= t_min and t <= t_max:
                    hit = 1

    return hit, t, u, v


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    triangle: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-triangle intersection.

    The face normal is used as the outward normal; make_hit_record orients it
    against the ray, so both faces of a triangle are visible.

    Returns:
        A HitRecord; check its hit field.
    """
    result = make_miss_record()
    hit, t, _, _ = intersect_triangle_mt(ray_origin, ray_direction, triangle, t_min, t_max)
    if hit == 1:
        point = ray_origin + t * ray_direction
        result = make_hit_record(t, point, triangle.normal, ray_direction)
    return result


def triangle_frames(
    vertices: npt.ArrayLike,
) -> tuple[
    npt.NDArray[np.float32],
    npt.NDArray[np.float32],
    npt.NDArray[np.float32],
    npt.NDArray[np.float32],
    npt.NDArray[np.float32],
]:
    """Derive the per-triangle data the scene stores from raw vertices.

    Args:
        vertices: Array-like of shape (n, 3, 3): n triangles, three vertices
            each, three coordinates per vertex.

    Returns:
        Tuple of (v0, edge1, edge2, normal, centroid), each of shape (n, 3)
        and dtype float32. Degenerate triangles (zero area) get a zero normal;
        they can never be hit because their determinant is zero.

    Raises:
        ValueError: If the array does not have shape (n, 3, 3).
    """
    verts = np.asarray(vertices, dtype=np.float64)
    if verts.ndim != 3 or verts.shape[1:] != (3, 3):
        raise ValueError(f"Expected triangle vertices of shape (n, 3, 3), got {verts.shape}")

    v0 = verts[:, 0, :]
    edge1 = verts[:, 1, :] - v0
    edge2 = verts[:, 2, :] - v0

    normal = np.cross(edge1, edge2)
    norms = np.linalg.norm(normal, axis=1, keepdims=True)
    normal = np.divide(normal, norms, out=np.zeros_like(normal), where=norms > 0.0)

    centroid = verts.mean(axis=1)

    return (
        v0.astype(np.float32),
        edge1.astype(np.float32),
        edge2.astype(np.float32),
        normal.astype(np.float32),
        centroid.astype(np.float32),
    )
