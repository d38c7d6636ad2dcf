"""Geometry module for shape primitives.

Components:
    hit_record: Hit record and front-face normal orientation
    sphere: Sphere primitive with ray-sphere intersection
    triangle: Triangle primitive with Moller-Trumbore intersection

All intersection routines are Taichi functions (@ti.func) with the shape
    record = hit_<shape>(ray_origin, ray_direction, shape, t_min, t_max)
and accept hits with t_min <= t <= t_max. There is no acceleration
structure; the scene tests every primitive.
"""

from .hit_record import HitRecord, make_hit_record, make_miss_record
from .sphere import Sphere, hit_sphere, make_sphere
from .triangle import (
    Triangle,
    hit_triangle,
    intersect_triangle_mt,
    make_triangle,
    triangle_frames,
)

__all__ = [
    "HitRecord",
    "make_hit_record",
    "make_miss_record",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Triangle",
    "hit_triangle",
    "intersect_triangle_mt",
    "make_triangle",
    "triangle_frames",
]
