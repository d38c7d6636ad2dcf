"""Scene module: primitive storage, scene building and presets.

Components:
    intersection: Insertion-ordered primitive table and closest-hit query
    manager: SceneManager, the high-level scene building API
    mesh_loader: Mesh file import (trimesh)
    presets: The three-spheres scene and the random "many spheres" scene
"""

from .intersection import (
    MAX_PRIMITIVES,
    MAX_SPHERES,
    MAX_TRIANGLES,
    PrimitiveKind,
    SceneHitRecord,
    add_sphere,
    add_triangles,
    clear_scene,
    get_primitive_count,
    get_sphere_count,
    get_triangle_count,
    intersect_scene,
)
from .manager import MaterialInfo, MeshInfo, SceneConfig, SceneManager, SphereInfo
from .mesh_loader import load_mesh_triangles
from .presets import random_scene, three_spheres_scene

__all__ = [
    # Intersection
    "MAX_PRIMITIVES",
    "MAX_SPHERES",
    "MAX_TRIANGLES",
    "PrimitiveKind",
    "SceneHitRecord",
    "add_sphere",
    "add_triangles",
    "clear_scene",
    "get_primitive_count",
    "get_sphere_count",
    "get_triangle_count",
    "intersect_scene",
    # Manager
    "MaterialInfo",
    "MeshInfo",
    "SceneConfig",
    "SceneManager",
    "SphereInfo",
    # Loading and presets
    "load_mesh_triangles",
    "random_scene",
    "three_spheres_scene",
]
