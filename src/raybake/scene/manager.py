"""Unified scene manager for coordinating primitives and materials.

This module provides a high-level scene building API on top of the material
table (materials.registry) and the primitive table (scene.intersection). It
keeps Python-side records of everything added so a scene can be inspected
and serialized, while the Taichi fields hold what the render kernels read.

The SceneManager maintains:
- The material list (material id == index in the material table)
- Sphere and mesh records, in insertion order
- Convenience methods for adding an object and its material in one call
- Scene serialization to and from plain dictionaries (JSON-compatible)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raybake.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> mat_id = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi.math as tm

from src.raybake.geometry.triangle import triangle_frames
from src.raybake.materials.metal import clamp_fuzz
from src.raybake.materials.registry import (
    MAX_MATERIALS,
    MaterialType,
    add_material,
    clear_materials,
    get_material_count,
)
from src.raybake.scene.intersection import (
    MAX_SPHERES,
    MAX_TRIANGLES,
    add_sphere,
    add_triangles,
    clear_scene,
    get_primitive_count,
    get_sphere_count,
    get_triangle_count,
)
from src.raybake.scene.mesh_loader import load_mesh_triangles

vec3 = tm.vec3


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: Index in the material table.
        material_type: The surface model.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class MeshInfo:
    """Information about a mesh in the scene.

    A mesh is a contiguous run of triangles in the triangle storage that all
    share one material.

    Attributes:
        first_triangle: Index of the mesh's first triangle.
        triangle_count: Number of triangles in the mesh.
        centroid: Mean of the per-triangle centroids.
        material_id: The material shared by every triangle.
        source: File the mesh was loaded from, if any.
    """

    first_triangle: int
    triangle_count: int
    centroid: tuple[float, float, float]
    material_id: int
    source: str | None = None


@dataclass
class SceneConfig:
    """Configuration for scene serialization."""

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    meshes: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Scene builder coordinating primitives and materials.

    Creating a SceneManager clears the global material and primitive tables,
    so only one scene is live at a time.

    Attributes:
        materials: MaterialInfo for all registered materials.
        spheres: SphereInfo for all spheres in the scene.
        meshes: MeshInfo for all meshes in the scene.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.1)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_sphere((-1, 0, -1), -0.4, glass)  # hollow shell
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.meshes: list[MeshInfo] = []
        self._mesh_vertices: list[npt.NDArray[np.float32]] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        self.materials.clear()
        self.spheres.clear()
        self.meshes.clear()
        self._mesh_vertices.clear()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register(self, material_type: MaterialType, params: dict[str, Any]) -> int:
        material_id = add_material(material_type, **params)
        self.materials.append(
            MaterialInfo(material_id=material_id, material_type=material_type, params=params)
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material.

        Args:
            albedo: The diffuse reflectance color, each component in [0, 1].

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        return self._register(
            MaterialType.LAMBERTIAN, {"albedo": _as_triple(albedo, "albedo")}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal material.

        Args:
            albedo: The reflective color, each component in [0, 1].
            fuzz: Perturbation radius; values outside [0, 1] are clamped.

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        return self._register(
            MaterialType.METAL,
            {"albedo": _as_triple(albedo, "albedo"), "fuzz": clamp_fuzz(fuzz)},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material.

        Args:
            ior: Index of refraction. Common values: Water=1.33, Glass=1.5,
                Diamond=2.4.

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If ior is not a finite positive number.
        """
        return self._register(MaterialType.DIELECTRIC, {"ior": float(ior)})

    def get_material_count(self) -> int:
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius. A negative radius inverts the normal, which
                turns a dielectric sphere into a hollow bubble.
            material_id: The material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If radius is zero or not finite, or material_id is
                invalid.
        """
        self._check_material_id(material_id)
        if radius == 0.0 or not math.isfinite(radius):
            raise ValueError(f"Sphere radius must be finite and non-zero, got {radius}")

        center = _as_triple(center, "center")
        sphere_index = add_sphere(vec3(*center), float(radius), material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_mesh(
        self,
        vertices: npt.ArrayLike,
        material_id: int,
        source: str | None = None,
    ) -> MeshInfo:
        """Add a triangle mesh sharing one material.

        Args:
            vertices: Array-like of shape (n, 3, 3) with the three vertices
                of each triangle.
            material_id: The material ID to assign to every triangle.
            source: Optional file the vertices came from (kept for
                serialization).

        Returns:
            A MeshInfo describing the triangle range.

        Raises:
            RuntimeError: If the maximum number of triangles is exceeded.
            ValueError: If the vertex array is malformed or empty, or
                material_id is invalid.
        """
        self._check_material_id(material_id)
        v0, edge1, edge2, normals, centroids = triangle_frames(vertices)
        if len(v0) == 0:
            raise ValueError("Mesh has no triangles")

        first_triangle = add_triangles(v0, edge1, edge2, normals, material_id)
        centroid = centroids.astype(np.float64).mean(axis=0)

        info = MeshInfo(
            first_triangle=first_triangle,
            triangle_count=len(v0),
            centroid=(float(centroid[0]), float(centroid[1]), float(centroid[2])),
            material_id=material_id,
            source=source,
        )
        self.meshes.append(info)
        self._mesh_vertices.append(np.asarray(vertices, dtype=np.float32).reshape(-1, 3, 3))
        return info

    def add_mesh_file(self, path: str | Path, material_id: int) -> MeshInfo:
        """Load a mesh file (see scene.mesh_loader) and add it to the scene."""
        triangles = load_mesh_triangles(path)
        return self.add_mesh(triangles, material_id, source=str(path))

    # =========================================================================
    # Convenience Methods (add object with material in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def get_triangle_count(self) -> int:
        return get_triangle_count()

    def get_primitive_count(self) -> int:
        """Get the total number of primitives (spheres plus triangles)."""
        return get_primitive_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Meshes loaded from a file are stored by path; other meshes carry
        their vertices inline.
        """
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        for mesh, vertices in zip(self.meshes, self._mesh_vertices):
            mesh_config: dict[str, Any] = {"material_id": mesh.material_id}
            if mesh.source is not None:
                mesh_config["file"] = mesh.source
            else:
                mesh_config["vertices"] = vertices.tolist()
            config.meshes.append(mesh_config)

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Materials first, primitives refer to them by id
        for mat_config in config.materials:
            mat_type = str(mat_config.get("type", "")).lower()
            if mat_type == "lambertian":
                self.add_lambertian_material(mat_config.get("albedo", [0.5, 0.5, 0.5]))
            elif mat_type == "metal":
                self.add_metal_material(
                    mat_config.get("albedo", [0.8, 0.8, 0.8]), mat_config.get("fuzz", 0.0)
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            self.add_sphere(
                sphere_config.get("center", [0.0, 0.0, 0.0]),
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
            )

        for mesh_config in config.meshes:
            material_id = mesh_config.get("material_id", 0)
            if "file" in mesh_config:
                self.add_mesh_file(mesh_config["file"], material_id)
            elif "vertices" in mesh_config:
                self.add_mesh(mesh_config["vertices"], material_id)
            else:
                raise ValueError("Mesh entry needs either 'file' or 'vertices'")

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
            "meshes": config.meshes,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials', 'spheres' and 'meshes' keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            meshes=data.get("meshes", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_triangles() -> int:
        return MAX_TRIANGLES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
