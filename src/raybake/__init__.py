"""Taichi-based path tracer and sprite baker.

This package renders images by tracing rays through a scene of spheres and
triangle meshes on Taichi's data-parallel CPU backend. Two front-ends share
the same engine:
- A Monte Carlo path tracer (diffuse, metal and glass materials, depth of field)
- A sprite generator baking normal maps and flat diffuse maps of a mesh

Subpackages:
    core: Rays, random sampling, integrators and render passes
    geometry: Sphere and triangle primitives with their intersection tests
    materials: The closed set of scattering models
    scene: Primitive storage, scene manager, presets and mesh import
    camera: Perspective / orthographic thin-lens camera
    preview: Image export
    sprite: Sprite generator settings, renderer and config watcher
"""

__version__ = "0.1.0"
