"""Pytest configuration for raybake tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and render target state around each test."""
    # Import here so the fields are created after ti.init()
    from src.raybake.core.integrator import clear_render_target
    from src.raybake.materials.registry import clear_materials
    from src.raybake.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def unit_cube_triangles():
    """Twelve triangles of the axis-aligned cube [-0.5, 0.5]^3."""
    import trimesh

    return trimesh.creation.box(extents=(1.0, 1.0, 1.0)).triangles.astype("float32")
