"""Mesh import.

Reads any format trimesh understands (OBJ, glTF/GLB, STL, PLY, ...) and
returns the flat triangle soup the scene consumes: one (3, 3) vertex triple
per triangle. Multi-object files are merged into a single mesh.
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
import trimesh

logger = logging.getLogger(__name__)


def load_mesh_triangles(path: str | Path) -> npt.NDArray[np.float32]:
    """Load a mesh file as an array of triangle vertices.

    Args:
        path: Path to the mesh file.

    Returns:
        Array of shape (n, 3, 3) and dtype float32.

    Raises:
        ValueError: If the file does not exist, cannot be parsed, or holds no
            triangles.
    """
    path = Path(path)
    if not path.is_file():
        raise ValueError(f"Mesh file not found: {path}")

    try:
        mesh = trimesh.load(path, force="mesh")
    except Exception as exc:
        raise ValueError(f"Could not load mesh {path}: {exc}") from exc

    triangles = np.asarray(getattr(mesh, "triangles", ()), dtype=np.float32)
    if triangles.size == 0:
        raise ValueError(f"Mesh {path} contains no triangles")

    logger.info("Loaded %d triangles from %s", len(triangles), path)
    return triangles.reshape(-1, 3, 3)
