"""Sprite / normal-map baking.

A SpriteRenderer loads one mesh into the scene, points the configured camera
at it and runs the single-bounce shading passes of core.shading:

- the normal pass encodes the facing normal as color, with a transparent
  background (or opaque black when blacken_normal_map is set)
- the diffuse pass writes the flat material color scaled by
  diffuse_brightness, with a transparent background

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raybake.sprite.renderer import SpriteRenderer
    >>> from src.raybake.sprite.settings import RenderSettings
    >>>
    >>> settings = RenderSettings.from_json_file("cfg.json")
    >>> normal, diffuse = SpriteRenderer(settings).render_pair()
"""

import dataclasses
import logging
import time

import numpy as np
import numpy.typing as npt

from src.raybake.camera.thin_lens import setup_camera
from src.raybake.core.integrator import get_image_numpy, setup_render_target
from src.raybake.core.shading import ShadingMode, render_shading_pass
from src.raybake.scene.manager import MeshInfo, SceneManager
from src.raybake.scene.mesh_loader import load_mesh_triangles
from src.raybake.sprite.settings import RenderSettings

logger = logging.getLogger(__name__)

# Cyan, so untextured meshes stand out against black
DEFAULT_MESH_ALBEDO = (0.0, 1.0, 1.0)


class SpriteRenderer:
    """Bakes normal and diffuse sprites of a single mesh.

    The scene and camera live in global Taichi fields, so creating a
    SpriteRenderer replaces whatever scene was loaded before.

    Attributes:
        settings: The bake configuration.
        scene: The one-mesh scene.
        mesh: Triangle range of the loaded mesh.
    """

    def __init__(
        self,
        settings: RenderSettings,
        triangles: npt.ArrayLike | None = None,
        albedo: tuple[float, float, float] = DEFAULT_MESH_ALBEDO,
    ) -> None:
        """Build the scene and camera.

        Args:
            settings: Bake configuration.
            triangles: Optional (n, 3, 3) vertex array. When omitted the
                mesh is loaded from settings.mesh_file.
            albedo: Color of the mesh material.

        Raises:
            ValueError: If the mesh cannot be loaded or the camera or image
                settings are invalid.
        """
        self.settings = settings

        if triangles is None:
            triangles = load_mesh_triangles(settings.mesh_file)
            source = settings.mesh_file
        else:
            source = None

        self.scene = SceneManager()
        material_id = self.scene.add_lambertian_material(albedo)
        self.mesh: MeshInfo = self.scene.add_mesh(triangles, material_id, source=source)

        # Sprites are baked through a pinhole; a configured aperture is ignored
        pinhole = dataclasses.replace(settings.camera_settings, aperture=0.0)
        setup_camera(pinhole, settings.aspect_ratio)

    def render(self, mode: ShadingMode) -> npt.NDArray[np.float32]:
        """Run one shading pass.

        Returns:
            Array of shape (image_height, image_width, 4), RGBA in [0, 1],
            top row first.
        """
        start = time.perf_counter()

        setup_render_target(self.settings.image_width, self.settings.image_height)
        render_shading_pass(mode)
        image = get_image_numpy()

        if mode == ShadingMode.NORMAL:
            if self.settings.blacken_normal_map:
                background = image[..., 3] == 0.0
                image[background] = (0.0, 0.0, 0.0, 1.0)
        else:
            image[..., :3] *= self.settings.diffuse_brightness
            np.clip(image, 0.0, 1.0, out=image)

        logger.info(
            "%s pass (%dx%d, %d triangles) took %.3fs",
            mode.name.lower(),
            self.settings.image_width,
            self.settings.image_height,
            self.mesh.triangle_count,
            time.perf_counter() - start,
        )
        return image

    def render_pair(self) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32]]:
        """Render the normal map followed by the diffuse map."""
        return self.render(ShadingMode.NORMAL), self.render(ShadingMode.DIFFUSE)
