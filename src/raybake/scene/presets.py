"""Ready-made scenes.

Two presets, each returned together with the camera that frames it:

- three_spheres_scene: a diffuse ball between a hollow glass ball and a fuzzy
  gold ball, a mirror ball behind them, all resting on a huge yellow-green
  ground sphere. The glass ball uses a negative radius, so its normals point
  inward and it renders as a thin-walled bubble.
- random_scene: the "many spheres" cover scene, a 22 x 22 grid of small
  randomly placed and randomly shaded spheres around three large ones.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raybake.scene.presets import three_spheres_scene
    >>> from src.raybake.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = three_spheres_scene()
    >>> setup_camera(camera, DEFAULT_ASPECT_RATIO)
"""

import math

import numpy as np

from src.raybake.camera.settings import CameraSettings
from src.raybake.scene.manager import SceneManager

# =============================================================================
# Default Image Parameters
# =============================================================================

DEFAULT_ASPECT_RATIO = 16.0 / 9.0
DEFAULT_IMAGE_WIDTH = 480
DEFAULT_SAMPLES_PER_PIXEL = 100

# =============================================================================
# Three Spheres Scene Parameters
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
GLASS_IOR = 1.5
GOLD_ALBEDO = (0.8, 0.6, 0.2)
GOLD_FUZZ = 0.1
MIRROR_ALBEDO = (0.4, 0.4, 0.2)


def default_image_height(width: int = DEFAULT_IMAGE_WIDTH, aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> int:
    """Image height for a width and aspect ratio, truncated to an integer."""
    return max(1, int(width / aspect_ratio))


def three_spheres_scene() -> tuple[SceneManager, CameraSettings]:
    """Create the default three-spheres scene.

    Returns:
        A tuple of (SceneManager, CameraSettings). The camera looks at the
        center ball from above and to the right with a wide aperture focused
        on the center ball.
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    center = scene.add_lambertian_material(albedo=CENTER_ALBEDO)
    glass = scene.add_dielectric_material(ior=GLASS_IOR)
    gold = scene.add_metal_material(albedo=GOLD_ALBEDO, fuzz=GOLD_FUZZ)
    mirror = scene.add_metal_material(albedo=MIRROR_ALBEDO, fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.4, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
    scene.add_sphere((0.0, 1.0, -1.4), 0.6, mirror)

    eye = (3.0, 3.0, 2.0)
    target = (0.0, 0.0, -1.0)
    camera = CameraSettings(
        eye=eye,
        target=target,
        up=(0.0, 1.0, 0.0),
        v_fov_degrees=20.0,
        aperture=2.0,
        focal_length=math.dist(eye, target),
    )
    return scene, camera


def random_scene(seed: int | None = None) -> tuple[SceneManager, CameraSettings]:
    """Create the randomized "many spheres" scene.

    Small spheres of radius 0.2 sit on a grid a, b in [-11, 11), jittered by
    up to 0.9 in x and z. Spheres too close to the large metal ball are
    skipped. Material choice per small sphere: 80% diffuse (albedo is the
    product of two random colors), 15% metal (albedo in [0.5, 1), fuzz in
    [0.5, 1)), 5% glass.

    Args:
        seed: Seed for the NumPy generator; None gives a different scene
            every call.

    Returns:
        A tuple of (SceneManager, CameraSettings).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.5, 0.5))

    keep_clear = np.array([4.0, 0.2, 0.0])
    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - keep_clear) <= 0.9:
                continue

            position = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(position, 0.2, tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.5, 1.0))
                scene.add_metal_sphere(position, 0.2, tuple(albedo.tolist()), fuzz)
            else:
                scene.add_dielectric_sphere(position, 0.2, 1.5)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, 1.5)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    camera = CameraSettings(
        eye=(13.0, 2.0, 3.0),
        target=(0.0, 0.0, 0.0),
        up=(0.0, 1.0, 0.0),
        v_fov_degrees=20.0,
        aperture=0.1,
        focal_length=10.0,
    )
    return scene, camera
