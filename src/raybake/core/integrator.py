"""Path tracing integrator and render target.

This module implements the Monte Carlo render pass: for every pixel, trace a
number of camera rays through the scene, let the materials scatter them until
they escape to the sky, get absorbed or run out of bounces, and average the
results into an RGBA render target.

The recursive definition
    color(ray, depth) = black                              if depth <= 0
                      = sky(ray)                           on a miss
                      = attenuation * color(scattered, depth - 1)
                                                           if the hit scatters
                      = black                              if it is absorbed
is evaluated iteratively with a throughput multiplier carried across bounces.

Pixels are independent: each owns its generator state (seeded from pixel,
sample index and render seed), reads only the scene, camera and material
fields, and writes only its own entry of the render target. Results are
therefore identical for a fixed seed however the pixel loop is scheduled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raybake.core.integrator import render_image, setup_render_target
    >>> from src.raybake.scene.presets import three_spheres_scene
    >>> from src.raybake.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = three_spheres_scene()
    >>> setup_camera(camera, 16.0 / 9.0)
    >>> setup_render_target(480, 270)
    >>> render_image(num_samples=100, max_depth=50, seed=7)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.raybake.camera.thin_lens import get_ray
from src.raybake.core.color import MISS_COLOR, sky_color, with_alpha
from src.raybake.core.sampler import random_f32, seed_rng
from src.raybake.materials.registry import scatter_material
from src.raybake.scene.intersection import intersect_scene

vec3 = tm.vec3
vec4 = tm.vec4

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum number of ray bounces
MAX_DEPTH = 50

# Self-intersection guard ("shadow acne")
T_MIN = 0.001

# Largest representable f32, used as "infinity"
T_MAX = float(np.finfo(np.float32).max)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# RGBA mean per pixel, indexed [i, j] with j = 0 the bottom row
_color_buffer = ti.Vector.field(4, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Samples accumulated per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the RGBA color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """Get the per-pixel sample count field.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, rng: ti.u32):
    """Estimate the color seen along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (any length).
        max_depth: Number of scene queries allowed. 0 returns black without
            touching the scene.
        rng: Generator state.

    Returns:
        A tuple (rgb, rng).
    """
    ray_origin = origin
    ray_direction = direction
    state = rng

    color = MISS_COLOR
    throughput = vec3(1.0, 1.0, 1.0)

    # Taichi has no break in ti.func loops; active gates the remaining bounces
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(ray_direction)
                active = 0
            else:
                did_scatter, attenuation, scattered_direction, state = scatter_material(
                    rec.material_id,
                    ray_direction,
                    rec.point,
                    rec.normal,
                    rec.front_face,
                    state,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return color, state


@ti.func
def trace_camera_sample(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
    seed: ti.i32,
) -> vec3:
    """Trace one camera sample for a pixel.

    Image coordinates are u = (i + du) / (W - 1) and v = (j + dv) / (H - 1),
    with du, dv uniform in [0, 1) when jitter is on and 0 otherwise.
    """
    rng = seed_rng(pixel_i, pixel_j, sample_index, seed)

    du = 0.0
    dv = 0.0
    if jitter == 1:
        du, rng = random_f32(rng)
        dv, rng = random_f32(rng)

    u = (ti.cast(pixel_i, ti.f32) + du) / ti.cast(ti.max(width - 1, 1), ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + dv) / ti.cast(ti.max(height - 1, 1), ti.f32)

    ray, rng = get_ray(u, v, rng)
    color, rng = ray_color(ray.origin, ray.direction, max_depth, rng)

    # Guard against NaN/Inf from degenerate geometry
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            color[c] = 0.0

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
    seed: ti.i32,
):
    """Trace num_samples rays per pixel and fold them into the running mean."""
    for i, j in ti.ndrange(width, height):
        first = _sample_count[i, j]

        total = vec3(0.0, 0.0, 0.0)
        for s in range(num_samples):
            total += trace_camera_sample(i, j, width, height, first + s, max_depth, jitter, seed)

        n = first + num_samples
        old = _color_buffer[i, j]
        old_rgb = vec3(old[0], old[1], old[2])

        # Running average: avg_n = avg_m + (sum - k * avg_m) / n
        mean = old_rgb + (total - ti.cast(num_samples, ti.f32) * old_rgb) / ti.cast(n, ti.f32)

        _color_buffer[i, j] = with_alpha(mean, 1.0)
        _sample_count[i, j] = n


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
    seed: ti.i32,
) -> vec4:
    color = trace_camera_sample(pixel_i, pixel_j, width, height, sample_index, max_depth, jitter, seed)
    return with_alpha(color, 1.0)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
    sample_index: int = 0,
    jitter: bool = False,
) -> tuple[float, float, float, float]:
    """Trace a single sample for a specific pixel without touching the buffer.

    This is a Python-callable helper for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of bounces.
        seed: Render seed.
        sample_index: Sample index fed to the generator seed.
        jitter: Whether to jitter the sample inside the pixel.

    Returns:
        Tuple of (R, G, B, A) with A == 1.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(
        pixel_i, pixel_j, width, height, sample_index, max_depth, int(jitter), seed
    )
    return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))


def render_image(
    num_samples: int = 1,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
    jitter: bool | None = None,
) -> None:
    """Render one pass and accumulate it into the render target.

    Samples are folded into a running mean, and sample indices continue from
    what each pixel already holds, so several passes give the same image as
    one pass with the summed sample count.

    Args:
        num_samples: Number of samples per pixel in this pass.
        max_depth: Maximum number of bounces per path.
        seed: Render seed; the same seed reproduces the same image.
        jitter: Jitter samples inside their pixel. None jitters only when
            num_samples > 1, so a single-sample pass is unjittered.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples or max_depth is negative.
    """
    _check_render_target_initialized()
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    if num_samples == 0:
        return

    if jitter is None:
        jitter = num_samples > 1

    width, height = get_image_dimensions()
    _render_samples(width, height, num_samples, max_depth, int(jitter), seed)


def get_total_samples() -> int:
    """Get the number of samples accumulated at pixel (0, 0).

    Every pixel holds the same count after render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns:
        Array of shape (height, width, 4), RGBA in [0, 1], top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    image = _color_buffer.to_numpy()[:width, :height, :]

    # (width, height, 4) -> (height, width, 4)
    image = np.transpose(image, (1, 0, 2))

    # Buffer rows run bottom to top, images top to bottom
    image = np.flipud(image)

    image = np.clip(image, 0.0, 1.0)

    return np.ascontiguousarray(image, dtype=np.float32)
