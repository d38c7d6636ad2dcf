"""Explicit per-sample random number generation.

Every random draw in the engine goes through a generator *state* that is
threaded through the Taichi functions by value: each function that consumes
randomness takes the current state and returns ``(value, new_state)``.

States are seeded per (pixel, sample index, seed) triple with a Wang hash and
advanced with xorshift32. Two pixels never share a stream and nothing global is
mutated during a render pass, so a fixed seed gives bit-identical images no
matter how Taichi schedules the pixel loop.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     rng = seed_rng(3, 4, 0, 42)
    ...     x, rng = random_f32(rng)
    ...     return x
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Upper bound on rejection-sampling attempts; the acceptance rate is above
# 50% for the sphere and 78% for the disk, so this is never reached in practice.
MAX_REJECTION_ATTEMPTS = 64

# 1 / 2^24: maps the top 24 bits of a u32 onto [0, 1) exactly in f32
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(seed: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Thomas Wang's integer hash)."""
    s = (seed ^ ti.u32(61)) ^ (seed >> ti.u32(16))
    s *= ti.u32(9)
    s = s ^ (s >> ti.u32(4))
    s *= ti.u32(0x27D4EB2D)
    s = s ^ (s >> ti.u32(15))
    return s


@ti.func
def seed_rng(pixel_i: ti.i32, pixel_j: ti.i32, sample_index: ti.i32, seed: ti.i32) -> ti.u32:
    """Derive the generator state for one camera sample of one pixel.

    Args:
        pixel_i: Pixel x-coordinate.
        pixel_j: Pixel y-coordinate.
        sample_index: Index of the sample within the pixel (continues across
            progressive passes).
        seed: Render-wide seed.

    Returns:
        A non-zero generator state.
    """
    h = wang_hash(ti.cast(seed, ti.u32) * ti.u32(0x9E3779B) + ti.cast(sample_index, ti.u32))
    h = wang_hash(h ^ (ti.cast(pixel_i, ti.u32) * ti.u32(73856093)))
    h = wang_hash(h ^ (ti.cast(pixel_j, ti.u32) * ti.u32(19349663)))
    # xorshift has a fixed point at zero
    if h == ti.u32(0):
        h = ti.u32(1)
    return h


@ti.func
def next_u32(state: ti.u32) -> ti.u32:
    """Advance the generator one step (Marsaglia xorshift32)."""
    x = state
    x = x ^ (x << ti.u32(13))
    x = x ^ (x >> ti.u32(17))
    x = x ^ (x << ti.u32(5))
    return x


@ti.func
def random_f32(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple (value, new_state).
    """
    new_state = next_u32(state)
    value = ti.cast(new_state >> ti.u32(8), ti.f32) * _INV_2_POW_24
    return value, new_state


@ti.func
def random_range(state: ti.u32, lo: ti.f32, hi: ti.f32):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple (value, new_state).
    """
    x, new_state = random_f32(state)
    return lo + (hi - lo) * x, new_state


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a point uniformly inside the unit ball by rejection sampling.

    Returns:
        A tuple (point, new_state) with |point| < 1.
    """
    rng = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, rng = random_range(rng, -1.0, 1.0)
            y, rng = random_range(rng, -1.0, 1.0)
            z, rng = random_range(rng, -1.0, 1.0)
            candidate = vec3(x, y, z)
            if tm.dot(candidate, candidate) < 1.0:
                p = candidate
                found = True
    return p, rng


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a direction uniformly distributed on the unit sphere.

    Returns:
        A tuple (direction, new_state).
    """
    p, rng = random_in_unit_sphere(state)
    result = vec3(0.0, 0.0, 1.0)
    if tm.dot(p, p) > 1e-12:
        result = tm.normalize(p)
    return result, rng


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly inside the unit disk in the xy-plane.

    Returns:
        A tuple (point, new_state) with point.z == 0.
    """
    rng = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            x, rng = random_range(rng, -1.0, 1.0)
            y, rng = random_range(rng, -1.0, 1.0)
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = True
    return p, rng
