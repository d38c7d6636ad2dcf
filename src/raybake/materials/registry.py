"""Material table and scatter dispatch.

All materials live in a single Structure-of-Arrays table indexed by material
id. Each row carries a MaterialType tag plus the union of the parameters the
three models need (albedo, fuzz, ior); unused columns are left at neutral
values. scatter_material resolves the tag and forwards to the matching
scatter function, which is the only place the integrator branches on the
material kind.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raybake.materials.registry import add_material, MaterialType
    >>> red = add_material(MaterialType.LAMBERTIAN, albedo=(0.8, 0.1, 0.1))
    >>> glass = add_material(MaterialType.DIELECTRIC, ior=1.5)
"""

from collections.abc import Sequence
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from .dielectric import scatter_dielectric, validate_ior
from .lambertian import scatter_lambertian, validate_albedo
from .metal import clamp_fuzz, scatter_metal

vec3 = tm.vec3


class MaterialType(IntEnum):
    """The closed set of surface models."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials in the table
MAX_MATERIALS = 1024

material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_fuzz = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_iors = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials from the table.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(
    material_type: MaterialType,
    albedo: Sequence[float] = (1.0, 1.0, 1.0),
    fuzz: float = 0.0,
    ior: float = 1.5,
) -> int:
    """Append a material to the table.

    Args:
        material_type: Which surface model to use.
        albedo: Attenuation color for LAMBERTIAN and METAL, each component
            in [0, 1]. Ignored for DIELECTRIC.
        fuzz: METAL perturbation radius, clamped into [0, 1].
        ior: DIELECTRIC index of refraction.

    Returns:
        The material id (index into the table).

    Raises:
        ValueError: If the parameters of the chosen model are invalid.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_type = MaterialType(material_type)

    rgb = (1.0, 1.0, 1.0)
    fuzz_value = 0.0
    ior_value = 1.0
    if material_type == MaterialType.LAMBERTIAN:
        rgb = validate_albedo(albedo)
    elif material_type == MaterialType.METAL:
        rgb = validate_albedo(albedo)
        fuzz_value = clamp_fuzz(fuzz)
    else:
        ior_value = validate_ior(ior)

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[idx] = int(material_type)
    material_albedos[idx] = vec3(rgb[0], rgb[1], rgb[2])
    material_fuzz[idx] = fuzz_value
    material_iors[idx] = ior_value
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the table."""
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the MaterialType tag for a material id, or -1 for an invalid id."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    point: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Scatter an incoming ray off the material with the given id.

    The scattered ray starts at the hit point; only its direction is
    returned.

    Args:
        material_id: Index into the material table.
        incident_direction: Direction of the incoming ray.
        point: The hit point (origin of the scattered ray).
        normal: Unit surface normal, facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.
        rng: Generator state.

    Returns:
        A tuple (did_scatter, attenuation, scattered_direction, rng).
        did_scatter is 0 when the path is absorbed (or the id is invalid);
        attenuation and direction are then meaningless.
    """
    did_scatter = 0
    attenuation = vec3(0.0, 0.0, 0.0)
    scattered_direction = normal

    mat_type = get_material_type(material_id)

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, rng = scatter_lambertian(
            material_albedos[material_id], normal, rng
        )
        did_scatter = 1
    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter, rng = scatter_metal(
            material_albedos[material_id],
            material_fuzz[material_id],
            incident_direction,
            normal,
            rng,
        )
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, rng = scatter_dielectric(
            material_iors[material_id], incident_direction, normal, front_face, rng
        )
        did_scatter = 1

    return did_scatter, attenuation, scattered_direction, rng


@ti.func
def material_color(material_id: ti.i32) -> vec3:
    """Flat color of a material: its albedo, or white for dielectrics."""
    color = vec3(1.0, 1.0, 1.0)
    mat_type = get_material_type(material_id)
    if mat_type == int(MaterialType.LAMBERTIAN) or mat_type == int(MaterialType.METAL):
        color = material_albedos[material_id]
    return color
