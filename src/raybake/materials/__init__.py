"""Materials module: the surface scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection perturbed by a fuzz radius
    dielectric: Glass-like refraction with Schlick reflectance
    registry: The material table and the scatter dispatch over it

Every scatter function takes the generator state and returns it advanced,
so materials never touch global random state.
"""

from .dielectric import (
    fresnel_reflectance,
    refraction_ratio,
    scatter_dielectric,
    validate_ior,
    will_reflect,
)
from .lambertian import scatter_lambertian, validate_albedo
from .metal import clamp_fuzz, scatter_metal
from .registry import (
    MAX_MATERIALS,
    MaterialType,
    add_material,
    clear_materials,
    get_material_count,
    get_material_type,
    material_color,
    scatter_material,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "validate_albedo",
    # Metal
    "scatter_metal",
    "clamp_fuzz",
    # Dielectric
    "scatter_dielectric",
    "fresnel_reflectance",
    "refraction_ratio",
    "will_reflect",
    "validate_ior",
    # Registry
    "MAX_MATERIALS",
    "MaterialType",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material_type",
    "material_color",
    "scatter_material",
]
