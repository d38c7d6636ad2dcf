"""Tests for the material table and scatter dispatch."""

import pytest
import taichi as ti


def _scatter(material_id, direction=(0.0, -1.0, 0.0), normal=(0.0, 1.0, 0.0), front_face=1):
    from src.raybake.materials.registry import scatter_material, vec3

    scattered = ti.field(dtype=ti.i32, shape=())
    attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
    out_direction = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(mid: ti.i32, ff: ti.i32):
        ok, att, d, _ = scatter_material(
            mid,
            vec3(direction[0], direction[1], direction[2]),
            vec3(0.0, 0.0, 0.0),
            vec3(normal[0], normal[1], normal[2]),
            ff,
            ti.u32(1234),
        )
        scattered[None] = ok
        attenuation[None] = att
        out_direction[None] = d

    test_kernel(material_id, front_face)
    return scattered[None], tuple(attenuation[None]), tuple(out_direction[None])


class TestMaterialTable:
    def test_ids_are_sequential(self):
        from src.raybake.materials.registry import MaterialType, add_material, get_material_count

        assert add_material(MaterialType.LAMBERTIAN, albedo=(0.5, 0.5, 0.5)) == 0
        assert add_material(MaterialType.METAL, albedo=(0.5, 0.5, 0.5), fuzz=0.1) == 1
        assert add_material(MaterialType.DIELECTRIC, ior=1.5) == 2
        assert get_material_count() == 3

    def test_clear_materials(self):
        from src.raybake.materials.registry import (
            MaterialType,
            add_material,
            clear_materials,
            get_material_count,
        )

        add_material(MaterialType.LAMBERTIAN)
        clear_materials()
        assert get_material_count() == 0

    def test_metal_fuzz_is_clamped(self):
        from src.raybake.materials.registry import MaterialType, add_material, material_fuzz

        mid = add_material(MaterialType.METAL, albedo=(0.5, 0.5, 0.5), fuzz=3.0)
        assert material_fuzz[mid] == pytest.approx(1.0)

    def test_invalid_parameters_raise(self):
        from src.raybake.materials.registry import MaterialType, add_material, get_material_count

        with pytest.raises(ValueError):
            add_material(MaterialType.LAMBERTIAN, albedo=(1.5, 0.0, 0.0))
        with pytest.raises(ValueError):
            add_material(MaterialType.DIELECTRIC, ior=0.0)
        with pytest.raises(ValueError):
            add_material(7)
        assert get_material_count() == 0

    def test_dielectric_ignores_albedo(self):
        """Out-of-range albedo is irrelevant for glass and not validated."""
        from src.raybake.materials.registry import MaterialType, add_material

        assert add_material(MaterialType.DIELECTRIC, albedo=(2.0, 2.0, 2.0), ior=1.3) == 0

    def test_overflow_raises(self):
        from src.raybake.materials.registry import (
            MAX_MATERIALS,
            MaterialType,
            add_material,
            num_materials,
        )

        num_materials[None] = MAX_MATERIALS
        with pytest.raises(RuntimeError, match="Maximum number of materials"):
            add_material(MaterialType.LAMBERTIAN)


class TestScatterDispatch:
    def test_lambertian(self):
        from src.raybake.materials.registry import MaterialType, add_material

        mid = add_material(MaterialType.LAMBERTIAN, albedo=(0.2, 0.4, 0.6))
        ok, att, d = _scatter(mid)
        assert ok == 1
        assert att == pytest.approx((0.2, 0.4, 0.6))
        assert d[1] >= 0.0

    def test_metal(self):
        from src.raybake.materials.registry import MaterialType, add_material

        mid = add_material(MaterialType.METAL, albedo=(0.9, 0.9, 0.9), fuzz=0.0)
        ok, att, d = _scatter(mid, direction=(1.0, -1.0, 0.0))
        assert ok == 1
        assert att == pytest.approx((0.9, 0.9, 0.9))
        assert d[0] == pytest.approx(d[1], abs=1e-5)

    def test_dielectric_attenuation_is_white(self):
        from src.raybake.materials.registry import MaterialType, add_material

        mid = add_material(MaterialType.DIELECTRIC, ior=1.5)
        ok, att, _ = _scatter(mid)
        assert ok == 1
        assert att == pytest.approx((1.0, 1.0, 1.0))

    def test_invalid_id_does_not_scatter(self):
        ok, _, _ = _scatter(5)
        assert ok == 0

    def test_material_type_lookup(self):
        from src.raybake.materials.registry import MaterialType, add_material, get_material_type

        add_material(MaterialType.METAL, albedo=(0.5, 0.5, 0.5))
        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = get_material_type(0)
            result[1] = get_material_type(1)

        test_kernel()
        assert result[0] == int(MaterialType.METAL)
        assert result[1] == -1


class TestMaterialColor:
    def test_flat_colors(self):
        from src.raybake.materials.registry import MaterialType, add_material, material_color

        add_material(MaterialType.LAMBERTIAN, albedo=(0.0, 1.0, 1.0))
        add_material(MaterialType.METAL, albedo=(0.8, 0.6, 0.2))
        add_material(MaterialType.DIELECTRIC, ior=1.5)
        colors = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            for k in range(3):
                colors[k] = material_color(k)

        test_kernel()
        assert tuple(colors[0]) == pytest.approx((0.0, 1.0, 1.0))
        assert tuple(colors[1]) == pytest.approx((0.8, 0.6, 0.2))
        assert tuple(colors[2]) == pytest.approx((1.0, 1.0, 1.0))
