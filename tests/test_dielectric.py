"""Tests for the dielectric (glass) material."""

import math

import numpy as np
import pytest
import taichi as ti

N = 4096


class TestRefractionHelpers:
    def test_refraction_ratio(self):
        from src.raybake.materials.dielectric import refraction_ratio

        entering = ti.field(dtype=ti.f32, shape=())
        leaving = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            entering[None] = refraction_ratio(1.5, 1)
            leaving[None] = refraction_ratio(1.5, 0)

        test_kernel()
        assert entering[None] == pytest.approx(1.0 / 1.5)
        assert leaving[None] == pytest.approx(1.5)

    def test_total_internal_reflection(self):
        """Leaving glass at 60 degrees: 1.5 * sin(60) > 1."""
        from src.raybake.materials.dielectric import will_reflect, vec3

        steep = ti.field(dtype=ti.i32, shape=())
        shallow = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            steep[None] = will_reflect(1.5, vec3(ti.sqrt(3.0), -1.0, 0.0), normal, 0)
            shallow[None] = will_reflect(1.5, vec3(0.0, -1.0, 0.0), normal, 0)

        test_kernel()
        assert steep[None] == 1
        assert shallow[None] == 0

    def test_fresnel_at_normal_incidence(self):
        from src.raybake.materials.dielectric import fresnel_reflectance, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = fresnel_reflectance(1.5, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1)

        test_kernel()
        assert result[None] == pytest.approx(0.04, abs=1e-5)


class TestScatterDielectric:
    def test_ior_one_passes_straight_through(self):
        """With matched indices there is no reflection and no bending."""
        from src.raybake.core.sampler import seed_rng
        from src.raybake.materials.dielectric import scatter_dielectric, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=64)
        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for k in range(64):
                rng = seed_rng(k, 0, 0, 9)
                d, att, rng = scatter_dielectric(
                    1.0, vec3(0.0, -2.0, 0.0), vec3(0.0, 1.0, 0.0), 1, rng
                )
                directions[k] = d
                if k == 0:
                    attenuation[None] = att

        test_kernel()
        np.testing.assert_allclose(directions.to_numpy(), np.tile([0.0, -1.0, 0.0], (64, 1)), atol=1e-5)
        assert tuple(attenuation[None]) == pytest.approx((1.0, 1.0, 1.0))

    def test_total_internal_reflection_always_reflects(self):
        from src.raybake.core.sampler import seed_rng
        from src.raybake.materials.dielectric import scatter_dielectric, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=64)

        @ti.kernel
        def test_kernel():
            for k in range(64):
                rng = seed_rng(k, 1, 0, 9)
                d, _, rng = scatter_dielectric(
                    1.5, vec3(ti.sqrt(3.0), -1.0, 0.0), vec3(0.0, 1.0, 0.0), 0, rng
                )
                directions[k] = d

        test_kernel()
        d = directions.to_numpy()
        np.testing.assert_allclose(d, np.tile([math.sqrt(3.0) / 2.0, 0.5, 0.0], (64, 1)), atol=1e-5)

    def test_reflection_fraction_matches_schlick(self):
        """At normal incidence about 4% of the rays reflect."""
        from src.raybake.core.sampler import seed_rng
        from src.raybake.materials.dielectric import scatter_dielectric, vec3

        directions = ti.Vector.field(3, dtype=ti.f32, shape=N)

        @ti.kernel
        def test_kernel():
            for k in range(N):
                rng = seed_rng(k, 2, 0, 9)
                d, _, rng = scatter_dielectric(
                    1.5, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1, rng
                )
                directions[k] = d

        test_kernel()
        reflected = (directions.to_numpy()[:, 1] > 0.0).mean()
        assert reflected == pytest.approx(0.04, abs=0.015)


class TestValidateIor:
    def test_accepts_positive(self):
        from src.raybake.materials.dielectric import validate_ior

        assert validate_ior(1.5) == 1.5
        assert validate_ior(0.75) == 0.75

    @pytest.mark.parametrize("ior", [0.0, -1.5, float("inf"), float("nan")])
    def test_rejects_invalid(self, ior):
        from src.raybake.materials.dielectric import validate_ior

        with pytest.raises(ValueError, match="Index of refraction"):
            validate_ior(ior)
