"""Tests for the sprite settings, renderer and config watcher."""

import json
import logging
import os

import numpy as np
import pytest

CAMERA = {
    "eye": [0.0, 0.0, 5.0],
    "target": [0.0, 0.0, 0.0],
    "up": [0.0, 1.0, 0.0],
    "v_fov_degrees": 90.0,
    "aperture": 0.0,
    "focal_length": 1.0,
    "perspective_mode": {"Orthographic": {"scale": 1.0}},
}


def _config(**overrides):
    data = {
        "just_updated": True,
        "camera_settings": CAMERA,
        "image_width": 10,
        "image_height": 10,
        "mesh_file": "cube.obj",
        "blacken_normal_map": False,
    }
    data.update(overrides)
    return data


@pytest.fixture
def cube_config(tmp_path):
    """A config file next to a unit cube OBJ."""
    import trimesh

    trimesh.creation.box(extents=(1.0, 1.0, 1.0)).export(tmp_path / "cube.obj")
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(_config()))
    return path


def _bump_mtime(path, seconds=5):
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


class TestRenderSettings:
    def test_from_dict(self):
        from src.raybake.camera.settings import Projection
        from src.raybake.sprite.settings import RenderSettings

        settings = RenderSettings.from_dict(_config())

        assert settings.image_width == 10
        assert settings.camera_settings.perspective_mode.kind == Projection.ORTHOGRAPHIC
        assert settings.blacken_normal_map is False
        assert settings.diffuse_brightness == 0.5
        assert settings.aspect_ratio == 1.0

    def test_round_trip(self):
        from src.raybake.sprite.settings import RenderSettings

        settings = RenderSettings.from_dict(_config(diffuse_brightness=0.8))
        assert RenderSettings.from_dict(settings.to_dict()) == settings

    def test_missing_keys(self):
        from src.raybake.sprite.settings import RenderSettings

        data = _config()
        del data["mesh_file"]
        del data["image_height"]
        with pytest.raises(ValueError, match="image_height, mesh_file"):
            RenderSettings.from_dict(data)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"image_width": 0},
            {"image_height": "tall"},
            {"camera_settings": [1, 2, 3]},
            {"diffuse_brightness": -1.0},
        ],
    )
    def test_malformed_values(self, overrides):
        from src.raybake.sprite.settings import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings.from_dict(_config(**overrides))

    def test_from_json_file_resolves_mesh_path(self, cube_config):
        from src.raybake.sprite.settings import RenderSettings

        settings = RenderSettings.from_json_file(cube_config)
        assert settings.mesh_file == str(cube_config.parent / "cube.obj")

    def test_invalid_json(self, tmp_path):
        from src.raybake.sprite.settings import RenderSettings

        path = tmp_path / "cfg.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            RenderSettings.from_json_file(path)


class TestSpriteRenderer:
    # 10 x 10 pixels over a 2 x 2 viewport: column 5, row 3 sits at (0.11, 0.33),
    # on the cube's front face and off both face diagonals
    ON_CUBE = (3, 5)

    def _renderer(self, unit_cube_triangles, **overrides):
        from src.raybake.sprite.renderer import SpriteRenderer
        from src.raybake.sprite.settings import RenderSettings

        settings = RenderSettings.from_dict(_config(**overrides))
        return SpriteRenderer(settings, triangles=unit_cube_triangles)

    def test_scene_setup(self, unit_cube_triangles):
        renderer = self._renderer(unit_cube_triangles)
        assert renderer.mesh.triangle_count == 12
        assert renderer.scene.get_material_count() == 1
        assert renderer.scene.materials[0].params["albedo"] == (0.0, 1.0, 1.0)

    def test_normal_map(self, unit_cube_triangles):
        from src.raybake.core.shading import ShadingMode

        image = self._renderer(unit_cube_triangles).render(ShadingMode.NORMAL)

        assert image.shape == (10, 10, 4)
        np.testing.assert_allclose(image[self.ON_CUBE], (0.5, 0.5, 1.0, 1.0), atol=1e-5)
        np.testing.assert_array_equal(image[0, 0], (0.0, 0.0, 0.0, 0.0))

    def test_blackened_normal_map(self, unit_cube_triangles):
        from src.raybake.core.shading import ShadingMode

        renderer = self._renderer(unit_cube_triangles, blacken_normal_map=True)
        image = renderer.render(ShadingMode.NORMAL)

        np.testing.assert_array_equal(image[0, 0], (0.0, 0.0, 0.0, 1.0))
        np.testing.assert_array_equal(image[..., 3], 1.0)
        np.testing.assert_allclose(image[self.ON_CUBE], (0.5, 0.5, 1.0, 1.0), atol=1e-5)

    def test_diffuse_map_is_scaled(self, unit_cube_triangles):
        from src.raybake.core.shading import ShadingMode

        image = self._renderer(unit_cube_triangles).render(ShadingMode.DIFFUSE)

        np.testing.assert_allclose(image[self.ON_CUBE], (0.0, 0.5, 0.5, 1.0), atol=1e-6)
        # Background stays transparent even with blacken_normal_map unset
        np.testing.assert_array_equal(image[0, 0], (0.0, 0.0, 0.0, 0.0))

    def test_diffuse_brightness(self, unit_cube_triangles):
        from src.raybake.core.shading import ShadingMode

        image = self._renderer(unit_cube_triangles, diffuse_brightness=1.0).render(
            ShadingMode.DIFFUSE
        )
        np.testing.assert_allclose(image[self.ON_CUBE], (0.0, 1.0, 1.0, 1.0), atol=1e-6)

    def test_render_pair(self, unit_cube_triangles):
        normal, diffuse = self._renderer(unit_cube_triangles).render_pair()
        assert normal[self.ON_CUBE][2] == pytest.approx(1.0)
        assert diffuse[self.ON_CUBE][1] == pytest.approx(0.5)

    def test_aperture_is_ignored(self, unit_cube_triangles):
        from src.raybake.camera.thin_lens import get_camera_info
        from src.raybake.core.shading import ShadingMode

        camera = dict(CAMERA, v_fov_degrees=30.0, perspective_mode={"Perspective": {"scale": 1.0}})
        pinhole = self._renderer(unit_cube_triangles, camera_settings=camera).render(ShadingMode.NORMAL)

        lens = self._renderer(unit_cube_triangles, camera_settings=dict(camera, aperture=1.0))
        assert get_camera_info()["lens_radius"] == 0.0
        assert lens.settings.camera_settings.aperture == 1.0

        image = lens.render(ShadingMode.NORMAL)
        np.testing.assert_array_equal(image, pinhole)
        assert image[5, 5, 3] == 1.0
        assert image[0, 0, 3] == 0.0

    def test_loads_mesh_file(self, cube_config):
        from src.raybake.sprite.renderer import SpriteRenderer
        from src.raybake.sprite.settings import RenderSettings

        renderer = SpriteRenderer(RenderSettings.from_json_file(cube_config))
        assert renderer.mesh.triangle_count == 12
        assert renderer.mesh.source == str(cube_config.parent / "cube.obj")

    def test_logs_pass_timing(self, unit_cube_triangles, caplog):
        from src.raybake.core.shading import ShadingMode

        renderer = self._renderer(unit_cube_triangles)
        with caplog.at_level(logging.INFO, logger="src.raybake.sprite.renderer"):
            renderer.render(ShadingMode.NORMAL)
        assert "normal pass" in caplog.text


class TestConfigWatcher:
    def test_first_poll_fires_then_waits_for_change(self, cube_config):
        from src.raybake.sprite.watcher import ConfigWatcher

        watcher = ConfigWatcher(cube_config)
        assert watcher.poll() is not None
        assert watcher.poll() is None

        _bump_mtime(cube_config)
        settings = watcher.poll()
        assert settings is not None
        assert settings.image_width == 10
        assert watcher.poll() is None

    def test_missing_file(self, tmp_path, caplog):
        from src.raybake.sprite.watcher import ConfigWatcher

        with caplog.at_level(logging.WARNING):
            assert ConfigWatcher(tmp_path / "absent.json").poll() is None
        assert "Cannot stat" in caplog.text

    def test_malformed_file_is_logged_and_retried(self, cube_config, caplog):
        from src.raybake.sprite.watcher import ConfigWatcher

        good = cube_config.read_text()
        cube_config.write_text("{broken")

        watcher = ConfigWatcher(cube_config)
        with caplog.at_level(logging.ERROR):
            assert watcher.poll() is None
        assert "Ignoring" in caplog.text

        # Fixing the file fires even though its mtime may not have advanced
        cube_config.write_text(good)
        assert watcher.poll() is not None


class TestBake:
    def test_bake_writes_both_maps(self, cube_config, tmp_path):
        from PIL import Image as PILImage

        from src.raybake.sprite.settings import RenderSettings
        from src.raybake.sprite.watcher import bake

        out_dir = tmp_path / "out"
        normal_path, diffuse_path = bake(RenderSettings.from_json_file(cube_config), out_dir)

        assert normal_path == out_dir / "normal.png"
        assert diffuse_path == out_dir / "diffuse.png"
        with PILImage.open(normal_path) as img:
            assert img.mode == "RGBA"
            assert img.size == (10, 10)
            assert img.getpixel((5, 3)) == (128, 128, 255, 255)
        with PILImage.open(diffuse_path) as img:
            assert img.getpixel((5, 3)) == (0, 128, 128, 255)
            assert img.getpixel((0, 0))[3] == 0

    def test_watch_runs_requested_passes(self, cube_config, tmp_path):
        from src.raybake.sprite.watcher import watch

        out_dir = tmp_path / "out"
        assert watch(cube_config, out_dir, interval=0.0, max_passes=1) == 1
        assert (out_dir / "normal.png").exists()
        assert (out_dir / "diffuse.png").exists()

    def test_failed_bake_is_logged(self, tmp_path, caplog):
        from src.raybake.sprite.watcher import watch

        path = tmp_path / "cfg.json"
        path.write_text(json.dumps(_config(mesh_file="missing.obj")))

        with caplog.at_level(logging.ERROR):
            assert watch(path, tmp_path, interval=0.0, max_passes=1) == 1
        assert "Bake failed" in caplog.text
        assert not (tmp_path / "normal.png").exists()
