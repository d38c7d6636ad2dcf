"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and setup
- Progressive sample accumulation
- Batch rendering
- Progress callbacks and generators
- Reset and resize
- Image output in various formats

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest
from PIL import Image as PILImage


@pytest.fixture
def sphere_scene():
    from src.raybake.camera.settings import CameraSettings
    from src.raybake.camera.thin_lens import setup_camera
    from src.raybake.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -2.0), 1.0, (0.5, 0.5, 0.5))
    setup_camera(CameraSettings(), 1.0)
    return scene


class TestProgressiveRendererInit:
    def test_init_creates_render_target(self):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(128, 96)

        assert renderer.width == 128
        assert renderer.height == 96
        assert renderer.sample_count == 0
        assert renderer.max_depth == 50
        assert renderer.seed == 0

    def test_init_rejects_oversized_dimensions(self):
        from src.raybake.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(100, 4096)

    def test_repr(self):
        from src.raybake.core.progressive import ProgressiveRenderer

        text = repr(ProgressiveRenderer(8, 4, max_depth=5, seed=3))
        assert "width=8" in text
        assert "max_depth=5" in text
        assert "seed=3" in text


class TestProgressiveRendering:
    def test_render_accumulates(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(3)
        renderer.render(2)
        assert renderer.sample_count == 5

    def test_zero_samples(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(0)
        assert renderer.sample_count == 0

    def test_callback_per_batch(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        calls = []
        renderer = ProgressiveRenderer(16, 16)
        renderer.render(10, batch_size=4, callback=lambda current, target: calls.append((current, target)))

        assert calls == [(4, 10), (8, 10), (10, 10)]

    def test_generator(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(2)
        progress = list(renderer.render_progressive(6, batch_size=3))

        assert progress == [(5, 8), (8, 8)]

    def test_batch_size_does_not_change_image(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 12, seed=9)
        renderer.render(8, batch_size=8)
        one_batch = renderer.get_image_numpy()

        renderer.reset()
        renderer.render(8, batch_size=3)
        np.testing.assert_allclose(renderer.get_image_numpy(), one_batch, atol=1e-5)

    def test_single_sample_is_unjittered(self, sphere_scene):
        from src.raybake.core.integrator import clear_render_target, get_image_numpy, render_image
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(1)
        progressive = renderer.get_image_numpy()

        clear_render_target()
        render_image(num_samples=1, jitter=False)
        np.testing.assert_array_equal(progressive, get_image_numpy())

    def test_multi_sample_matches_jittered_pass(self, sphere_scene):
        from src.raybake.core.integrator import clear_render_target, get_image_numpy, render_image
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16, seed=4)
        renderer.render(4, batch_size=1)
        progressive = renderer.get_image_numpy()

        clear_render_target()
        render_image(num_samples=4, seed=4, jitter=True)
        np.testing.assert_allclose(progressive, get_image_numpy(), atol=1e-5)

    def test_reset(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(5)
        renderer.reset()
        assert renderer.sample_count == 0
        assert renderer.width == 16

    def test_resize(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(2)
        renderer.resize(32, 8)

        assert (renderer.width, renderer.height) == (32, 8)
        assert renderer.sample_count == 0
        renderer.render(1)
        assert renderer.get_image_numpy().shape == (8, 32, 4)


class TestProgressiveOutput:
    def test_image_formats(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(20, 10)
        renderer.render(2)

        image = renderer.get_image_numpy()
        assert image.shape == (10, 20, 4)
        assert image.dtype == np.float32
        assert np.all((image >= 0.0) & (image <= 1.0))
        np.testing.assert_array_equal(image[..., 3], 1.0)

        image8 = renderer.get_image_uint8()
        assert image8.dtype == np.uint8
        assert image8.shape == (10, 20, 4)
        assert np.all(image8[..., 3] == 255)

    def test_gamma_brightens_rgb_only(self, sphere_scene):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        renderer.render(1)

        linear = renderer.get_image_numpy()
        corrected = renderer.get_image_numpy(gamma=2.2)
        assert np.all(corrected[..., :3] >= linear[..., :3] - 1e-6)
        np.testing.assert_array_equal(corrected[..., 3], linear[..., 3])

    def test_save_image(self, sphere_scene, tmp_path):
        from src.raybake.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(20, 10)
        renderer.render(1)
        path = renderer.save_image(tmp_path / "out" / "render.png")

        assert path.exists()
        with PILImage.open(path) as img:
            assert img.size == (20, 10)
            assert img.mode == "RGBA"
