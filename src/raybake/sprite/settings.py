"""Sprite bake configuration.

A sprite bake is described by a small JSON document:

    {
        "camera_settings": {
            "eye": [0.0, 0.0, 5.0],
            "target": [0.0, 0.0, 0.0],
            "up": [0.0, 1.0, 0.0],
            "v_fov_degrees": 30.0,
            "aperture": 0.0,
            "focal_length": 1.0,
            "perspective_mode": {"kind": "orthographic", "scale": 2.0}
        },
        "image_width": 128,
        "image_height": 128,
        "mesh_file": "ship.obj",
        "blacken_normal_map": true
    }

Unknown keys (e.g. "just_updated") are ignored. No Taichi state lives here,
so settings can be parsed before ti.init().
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.raybake.camera.settings import CameraSettings

# The diffuse pass halves the flat material color
DEFAULT_DIFFUSE_BRIGHTNESS = 0.5

_REQUIRED_KEYS = ("camera_settings", "image_width", "image_height", "mesh_file")


@dataclass
class RenderSettings:
    """Everything one sprite bake needs.

    Attributes:
        camera_settings: Camera used for both passes.
        image_width: Output width in pixels.
        image_height: Output height in pixels.
        mesh_file: Mesh to bake.
        blacken_normal_map: Replace transparent normal-map pixels with
            opaque black.
        diffuse_brightness: Factor applied to the diffuse pass RGB.
    """

    camera_settings: CameraSettings = field(default_factory=CameraSettings)
    image_width: int = 64
    image_height: int = 64
    mesh_file: str = ""
    blacken_normal_map: bool = False
    diffuse_brightness: float = DEFAULT_DIFFUSE_BRIGHTNESS

    @property
    def aspect_ratio(self) -> float:
        return self.image_width / self.image_height

    def to_dict(self) -> dict[str, Any]:
        return {
            "camera_settings": self.camera_settings.to_dict(),
            "image_width": self.image_width,
            "image_height": self.image_height,
            "mesh_file": self.mesh_file,
            "blacken_normal_map": self.blacken_normal_map,
            "diffuse_brightness": self.diffuse_brightness,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Build settings from a parsed JSON document.

        Raises:
            ValueError: If a required key is missing or a value is invalid.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Render settings must be a JSON object, got {type(data).__name__}")

        missing = [key for key in _REQUIRED_KEYS if key not in data]
        if missing:
            raise ValueError(f"Render settings missing keys: {', '.join(missing)}")

        try:
            width = int(data["image_width"])
            height = int(data["image_height"])
            brightness = float(data.get("diffuse_brightness", DEFAULT_DIFFUSE_BRIGHTNESS))
            camera_settings = CameraSettings.from_dict(data["camera_settings"])
        except (TypeError, AttributeError) as exc:
            raise ValueError(f"Malformed render settings: {exc}") from exc

        if width < 1 or height < 1:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        if brightness < 0.0:
            raise ValueError(f"diffuse_brightness must be non-negative, got {brightness}")

        return cls(
            camera_settings=camera_settings,
            image_width=width,
            image_height=height,
            mesh_file=str(data["mesh_file"]),
            blacken_normal_map=bool(data.get("blacken_normal_map", False)),
            diffuse_brightness=brightness,
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "RenderSettings":
        """Read settings from a JSON file.

        A relative mesh_file is resolved against the directory holding the
        config file.

        Raises:
            ValueError: If the file cannot be read or parsed.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except OSError as exc:
            raise ValueError(f"Cannot read render settings {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

        settings = cls.from_dict(data)
        mesh_path = Path(settings.mesh_file)
        if not mesh_path.is_absolute():
            settings.mesh_file = str(path.parent / mesh_path)
        return settings
