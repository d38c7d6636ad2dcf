"""User-facing camera configuration.

These are plain Python dataclasses with no Taichi state, so they can be built
and serialized before Taichi is initialized (e.g. while parsing a sprite
config file). setup_camera in thin_lens.py turns them into the derived basis
used by the render kernels.

Example:
    >>> settings = CameraSettings(
    ...     eye=(3.0, 3.0, 2.0),
    ...     target=(0.0, 0.0, -1.0),
    ...     v_fov_degrees=20.0,
    ...     aperture=2.0,
    ...     focal_length=5.196,
    ... )
    >>> CameraSettings.from_dict(settings.to_dict()) == settings
    True
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Projection(Enum):
    """How primary rays leave the camera."""

    PERSPECTIVE = "perspective"
    ORTHOGRAPHIC = "orthographic"


@dataclass
class PerspectiveMode:
    """Projection kind plus the factor applied to the viewport extents.

    Attributes:
        kind: PERSPECTIVE rays converge at the eye; ORTHOGRAPHIC rays are
            parallel to the view direction.
        scale: Multiplier on the viewport width and height.
    """

    kind: Projection = Projection.PERSPECTIVE
    scale: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "scale": self.scale}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PerspectiveMode":
        """Build a mode from {"kind": ..., "scale": ...}.

        The externally tagged form {"Orthographic": {"scale": 2.0}} is
        accepted as well.

        Raises:
            ValueError: If the projection kind is unknown or scale is not
                positive.
        """
        if "kind" in data:
            kind_name = str(data["kind"])
            scale = data.get("scale", 1.0)
        elif len(data) == 1:
            kind_name, body = next(iter(data.items()))
            scale = (body or {}).get("scale", 1.0)
        else:
            raise ValueError(f"Cannot parse perspective mode from {data!r}")

        try:
            kind = Projection(kind_name.lower())
        except ValueError:
            raise ValueError(f"Unknown projection: {kind_name}") from None

        scale = float(scale)
        if scale <= 0.0:
            raise ValueError(f"Projection scale must be positive, got {scale}")
        return cls(kind=kind, scale=scale)


def _as_vec3(value: Any, name: str) -> tuple[float, float, float]:
    if isinstance(value, dict):
        value = (value.get("x", 0.0), value.get("y", 0.0), value.get("z", 0.0))
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(value)}")
    return (float(value[0]), float(value[1]), float(value[2]))


@dataclass
class CameraSettings:
    """Configuration for the camera.

    Attributes:
        eye: Camera position in world space.
        target: Point the camera looks at.
        up: Approximate up direction; must not be parallel to eye - target.
        v_fov_degrees: Vertical field of view in degrees.
        aperture: Lens diameter. 0 gives a pinhole (everything in focus).
        focal_length: Distance from the eye to the plane of perfect focus.
            For orthographic cameras, the distance the ray origin plane is
            pulled back behind the eye.
        perspective_mode: Projection kind and viewport scale.
    """

    eye: tuple[float, float, float] = (0.0, 0.0, 0.0)
    target: tuple[float, float, float] = (0.0, 0.0, -1.0)
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    v_fov_degrees: float = 90.0
    aperture: float = 0.0
    focal_length: float = 1.0
    perspective_mode: PerspectiveMode = field(default_factory=PerspectiveMode)

    def to_dict(self) -> dict[str, Any]:
        return {
            "eye": list(self.eye),
            "target": list(self.target),
            "up": list(self.up),
            "v_fov_degrees": self.v_fov_degrees,
            "aperture": self.aperture,
            "focal_length": self.focal_length,
            "perspective_mode": self.perspective_mode.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CameraSettings":
        """Build settings from a JSON-compatible dictionary.

        Missing keys take the dataclass defaults.

        Raises:
            ValueError: If a vector field does not have three components or
                the perspective mode is malformed.
        """
        defaults = cls()
        mode_data = data.get("perspective_mode")
        return cls(
            eye=_as_vec3(data.get("eye", defaults.eye), "eye"),
            target=_as_vec3(data.get("target", defaults.target), "target"),
            up=_as_vec3(data.get("up", defaults.up), "up"),
            v_fov_degrees=float(data.get("v_fov_degrees", defaults.v_fov_degrees)),
            aperture=float(data.get("aperture", defaults.aperture)),
            focal_length=float(data.get("focal_length", defaults.focal_length)),
            perspective_mode=(
                PerspectiveMode.from_dict(mode_data) if mode_data else PerspectiveMode()
            ),
        )

    @property
    def is_orthographic(self) -> bool:
        return self.perspective_mode.kind == Projection.ORTHOGRAPHIC
