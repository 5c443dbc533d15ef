"""Render configuration values passed into the pipeline."""

from dataclasses import dataclass, field
from typing import Tuple

from .geometry import Vec3
from .transforms import lookat


@dataclass(frozen=True)
class RenderConfig:
    """
    Canvas, depth range and shading constants of one render.

    Depth convention:
      - viewport maps NDC z to [0, depth]; larger is nearer the viewer
      - shadow_bias is in the same units and suppresses self-shadowing

    Shadow attenuation:
      ambient_floor + (1 - ambient_floor) * lit
    so a fully shadowed fragment keeps `ambient_floor` of its light.
    """
    width: int = 800
    height: int = 800
    depth: float = 2000.0
    background: Tuple[int, int, int] = (0, 0, 0)
    barycentric_epsilon: float = 1e-2
    ambient_floor: float = 0.3
    shadow_bias: float = 43.34
    ambient_light: float = 20.0
    diffuse_weight: float = 1.2
    specular_weight: float = 0.6

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"canvas must be non-empty, got {self.width}x{self.height}")
        if self.depth <= 0:
            raise ValueError(f"depth range must be positive, got {self.depth}")
        if not 0.0 <= self.ambient_floor <= 1.0:
            raise ValueError(f"ambient_floor must lie in [0, 1], got {self.ambient_floor}")

    def viewport_box(self) -> Tuple[int, int, int, int]:
        """(x, y, w, h): the model occupies the central 3/4 of the canvas."""
        return (self.width // 8, self.height // 8,
                self.width * 3 // 4, self.height * 3 // 4)


@dataclass(frozen=True)
class Scene:
    """Camera placement and light direction (world space)."""
    eye: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 4.0))
    center: Vec3 = field(default_factory=lambda: Vec3(0.0, 0.0, 0.0))
    up: Vec3 = field(default_factory=lambda: Vec3(0.0, 1.0, 0.0))
    light_dir: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 0.0))

    def __post_init__(self):
        light = self.light_dir.normalize()
        if light.norm() == 0.0:
            raise ValueError("light direction must be non-zero")
        object.__setattr__(self, "light_dir", light)
        # eye == center or up along the view axis
        lookat(self.eye, self.center, self.up)
