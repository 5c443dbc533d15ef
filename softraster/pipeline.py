"""
Render passes.

A pass runs the vertex stage three times per face and rasterizes the face.
The shadowed render runs two passes in strict sequence: a depth pass from the
light, whose complete depth buffer then feeds the color pass from the eye.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .config import RenderConfig, Scene
from .framebuffer import FrameBuffer, new_depth_buffer
from .geometry import Vec3
from .model import Model
from .rasterizer import draw_triangle
from .shaders import (
    DepthShader,
    FlatShader,
    GouraudShader,
    PhongShader,
    Shader,
    ShadowShader,
)
from .transforms import Transforms, lookat, perspective_coeff, projection, viewport

_LOG = logging.getLogger("softraster.pipeline")

SHADERS = ("flat", "gouraud", "phong", "depth", "shadow")


# ============================================================
#  Transforms per pass
# ============================================================

def _viewport(config: RenderConfig):
    x, y, w, h = config.viewport_box()
    return viewport(x, y, w, h, config.depth)


def camera_transforms(config: RenderConfig, scene: Scene) -> Transforms:
    """Perspective view from scene.eye towards scene.center."""
    return Transforms(
        model_view=lookat(scene.eye, scene.center, scene.up),
        projection=projection(perspective_coeff(scene.eye, scene.center)),
        viewport=_viewport(config),
    )


def _light_up(scene: Scene) -> Vec3:
    """scene.up, or the world axis least aligned with the light when they are parallel."""
    if scene.up.cross(scene.light_dir).norm() > 1e-6:
        return scene.up
    axes = (Vec3(1.0, 0.0, 0.0), Vec3(0.0, 1.0, 0.0), Vec3(0.0, 0.0, 1.0))
    return min(axes, key=lambda a: abs(a.dot(scene.light_dir)))


def light_transforms(config: RenderConfig, scene: Scene) -> Transforms:
    """Orthographic view along the light direction, used for the shadow map."""
    return Transforms(
        model_view=lookat(scene.center + scene.light_dir, scene.center, _light_up(scene)),
        projection=projection(0.0),
        viewport=_viewport(config),
    )


# ============================================================
#  Passes
# ============================================================

def render_pass(model: Model, shader: Shader, transforms: Transforms, config: RenderConfig,
                image: Optional[FrameBuffer] = None,
                zbuffer: Optional[np.ndarray] = None,
                label: str = "pass") -> Tuple[FrameBuffer, np.ndarray]:
    """Rasterize every face of `model` through `shader`; returns (image, zbuffer)."""
    if image is None:
        image = FrameBuffer(config.width, config.height)
        image.fill(config.background)
    if zbuffer is None:
        zbuffer = new_depth_buffer(image.width, image.height)

    started = time.perf_counter()
    written = 0
    for iface in range(model.face_count()):
        clip_verts = [shader.vertex(iface, nthvert, transforms) for nthvert in range(3)]
        n = draw_triangle(clip_verts, shader, image, zbuffer, config.barycentric_epsilon)
        _LOG.debug("%s face %d: %d pixels", label, iface, n)
        written += n
    _LOG.info("%s: %d faces, %d pixels written in %.2fs",
              label, model.face_count(), written, time.perf_counter() - started)
    return image, zbuffer


@dataclass
class ShadowRender:
    """Outputs of a two-pass shadowed render (all y-up, not yet flipped)."""
    frame: FrameBuffer
    zbuffer: np.ndarray
    depth_image: FrameBuffer
    shadow_buffer: np.ndarray


def render_shadowed(model: Model, config: RenderConfig, scene: Scene) -> ShadowRender:
    light = light_transforms(config, scene)
    depth_image, shadow_buffer = render_pass(
        model, DepthShader(model, config.depth), light, config, label="shadow depth pass")

    # The shadow buffer is complete; the color pass only reads it.
    shadow_buffer.setflags(write=False)
    eye = camera_transforms(config, scene)
    shader = ShadowShader(
        model, eye, scene.light_dir, shadow_buffer, light.screen(),
        ambient_floor=config.ambient_floor,
        bias=config.shadow_bias,
        ambient=config.ambient_light,
        diffuse_weight=config.diffuse_weight,
        specular_weight=config.specular_weight,
    )
    frame, zbuffer = render_pass(model, shader, eye, config, label="color pass")
    return ShadowRender(frame, zbuffer, depth_image, shadow_buffer)


def make_shader(name: str, model: Model, config: RenderConfig, scene: Scene,
                transforms: Transforms) -> Shader:
    """Single-pass shader by name (everything in SHADERS except "shadow")."""
    if name == "flat":
        return FlatShader(model, scene.light_dir)
    if name == "gouraud":
        return GouraudShader(model, scene.light_dir)
    if name == "phong":
        return PhongShader(model, transforms, scene.light_dir,
                           ambient=config.ambient_light,
                           diffuse_weight=config.diffuse_weight,
                           specular_weight=config.specular_weight)
    if name == "depth":
        return DepthShader(model, config.depth)
    raise ValueError(f"unknown shader {name!r}, expected one of {', '.join(SHADERS)}")


def render(model: Model, config: RenderConfig, scene: Scene,
           shader_name: str = "shadow") -> Tuple[FrameBuffer, np.ndarray]:
    """Render from the eye with the named shader; returns (frame, zbuffer)."""
    if shader_name == "shadow":
        result = render_shadowed(model, config, scene)
        return result.frame, result.zbuffer
    eye = camera_transforms(config, scene)
    shader = make_shader(shader_name, model, config, scene, eye)
    return render_pass(model, shader, eye, config, label=f"{shader_name} pass")
