"""
Programmable shading stages.

A shader is driven per triangle by the pipeline:

    for nthvert in 0, 1, 2:
        clip[nthvert] = shader.vertex(iface, nthvert, transforms)
    draw_triangle(clip, shader, ...)   # calls shader.fragment(bar) per pixel

`vertex` returns the vertex in homogeneous screen space and records whatever
`fragment` needs into `shader.state`, one column per triangle corner.
`fragment` receives perspective-corrected barycentric weights and returns
(discard, color). The three vertex calls of a triangle always complete
before its first fragment call; the next triangle overwrites the columns.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from .geometry import (
    Matrix,
    SingularMatrixError,
    Vec2,
    Vec3,
    Vec4,
    to_int,
    vec3_to_vec4,
    vec4_to_vec3,
)
from .model import Model
from .transforms import Transforms

Color = Tuple[int, ...]


def _clamp_byte(v: float) -> int:
    return max(0, min(255, int(v)))


def _shade_texel(c: Color, intensity: float) -> Color:
    return tuple(_clamp_byte(ci * intensity) for ci in c)


# ============================================================
#  Shader state / contract
# ============================================================

class ShaderState:
    """
    Per-triangle scratch written by the vertex stage and read by the fragment stage.

      uv:        2x3, texture coordinates
      tri:       3x3, screen-space positions after the perspective divide
      ndc:       3x3, positions after projection, before the viewport
      nrm:       3x3, transformed vertex normals
      world:     3x3, object-space positions
      intensity: per-vertex light intensity

    Single writer, single reader; unsafe to share between triangles
    rasterized concurrently.
    """
    def __init__(self):
        self.uv = Matrix(2, 3)
        self.tri = Matrix(3, 3)
        self.ndc = Matrix(3, 3)
        self.nrm = Matrix(3, 3)
        self.world = Matrix(3, 3)
        self.intensity = [0.0, 0.0, 0.0]


class Shader(ABC):
    def __init__(self, model: Model):
        self.model = model
        self.state = ShaderState()
        self._transforms: Optional[Transforms] = None
        self._screen: Optional[Matrix] = None

    @abstractmethod
    def vertex(self, iface: int, nthvert: int, transforms: Transforms) -> Vec4:
        ...

    @abstractmethod
    def fragment(self, bar: Vec3) -> Tuple[bool, Color]:
        ...

    def _screen_matrix(self, transforms: Transforms) -> Matrix:
        if transforms is not self._transforms:
            self._transforms = transforms
            self._screen = transforms.screen()
        return self._screen

    def _emit(self, nthvert: int, gl_vertex: Vec4) -> Vec4:
        """Record the divided screen position and hand the vertex to the rasterizer."""
        self.state.tri.set_col(nthvert, vec4_to_vec3(gl_vertex * (1.0 / gl_vertex.w)))
        return gl_vertex

    def _uv(self, bar: Vec3) -> Vec2:
        return Vec2(*self.state.uv.mul_vec(bar))


# ============================================================
#  Shading variants
# ============================================================

class FlatShader(Shader):
    """One intensity per face from the object-space face normal."""

    def __init__(self, model: Model, light_dir: Vec3):
        super().__init__(model)
        self.light = light_dir.normalize()

    def vertex(self, iface, nthvert, transforms):
        p = self.model.vertex_position(iface, nthvert)
        self.state.world.set_col(nthvert, p)
        self.state.uv.set_col(nthvert, self.model.vertex_uv(iface, nthvert))
        if nthvert == 2:
            w = self.state.world
            p0, p1, p2 = (Vec3(*w.col(i)) for i in range(3))
            n = (p1 - p0).cross(p2 - p0).normalize()
            self.state.intensity = [max(0.0, n.dot(self.light))] * 3
        return self._emit(nthvert, self._screen_matrix(transforms) @ vec3_to_vec4(p))

    def fragment(self, bar):
        c = self.model.diffuse(self._uv(bar))
        return False, _shade_texel(c, self.state.intensity[0])


class GouraudShader(Shader):
    """Per-vertex intensity, interpolated across the face."""

    def __init__(self, model: Model, light_dir: Vec3):
        super().__init__(model)
        self.light = light_dir.normalize()

    def vertex(self, iface, nthvert, transforms):
        n = self.model.vertex_normal(iface, nthvert)
        self.state.intensity[nthvert] = max(0.0, n.dot(self.light))
        self.state.uv.set_col(nthvert, self.model.vertex_uv(iface, nthvert))
        p = self.model.vertex_position(iface, nthvert)
        return self._emit(nthvert, self._screen_matrix(transforms) @ vec3_to_vec4(p))

    def fragment(self, bar):
        intensity = sum(i * b for i, b in zip(self.state.intensity, bar))
        c = self.model.diffuse(self._uv(bar))
        return False, _shade_texel(c, intensity)


class PhongShader(Shader):
    """
    Per-pixel diffuse + specular lighting.

    Uniforms:
      uniform_m   = Projection @ ModelView          (carries the light direction)
      uniform_mit = inverse-transpose of uniform_m  (carries normals)

    Normal:
      - interpolated vertex normal
      - bent by the tangent-space normal map through the Darboux frame when
        the model has one
    Color:
      min(255, ambient + c * shadow * (kd * diff + ks * spec))

    Uniforms are derived from the bundle given at construction and
    recomputed when `vertex` receives a different one.
    """
    def __init__(self, model: Model, transforms: Transforms, light_dir: Vec3,
                 ambient: float = 5.0, diffuse_weight: float = 1.0,
                 specular_weight: float = 0.6):
        super().__init__(model)
        self.light_dir = light_dir
        self.ambient = ambient
        self.diffuse_weight = diffuse_weight
        self.specular_weight = specular_weight
        self._bind(transforms)

    def _bind(self, transforms: Transforms):
        self.bound = transforms
        self.uniform_m = transforms.clip()
        self.uniform_mit = self.uniform_m.inverse_transpose()
        self.light = vec4_to_vec3(self.uniform_m @ vec3_to_vec4(self.light_dir, 0.0)).normalize()

    def vertex(self, iface, nthvert, transforms):
        if transforms is not self.bound:
            self._bind(transforms)
        self.state.uv.set_col(nthvert, self.model.vertex_uv(iface, nthvert))
        n = self.model.vertex_normal(iface, nthvert)
        self.state.nrm.set_col(nthvert, vec4_to_vec3(self.uniform_mit @ vec3_to_vec4(n, 0.0)))
        clip = self.uniform_m @ vec3_to_vec4(self.model.vertex_position(iface, nthvert))
        self.state.ndc.set_col(nthvert, vec4_to_vec3(clip * (1.0 / clip.w)))
        return self._emit(nthvert, transforms.viewport @ clip)

    def fragment(self, bar):
        return False, self._shade(bar, 1.0)

    def _shade(self, bar: Vec3, shadow: float) -> Color:
        bn = Vec3(*self.state.nrm.mul_vec(bar)).normalize()
        uv = self._uv(bar)
        n = self._darboux_normal(bn, uv) if self.model.has_map("normal") else bn

        l = self.light
        diff = max(0.0, n.dot(l))
        r = (n * (2.0 * n.dot(l)) - l).normalize()
        power = self.model.specular(uv)
        spec = max(r.z, 0.0) ** power if power > 0.0 else 0.0

        light = shadow * (self.diffuse_weight * diff + self.specular_weight * spec)
        c = self.model.diffuse(uv)
        return tuple(min(255, int(self.ambient + ci * light)) for ci in c)

    def _darboux_normal(self, bn: Vec3, uv: Vec2) -> Vec3:
        """
        Map the tangent-space normal-map sample into the shading space.

        A = [p1 - p0; p2 - p0; bn] (rows), then
          i = A^-1 (u1 - u0, u2 - u0, 0)
          j = A^-1 (v1 - v0, v2 - v0, 0)
        and B = [i j bn] (columns) takes tangent space to shading space.
        """
        ndc = self.state.ndc
        p0, p1, p2 = (Vec3(*ndc.col(i)) for i in range(3))
        a = Matrix(m=[list(p1 - p0), list(p2 - p0), list(bn)])
        try:
            ai = a.inverse()
        except SingularMatrixError:
            return bn

        u = self.state.uv.m
        i = ai @ Vec3(u[0][1] - u[0][0], u[0][2] - u[0][0], 0.0)
        j = ai @ Vec3(u[1][1] - u[1][0], u[1][2] - u[1][0], 0.0)

        b = Matrix(3, 3)
        b.set_col(0, i.normalize())
        b.set_col(1, j.normalize())
        b.set_col(2, bn)
        n = (b @ self.model.normal(uv)).normalize()
        return n if n.norm() > 0.0 else bn


class DepthShader(Shader):
    """Gray level = screen depth / depth range; used for the light pass."""

    def __init__(self, model: Model, depth: float):
        super().__init__(model)
        self.depth = depth

    def vertex(self, iface, nthvert, transforms):
        p = self.model.vertex_position(iface, nthvert)
        return self._emit(nthvert, self._screen_matrix(transforms) @ vec3_to_vec4(p))

    def fragment(self, bar):
        z = self.state.tri.mul_vec(bar)[2]
        k = min(max(z / self.depth, 0.0), 1.0)
        g = int(255 * k)
        return False, (g, g, g)


class ShadowShader(PhongShader):
    """
    PhongShader attenuated by a shadow map.

    uniform_shadow = light_screen @ inverse(eye_screen) takes a fragment's
    screen position (x, y, depth) in this pass to the light pass's screen.
    There the stored shadow-buffer depth is compared against the fragment's
    own light depth (larger = nearer the light):

      shadow = ambient_floor + (1 - ambient_floor) * (stored < frag + bias)

    Fragments that land outside the shadow buffer count as lit.
    """
    def __init__(self, model: Model, transforms: Transforms, light_dir: Vec3,
                 shadow_buffer: np.ndarray, light_screen: Matrix,
                 ambient_floor: float = 0.3, bias: float = 43.34,
                 ambient: float = 20.0, diffuse_weight: float = 1.2,
                 specular_weight: float = 0.6):
        self.shadow_buffer = shadow_buffer
        self.light_screen = light_screen
        self.ambient_floor = ambient_floor
        self.bias = bias
        super().__init__(model, transforms, light_dir, ambient, diffuse_weight, specular_weight)

    def _bind(self, transforms: Transforms):
        super()._bind(transforms)
        self.uniform_shadow = self.light_screen @ transforms.screen().gauss_jordan_inverse()

    def shadow_factor(self, bar: Vec3) -> float:
        p = self.state.tri.mul_vec(bar)
        sb = self.uniform_shadow @ Vec4(p[0], p[1], p[2], 1.0)
        if sb.w == 0.0:
            return 1.0
        sb = sb * (1.0 / sb.w)

        height, width = self.shadow_buffer.shape
        if not (0.0 <= sb.x < width and 0.0 <= sb.y < height):
            return 1.0
        pixel = to_int(Vec2(sb.x, sb.y))
        stored = self.shadow_buffer[pixel.y, pixel.x]
        lit = 1.0 if stored < sb.z + self.bias else 0.0
        return self.ambient_floor + (1.0 - self.ambient_floor) * lit

    def fragment(self, bar):
        return False, self._shade(bar, self.shadow_factor(bar))
