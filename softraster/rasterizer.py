import math
from typing import Sequence

import numpy as np
from numba import njit

from .framebuffer import FrameBuffer
from .geometry import Vec2, Vec2i, Vec3, Vec4

# |twice the signed screen area| at or below this => degenerate triangle.
BARYCENTRIC_EPSILON = 1e-2

# Vertices this close to w=0 cannot be divided through; there is no clipping.
W_EPSILON = 1e-9


# ============================================================
#  Barycentric coordinates
# ============================================================

@njit(cache=True)
def _barycentric(ax, ay, bx, by, cx, cy, px, py, eps):
    """
    Barycentric coordinates of (px,py) in screen triangle (A,B,C).

    u = (Cx-Ax, Bx-Ax, Ax-Px) x (Cy-Ay, By-Ay, Ay-Py)
    (alpha, beta, gamma) = (1 - (u.x+u.y)/u.z, u.y/u.z, u.x/u.z)

    u.z is twice the signed area; if it is ~0 the triangle is degenerate
    and we return (-1, 1, 1) so the caller rejects the pixel.
    """
    s0x, s0y, s0z = cx - ax, bx - ax, ax - px
    s1x, s1y, s1z = cy - ay, by - ay, ay - py
    ux = s0y * s1z - s0z * s1y
    uy = s0z * s1x - s0x * s1z
    uz = s0x * s1y - s0y * s1x
    if abs(uz) <= eps:
        return -1.0, 1.0, 1.0
    return 1.0 - (ux + uy) / uz, uy / uz, ux / uz


def barycentric(a: Vec2, b: Vec2, c: Vec2, p: Vec2, eps: float = BARYCENTRIC_EPSILON) -> Vec3:
    return Vec3(*_barycentric(a.x, a.y, b.x, b.y, c.x, c.y, p.x, p.y, eps))


# ============================================================
#  Triangle
# ============================================================

def draw_triangle(clip_verts: Sequence[Vec4], shader, image: FrameBuffer,
                  zbuffer: np.ndarray, eps: float = BARYCENTRIC_EPSILON) -> int:
    """
    Rasterize one triangle through `shader` into `image` / `zbuffer`.

    clip_verts:
      - vertex stage output, homogeneous screen space (viewport already applied)
      - divided by w here; w also drives perspective-correct weights

    Z-buffer:
      - zbuffer[y, x] holds the nearest depth so far, larger = nearer
      - a pixel is drawn only if its depth is strictly greater,
        so on exact ties the first triangle drawn wins

    Returns the number of pixels written.
    """
    v0, v1, v2 = clip_verts
    if abs(v0.w) < W_EPSILON or abs(v1.w) < W_EPSILON or abs(v2.w) < W_EPSILON:
        return 0

    a = Vec2(v0.x / v0.w, v0.y / v0.w)
    b = Vec2(v1.x / v1.w, v1.y / v1.w)
    c = Vec2(v2.x / v2.w, v2.y / v2.w)

    width, height = image.width, image.height
    bbox_min = Vec2i(max(0, int(math.floor(min(a.x, b.x, c.x)))),
                     max(0, int(math.floor(min(a.y, b.y, c.y)))))
    bbox_max = Vec2i(min(width - 1, int(math.ceil(max(a.x, b.x, c.x)))),
                     min(height - 1, int(math.ceil(max(a.y, b.y, c.y)))))

    written = 0
    for y in range(bbox_min.y, bbox_max.y + 1):
        py = y + 0.5
        for x in range(bbox_min.x, bbox_max.x + 1):
            px = x + 0.5
            s0, s1, s2 = _barycentric(a.x, a.y, b.x, b.y, c.x, c.y, px, py, eps)
            if s0 < 0.0 or s1 < 0.0 or s2 < 0.0:
                continue

            # perspective-correct weights
            c0, c1, c2 = s0 / v0.w, s1 / v1.w, s2 / v2.w
            total = c0 + c1 + c2
            if total == 0.0:
                continue
            bar = Vec3(c0 / total, c1 / total, c2 / total)

            frag_depth = v0.z * bar.x + v1.z * bar.y + v2.z * bar.z
            if frag_depth <= zbuffer[y, x]:
                continue

            discard, color = shader.fragment(bar)
            if discard:
                continue
            zbuffer[y, x] = frag_depth
            image.set(x, y, color)
            written += 1
    return written
