from dataclasses import dataclass

from .geometry import Matrix, Vec3


# ============================================================
#  Transform bundle
# ============================================================

@dataclass(frozen=True)
class Transforms:
    """
    ModelView, Projection and ViewPort of one render pass.

    Built once per pass and shared read-only by every triangle of that pass.
    """
    model_view: Matrix
    projection: Matrix
    viewport: Matrix

    def clip(self) -> Matrix:
        """Projection @ ModelView (object -> clip space, before the viewport)."""
        return self.projection @ self.model_view

    def screen(self) -> Matrix:
        """ViewPort @ Projection @ ModelView (object -> homogeneous screen space)."""
        return self.viewport @ self.projection @ self.model_view


# ============================================================
#  Builders
# ============================================================

def viewport(x: float, y: float, w: float, h: float, depth: float) -> Matrix:
    """
    Map the NDC cube [-1,1]^3 onto the pixel box [x,x+w] x [y,y+h] x [0,depth].

    Screen y grows upward here; images are flipped before encoding.
    """
    m = Matrix.identity(4)
    m.m[0][3] = x + w / 2.0
    m.m[1][3] = y + h / 2.0
    m.m[2][3] = depth / 2.0
    m.m[0][0] = w / 2.0
    m.m[1][1] = h / 2.0
    m.m[2][2] = depth / 2.0
    return m


def projection(coeff: float) -> Matrix:
    """
    Central projection keyed off camera distance.

    coeff = -1/|eye-center| puts the camera on the +z axis at that distance
    (w = 1 + coeff*z); coeff = 0 gives an orthographic projection.
    """
    m = Matrix.identity(4)
    m.m[3][2] = coeff
    return m


def perspective_coeff(eye: Vec3, center: Vec3) -> float:
    distance = (eye - center).norm()
    if distance == 0.0:
        raise ValueError("eye and center coincide")
    return -1.0 / distance


def lookat(eye: Vec3, center: Vec3, up: Vec3) -> Matrix:
    """
    World -> camera space.

    Basis:
      z = normalize(eye - center)   (camera looks down -z)
      x = normalize(up x z)
      y = normalize(z x x)
    Rows of the 3x3 block are x, y, z; the last column moves `center`
    to the origin.
    """
    z = (eye - center).normalize()
    if z.norm() == 0.0:
        raise ValueError("eye and center coincide")
    x = up.cross(z).normalize()
    if x.norm() == 0.0:
        raise ValueError("up vector is parallel to the view direction")
    y = z.cross(x).normalize()

    m = Matrix.identity(4)
    for i, axis in enumerate((x, y, z)):
        m.m[i][0] = axis.x
        m.m[i][1] = axis.y
        m.m[i][2] = axis.z
        m.m[i][3] = -axis.dot(center)
    return m
