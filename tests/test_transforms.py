import math

import numpy as np
import pytest

from softraster.geometry import Matrix, Vec3, Vec4, vec3_to_vec4
from softraster.transforms import Transforms, lookat, perspective_coeff, projection, viewport


def assert_vec4_approx(actual: Vec4, expected, eps=1e-9):
    for a, e in zip(actual, expected):
        assert a == pytest.approx(e, abs=eps)


def test_viewport_maps_ndc_cube_to_pixel_box():
    m = viewport(100, 50, 600, 400, 2000)
    assert_vec4_approx(m @ Vec4(-1, -1, -1, 1), (100, 50, 0, 1))
    assert_vec4_approx(m @ Vec4(1, 1, 1, 1), (700, 450, 2000, 1))
    assert_vec4_approx(m @ Vec4(0, 0, 0, 1), (400, 250, 1000, 1))


def test_projection():
    assert np.allclose(np.array(projection(0.0).m), np.eye(4))
    p = projection(-0.25)
    assert p.m[3][2] == -0.25
    # w = 1 + coeff * z
    assert_vec4_approx(p @ Vec4(1, 2, 2, 1), (1, 2, 2, 0.5))


def test_perspective_coeff():
    assert perspective_coeff(Vec3(0, 0, 4), Vec3(0, 0, 0)) == pytest.approx(-0.25)
    with pytest.raises(ValueError):
        perspective_coeff(Vec3(1, 1, 1), Vec3(1, 1, 1))


class TestLookat:

    def test_basis_is_orthonormal(self):
        m = lookat(Vec3(1, 1, 4), Vec3(0, 0, 0), Vec3(0, 1, 0))
        basis = np.array([row[:3] for row in m.m[:3]])
        assert np.allclose(basis @ basis.T, np.eye(3), atol=1e-9)
        assert m.m[3] == [0.0, 0.0, 0.0, 1.0]

    def test_center_goes_to_origin_and_eye_onto_z(self):
        eye, center = Vec3(2, 3, 5), Vec3(1, -1, 0.5)
        m = lookat(eye, center, Vec3(0, 1, 0))
        assert_vec4_approx(m @ vec3_to_vec4(center), (0, 0, 0, 1))
        assert_vec4_approx(m @ vec3_to_vec4(eye), (0, 0, (eye - center).norm(), 1))

    def test_axis_aligned_camera_is_identity(self):
        m = lookat(Vec3(0, 0, 3), Vec3(0, 0, 0), Vec3(0, 1, 0))
        assert np.allclose(np.array(m.m), np.eye(4))

    def test_last_column_projects_center_on_basis(self):
        center = Vec3(1, 2, 3)
        m = lookat(Vec3(4, 2, 3), center, Vec3(0, 1, 0))
        for i in range(3):
            axis = Vec3(*m.m[i][:3])
            assert m.m[i][3] == pytest.approx(-axis.dot(center))

    def test_degenerate_inputs(self):
        with pytest.raises(ValueError):
            lookat(Vec3(1, 1, 1), Vec3(1, 1, 1), Vec3(0, 1, 0))
        with pytest.raises(ValueError):
            lookat(Vec3(0, 5, 0), Vec3(0, 0, 0), Vec3(0, 1, 0))


def test_transforms_bundle_composition():
    mv = lookat(Vec3(0, 0, 3), Vec3(0, 0, 0), Vec3(0, 1, 0))
    p = projection(-1.0 / 3.0)
    vp = viewport(8, 8, 48, 48, 255)
    t = Transforms(mv, p, vp)
    expected = np.array(vp.m) @ np.array(p.m) @ np.array(mv.m)
    assert np.allclose(np.array(t.screen().m), expected)
    assert np.allclose(np.array(t.clip().m), np.array(p.m) @ np.array(mv.m))
    assert isinstance(t.screen(), Matrix)
    assert math.isclose(t.screen().m[3][2], -1.0 / 3.0)
