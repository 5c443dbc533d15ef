import numpy as np
import pytest
from PIL import Image

from softraster.geometry import Vec2, Vec3
from softraster.model import (
    NEUTRAL_DIFFUSE,
    NEUTRAL_NORMAL,
    Model,
    load_texture,
    sample2d,
)


def write_texture(path, rgb):
    Image.fromarray(np.asarray(rgb, dtype=np.uint8)).save(path)


class TestObjParsing:

    def test_polygon_is_fan_triangulated(self, obj_file):
        model = Model(str(obj_file))
        assert len(model.verts) == 4
        assert model.face_count() == 2
        assert model.faces[0].v == (0, 1, 2)
        assert model.faces[1].v == (0, 2, 3)
        assert model.faces[1].vt == (0, 2, 3)

    def test_normals_are_normalized(self, obj_file):
        model = Model(str(obj_file))
        assert model.vertex_normal(0, 1) == Vec3(0, 0, 1)

    def test_corner_accessors(self, obj_file):
        model = Model(str(obj_file))
        assert model.vertex_position(1, 2) == Vec3(-1, 1, 0)
        assert model.vertex_uv(0, 1) == Vec2(1, 0)
        assert model.vertex_uv(1, 2) == Vec2(0, 1)

    def test_corner_forms(self, tmp_path):
        path = tmp_path / "forms.obj"
        path.write_text(
            "v 0 0 0\nv 1 0 0\nv 0 1 0\n"
            "vn 1 0 0\n"
            "f 1//1 2//1 3//1\n"
            "f 1 2 3\n"
        )
        model = Model(str(path))
        assert model.face_count() == 2
        # no texture coordinates: default uv
        assert model.vertex_uv(0, 0) == Vec2(0, 0)
        assert model.vertex_normal(0, 2) == Vec3(1, 0, 0)
        # no normal index: default normal
        assert model.vertex_normal(1, 0) == Vec3(0, 0, 1)

    def test_ignores_unknown_records(self, tmp_path):
        path = tmp_path / "extra.obj"
        path.write_text(
            "mtllib x.mtl\no thing\ng group\ns 1\n"
            "v 0 0 0\nv 1 0 0\nv 0 1 0\n"
            "usemtl m\nf 1 2 3\n"
        )
        model = Model(str(path))
        assert model.face_count() == 1

    def test_relative_indices(self, tmp_path):
        path = tmp_path / "relative.obj"
        path.write_text(
            "v 0 0 0\nv 1 0 0\nv 0 1 0\n"
            "vt 0 0\nvt 1 0\nvt 0 1\n"
            "f -3/-3 -2/-2 -1/-1\n"
            "v 5 5 5\n"
            "f -4 -1 -2\n"
        )
        model = Model(str(path))
        assert model.faces[0].v == (0, 1, 2)
        assert model.faces[0].vt == (0, 1, 2)
        assert model.faces[1].v == (0, 3, 2)

    def test_zero_index_rejected(self, tmp_path):
        path = tmp_path / "zero.obj"
        path.write_text("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 0 1 2\n")
        with pytest.raises(ValueError):
            Model(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Model(str(tmp_path / "nope.obj"))


class TestTextures:

    def test_sample2d_orientation(self):
        tex = np.zeros((2, 2, 3), dtype=np.uint8)
        tex[0, 0] = (255, 0, 0)  # top-left
        tex[1, 1] = (0, 255, 0)  # bottom-right
        assert sample2d(tex, Vec2(0, 1)) == (255, 0, 0)
        assert sample2d(tex, Vec2(1, 0)) == (0, 255, 0)
        # clamped
        assert sample2d(tex, Vec2(-3, 7)) == (255, 0, 0)

    def test_neutral_defaults(self):
        model = Model()
        uv = Vec2(0.5, 0.5)
        assert not model.has_map("diffuse")
        assert model.diffuse(uv) == NEUTRAL_DIFFUSE
        assert model.normal(uv) == NEUTRAL_NORMAL
        assert model.specular(uv) == 0.0

    def test_maps_loaded_next_to_mesh(self, obj_file):
        stem = str(obj_file)[:-len(".obj")]
        write_texture(stem + "_diffuse.tga", np.full((4, 4, 3), (10, 20, 30)))
        write_texture(stem + "_nm_tangent.tga", np.full((4, 4, 3), (255, 128, 0)))
        write_texture(stem + "_spec.tga", np.full((4, 4, 3), 7))

        model = Model(str(obj_file))
        uv = Vec2(0.25, 0.75)
        assert model.has_map("diffuse") and model.has_map("normal") and model.has_map("specular")
        assert model.diffuse(uv) == (10, 20, 30)
        n = model.normal(uv)
        assert (n.x, n.y, n.z) == pytest.approx((1.0, 0.0039, -1.0), abs=1e-3)
        assert model.specular(uv) == 7.0
        assert model.sample("diffuse", uv) == (10, 20, 30)

    def test_partial_maps(self, obj_file):
        stem = str(obj_file)[:-len(".obj")]
        write_texture(stem + "_diffuse.tga", np.full((2, 2, 3), 99))
        model = Model(str(obj_file))
        assert model.has_map("diffuse")
        assert not model.has_map("normal")
        assert model.sample("normal", Vec2(0, 0)) == NEUTRAL_NORMAL

    def test_unknown_map_name(self):
        with pytest.raises(KeyError):
            Model().sample("emission", Vec2(0, 0))

    def test_unreadable_texture_is_skipped(self, tmp_path, caplog):
        bad = tmp_path / "bad.tga"
        bad.write_bytes(b"not an image")
        assert load_texture(str(bad)) is None
        assert load_texture(str(tmp_path / "absent.tga")) is None
        assert "loading failed" in caplog.text

    def test_grayscale_texture_expands_to_rgb(self, tmp_path):
        path = tmp_path / "gray.png"
        Image.fromarray(np.full((3, 5), 40, dtype=np.uint8)).save(path)
        tex = load_texture(str(path))
        assert tex.shape == (3, 5, 3)
        assert tex.dtype == np.uint8
