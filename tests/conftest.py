import pytest

from softraster.geometry import Vec3
from softraster.model import Face, Model


def build_model(triangles, normal=Vec3(0.0, 0.0, 1.0), uvs=None):
    """Model made of independent triangles sharing one vertex normal."""
    model = Model()
    model.normals.append(normal)
    if uvs is not None:
        model.uvs.extend(uvs)
    for tri in triangles:
        base = len(model.verts)
        model.verts.extend(tri)
        vt = (0, 1, 2) if uvs is not None else (-1, -1, -1)
        model.faces.append(Face((base, base + 1, base + 2), vt, (0, 0, 0)))
    return model


@pytest.fixture
def make_model():
    return build_model


@pytest.fixture
def obj_file(tmp_path):
    """A unit quad written as a single OBJ polygon."""
    path = tmp_path / "quad.obj"
    path.write_text(
        "# quad\n"
        "v -1 -1 0\n"
        "v 1 -1 0\n"
        "v 1 1 0\n"
        "v -1 1 0\n"
        "vt 0 0\n"
        "vt 1 0\n"
        "vt 1 1\n"
        "vt 0 1\n"
        "vn 0 0 2\n"
        "f 1/1/1 2/2/1 3/3/1 4/4/1\n"
    )
    return path
