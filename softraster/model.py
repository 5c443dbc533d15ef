import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from PIL import Image

from .geometry import Vec2, Vec3

_LOG = logging.getLogger("softraster.model")

# Texture files looked up next to the mesh: <stem><suffix>
TEXTURE_SUFFIXES = {
    "diffuse": "_diffuse.tga",
    "normal": "_nm_tangent.tga",
    "specular": "_spec.tga",
}

NEUTRAL_DIFFUSE = (255, 255, 255)
NEUTRAL_NORMAL = Vec3(0.0, 0.0, 1.0)
NEUTRAL_SPECULAR = 0.0


# ============================================================
#  Texture sampling
# ============================================================

def sample2d(texture: np.ndarray, uv: Vec2) -> Tuple[int, ...]:
    """
    Nearest-texel lookup.

    texture: HxWxC uint8 array, row 0 at the top (as Pillow loads it)
    uv:      v grows upward, both clamped to [0..1]
    """
    th, tw = texture.shape[0], texture.shape[1]
    uu = min(max(uv.x, 0.0), 1.0)
    vv = min(max(uv.y, 0.0), 1.0)
    tx = int(uu * (tw - 1))
    ty = int((1.0 - vv) * (th - 1))
    return tuple(int(c) for c in texture[ty, tx])


def load_texture(path: str) -> Optional[np.ndarray]:
    """Read an image as an HxWx3 uint8 array, or None if it cannot be read."""
    try:
        with Image.open(path) as img:
            tex = np.array(img.convert("RGB"), dtype=np.uint8)
    except OSError:
        _LOG.warning("texture file %s loading failed", path)
        return None
    _LOG.info("texture file %s loading ok (%dx%d)", path, tex.shape[1], tex.shape[0])
    return tex


# ============================================================
#  OBJ model
# ============================================================

@dataclass
class Face:
    """
    Single triangle face, indices into:
      - v:  vertex positions
      - vt: texture coords (-1 if absent)
      - vn: vertex normals (-1 if absent)

    Indices are 0-based (we subtract 1 when parsing OBJ).
    """
    v: Tuple[int, int, int]
    vt: Tuple[int, int, int]
    vn: Tuple[int, int, int]


class Model:
    """
    Triangle mesh plus its diffuse / tangent-space normal / specular maps.

    Supported OBJ records:
      v  x y z
      vt u v
      vn x y z
      f  v v v ...  (v, v/vt, v//vn or v/vt/vn; polygons are fan-triangulated)

    An empty Model can be filled in directly (verts/uvs/normals/faces/textures),
    which is how tests build small scenes.
    """
    def __init__(self, path: Optional[str] = None):
        self.verts: List[Vec3] = []
        self.uvs: List[Vec2] = []
        self.normals: List[Vec3] = []
        self.faces: List[Face] = []
        self.textures: Dict[str, np.ndarray] = {}
        if path is not None:
            self._load(path)
            self._load_textures(path)

    def _load(self, path: str):
        """Read OBJ file and populate verts/uvs/normals/faces."""
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                parts = line.split()
                if parts[0] == "v" and len(parts) >= 4:
                    self.verts.append(Vec3(float(parts[1]), float(parts[2]), float(parts[3])))
                elif parts[0] == "vt" and len(parts) >= 3:
                    self.uvs.append(Vec2(float(parts[1]), float(parts[2])))
                elif parts[0] == "vn" and len(parts) >= 4:
                    n = Vec3(float(parts[1]), float(parts[2]), float(parts[3]))
                    self.normals.append(n.normalize())
                elif parts[0] == "f" and len(parts) >= 4:
                    corners = [self._parse_corner(p) for p in parts[1:]]
                    self._add_polygon(corners)
        _LOG.info("loaded %s: %d vertices, %d faces", path, len(self.verts), len(self.faces))

    @staticmethod
    def _index(value: str, count: int) -> int:
        """OBJ index -> 0-based; negative indices count back from the last element read."""
        i = int(value)
        if i == 0:
            raise ValueError("OBJ indices start at 1")
        return i - 1 if i > 0 else count + i

    def _parse_corner(self, token: str) -> Tuple[int, int, int]:
        comps = token.split("/")
        vi = self._index(comps[0], len(self.verts))
        vti = self._index(comps[1], len(self.uvs)) if len(comps) > 1 and comps[1] else -1
        vni = self._index(comps[2], len(self.normals)) if len(comps) > 2 and comps[2] else -1
        return vi, vti, vni

    def _add_polygon(self, corners: List[Tuple[int, int, int]]):
        """Fan-triangulate: (0,1,2), (0,2,3), ..., (0,N-2,N-1)."""
        c0 = corners[0]
        for i in range(1, len(corners) - 1):
            tri = (c0, corners[i], corners[i + 1])
            self.faces.append(Face(
                tuple(c[0] for c in tri),
                tuple(c[1] for c in tri),
                tuple(c[2] for c in tri),
            ))

    def _load_textures(self, path: str):
        stem = os.path.splitext(path)[0]
        for name, suffix in TEXTURE_SUFFIXES.items():
            tex = load_texture(stem + suffix)
            if tex is not None:
                self.textures[name] = tex

    # --------------------------------------------------------
    #  Geometry access
    # --------------------------------------------------------

    def face_count(self) -> int:
        return len(self.faces)

    def vertex_position(self, iface: int, nthvert: int) -> Vec3:
        return self.verts[self.faces[iface].v[nthvert]]

    def vertex_uv(self, iface: int, nthvert: int) -> Vec2:
        """UV of a face corner, or (0,0) if missing."""
        idx = self.faces[iface].vt[nthvert]
        if idx < 0 or idx >= len(self.uvs):
            return Vec2(0.0, 0.0)
        return self.uvs[idx]

    def vertex_normal(self, iface: int, nthvert: int) -> Vec3:
        """Normal of a face corner, or default (0,0,1) if missing."""
        idx = self.faces[iface].vn[nthvert]
        if idx < 0 or idx >= len(self.normals):
            return Vec3(0.0, 0.0, 1.0)
        return self.normals[idx]

    # --------------------------------------------------------
    #  Texture access
    # --------------------------------------------------------

    def has_map(self, name: str) -> bool:
        return name in self.textures

    def sample(self, map_name: str, uv: Vec2):
        """Sample a named map; missing maps give their neutral value."""
        if map_name == "diffuse":
            return self.diffuse(uv)
        if map_name == "normal":
            return self.normal(uv)
        if map_name == "specular":
            return self.specular(uv)
        raise KeyError(f"unknown texture map {map_name!r}")

    def diffuse(self, uv: Vec2) -> Tuple[int, ...]:
        tex = self.textures.get("diffuse")
        if tex is None:
            return NEUTRAL_DIFFUSE
        return sample2d(tex, uv)[:3]

    def normal(self, uv: Vec2) -> Vec3:
        """Tangent-space normal: RGB [0..255] -> xyz [-1..1]."""
        tex = self.textures.get("normal")
        if tex is None:
            return NEUTRAL_NORMAL
        c = sample2d(tex, uv)
        return Vec3(c[0] / 255.0 * 2.0 - 1.0,
                    c[1] / 255.0 * 2.0 - 1.0,
                    c[2] / 255.0 * 2.0 - 1.0)

    def specular(self, uv: Vec2) -> float:
        """Specular exponent (first channel); 0 disables the highlight."""
        tex = self.textures.get("specular")
        if tex is None:
            return NEUTRAL_SPECULAR
        return float(sample2d(tex, uv)[0])
