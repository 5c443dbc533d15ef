import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union


# Inversion gives up below this |determinant| / |pivot|.
SINGULAR_EPSILON = 1e-12


class ShapeMismatchError(ValueError):
    """Matrix operands have incompatible shapes."""


class SingularMatrixError(ArithmeticError):
    """Matrix has no inverse (determinant or pivot is ~0)."""


def _check_index(i: int, size: int):
    if not 0 <= i < size:
        raise IndexError(f"index {i} out of range for {size}-component vector")


# ============================================================
#  Float vectors
# ============================================================

@dataclass(frozen=True)
class Vec2:
    """
    2D vector for texture coordinates (u, v) and projected screen points.

    Operations return new objects (no in-place changes).
    """
    x: float
    y: float

    def __add__(self, o): return Vec2(self.x + o.x, self.y + o.y)
    def __sub__(self, o): return Vec2(self.x - o.x, self.y - o.y)
    def __mul__(self, k: float): return Vec2(self.x * k, self.y * k)
    def __rmul__(self, k: float): return self * k

    def __getitem__(self, i: int) -> float:
        _check_index(i, 2)
        return (self.x, self.y)[i]

    def __iter__(self):
        return iter((self.x, self.y))

    def dot(self, o) -> float:
        return self.x * o.x + self.y * o.y

    def norm(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self):
        n = self.norm()
        if n <= SINGULAR_EPSILON:
            return Vec2(0.0, 0.0)
        return self * (1.0 / n)


@dataclass(frozen=True)
class Vec3:
    """
    3D vector for positions, normals, light directions and barycentric weights.

    Used in:
      - mesh vertices and normals
      - varying interpolation (weights of the three triangle vertices)
      - Darboux frame construction in the normal-mapping shaders
    """
    x: float
    y: float
    z: float

    def __add__(self, o): return Vec3(self.x + o.x, self.y + o.y, self.z + o.z)
    def __sub__(self, o): return Vec3(self.x - o.x, self.y - o.y, self.z - o.z)
    def __mul__(self, k: float): return Vec3(self.x * k, self.y * k, self.z * k)
    def __rmul__(self, k: float): return self * k
    def __neg__(self): return Vec3(-self.x, -self.y, -self.z)

    def __getitem__(self, i: int) -> float:
        _check_index(i, 3)
        return (self.x, self.y, self.z)[i]

    def __iter__(self):
        return iter((self.x, self.y, self.z))

    def dot(self, o) -> float:
        """Dot product (scalar product)."""
        return self.x * o.x + self.y * o.y + self.z * o.z

    def cross(self, o):
        """Cross product (vector product)."""
        return Vec3(
            self.y * o.z - self.z * o.y,
            self.z * o.x - self.x * o.z,
            self.x * o.y - self.y * o.x
        )

    def norm(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.dot(self))

    def normalize(self):
        """Return normalized vector (length=1), or the zero vector for zero input."""
        n = self.norm()
        if n <= SINGULAR_EPSILON:
            return Vec3(0.0, 0.0, 0.0)
        return self * (1.0 / n)


@dataclass(frozen=True)
class Vec4:
    """
    4D homogeneous vector.
    Vertex stage output (clip space) and operand of 4x4 transforms.
    """
    x: float
    y: float
    z: float
    w: float

    def __add__(self, o): return Vec4(self.x + o.x, self.y + o.y, self.z + o.z, self.w + o.w)
    def __sub__(self, o): return Vec4(self.x - o.x, self.y - o.y, self.z - o.z, self.w - o.w)
    def __mul__(self, k: float): return Vec4(self.x * k, self.y * k, self.z * k, self.w * k)
    def __rmul__(self, k: float): return self * k

    def __getitem__(self, i: int) -> float:
        _check_index(i, 4)
        return (self.x, self.y, self.z, self.w)[i]

    def __iter__(self):
        return iter((self.x, self.y, self.z, self.w))

    def dot(self, o) -> float:
        return self.x * o.x + self.y * o.y + self.z * o.z + self.w * o.w

    def norm(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self):
        n = self.norm()
        if n <= SINGULAR_EPSILON:
            return Vec4(0.0, 0.0, 0.0, 0.0)
        return self * (1.0 / n)


def cross(u: Vec3, v: Vec3) -> Vec3:
    return u.cross(v)


def vec3_to_vec4(v: Vec3, w: float = 1.0) -> Vec4:
    """Convert Vec3 to homogeneous Vec4 (w=1 for points, w=0 for directions)."""
    return Vec4(v.x, v.y, v.z, w)


def vec4_to_vec3(v: Vec4) -> Vec3:
    """Drop the w component (no divide)."""
    return Vec3(v.x, v.y, v.z)


def vec4_to_vec2(v: Vec4) -> Vec2:
    return Vec2(v.x, v.y)


# ============================================================
#  Integer vectors (screen coordinates)
# ============================================================

@dataclass(frozen=True)
class Vec2i:
    x: int
    y: int

    def __add__(self, o): return Vec2i(self.x + o.x, self.y + o.y)
    def __sub__(self, o): return Vec2i(self.x - o.x, self.y - o.y)

    def __getitem__(self, i: int) -> int:
        _check_index(i, 2)
        return (self.x, self.y)[i]


@dataclass(frozen=True)
class Vec3i:
    x: int
    y: int
    z: int

    def __add__(self, o): return Vec3i(self.x + o.x, self.y + o.y, self.z + o.z)
    def __sub__(self, o): return Vec3i(self.x - o.x, self.y - o.y, self.z - o.z)

    def __getitem__(self, i: int) -> int:
        _check_index(i, 3)
        return (self.x, self.y, self.z)[i]


def to_int(v: Union[Vec2, Vec3]) -> Union[Vec2i, Vec3i]:
    """Float -> integer vector, truncating toward zero."""
    if isinstance(v, Vec3):
        return Vec3i(int(v.x), int(v.y), int(v.z))
    if isinstance(v, Vec2):
        return Vec2i(int(v.x), int(v.y))
    raise TypeError(f"cannot convert {type(v).__name__} to an integer vector")


def to_float(v: Union[Vec2i, Vec3i]) -> Union[Vec2, Vec3]:
    if isinstance(v, Vec3i):
        return Vec3(float(v.x), float(v.y), float(v.z))
    if isinstance(v, Vec2i):
        return Vec2(float(v.x), float(v.y))
    raise TypeError(f"cannot convert {type(v).__name__} to a float vector")


# ============================================================
#  Matrix
# ============================================================

class Matrix:
    """
    Dense rows x cols float matrix (row-major lists).

    We use Matrix for:
      - ModelView / Projection / ViewPort transforms (4x4)
      - inverse-transpose of the projection*modelview for normals
      - per-triangle varyings (2x3 UVs, 3x3 positions/normals)
      - the 3x3 Darboux frame in normal mapping

    Multiplication:
      - Matrix @ Matrix   => Matrix
      - Matrix @ Vec4     => Vec4  (4 columns)
      - Matrix @ Vec3     => Vec3  (3 columns)
      - Matrix @ sequence => list

    Shapes are fixed at construction; mismatches raise ShapeMismatchError.
    """
    def __init__(self, rows: int = 4, cols: int = 4, m: Optional[List[List[float]]] = None):
        if m is not None:
            rows = len(m)
            cols = len(m[0]) if rows else 0
            if any(len(row) != cols for row in m):
                raise ShapeMismatchError("ragged matrix rows")
            self.m = [[float(v) for v in row] for row in m]
        else:
            self.m = [[0.0] * cols for _ in range(rows)]
        self.rows = rows
        self.cols = cols

    @staticmethod
    def identity(n: int = 4) -> "Matrix":
        """Create n x n identity matrix."""
        r = Matrix(n, n)
        for i in range(n):
            r.m[i][i] = 1.0
        return r

    @property
    def shape(self):
        return self.rows, self.cols

    def __repr__(self):
        return f"Matrix({self.rows}x{self.cols}, {self.m!r})"

    def __getitem__(self, i: int) -> List[float]:
        if not 0 <= i < self.rows:
            raise IndexError(f"row {i} out of range for {self.rows}x{self.cols} matrix")
        return self.m[i]

    def col(self, j: int) -> List[float]:
        if not 0 <= j < self.cols:
            raise IndexError(f"column {j} out of range for {self.rows}x{self.cols} matrix")
        return [row[j] for row in self.m]

    def set_col(self, j: int, values: Sequence[float]):
        if not 0 <= j < self.cols:
            raise IndexError(f"column {j} out of range for {self.rows}x{self.cols} matrix")
        values = list(values)
        if len(values) != self.rows:
            raise ShapeMismatchError(f"column of length {len(values)} for {self.rows} rows")
        for i in range(self.rows):
            self.m[i][j] = float(values[i])

    def transpose(self) -> "Matrix":
        r = Matrix(self.cols, self.rows)
        for i in range(self.rows):
            for j in range(self.cols):
                r.m[j][i] = self.m[i][j]
        return r

    def __matmul__(self, o):
        if isinstance(o, Matrix):
            return self.mul_mat(o)
        if isinstance(o, Vec4):
            return Vec4(*self.mul_vec(o))
        if isinstance(o, Vec3):
            return Vec3(*self.mul_vec(o))
        return self.mul_vec(o)

    def mul_mat(self, o: "Matrix") -> "Matrix":
        """Matrix multiplication (Matrix @ Matrix)."""
        if self.cols != o.rows:
            raise ShapeMismatchError(f"cannot multiply {self.shape} by {o.shape}")
        r = Matrix(self.rows, o.cols)
        for i in range(self.rows):
            row = self.m[i]
            for j in range(o.cols):
                s = 0.0
                for k in range(self.cols):
                    s += row[k] * o.m[k][j]
                r.m[i][j] = s
        return r

    def mul_vec(self, v: Sequence[float]) -> List[float]:
        """Multiply matrix by a column vector given as any sequence."""
        v = list(v)
        if len(v) != self.cols:
            raise ShapeMismatchError(f"cannot multiply {self.shape} by vector of length {len(v)}")
        return [sum(a * b for a, b in zip(row, v)) for row in self.m]

    def __truediv__(self, s: float) -> "Matrix":
        return Matrix(m=[[v / s for v in row] for row in self.m])

    # --------------------------------------------------------
    #  Cofactor path
    # --------------------------------------------------------

    def _require_square(self, what: str):
        if self.rows != self.cols:
            raise ShapeMismatchError(f"{what} of non-square {self.rows}x{self.cols} matrix")

    def minor(self, row: int, col: int) -> "Matrix":
        """Copy without the given row and column."""
        if self.rows <= 1 or self.cols <= 1:
            return Matrix(0, 0)
        return Matrix(m=[
            [v for j, v in enumerate(r) if j != col]
            for i, r in enumerate(self.m) if i != row
        ])

    def cofactor(self, row: int, col: int) -> float:
        sign = -1.0 if (row + col) % 2 else 1.0
        return self.minor(row, col).determinant() * sign

    def determinant(self) -> float:
        """Recursive cofactor expansion along row 0."""
        self._require_square("determinant")
        if self.rows == 0:
            return 1.0
        if self.rows == 1:
            return self.m[0][0]
        return sum(self.m[0][i] * self.cofactor(0, i) for i in range(self.cols))

    def adjugate(self) -> "Matrix":
        """Matrix of cofactors; entry[i][j] = cofactor(i, j)."""
        self._require_square("adjugate")
        r = Matrix(self.rows, self.cols)
        for i in range(self.rows):
            for j in range(self.cols):
                r.m[i][j] = self.cofactor(i, j)
        return r

    def inverse_transpose(self) -> "Matrix":
        """
        (M^-1)^T, the matrix that carries normals when M carries points.

        The normalizer is the determinant, taken as the dot product of the
        adjugate's first row with this matrix's first row.
        """
        adj = self.adjugate()
        det = sum(a * b for a, b in zip(adj.m[0], self.m[0]))
        if abs(det) < SINGULAR_EPSILON:
            raise SingularMatrixError(f"determinant {det!r} of {self.shape} matrix")
        return adj / det

    def inverse(self) -> "Matrix":
        return self.inverse_transpose().transpose()

    # --------------------------------------------------------
    #  Elimination path
    # --------------------------------------------------------

    def gauss_jordan_inverse(self) -> "Matrix":
        """
        Inverse by elimination on the augmented matrix [M | I].

        Forward pass: for each column pick the largest pivot, normalize the
        pivot row, eliminate below. Backward pass: eliminate above.
        The right half is the inverse.
        """
        self._require_square("inverse")
        n = self.rows
        aug = [row[:] + [1.0 if i == j else 0.0 for j in range(n)]
               for i, row in enumerate(self.m)]

        for i in range(n):
            pivot = max(range(i, n), key=lambda r: abs(aug[r][i]))
            if abs(aug[pivot][i]) < SINGULAR_EPSILON:
                raise SingularMatrixError(f"zero pivot in column {i} of {self.shape} matrix")
            aug[i], aug[pivot] = aug[pivot], aug[i]
            p = aug[i][i]
            aug[i] = [v / p for v in aug[i]]
            for k in range(i + 1, n):
                coeff = aug[k][i]
                if coeff != 0.0:
                    aug[k] = [a - b * coeff for a, b in zip(aug[k], aug[i])]

        for i in range(n - 1, 0, -1):
            for k in range(i - 1, -1, -1):
                coeff = aug[k][i]
                if coeff != 0.0:
                    aug[k] = [a - b * coeff for a, b in zip(aug[k], aug[i])]

        return Matrix(m=[row[n:] for row in aug])
