"""Geometric value types used by the motion providers and constraints.

Point containers carry position, velocity and acceleration so they can be
added and scaled for spline interpolation. VecScalar and MatVec hold
linear equations in the spline coefficients.
"""

from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np
from scipy.spatial.transform import Rotation

DIM2D = 2


class Coords3D(IntEnum):
    """Cartesian axis indices."""

    X = 0
    Y = 1
    Z = 2


DIMS_2D = (Coords3D.X, Coords3D.Y)


@dataclass
class Point2d:
    """Planar position, velocity and acceleration."""

    p: np.ndarray = field(default_factory=lambda: np.zeros(2))
    v: np.ndarray = field(default_factory=lambda: np.zeros(2))
    a: np.ndarray = field(default_factory=lambda: np.zeros(2))

    def __post_init__(self) -> None:
        self.p = np.asarray(self.p, dtype=float)
        self.v = np.asarray(self.v, dtype=float)
        self.a = np.asarray(self.a, dtype=float)

    def __add__(self, other: "Point2d") -> "Point2d":
        return Point2d(self.p + other.p, self.v + other.v, self.a + other.a)

    def __mul__(self, scalar: float) -> "Point2d":
        return Point2d(scalar * self.p, scalar * self.v, scalar * self.a)

    __rmul__ = __mul__


@dataclass
class Point3d:
    """Spatial position, velocity and acceleration."""

    p: np.ndarray = field(default_factory=lambda: np.zeros(3))
    v: np.ndarray = field(default_factory=lambda: np.zeros(3))
    a: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.p = np.asarray(self.p, dtype=float)
        self.v = np.asarray(self.v, dtype=float)
        self.a = np.asarray(self.a, dtype=float)

    def __add__(self, other: "Point3d") -> "Point3d":
        return Point3d(self.p + other.p, self.v + other.v, self.a + other.a)

    def __mul__(self, scalar: float) -> "Point3d":
        return Point3d(scalar * self.p, scalar * self.v, scalar * self.a)

    __rmul__ = __mul__

    def xy(self) -> Point2d:
        """Horizontal part of this point."""
        return Point2d(self.p[:2], self.v[:2], self.a[:2])


@dataclass
class Ori:
    """Orientation with angular rates.

    Attributes:
        q: Unit quaternion in (w, x, y, z) order.
        v: Angular velocity (3,) [rad/s].
        a: Angular acceleration (3,) [rad/s^2].
    """

    q: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0, 0.0]))
    v: np.ndarray = field(default_factory=lambda: np.zeros(3))
    a: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def rpy(self) -> np.ndarray:
        """Roll, pitch, yaw [rad]."""
        w, x, y, z = self.q
        return Rotation.from_quat([x, y, z, w]).as_euler("xyz")


@dataclass
class Pose:
    """Position and orientation of a body."""

    pos: Point3d = field(default_factory=Point3d)
    ori: Ori = field(default_factory=Ori)


@dataclass
class VecScalar:
    """One linear equation ``v @ x + s``."""

    v: np.ndarray
    s: float = 0.0

    @classmethod
    def zeros(cls, cols: int) -> "VecScalar":
        return cls(np.zeros(cols), 0.0)


class MatVec:
    """A system of linear equations ``M @ x + v``.

    The number of rows of ``M`` always equals the length of ``v``.
    """

    def __init__(self, rows: int = 0, cols: int = 0):
        self.M = np.zeros((rows, cols))
        self.v = np.zeros(rows)

    @property
    def rows(self) -> int:
        return self.M.shape[0]

    @property
    def cols(self) -> int:
        return self.M.shape[1]

    def is_empty(self) -> bool:
        return self.M.shape == (0, 0)

    def extract_row(self, row: int) -> VecScalar:
        return VecScalar(self.M[row].copy(), float(self.v[row]))

    def add_vec_scalar(self, val: VecScalar, row: int) -> None:
        """Overwrite a single row with the given equation."""
        if len(val.v) != self.cols:
            raise ValueError(
                f"Row has {len(val.v)} entries, matrix has {self.cols} columns"
            )
        if not 0 <= row < self.rows:
            raise ValueError(f"Row {row} outside of [0, {self.rows})")
        self.M[row] = val.v
        self.v[row] = val.s

    def append(self, other: "MatVec") -> None:
        """Stack the rows of another system below this one."""
        if not self.is_empty() and self.cols != other.cols:
            raise ValueError(
                f"Cannot append {other.cols}-column system to "
                f"{self.cols}-column system"
            )
        if self.is_empty():
            self.M = other.M.copy()
            self.v = other.v.copy()
        else:
            self.M = np.vstack([self.M, other.M])
            self.v = np.concatenate([self.v, other.v])


def cache_exponents(t: float, n: int) -> np.ndarray:
    """Powers ``[1, t, t^2, ..., t^(n-1)]``."""
    exp = np.ones(n)
    for e in range(1, n):
        exp[e] = exp[e - 1] * t
    return exp
