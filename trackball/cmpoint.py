"""Three-dimensional vectors with rotation and quaternion helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Iterable, Iterator

import numpy as np


def _clamp(value: float, low: float, high: float) -> float:
    if value <= low:
        return low
    if value >= high:
        return high
    return value


def angle_axis_to_matrix(cos_angle: float, sin_angle: float, axis: Iterable[float]) -> np.ndarray:
    """Rotation matrix for a rotation about a unit axis, given cos and sin of the angle."""
    x, y, z = (float(v) for v in axis)
    c = cos_angle
    d = 1.0 - c
    dx, dy, dz = d * x, d * y, d * z
    dxy, dxz, dyz = dx * y, dx * z, dy * z
    s = sin_angle
    sx, sy, sz = s * x, s * y, s * z
    return np.array(
        [
            [c + dx * x, dxy - sz, dxz + sy],
            [dxy + sz, c + dy * y, dyz - sx],
            [dxz - sy, dyz + sx, c + dz * z],
        ],
        dtype=float,
    )


def mat_mul(a, b) -> np.ndarray:
    """Product of two 3x3 matrices (given as 3x3 arrays or flat sequences of nine)."""
    ma = np.asarray(a, dtype=float).reshape(3, 3)
    mb = np.asarray(b, dtype=float).reshape(3, 3)
    return ma @ mb


def quat_normalise(q) -> tuple[np.ndarray, float]:
    """Return the unit quaternion and the original magnitude."""
    quat = np.array(q, dtype=float).reshape(4)
    mag = math.sqrt(float(quat @ quat))
    if mag != 0:
        quat /= mag
    return quat, mag


def matrix_to_quat(m) -> np.ndarray:
    """Convert a rotation matrix to a normalised quaternion ordered (x, y, z, w)."""
    m0, m1, m2, m3, m4, m5, m6, m7, m8 = np.asarray(m, dtype=float).reshape(9)
    t = 1.0 + m0 + m4 + m8
    if t > 1e-7:
        s = math.sqrt(t) * 2.0
        q = ((m7 - m5) / s, (m2 - m6) / s, (m3 - m1) / s, 0.25 * s)
    elif m0 > m4 and m0 > m8:
        s = math.sqrt(1.0 + m0 - m4 - m8) * 2.0
        q = (0.25 * s, (m3 + m1) / s, (m2 + m6) / s, (m7 - m5) / s)
    elif m4 > m8:
        s = math.sqrt(1.0 + m4 - m0 - m8) * 2.0
        q = ((m3 + m1) / s, 0.25 * s, (m7 + m5) / s, (m2 - m6) / s)
    else:
        s = math.sqrt(1.0 + m8 - m0 - m4) * 2.0
        q = ((m2 + m6) / s, (m7 + m5) / s, 0.25 * s, (m3 - m1) / s)
    return quat_normalise(q)[0]


def quat_to_angle_axis(q) -> tuple[float, "CmPoint"]:
    """Convert a normalised quaternion (x, y, z, w) to an angle and rotation axis."""
    x, y, z, w = (float(v) for v in q)
    cos_a = _clamp(w, -1.0, 1.0)
    sin_a = math.sqrt(1.0 - cos_a * cos_a)
    if abs(sin_a) < 0.0005:
        sin_a = 1.0
    angle = math.acos(cos_a) * 2.0
    return angle, CmPoint(x / sin_a, y / sin_a, z / sin_a)


@dataclass
class CmPoint:
    """A mutable 3D vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_az_el(cls, az: float, el: float) -> "CmPoint":
        """Unit vector pointing at the given azimuth and elevation (radians)."""
        point = cls(
            math.cos(az) * math.cos(el),
            math.sin(az) * math.cos(el),
            math.sin(el),
        )
        point.normalise()
        return point

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y, self.z)[index]

    def __setitem__(self, index: int, value: float) -> None:
        setattr(self, ("x", "y", "z")[index], float(value))

    def __add__(self, other: "CmPoint") -> "CmPoint":
        if not isinstance(other, CmPoint):
            return NotImplemented
        return CmPoint(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "CmPoint") -> "CmPoint":
        if not isinstance(other, CmPoint):
            return NotImplemented
        return CmPoint(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "CmPoint":
        return CmPoint(-self.x, -self.y, -self.z)

    def __mul__(self, scale: float) -> "CmPoint":
        if not isinstance(scale, Real):
            return NotImplemented
        s = float(scale)
        return CmPoint(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def __truediv__(self, scale: float) -> "CmPoint":
        if not isinstance(scale, Real):
            return NotImplemented
        s = float(scale)
        return CmPoint(self.x / s, self.y / s, self.z / s)

    def _copy(self) -> "CmPoint":
        return CmPoint(self.x, self.y, self.z)

    def len2(self) -> float:
        """Squared length."""
        return self.x * self.x + self.y * self.y + self.z * self.z

    def length(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.len2())

    def normalise(self) -> float:
        """Scale to unit length in place and return the previous length."""
        mag = self.length()
        if mag != 0:
            inv = 1.0 / mag
            self.x *= inv
            self.y *= inv
            self.z *= inv
        return mag

    def normalised(self) -> "CmPoint":
        """A unit-length copy."""
        point = self._copy()
        point.normalise()
        return point

    def dot(self, other: "CmPoint") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "CmPoint") -> "CmPoint":
        return CmPoint(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def angle_to_norm(self, other: "CmPoint") -> float:
        """Angle to another vector, both assumed unit length."""
        return math.acos(_clamp(self.dot(other), -1.0, 1.0))

    def omega_to_matrix(self) -> np.ndarray:
        """Rotation matrix for this angle-axis (omega) vector."""
        axis = self._copy()
        angle = axis.normalise()
        return angle_axis_to_matrix(math.cos(angle), math.sin(angle), axis)

    @classmethod
    def matrix_to_omega(cls, m) -> "CmPoint":
        """Angle-axis (omega) vector of a 3x3 rotation matrix."""
        mat = np.asarray(m, dtype=float)
        if mat.shape != (3, 3):
            raise ValueError(f"invalid matrix shape {mat.shape}, expected (3, 3)")
        trace = mat[0, 0] + mat[1, 1] + mat[2, 2]
        angle = math.acos(_clamp((trace - 1.0) / 2.0, -1.0, 1.0))
        sin_angle = math.sin(angle)
        if sin_angle != 0:
            angle /= 2.0 * sin_angle
        return cls(
            angle * float(mat[2, 1] - mat[1, 2]),
            angle * float(mat[0, 2] - mat[2, 0]),
            angle * float(mat[1, 0] - mat[0, 1]),
        )

    def to_az_el_mag(self) -> tuple[float, float, float]:
        """Azimuth, elevation and magnitude of this vector."""
        v = self._copy()
        mag = v.normalise()
        z = v.z
        v.z = 0.0
        xy = v.normalise()
        return math.atan2(v.y, v.x), math.atan2(z, xy), mag

    def transformed(self, m) -> "CmPoint":
        """This vector multiplied by a 3x3 matrix."""
        mat = np.asarray(m, dtype=float)
        if mat.shape != (3, 3):
            raise ValueError(f"invalid matrix shape {mat.shape}, expected (3, 3)")
        r = mat @ np.array([self.x, self.y, self.z])
        return CmPoint(float(r[0]), float(r[1]), float(r[2]))

    def rotation_about(self, angle: float) -> np.ndarray:
        """Rotation matrix for a rotation about this (not necessarily unit) axis."""
        return self.normalised().rotation_about_norm(angle)

    def rotation_about_norm(self, angle: float) -> np.ndarray:
        """Rotation matrix for a rotation about this unit axis."""
        return angle_axis_to_matrix(math.cos(angle), math.sin(angle), self)

    def rotation_to(self, vec: "CmPoint") -> "CmPoint":
        """Angle-axis vector rotating this direction onto another."""
        return self.normalised().rotation_to_norm(vec.normalised())

    def rotation_to_norm(self, vec: "CmPoint") -> "CmPoint":
        """Angle-axis vector rotating this unit vector onto another unit vector."""
        axis = self.cross(vec)
        angle = math.asin(_clamp(axis.normalise(), -1.0, 1.0))
        return axis * angle

    def rotated_about_norm(self, axis: "CmPoint", angle: float) -> "CmPoint":
        """A copy rotated by angle about the given unit axis."""
        return self.transformed(axis.rotation_about_norm(angle))

    def orth_vec_norm(self) -> "CmPoint":
        """A unit vector orthogonal to this one."""
        tmp = self._copy()
        if self.x < self.y:
            tmp.x += 1.0
        elif self.y < self.z:
            tmp.y += 1.0
        else:
            tmp.z += 1.0
        tmp = self.cross(tmp)
        tmp.normalise()
        return tmp

    def rotated_about_orth_vec(self, angle: float) -> "CmPoint":
        """A copy rotated by angle about some axis orthogonal to this vector."""
        return self.rotated_about_norm(self.orth_vec_norm(), angle)