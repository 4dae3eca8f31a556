"""
Rigid-body transform math for the viewer camera.

Quaternions are stored as numpy arrays in (w, x, y, z) order. Matrices use
the row-major math convention: a point is transformed as ``M @ [x, y, z, 1]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
from pyglet.math import Mat4  # type: ignore

_EPSILON = 1e-12


class NonInvertibleTransformError(ArithmeticError):
    """Raised when a rigid transform has no inverse (zero scale or quaternion)."""


def identity_quaternion() -> np.ndarray:
    return np.array([1.0, 0.0, 0.0, 0.0])


def quat_from_angle_x(angle: float) -> np.ndarray:
    """Rotation of ``angle`` radians around the x axis."""
    half = 0.5 * float(angle)
    return np.array([math.cos(half), math.sin(half), 0.0, 0.0])


def quat_from_angle_z(angle: float) -> np.ndarray:
    """Rotation of ``angle`` radians around the z axis."""
    half = 0.5 * float(angle)
    return np.array([math.cos(half), 0.0, 0.0, math.sin(half)])


def quat_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Hamilton product ``a * b``.

    The result applies ``b`` first, then ``a``, when used to rotate vectors.
    """
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array([
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    ])


def quat_conjugate(q: np.ndarray) -> np.ndarray:
    return np.array([q[0], -q[1], -q[2], -q[3]])


def quat_inverse(q: np.ndarray) -> np.ndarray:
    """
    Multiplicative inverse of a quaternion.

    Raises:
        NonInvertibleTransformError: if the quaternion has zero length
    """
    norm2 = float(np.dot(q, q))
    if not math.isfinite(norm2) or norm2 < _EPSILON:
        raise NonInvertibleTransformError(f"quaternion {q!r} has no inverse")
    return quat_conjugate(q) / norm2


def quat_rotate(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Rotate a 3-vector by a unit quaternion."""
    w = q[0]
    u = q[1:]
    t = 2.0 * np.cross(u, v)
    return v + w * t + np.cross(u, t)


def quat_to_matrix3(q: np.ndarray) -> np.ndarray:
    """3x3 rotation matrix of a unit quaternion."""
    w, x, y, z = q
    return np.array([
        [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
        [2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)],
        [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)],
    ])


@dataclass
class RigidTransform:
    """
    Position, orientation and uniform scale of an object in world space.

    Maps local coordinates to world coordinates: ``p_world = disp + rot(scale * p)``.

    Attributes:
        disp: Displacement (3,)
        rot: Orientation quaternion (w, x, y, z)
        scale: Uniform scale, 1.0 for the camera
    """
    disp: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rot: np.ndarray = field(default_factory=identity_quaternion)
    scale: float = 1.0

    def __post_init__(self) -> None:
        self.disp = np.asarray(self.disp, dtype=np.float64).reshape(3)
        self.rot = np.asarray(self.rot, dtype=np.float64).reshape(4)
        self.scale = float(self.scale)

    def copy(self) -> "RigidTransform":
        return RigidTransform(self.disp.copy(), self.rot.copy(), self.scale)

    def transform_point(self, p: np.ndarray) -> np.ndarray:
        return self.disp + quat_rotate(self.rot, self.scale * np.asarray(p, dtype=np.float64))

    def to_matrix(self) -> np.ndarray:
        """Homogeneous 4x4 matrix (translation * rotation * scale)."""
        m = np.identity(4)
        m[:3, :3] = quat_to_matrix3(self.rot) * self.scale
        m[:3, 3] = self.disp
        return m

    def inverse(self) -> "RigidTransform":
        """
        Inverse transform, mapping world coordinates back to local ones.

        Raises:
            NonInvertibleTransformError: on zero scale, zero-length rotation
                or non-finite components
        """
        if not math.isfinite(self.scale) or abs(self.scale) < _EPSILON:
            raise NonInvertibleTransformError(f"scale {self.scale!r} has no inverse")
        if not np.all(np.isfinite(self.disp)):
            raise NonInvertibleTransformError(f"displacement {self.disp!r} is not finite")
        inv_scale = 1.0 / self.scale
        inv_rot = quat_inverse(self.rot)
        inv_disp = quat_rotate(inv_rot, -self.disp) * inv_scale
        return RigidTransform(inv_disp, inv_rot, inv_scale)

    def inverse_matrix(self) -> np.ndarray:
        return self.inverse().to_matrix()


def from_pyglet_mat4(matrix: Mat4) -> np.ndarray:
    """Convert pyglet's column-major Mat4 to a row-major numpy 4x4 matrix."""
    return np.array(tuple(matrix), dtype=np.float64).reshape(4, 4).T


def to_pyglet_mat4(matrix: np.ndarray) -> Mat4:
    """Convert a row-major numpy 4x4 matrix to pyglet's column-major Mat4."""
    m = np.asarray(matrix, dtype=np.float64).reshape(4, 4)
    return Mat4(*m.T.reshape(16).tolist())
