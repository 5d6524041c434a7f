"""Joint rotations stored as unit quaternions.

Conversions to matrices and rpy angles go through pinocchio.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pinocchio as pin

from .base import MatrixLieGroup
from .utils import normalize, orthogonal_vector

# Below this dot product two unit vectors are treated as opposite.
_ANTIPARALLEL_DOT = -1.0 + 1e-9


def _pin_quaternion(quat: np.ndarray) -> pin.Quaternion:
    x, y, z, w = quat
    return pin.Quaternion(w, x, y, z)


@dataclass(frozen=True)
class SO3(MatrixLieGroup):
    """Rotation of a joint relative to its parent.

    Attributes:
        quat: Unit quaternion, ordered [x, y, z, w].
    """

    quat: np.ndarray
    space_dim: int = 3

    def __repr__(self) -> str:
        return f"SO3(quat={np.round(self.quat, 5)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SO3):
            return NotImplemented
        return np.allclose(self.quat, other.quat)

    # Constructors

    @classmethod
    def identity(cls) -> SO3:
        return cls(np.array([0.0, 0.0, 0.0, 1.0]))

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> SO3:
        assert matrix.shape == (3, 3)
        quaternion = pin.Quaternion(np.asarray(matrix, dtype=np.float64))
        quaternion.normalize()
        return cls(np.array(quaternion.coeffs()))

    @classmethod
    def from_rpy(cls, roll: float, pitch: float, yaw: float) -> SO3:
        """Fixed-axis X-Y-Z angles in [rad], as used by the evolutionary genome."""
        return cls.from_matrix(pin.rpy.rpyToMatrix(float(roll), float(pitch), float(yaw)))

    @classmethod
    def from_axis_angle(cls, axis: np.ndarray, angle: float) -> SO3:
        """Rotation by angle [rad] about axis. A zero axis yields the identity."""
        axis = normalize(axis)
        if not np.any(axis):
            return cls.identity()
        half = 0.5 * angle
        return cls(np.append(np.sin(half) * axis, np.cos(half)))

    @classmethod
    def from_two_vectors(cls, source: np.ndarray, dest: np.ndarray) -> SO3:
        """Shortest rotation turning the direction of source onto dest.

        Opposite vectors give a half turn about a perpendicular axis; a zero
        vector gives the identity.
        """
        a = normalize(source)
        b = normalize(dest)
        if not np.any(a) or not np.any(b):
            return cls.identity()
        dot = float(np.dot(a, b))
        if dot < _ANTIPARALLEL_DOT:
            return cls.from_axis_angle(orthogonal_vector(a), np.pi)
        quat = np.append(np.cross(a, b), 1.0 + dot)
        return cls(quat / np.linalg.norm(quat))

    # Conversions

    def copy(self) -> SO3:
        return SO3(self.quat.copy())

    def as_matrix(self) -> np.ndarray:
        return _pin_quaternion(self.quat).toRotationMatrix()

    def as_rpy(self) -> np.ndarray:
        return np.array(pin.rpy.matrixToRpy(self.as_matrix()))

    # Group operations

    def apply(self, target: np.ndarray) -> np.ndarray:
        assert target.shape == (3,)
        return self.as_matrix() @ target

    def multiply(self, other: SO3) -> SO3:
        # Renormalized so long chains of products stay on the unit sphere.
        product = _pin_quaternion(self.quat) * _pin_quaternion(other.quat)
        quat = np.array(product.coeffs())
        return SO3(quat / np.linalg.norm(quat))

    def inverse(self) -> SO3:
        return SO3(self.quat * np.array([-1.0, -1.0, -1.0, 1.0]))

    # Metrics

    def dot(self, other: SO3) -> float:
        return float(np.dot(self.quat, other.quat))

    def angle(self) -> float:
        """Rotation angle in [0, pi]."""
        return float(2.0 * np.arctan2(np.linalg.norm(self.quat[:3]), abs(self.quat[3])))

    def axis(self) -> np.ndarray:
        """Unit axis consistent with `angle`. X axis for the identity."""
        sign = 1.0 if self.quat[3] >= 0.0 else -1.0
        axis = normalize(sign * self.quat[:3])
        if not np.any(axis):
            return np.array([1.0, 0.0, 0.0])
        return axis

    def angle_to(self, other: SO3) -> float:
        """Angle in [0, pi] of the rotation taking self onto other."""
        cos = 2.0 * min(self.dot(other) ** 2, 1.0) - 1.0
        return float(np.arccos(np.clip(cos, -1.0, 1.0)))

    def clamp(self, max_angle: float) -> SO3:
        """Same axis with the angle limited to max_angle."""
        if self.angle() <= max_angle:
            return self
        return SO3.from_axis_angle(self.axis(), max_angle)
