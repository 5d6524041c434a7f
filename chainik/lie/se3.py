"""Rigid frames of joints: a rotation and a translation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .base import MatrixLieGroup
from .so3 import SO3


@dataclass(frozen=True)
class SE3(MatrixLieGroup):
    """Rigid transform mapping joint-local points to the parent (or world) frame.

    Attributes:
        rotation: Orientation of the frame.
        translation: Origin of the frame.
    """

    rotation: SO3
    translation: np.ndarray
    space_dim: int = 3

    def __repr__(self) -> str:
        return (
            f"SE3(quat={np.round(self.rotation.quat, 5)}, "
            f"xyz={np.round(self.translation, 5)})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SE3):
            return NotImplemented
        return self.rotation == other.rotation and np.allclose(self.translation, other.translation)

    @classmethod
    def identity(cls) -> SE3:
        return cls(SO3.identity(), np.zeros(3))

    @classmethod
    def from_rotation_and_translation(cls, rotation: SO3, translation: np.ndarray) -> SE3:
        translation = np.asarray(translation, dtype=np.float64)
        assert translation.shape == (3,), f"Expected a 3D translation, got {translation.shape}"
        return cls(rotation, translation.copy())

    @classmethod
    def from_translation(cls, translation: np.ndarray) -> SE3:
        """Pure offset, e.g. a chain base placed away from the origin."""
        return cls.from_rotation_and_translation(SO3.identity(), translation)

    def copy(self) -> SE3:
        return SE3(self.rotation.copy(), self.translation.copy())

    def apply(self, target: np.ndarray) -> np.ndarray:
        return self.rotation.apply(target) + self.translation

    def multiply(self, other: SE3) -> SE3:
        # Parent frame times child-local frame gives the child world frame.
        return SE3(
            self.rotation.multiply(other.rotation),
            self.rotation.apply(other.translation) + self.translation,
        )

    def inverse(self) -> SE3:
        rotation = self.rotation.inverse()
        return SE3(rotation, -rotation.apply(self.translation))
