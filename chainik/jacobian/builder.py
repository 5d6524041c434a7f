"""Positional Jacobian of a serial chain with respect to per-joint rotation axes."""

from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

from ..chain import KinematicChain
from ..constants import AXIS_DEGENERACY_THRESHOLD
from ..lie import SO3, orthogonal_vector

_Z_AXIS = np.array([0.0, 0.0, 1.0])
_NUMERICAL_STEP = math.radians(1)


class Jacobian(NamedTuple):
    """Jacobian matrix plus the world rotation axis used for each column.

    Attributes:
        matrix: Array of shape (rows, len(chain) - 1) with rows 3 in 3D and 2 in 2D.
        axes: Array of shape (len(chain) - 1, 3).
    """

    matrix: np.ndarray
    axes: np.ndarray

    @property
    def rows(self) -> int:
        return self.matrix.shape[0]


def _central_difference(axis: np.ndarray, arm: np.ndarray) -> np.ndarray:
    forward = SO3.from_axis_angle(axis, _NUMERICAL_STEP).apply(arm)
    backward = SO3.from_axis_angle(axis, -_NUMERICAL_STEP).apply(arm)
    return (forward - backward) / (2.0 * _NUMERICAL_STEP)


def build_jacobian(
    chain: KinematicChain,
    target_position: np.ndarray,
    end_effector: int = -1,
    axis_threshold: float = AXIS_DEGENERACY_THRESHOLD,
    numerical: bool = False,
) -> Jacobian:
    """Compute the end-effector position Jacobian.

    Each free joint (every joint before the end-effector) rotates about the
    axis that swings the end-effector toward the target. In 3D this is the
    normalized cross product of (eff - joint) and (target - joint), replaced by
    a vector orthogonal to (eff - joint) when that cross product is too small.
    In 2D it is the out-of-plane Z axis.

    Args:
        chain: Serial chain.
        target_position: World position of the target.
        end_effector: Index of the end-effector joint.
        axis_threshold: Cross product norm below which an axis is degenerate.
        numerical: If True, columns are estimated by central differences
            instead of the analytic cross product.

    Returns:
        Jacobian with one column per free joint.
    """
    end_effector = chain.check_index(end_effector)
    rows = 3 if chain.is_3d else 2
    matrix = np.zeros((rows, end_effector))
    axes = np.zeros((end_effector, 3))
    effector = chain.position(end_effector)
    target_position = np.asarray(target_position, dtype=np.float64)

    for j in range(end_effector):
        joint = chain.position(j)
        arm = effector - joint
        if chain.is_3d:
            axis = np.cross(arm, target_position - joint)
            if np.linalg.norm(axis) < axis_threshold:
                axis = orthogonal_vector(arm)
            axis = axis / np.linalg.norm(axis)
        else:
            axis = _Z_AXIS
        axes[j] = axis
        column = _central_difference(axis, arm) if numerical else np.cross(axis, arm)
        matrix[:, j] = column[:rows]

    return Jacobian(matrix=matrix, axes=axes)


def error_vector(
    chain: KinematicChain,
    target_position: np.ndarray,
    end_effector: int = -1,
    max_length: float = np.inf,
) -> np.ndarray:
    """Vector from the end-effector to the target, clamped to max_length.

    Returns an array with 3 entries in 3D and 2 in 2D.
    """
    error = np.asarray(target_position, dtype=np.float64) - chain.position(end_effector)
    norm = np.linalg.norm(error)
    if norm > max_length:
        error = error * (max_length / norm)
    return error if chain.is_3d else error[:2]


def apply_delta(chain: KinematicChain, delta: np.ndarray, axes: np.ndarray) -> None:
    """Rotate each free joint by delta[j] radians about its world axis axes[j].

    Joints are visited root first. Zero entries are skipped.
    """
    for j, angle in enumerate(delta):
        if angle == 0.0:
            continue
        local_axis = chain.displacement(j, axes[j])
        chain.rotate(j, SO3.from_axis_angle(local_axis, float(angle)))
