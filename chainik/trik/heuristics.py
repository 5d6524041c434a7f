"""Per-joint corrective heuristics for the TRIK solver."""

from __future__ import annotations

import abc
import math

import numpy as np

from ..constants import (
    TRIK_ALIGNMENT_CLAMP,
    TRIK_GAMMA,
    TRIK_MAX_TWIST,
    TRIK_MIN_TWIST,
    TRIK_WEIGHT_BASE,
)
from ..lie import SO3, angle_between, normalize, project_on_plane
from .context import Context


class Heuristic(abc.ABC):
    """Abstract base class for TRIK heuristics.

    A heuristic adjusts joint i of the usable chain, trying to bring the
    end-effector closer to the target. Subclasses implement `apply_actions`.

    Attributes:
        context: Shared solver state.
        smooth: If True, every rotation is clamped to `smooth_angle`.
        smooth_angle: Clamp used when smoothing [rad].
    """

    def __init__(self, context: Context):
        self.context = context
        self.smooth = False
        self.smooth_angle = TRIK_MAX_TWIST

    def prepare(self) -> None:
        """Called once before each sweep."""

    @abc.abstractmethod
    def apply_actions(self, i: int) -> None:
        """Adjust joint i of the usable chain.

        Args:
            i: Joint index in [0, last - 1].
        """
        raise NotImplementedError

    def _smoothed(self, rotation: SO3) -> SO3:
        return rotation.clamp(self.smooth_angle) if self.smooth else rotation

    @staticmethod
    def weight(bone_length: float, desired_distance: float) -> float:
        """Damping in (0, 1] that shrinks as the desired location moves off the bone sphere."""
        if bone_length <= 0.0:
            return 1.0
        offset = desired_distance - bone_length
        if offset < 0.0:
            offset = -1.0 / offset
        return TRIK_WEIGHT_BASE ** (-offset / bone_length)

    def _weighted(self, rotation: SO3, p: np.ndarray, q: np.ndarray) -> SO3:
        if not self.context.enable_weight:
            return rotation
        factor = self.weight(float(np.linalg.norm(p)), float(np.linalg.norm(q)))
        return SO3.from_axis_angle(rotation.axis(), rotation.angle() * factor)


class ForwardHeuristic(Heuristic):
    """Root-heavy heuristic in the spirit of the FABRIK backward pass.

    An auxiliary copy of the chain is translated so that its end-effector sits
    on the target. Each joint is then rotated so that its descendants line up
    with the auxiliary chain, averaging the alignment for the child, a middle
    joint and the end-effector with discount gamma.
    """

    def __init__(self, context: Context, gamma: float = TRIK_GAMMA, use_middle: bool = True):
        super().__init__(context)
        self.gamma = gamma
        self.use_middle = use_middle
        self.auxiliary = context.usable.copy()

    def prepare(self) -> None:
        context = self.context
        usable, auxiliary, last = context.usable, self.auxiliary, context.last
        auxiliary.copy_state_from(usable)

        if context.direction:
            root = auxiliary.orientation(0)
            delta = (
                root.inverse()
                .multiply(context.target.orientation)
                .multiply(auxiliary.orientation(last).inverse())
                .multiply(root)
            )
            auxiliary.rotate(0, delta.clamp(TRIK_ALIGNMENT_CLAMP))

        difference = context.target.position - auxiliary.position(last)
        reference = auxiliary.reference_transform(0).rotation
        auxiliary.translate(0, reference.inverse().apply(difference))

    def _local_rotation(self, i: int, p: np.ndarray, auxiliary_index: int) -> SO3:
        q = self.context.usable.location(i, self.auxiliary.position(auxiliary_index))
        return self._weighted(SO3.from_two_vectors(p, q), p, q)

    def apply_actions(self, i: int) -> None:
        usable, last = self.context.usable, self.context.last
        bone = usable.translation(i + 1)

        desired = self._local_rotation(i, bone, i + 1).apply(bone)
        total = 1.0
        factor = 1.0

        if self.use_middle and i < last - 1:
            middle = i + (last + 1 - i) // 2
            middle_location = usable.location(i, usable.position(middle))
            factor *= self.gamma
            desired = desired + factor * self._local_rotation(i, middle_location, middle).apply(bone)
            total += factor

        effector_location = usable.location(i, usable.position(last))
        factor *= self.gamma
        desired = desired + factor * self._local_rotation(i, effector_location, last).apply(bone)
        total += factor

        rotation = SO3.from_two_vectors(bone, desired / total)
        if self.smooth:
            self.smooth_angle = ((i + 1.0) / last) ** (1.0 / (0.2 * self.context.iteration + 1.0))
        usable.rotate(i, self._smoothed(rotation))


class BackwardHeuristic(Heuristic):
    """Effector-heavy heuristic in the spirit of the FABRIK forward pass.

    Joint i + 1 is shifted by the end-effector error and joint i is rotated
    toward the shifted point. Joint i + 1 then receives the compensating
    rotation that keeps its world orientation.
    """

    def apply_actions(self, i: int) -> None:
        context = self.context
        usable = context.usable
        difference = context.target.position - usable.position(context.last)
        p = usable.translation(i + 1)
        q = usable.location(i, usable.position(i + 1) + difference)
        delta = self._smoothed(self._weighted(SO3.from_two_vectors(p, q), p, q))

        if i == context.last - 1:
            usable.rotate(i, delta)
            return

        child = usable.rotation(i + 1)
        alpha = delta.multiply(child).inverse().multiply(child)
        usable.rotate(i, delta)
        usable.rotate(i + 1, alpha)


class CCDHeuristic(Heuristic):
    """Cyclic coordinate descent step.

    Joint i is rotated so that the end-effector direction matches the target
    direction. With direction enabled, a second rotation moves the
    end-effector orientation toward the target orientation, limited so that
    the position error does not cross into the next multiple of the average
    segment length.
    """

    def apply_actions(self, i: int) -> None:
        context = self.context
        usable = context.usable
        p = usable.location(i, usable.position(context.last))
        q = usable.location(i, context.target.position)
        usable.rotate(i, self._smoothed(SO3.from_two_vectors(p, q)))

        if not context.direction:
            return
        radius = float(np.linalg.norm(context.target.position - usable.position(i)))
        if radius == 0.0 or context.avg_length == 0.0:
            return
        error = context.position_error()
        steps = math.floor(error / context.avg_length)
        slack = (steps + 1) * context.avg_length - error
        cos = np.clip(1.0 - (slack * slack) / (2.0 * radius * radius), -1.0, 1.0)
        max_angle = 0.5 * math.acos(cos)
        usable.rotate(i, self.orientational(i).clamp(max_angle))

    def orientational(self, i: int) -> SO3:
        """Local rotation of joint i that aligns the end-effector with the target orientation."""
        usable = self.context.usable
        joint = usable.orientation(i)
        to_effector = joint.inverse().multiply(usable.orientation(self.context.last))
        return joint.inverse().multiply(self.context.target.orientation).multiply(to_effector.inverse())


class TwistHeuristic(Heuristic):
    """Rotate joint i about its own bone.

    The CCD twist brings the end-effector toward the target as seen in the
    plane normal to the bone. With direction enabled, it is averaged with the
    twist component of the orientation error.
    """

    def __init__(
        self,
        context: Context,
        max_twist: float = TRIK_MAX_TWIST,
        min_twist: float = TRIK_MIN_TWIST,
    ):
        super().__init__(context)
        self.max_twist = max_twist
        self.min_twist = min_twist

    def _ccd_twist(self, i: int, axis: np.ndarray, max_angle: float) -> float:
        usable, context = self.context.usable, self.context
        to_target = usable.location(i, context.target.position)
        to_effector = usable.location(i, usable.position(context.last))
        target_projection = project_on_plane(to_target, axis)
        effector_projection = project_on_plane(to_effector, axis)
        if (
            np.linalg.norm(target_projection) < 0.1 * np.linalg.norm(to_target)
            and np.linalg.norm(effector_projection) < 0.1 * np.linalg.norm(to_effector)
        ):
            return 0.0
        angle = min(angle_between(effector_projection, target_projection), max_angle)
        if np.dot(np.cross(effector_projection, target_projection), axis) < 0.0:
            angle = -angle
        return angle

    def _orientation_twist(self, i: int, axis: np.ndarray, max_angle: float) -> float:
        usable, context = self.context.usable, self.context
        joint = usable.orientation(i)
        delta = (
            joint.inverse()
            .multiply(context.target.orientation)
            .multiply(usable.orientation(context.last).inverse())
            .multiply(joint)
        )
        if delta.angle() < self.min_twist:
            return 0.0
        # Swing-twist decomposition: twist angle about axis.
        angle = 2.0 * math.atan2(float(np.dot(delta.quat[:3], axis)), float(delta.quat[3]))
        if angle > math.pi:
            angle -= 2.0 * math.pi
        elif angle < -math.pi:
            angle += 2.0 * math.pi
        return float(np.clip(angle, -max_angle, max_angle))

    def apply_actions(self, i: int) -> None:
        axis = normalize(self.context.usable.translation(i + 1))
        if not np.any(axis):
            return
        max_angle = self.smooth_angle if self.smooth else self.max_twist
        angle = self._ccd_twist(i, axis, max_angle)
        if self.context.direction:
            angle = 0.5 * (angle + self._orientation_twist(i, axis, max_angle))
        if angle != 0.0:
            self.context.usable.rotate(i, SO3.from_axis_angle(axis, angle))
