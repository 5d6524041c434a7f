"""Kinematic chain stored as an arena of joints plus parent indices."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .exceptions import InvalidChain, InvalidEndEffector
from .lie import SE3, SO3


@dataclass
class Joint:
    """A rigid joint expressed in the frame of its parent.

    Attributes:
        translation: Offset of the joint origin from its parent [m].
        rotation: Local rotation applied after the translation.
    """

    translation: np.ndarray
    rotation: SO3 = field(default_factory=SO3.identity)

    def __post_init__(self):
        self.translation = np.array(self.translation, dtype=np.float64).reshape(3)

    def copy(self) -> Joint:
        return Joint(translation=self.translation.copy(), rotation=self.rotation.copy())


class KinematicChain:
    """Flat list of joints with a parallel list of parent indices.

    Parent indices are topologically ordered: the parent of joint i is either
    -1 (a root, expressed in the base frame) or an index smaller than i. World
    transforms are cached and recomputed lazily after any mutation.
    """

    def __init__(
        self,
        joints: Sequence[Joint],
        parents: Optional[Sequence[int]] = None,
        base: Optional[SE3] = None,
        is_3d: bool = True,
    ):
        """Constructor.

        Args:
            joints: Joints of the chain. They are not copied.
            parents: Parent index per joint, -1 for roots. Defaults to a serial
                chain where joint i is the parent of joint i + 1.
            base: Pose of the frame the roots are expressed in. Defaults to identity.
            is_3d: If False, the chain is assumed to live in the XY plane.
        """
        if len(joints) == 0:
            raise InvalidChain("A kinematic chain needs at least one joint.")
        if parents is None:
            parents = [-1] + list(range(len(joints) - 1))
        if len(parents) != len(joints):
            raise InvalidChain(
                f"Expected {len(joints)} parent indices, got {len(parents)}."
            )
        for index, parent in enumerate(parents):
            if not -1 <= parent < index:
                raise InvalidChain(
                    f"Joint {index} has parent {parent}. Parents must be -1 or "
                    f"precede their children."
                )

        self._joints: List[Joint] = list(joints)
        self._parents: List[int] = [int(p) for p in parents]
        self.base = base if base is not None else SE3.identity()
        self.is_3d = is_3d
        self._world: List[SE3] = []
        self._dirty = True

    @classmethod
    def from_positions(
        cls,
        points: Sequence[np.ndarray],
        is_3d: bool = True,
        base: Optional[SE3] = None,
    ) -> KinematicChain:
        """Build a serial chain with identity rotations through the given points.

        Args:
            points: World position of each joint, root first.
            is_3d: Dimension flag forwarded to the chain.
            base: Pose of the root frame.

        Returns:
            A serial kinematic chain.
        """
        base = base if base is not None else SE3.identity()
        points = [np.asarray(p, dtype=np.float64).reshape(3) for p in points]
        if not points:
            raise InvalidChain("A kinematic chain needs at least one joint.")
        joints = [Joint(translation=base.inverse().apply(points[0]))]
        for previous, current in zip(points[:-1], points[1:]):
            joints.append(Joint(translation=current - previous))
        return cls(joints, base=base, is_3d=is_3d)

    def __len__(self) -> int:
        return len(self._joints)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(joints={len(self)}, parents={self._parents})"

    @property
    def parents(self) -> List[int]:
        return list(self._parents)

    @property
    def end_effector(self) -> int:
        """Index of the last joint."""
        return len(self._joints) - 1

    def is_linear(self) -> bool:
        """True if every joint i > 0 is the child of joint i - 1."""
        return self._parents == [-1] + list(range(len(self._parents) - 1))

    def check_index(self, index: int) -> int:
        if not -len(self) <= index < len(self):
            raise InvalidEndEffector(index, len(self))
        return index % len(self)

    # Cache

    def _invalidate(self) -> None:
        self._dirty = True

    def _update(self) -> None:
        if not self._dirty:
            return
        world: List[SE3] = []
        for joint, parent in zip(self._joints, self._parents):
            frame = self.base if parent < 0 else world[parent]
            local = SE3(rotation=joint.rotation, translation=joint.translation)
            world.append(frame.multiply(local))
        self._world = world
        self._dirty = False

    # Accessors

    def translation(self, index: int) -> np.ndarray:
        return self._joints[index].translation.copy()

    def rotation(self, index: int) -> SO3:
        return self._joints[index].rotation

    def transform(self, index: int) -> SE3:
        """World pose of a joint."""
        self._update()
        return self._world[index]

    def position(self, index: int) -> np.ndarray:
        """World position of a joint."""
        return self.transform(index).translation.copy()

    def orientation(self, index: int) -> SO3:
        """World orientation of a joint."""
        return self.transform(index).rotation

    def reference(self, index: int) -> Optional[int]:
        """Parent index of a joint, or None for a root."""
        parent = self._parents[index]
        return None if parent < 0 else parent

    def reference_transform(self, index: int) -> SE3:
        """World pose of the frame a joint is expressed in."""
        parent = self._parents[index]
        return self.base if parent < 0 else self.transform(parent)

    def path(self, index: int) -> List[int]:
        """Indices from the root down to the given joint, inclusive."""
        path = []
        current = index
        while current >= 0:
            path.append(current)
            current = self._parents[current]
        return path[::-1]

    def children(self, index: int) -> List[int]:
        return [i for i, parent in enumerate(self._parents) if parent == index]

    def segment_lengths(self) -> np.ndarray:
        """Length of the bone ending at each non-root joint."""
        return np.array(
            [
                np.linalg.norm(joint.translation)
                for joint, parent in zip(self._joints, self._parents)
                if parent >= 0
            ]
        )

    def displacement(self, index: int, vector: np.ndarray) -> np.ndarray:
        """Express a world vector in the frame of a joint."""
        return self.orientation(index).inverse().apply(np.asarray(vector, dtype=np.float64))

    def location(self, index: int, point: np.ndarray) -> np.ndarray:
        """Express a world point in the frame of a joint."""
        return self.transform(index).inverse().apply(np.asarray(point, dtype=np.float64))

    # Mutators

    def rotate(self, index: int, rotation: SO3) -> None:
        """Compose a local rotation onto a joint."""
        joint = self._joints[index]
        joint.rotation = joint.rotation.multiply(rotation)
        self._invalidate()

    def set_rotation(self, index: int, rotation: SO3) -> None:
        self._joints[index].rotation = rotation
        self._invalidate()

    def set_orientation(self, index: int, orientation: SO3) -> None:
        """Set the world orientation of a joint by adjusting its local rotation."""
        reference = self.reference_transform(index).rotation
        self._joints[index].rotation = reference.inverse().multiply(orientation)
        self._invalidate()

    def translate(self, index: int, offset: np.ndarray) -> None:
        """Shift a joint by an offset expressed in its parent frame."""
        self._joints[index].translation = self._joints[index].translation + offset
        self._invalidate()

    def set_translation(self, index: int, translation: np.ndarray) -> None:
        self._joints[index].translation = np.array(translation, dtype=np.float64).reshape(3)
        self._invalidate()

    def set_position(self, index: int, position: np.ndarray) -> None:
        """Move a joint to a world position by adjusting its local translation."""
        reference = self.reference_transform(index)
        self.set_translation(index, reference.inverse().apply(np.asarray(position, dtype=np.float64)))

    # State transfer

    def rotations(self) -> List[SO3]:
        return [joint.rotation for joint in self._joints]

    def set_rotations(self, rotations: Sequence[SO3]) -> None:
        if len(rotations) != len(self._joints):
            raise InvalidChain(
                f"Expected {len(self._joints)} rotations, got {len(rotations)}."
            )
        for joint, rotation in zip(self._joints, rotations):
            joint.rotation = rotation
        self._invalidate()

    def copy(self) -> KinematicChain:
        """Deep copy sharing no mutable state with this chain."""
        return KinematicChain(
            [joint.copy() for joint in self._joints],
            parents=self._parents,
            base=self.base.copy(),
            is_3d=self.is_3d,
        )

    def copy_state_from(self, other: KinematicChain) -> None:
        """Overwrite translations and rotations with those of a same-shaped chain."""
        if other._parents != self._parents:
            raise InvalidChain("Cannot copy state between chains of different structure.")
        for joint, source in zip(self._joints, other._joints):
            joint.translation = source.translation.copy()
            joint.rotation = source.rotation
        self.base = other.base
        self._invalidate()
