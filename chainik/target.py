"""Target poses for end-effectors."""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

import numpy as np

from .chain import KinematicChain
from .exceptions import InvalidEndEffector, InvalidTarget
from .lie import SO3


class Target:
    """Desired world position and orientation of one end-effector.

    Targets are mutable handles: the caller moves them between ticks and the
    solvers notice through their snapshot comparison.
    """

    def __init__(self, position: np.ndarray, orientation: Optional[SO3] = None):
        self.position = position
        self.orientation = orientation if orientation is not None else SO3.identity()

    @classmethod
    def from_chain(cls, chain: KinematicChain, index: int) -> Target:
        """Target sitting on the current pose of a chain joint."""
        return cls(chain.position(index), chain.orientation(index))

    @property
    def position(self) -> np.ndarray:
        return self._position

    @position.setter
    def position(self, value: np.ndarray) -> None:
        value = np.array(value, dtype=np.float64)
        if value.shape != (3,):
            raise InvalidTarget(f"Expected target position of shape (3,), got {value.shape}")
        if not np.all(np.isfinite(value)):
            raise InvalidTarget(f"Target position must be finite, got {value}")
        self._position = value

    @property
    def orientation(self) -> SO3:
        return self._orientation

    @orientation.setter
    def orientation(self, value: SO3) -> None:
        if not isinstance(value, SO3):
            raise InvalidTarget(f"Expected an SO3 orientation, got {type(value).__name__}")
        self._orientation = value

    def copy(self) -> Target:
        return Target(self._position.copy(), self._orientation.copy())

    def matches(self, other: Optional[Target]) -> bool:
        """True if other describes the same pose."""
        if other is None:
            return False
        return (
            np.allclose(self._position, other._position)
            and np.allclose(self._orientation.quat, other._orientation.quat)
        )

    def __repr__(self) -> str:
        return f"Target(position={np.round(self._position, 5)}, orientation={self._orientation})"


class TargetSet:
    """Fixed-length array of optional targets aligned to a chain.

    Slot i holds the target for joint i, or None. Iterating yields
    (index, target) pairs for the set slots only.
    """

    def __init__(self, size: int):
        if size < 1:
            raise InvalidTarget(f"A target set needs at least one slot, got {size}.")
        self._slots: List[Optional[Target]] = [None] * size

    @classmethod
    def single(cls, size: int, index: int, target: Target) -> TargetSet:
        targets = cls(size)
        targets[index] = target
        return targets

    def _check(self, index: int) -> int:
        if not -len(self._slots) <= index < len(self._slots):
            raise InvalidEndEffector(index, len(self._slots))
        return index % len(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> Optional[Target]:
        return self._slots[self._check(index)]

    def __setitem__(self, index: int, target: Optional[Target]) -> None:
        if target is not None and not isinstance(target, Target):
            raise InvalidTarget(f"Expected a Target or None, got {type(target).__name__}")
        self._slots[self._check(index)] = target

    def __delitem__(self, index: int) -> None:
        self._slots[self._check(index)] = None

    def __iter__(self) -> Iterator[Tuple[int, Target]]:
        return self.items()

    def items(self) -> Iterator[Tuple[int, Target]]:
        for index, target in enumerate(self._slots):
            if target is not None:
                yield index, target

    def count(self) -> int:
        """Number of set slots."""
        return sum(1 for _ in self.items())

    def snapshot(self) -> TargetSet:
        """Copy with every set target copied."""
        result = TargetSet(len(self._slots))
        for index, target in self.items():
            result._slots[index] = target.copy()
        return result

    def matches(self, other: Optional[TargetSet]) -> bool:
        if other is None or len(other) != len(self):
            return False
        for mine, theirs in zip(self._slots, other._slots):
            if (mine is None) != (theirs is None):
                return False
            if mine is not None and not mine.matches(theirs):
                return False
        return True

    def __repr__(self) -> str:
        return f"TargetSet(size={len(self)}, targets={dict(self.items())})"
