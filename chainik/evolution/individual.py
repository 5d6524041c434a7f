"""Candidate chain configurations and their fitness."""

from __future__ import annotations

import enum
import math
from typing import Optional

import numpy as np

from ..chain import KinematicChain
from ..constants import BIOIK_POSE_WEIGHT
from ..lie import SO3
from ..target import TargetSet


class FitnessFunction(enum.Enum):
    POSITION = "position"
    ORIENTATION = "orientation"
    POSE = "pose"


def path_length(chain: KinematicChain, index: int) -> float:
    """Summed segment length from the root down to a joint."""
    path = chain.path(index)
    return float(
        sum(np.linalg.norm(chain.translation(i)) for i in path[1:])
    )


def normalized_distance(chain: KinematicChain, index: int, position: np.ndarray, joint: int = 0) -> float:
    """Distance from joint `index` to a position, as an angle seen from `joint`.

    Computes pi * dist / sqrt(l * d) with l the path length from the root to
    `joint` (or d when that is zero) and d the distance between `joint` and
    `index`. Falls back to the plain distance when d is zero.
    """
    dist = float(np.linalg.norm(chain.position(index) - position))
    d = float(np.linalg.norm(chain.position(index) - chain.position(joint)))
    if d == 0.0:
        return dist
    length = path_length(chain, joint if joint > 0 else index)
    if length == 0.0:
        length = d
    return math.pi * dist / math.sqrt(length * d)


def orientation_distance(orientation: SO3, target: SO3) -> float:
    """Angle [rad] between two orientations, 2 acos |q1 . q2|."""
    dot = min(abs(orientation.dot(target)), 1.0)
    return 2.0 * math.acos(dot)


def evaluate(
    chain: KinematicChain,
    targets: TargetSet,
    function: FitnessFunction = FitnessFunction.POSITION,
    pose_weight: float = BIOIK_POSE_WEIGHT,
) -> float:
    """Mean error of a chain over every set target slot.

    Args:
        chain: Chain to evaluate.
        targets: Targets aligned to the chain.
        function: Which error to measure.
        pose_weight: Weight of the orientation term for POSE.

    Returns:
        The fitness, lower is better. Zero if no target is set.
    """
    position_error = 0.0
    orientation_error = 0.0
    count = 0
    for index, target in targets.items():
        count += 1
        if function is FitnessFunction.POSITION:
            position_error += float(np.linalg.norm(chain.position(index) - target.position))
        elif function is FitnessFunction.POSE:
            position_error += normalized_distance(chain, index, target.position, joint=0)
        if function is not FitnessFunction.POSITION:
            orientation_error += orientation_distance(chain.orientation(index), target.orientation)
    if count == 0:
        return 0.0
    if function is FitnessFunction.POSITION:
        return position_error / count
    if function is FitnessFunction.ORIENTATION:
        return orientation_error / count
    return ((1.0 - pose_weight) * position_error + pose_weight * orientation_error) / count


class Individual:
    """Independent copy of a chain with evolutionary bookkeeping.

    Attributes:
        chain: Deep copy of the chain owned by this individual.
        fitness: Last evaluated fitness, lower is better.
        extinction: Adaptive factor in [0, 1] derived from the fitness rank.
        gradient: Last retained change per rpy component, 3 entries per joint.
    """

    def __init__(
        self,
        chain: KinematicChain,
        fitness: float = math.inf,
        extinction: float = 0.0,
        gradient: Optional[np.ndarray] = None,
    ):
        self.chain = chain
        self.fitness = fitness
        self.extinction = extinction
        self.gradient = np.zeros(3 * len(chain)) if gradient is None else gradient

    def __len__(self) -> int:
        return len(self.chain)

    def __repr__(self) -> str:
        return f"Individual(fitness={self.fitness:.6f}, extinction={self.extinction:.3f})"

    def clone(self) -> Individual:
        return Individual(
            self.chain.copy(),
            fitness=self.fitness,
            extinction=self.extinction,
            gradient=self.gradient.copy(),
        )

    def euler(self, index: int) -> np.ndarray:
        """Roll-pitch-yaw of the local rotation of a joint."""
        return self.chain.rotation(index).as_rpy()

    def set_euler(self, index: int, rpy: np.ndarray) -> None:
        self.chain.set_rotation(index, SO3.from_rpy(*rpy))

    def evaluate(
        self,
        targets: TargetSet,
        function: FitnessFunction = FitnessFunction.POSITION,
        pose_weight: float = BIOIK_POSE_WEIGHT,
    ) -> float:
        self.fitness = evaluate(self.chain, targets, function, pose_weight)
        return self.fitness
