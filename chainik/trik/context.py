"""Working state shared by the TRIK solver and its heuristics."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from ..chain import KinematicChain
from ..constants import TRIK_WEIGHT_RATIO
from ..exceptions import InvalidConfiguration, NonLinearChain
from ..target import Target


class Context:
    """Committed chain, usable trial chain and error weighting.

    Attributes:
        chain: The caller's chain. Only written by `commit`.
        usable: Trial copy of the chain that heuristics modify.
        target: Target of the end-effector, or None.
        direction: If True, the target orientation is part of the error.
        weight_ratio: How many times position matters more than orientation.
        enable_weight: If True, heuristics scale their rotations by a weight
            depending on how far the joint is from its desired location.
        single_step: If True, one joint is adjusted per iteration.
        top_to_bottom: Sweep order. True visits the root first.
        max_length: Longest segment of the chain.
        avg_length: Total segment length divided by the number of joints.
        iteration: Iterations run since the last reset.
    """

    def __init__(
        self,
        chain: KinematicChain,
        target: Optional[Target] = None,
        direction: bool = False,
        weight_ratio: float = TRIK_WEIGHT_RATIO,
        enable_weight: bool = False,
        single_step: bool = False,
    ):
        if not chain.is_linear():
            raise NonLinearChain("TRIK", chain.parents)
        if weight_ratio <= 0.0:
            raise InvalidConfiguration(f"weight_ratio must be positive, got {weight_ratio}")
        self.chain = chain
        self.usable = chain.copy()
        self.target = target
        self.direction = direction
        self.weight_ratio = weight_ratio
        self.enable_weight = enable_weight
        self.single_step = single_step
        self.top_to_bottom = True
        self.max_length = 0.0
        self.avg_length = 0.0
        self.iteration = 0
        self.update_lengths()

    @property
    def last(self) -> int:
        """Index of the end-effector."""
        return len(self.chain) - 1

    def update_lengths(self) -> None:
        lengths = self.chain.segment_lengths()
        self.max_length = float(np.max(lengths)) if lengths.size else 0.0
        self.avg_length = float(np.sum(lengths)) / len(self.chain)

    # Error measures

    def position_error(self, chain: Optional[KinematicChain] = None) -> float:
        chain = self.usable if chain is None else chain
        return float(np.linalg.norm(self.target.position - chain.position(self.last)))

    def orientation_error(self, chain: Optional[KinematicChain] = None) -> float:
        """Angle [rad] between end-effector and target orientations."""
        chain = self.usable if chain is None else chain
        dot = chain.orientation(self.last).dot(self.target.orientation)
        return float(math.acos(np.clip(1.0 - 2.0 * (1.0 - dot * dot), -1.0, 1.0)))

    def error(self, chain: Optional[KinematicChain] = None) -> float:
        """Combined error used by the keep-best rule.

        Position error is normalized by the average segment length, squared
        and weighted by weight_ratio. The orientation angle is added when
        direction is enabled.
        """
        chain = self.usable if chain is None else chain
        distance = self.position_error(chain)
        if self.avg_length > 0.0:
            distance /= self.avg_length
        error = self.weight_ratio * distance * distance
        if self.direction:
            error += self.orientation_error(chain)
        return error

    # State transfer

    def restore(self) -> None:
        """Copy the committed chain into the usable chain."""
        self.usable.copy_state_from(self.chain)

    def commit(self) -> None:
        """Copy the usable rotations into the committed chain."""
        self.chain.set_rotations(self.usable.rotations())
