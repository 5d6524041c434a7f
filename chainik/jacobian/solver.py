"""Jacobian-based chain solver."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from ..chain import KinematicChain
from ..config import SolverConfig
from ..exceptions import InvalidTarget, NonLinearChain
from ..strategy import SolverStrategy
from ..target import Target
from .builder import apply_delta, build_jacobian, error_vector
from .linear import LinearSystem, clamp_step


class JacobianSolver(SolverStrategy):
    """Drive the end-effector of a serial chain toward a target position.

    Each iteration clamps the error to the longest segment, builds the
    Jacobian, solves for a joint delta with the configured linear system and
    clamps the largest delta component to the system's max_step.

    Commit rule: when `system.deferred` is False the delta is applied right
    away and convergence is tested on the new pose. Otherwise convergence is
    tested on the current pose and the delta is applied on `update`.

    Example:
        >>> chain = KinematicChain.from_positions([[0, 0, 0], [0, 50, 0], [0, 100, 0]])
        >>> solver = JacobianSolver(chain, SDLS(), Target(np.array([30.0, 80.0, 0.0])))
    """

    def __init__(
        self,
        chain: KinematicChain,
        system: LinearSystem,
        target: Optional[Target] = None,
        end_effector: Optional[int] = None,
        numerical: bool = False,
    ):
        """Constructor.

        Args:
            chain: Serial chain mutated by the solver.
            system: Linear system strategy.
            target: Target of the end-effector. None disables solving.
            end_effector: Index of the end-effector. Defaults to the last joint.
            numerical: Estimate Jacobian columns by central differences.
        """
        super().__init__(chain)
        if not chain.is_linear():
            raise NonLinearChain(self.__class__.__name__, chain.parents)
        self.system = system
        self.name = system.name
        self.numerical = numerical
        self.target: Optional[Target] = None
        self.end_effector = chain.end_effector
        self.max_length = 0.0
        self.average_length = 0.0
        self._previous_target: Optional[Target] = None
        self._pending: Optional[Tuple[np.ndarray, np.ndarray]] = None
        self.set_target(target, end_effector)

    @property
    def deferred(self) -> bool:
        return self.system.deferred

    def set_target(self, target: Optional[Target], end_effector: Optional[int] = None) -> None:
        if target is not None and not isinstance(target, Target):
            raise InvalidTarget(
                f"{self.__class__.__name__} expects a Target, got {type(target).__name__}"
            )
        self.target = target
        if end_effector is not None:
            self.end_effector = self.chain.check_index(end_effector)
        self._lengths()

    def _lengths(self) -> None:
        lengths = self.chain.segment_lengths()[: self.end_effector]
        self.max_length = float(np.max(lengths)) if lengths.size else 0.0
        self.average_length = float(np.mean(lengths)) if lengths.size else 0.0

    def distance(self) -> float:
        return float(np.linalg.norm(self.target.position - self.chain.position(self.end_effector)))

    def iterate(self, config: SolverConfig) -> bool:
        if self.target is None or self.end_effector < 1:
            return True
        self.iteration += 1

        error = error_vector(self.chain, self.target.position, self.end_effector, self.max_length)
        jacobian = build_jacobian(
            self.chain, self.target.position, self.end_effector, numerical=self.numerical
        )
        delta = clamp_step(self.system.solve(jacobian.matrix, error), self.system.max_step)

        if self.deferred:
            self._pending = (delta, jacobian.axes)
            return self.distance() <= config.max_error

        apply_delta(self.chain, delta, jacobian.axes)
        return self.distance() <= config.max_error

    def update(self) -> None:
        if self._pending is None:
            return
        delta, axes = self._pending
        self._pending = None
        apply_delta(self.chain, delta, axes)

    def changed(self) -> bool:
        if self.target is None:
            self._previous_target = None
            return False
        if self._previous_target is None:
            return True
        return not self._previous_target.matches(self.target)

    def reset(self, config: SolverConfig) -> None:
        self._previous_target = None if self.target is None else self.target.copy()
        self._pending = None
        self.iteration = 0
        self._lengths()
        if self.max_length == 0.0 and self.end_effector > 0:
            logging.warning(
                f"{self.name}: chain segments have zero length, the end-effector cannot move"
            )
        logging.debug(
            f"{self.name}: reset with max length {self.max_length:.4f} and "
            f"average length {self.average_length:.4f}"
        )

    def error(self) -> float:
        if self.target is None:
            return 0.0
        return self.distance()

