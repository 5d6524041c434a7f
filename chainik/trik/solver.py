"""TRIK: heuristic sweeps over a serial chain with a keep-best commit rule."""

from __future__ import annotations

import enum
import logging
import math
from typing import Optional

import numpy as np

from ..chain import KinematicChain
from ..config import SolverConfig
from ..exceptions import InvalidTarget
from ..lie import SO3
from ..strategy import SolverStrategy
from ..target import Target
from .context import Context
from .heuristics import (
    BackwardHeuristic,
    CCDHeuristic,
    ForwardHeuristic,
    Heuristic,
    TwistHeuristic,
)

_STAGNATION_TOLERANCE = 1e-3
_STAGNATION_LIMIT = 5


class TRIKMode(enum.Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    CCD = "ccd"
    BACK_AND_FORTH = "back_and_forth"


class TRIKSolver(SolverStrategy):
    """Sweep a per-joint heuristic over the usable chain each iteration.

    After every sweep the combined error of the usable chain is compared with
    the best error recorded since the last reset; the usable rotations are
    copied into the caller's chain only on improvement. In BACK_AND_FORTH mode
    the forward and backward heuristics swap roles, together with the sweep
    order, after every sweep.

    When the combined error stays within a small tolerance for several
    consecutive sweeps, the usable chain is randomly perturbed to leave the
    local minimum. The caller's chain is unaffected until a perturbed pose
    beats the best error.
    """

    def __init__(
        self,
        chain: KinematicChain,
        mode: TRIKMode = TRIKMode.FORWARD,
        target: Optional[Target] = None,
        end_effector: Optional[int] = None,
        twist: bool = False,
        direction: bool = False,
        smooth: bool = False,
        enable_weight: bool = False,
        single_step: bool = False,
        seed: Optional[int] = None,
    ):
        """Constructor.

        Args:
            chain: Serial chain, committed to on improvement.
            mode: Heuristic and sweep order.
            target: Target of the end-effector. None disables solving.
            end_effector: Must be the last joint when given.
            twist: Follow each joint adjustment with a twist correction.
            direction: Include the target orientation in the error.
            smooth: Clamp heuristic rotations.
            enable_weight: Scale heuristic rotations by a distance weight.
            single_step: Adjust one joint per iteration.
            seed: Seed of the generator used for stagnation perturbations.
        """
        super().__init__(chain)
        self.mode = TRIKMode(mode)
        self.name = f"trik_{self.mode.value}"
        self.context = Context(
            chain,
            direction=direction,
            enable_weight=enable_weight,
            single_step=single_step,
        )
        self._previous_target: Optional[Target] = None
        self.set_target(target, end_effector)

        if self.mode is TRIKMode.FORWARD:
            self._main: Heuristic = ForwardHeuristic(self.context)
            self._secondary: Optional[Heuristic] = None
            self._initial_order = True
        elif self.mode is TRIKMode.BACKWARD:
            self._main = BackwardHeuristic(self.context)
            self._secondary = None
            self._initial_order = False
        elif self.mode is TRIKMode.CCD:
            self._main = CCDHeuristic(self.context)
            self._secondary = None
            self._initial_order = False
        else:
            self._main = ForwardHeuristic(self.context)
            self._secondary = BackwardHeuristic(self.context)
            self._initial_order = True
        self.context.top_to_bottom = self._initial_order

        self.twist = TwistHeuristic(self.context) if twist else None
        for heuristic in (self._main, self._secondary, self.twist):
            if heuristic is not None:
                heuristic.smooth = smooth

        self.best = math.inf
        self.current = math.inf
        self._previous = math.inf
        self._stagnation = 0
        self._step = 0
        self._rng = np.random.default_rng(seed)

    @property
    def heuristic(self) -> Heuristic:
        """Heuristic used by the next sweep."""
        return self._main

    def set_target(self, target: Optional[Target], end_effector: Optional[int] = None) -> None:
        if target is not None and not isinstance(target, Target):
            raise InvalidTarget(
                f"{self.__class__.__name__} expects a Target, got {type(target).__name__}"
            )
        if end_effector is not None and self.chain.check_index(end_effector) != self.chain.end_effector:
            raise InvalidTarget("TRIK drives the last joint of the chain only.")
        self.context.target = target

    def _swap(self) -> None:
        if self._secondary is None:
            return
        self._main, self._secondary = self._secondary, self._main
        self.context.top_to_bottom = not self.context.top_to_bottom

    def _visit(self, i: int) -> None:
        self._main.apply_actions(i)
        if self.twist is not None:
            self.twist.apply_actions(i)

    def _evaluate(self) -> bool:
        self.current = self.context.error()
        improved = self.current < self.best
        if improved:
            self.context.commit()
            logging.debug(f"{self.name}: committed error {self.current:.6f} (was {self.best:.6f})")
            self.best = self.current
        self._swap()
        return improved

    def _perturb(self) -> None:
        usable = self.context.usable
        for i in range(self.context.last):
            quat = self._rng.normal(size=4)
            usable.rotate(i, SO3(quat=quat / np.linalg.norm(quat)))
        logging.debug(f"{self.name}: stagnated, perturbing the usable chain")

    def _iterate_step(self) -> None:
        context = self.context
        if self._step == 0:
            self._main.prepare()
        elif self._step < len(context.chain):
            offset = self._step - 1
            self._visit(offset if context.top_to_bottom else context.last - 1 - offset)
        else:
            self._track_stagnation(self._evaluate())
            self._step = -1
        self._step += 1

    def _iterate_sweep(self) -> None:
        context = self.context
        self._main.prepare()
        order = range(context.last) if context.top_to_bottom else range(context.last - 1, -1, -1)
        for i in order:
            self._visit(i)
        self._track_stagnation(self._evaluate())

    def _track_stagnation(self, improved: bool) -> None:
        """Perturb the usable chain after repeated evaluations without progress."""
        if not improved and abs(self._previous - self.current) <= _STAGNATION_TOLERANCE:
            self._stagnation += 1
        else:
            self._stagnation = 0
        if self._stagnation >= _STAGNATION_LIMIT:
            self._perturb()
            self._stagnation = 0
            self.current = math.inf
        self._previous = self.current

    def converged(self, config: SolverConfig) -> bool:
        context = self.context
        if context.position_error(context.chain) > config.max_error:
            return False
        if context.direction:
            return context.orientation_error(context.chain) <= config.max_orientation_error
        return True

    def iterate(self, config: SolverConfig) -> bool:
        if self.context.target is None:
            return True
        self.iteration += 1
        self.context.iteration = self.iteration
        if self.context.single_step:
            self._iterate_step()
        else:
            self._iterate_sweep()
        return self.converged(config)

    def update(self) -> None:
        """Commits happen on improvement inside `iterate`."""

    def changed(self) -> bool:
        target = self.context.target
        if target is None:
            self._previous_target = None
            return False
        if self._previous_target is None:
            return True
        return not self._previous_target.matches(target)

    def reset(self, config: SolverConfig) -> None:
        context = self.context
        target = context.target
        self._previous_target = None if target is None else target.copy()
        context.restore()
        context.update_lengths()
        self.iteration = 0
        context.iteration = 0
        self.best = math.inf if target is None else context.error(context.chain)
        self.current = math.inf
        self._previous = math.inf
        self._stagnation = 0
        self._step = 0
        if self._secondary is not None and context.top_to_bottom != self._initial_order:
            self._swap()
        logging.debug(f"{self.name}: reset with best error {self.best:.6f}")

    def error(self) -> float:
        if self.context.target is None:
            return 0.0
        return self.context.position_error(self.context.chain)
