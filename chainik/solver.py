"""Solver facade driving one strategy per external tick.

The caller owns the chain and its targets and decides how often `solve` runs.
Each call resets the strategy when its target moved, spends `times_per_frame`
iterations of the remaining budget and commits the result to the chain.
"""

from __future__ import annotations

import enum
import logging
import math
from typing import Any, Dict, Optional

from .chain import KinematicChain
from .config import SolverConfig
from .evolution import BioIKSolver
from .exceptions import UnknownSolverMode
from .jacobian import SDLS, JacobianSolver, PseudoInverse, Transpose
from .strategy import SolverStrategy
from .trik import TRIKMode, TRIKSolver


class SolverMode(enum.Enum):
    PSEUDO_INVERSE = "pseudo_inverse"
    SDLS = "sdls"
    TRANSPOSE = "transpose"
    TRIK_FORWARD = "trik_forward"
    TRIK_BACKWARD = "trik_backward"
    TRIK_CCD = "trik_ccd"
    TRIK_BACK_AND_FORTH = "trik_back_and_forth"
    EVOLUTIONARY = "evolutionary"

    @classmethod
    def parse(cls, mode: Any) -> SolverMode:
        """Accept a SolverMode or its case-insensitive name or value."""
        if isinstance(mode, cls):
            return mode
        key = str(mode).strip().lower()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        raise UnknownSolverMode(str(mode), [member.value for member in cls])


_LINEAR_SYSTEMS = {
    SolverMode.PSEUDO_INVERSE: PseudoInverse,
    SolverMode.SDLS: SDLS,
    SolverMode.TRANSPOSE: Transpose,
}

_TRIK_MODES = {
    SolverMode.TRIK_FORWARD: TRIKMode.FORWARD,
    SolverMode.TRIK_BACKWARD: TRIKMode.BACKWARD,
    SolverMode.TRIK_CCD: TRIKMode.CCD,
    SolverMode.TRIK_BACK_AND_FORTH: TRIKMode.BACK_AND_FORTH,
}

_JACOBIAN_OPTIONS = ("end_effector", "numerical")


def build_strategy(
    chain: KinematicChain,
    mode: Any,
    target=None,
    seed: Optional[int] = None,
    **options: Any,
) -> SolverStrategy:
    """Instantiate the strategy of a solver mode.

    Args:
        chain: Chain driven by the strategy.
        mode: A SolverMode or its name.
        target: Initial target, a Target or (evolutionary mode) a TargetSet.
        seed: Seed forwarded to stochastic strategies.
        **options: Strategy keyword arguments. For Jacobian modes, options other
            than `end_effector` and `numerical` configure the linear system.

    Returns:
        The strategy, bound to chain and target.
    """
    mode = SolverMode.parse(mode)
    if mode in _LINEAR_SYSTEMS:
        solver_options: Dict[str, Any] = {
            key: options.pop(key) for key in _JACOBIAN_OPTIONS if key in options
        }
        system = _LINEAR_SYSTEMS[mode](**options)
        return JacobianSolver(chain, system, target=target, **solver_options)
    if mode in _TRIK_MODES:
        return TRIKSolver(chain, _TRIK_MODES[mode], target=target, seed=seed, **options)
    return BioIKSolver(chain, target, seed=seed, **options)


class Solver:
    """Run an IK strategy within per-tick and per-target iteration budgets.

    Attributes:
        strategy: The algorithm selected at construction.
        config: Budgets and tolerances, replaced through the setters.
    """

    def __init__(self, strategy: SolverStrategy, config: Optional[SolverConfig] = None):
        self.strategy = strategy
        self.config = config if config is not None else SolverConfig()
        self._iterations = 0
        self._last_iteration = 0
        self._frame_counter = 0.0
        self._change = False
        self._converged = False

    @classmethod
    def create(
        cls,
        chain: KinematicChain,
        mode: Any,
        target=None,
        config: Optional[SolverConfig] = None,
        **options: Any,
    ) -> Solver:
        """Build a solver for a chain.

        Example:
            >>> solver = Solver.create(chain, "sdls", Target(np.array([0.0, 1.0, 0.0])))
            >>> while not solver.solve():
            ...     pass
        """
        config = config if config is not None else SolverConfig()
        strategy = build_strategy(chain, mode, target=target, seed=config.seed, **options)
        return cls(strategy, config)

    def __repr__(self) -> str:
        return f"Solver(strategy={self.strategy.name}, config={self.config})"

    # Settings

    @property
    def chain(self) -> KinematicChain:
        return self.strategy.chain

    @property
    def iterations(self) -> int:
        """Iterations spent since the last reset."""
        return self._iterations

    @property
    def last_iteration(self) -> int:
        """Index of the last iteration run."""
        return self._last_iteration

    @property
    def converged(self) -> bool:
        return self._converged

    def set_target(self, target, end_effector: Optional[int] = None) -> None:
        self.strategy.set_target(target, end_effector)

    def set_max_error(self, max_error: float) -> None:
        self.config = self.config.replace(max_error=max_error)

    def set_max_iterations(self, max_iterations: int) -> None:
        self.config = self.config.replace(max_iterations=max_iterations)

    def set_times_per_frame(self, times_per_frame: float) -> None:
        self.config = self.config.replace(times_per_frame=times_per_frame)

    def change(self, flag: bool = True) -> None:
        """Force (or cancel) a reset before the next tick."""
        self._change = flag

    # Solving

    def _reset(self) -> None:
        self.strategy.reset(self.config)
        self._iterations = 0
        self._last_iteration = 0
        self._frame_counter = 0.0
        self._change = False
        self._converged = False

    def _reset_if_changed(self) -> None:
        if self.strategy.changed() or self._change:
            self._reset()

    def solve(self) -> bool:
        """Run one tick.

        Resets when the target moved, then runs floor(times_per_frame) iterations
        (fractional parts accumulate across ticks) unless the iteration budget is
        spent, and commits the working state to the chain.

        Returns:
            True once the strategy converged since the last reset.
        """
        self._reset_if_changed()
        if self._iterations >= self.config.max_iterations:
            return self._converged

        self._frame_counter += self.config.times_per_frame
        budget = self.config.max_iterations
        while math.floor(self._frame_counter) > 0 and self._iterations < budget:
            self._last_iteration = self._iterations
            if self.strategy.iterate(self.config):
                self._iterations = self.config.max_iterations
                self._converged = True
                logging.debug(
                    f"{self.strategy.name}: converged after {self._last_iteration + 1} "
                    f"iterations, error {self.strategy.error():.6f}"
                )
                break
            self._iterations += 1
            self._frame_counter -= 1.0

        self.strategy.update()
        return self._converged

    def iterate(self) -> bool:
        """Run a single iteration and commit it, regardless of the tick budget."""
        self._reset_if_changed()
        self._last_iteration = self._iterations
        self._converged = self.strategy.iterate(self.config)
        self._iterations += 1
        self.strategy.update()
        return self._converged

    def execute(self) -> float:
        """Reset, then iterate until convergence or the iteration budget is spent.

        Every iteration is committed before the next one runs.

        Returns:
            The final error of the chain.
        """
        self._reset()
        while self._iterations < self.config.max_iterations:
            self._last_iteration = self._iterations
            self._iterations += 1
            self._converged = self.strategy.iterate(self.config)
            self.strategy.update()
            if self._converged:
                break
        error = self.strategy.error()
        logging.debug(
            f"{self.strategy.name}: executed {self._iterations} iterations, error {error:.6f}"
        )
        return error

    def error(self) -> float:
        return self.strategy.error()
