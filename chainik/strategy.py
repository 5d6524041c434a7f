"""All solving algorithms derive from the SolverStrategy base class."""

from __future__ import annotations

import abc
from typing import Optional

from .chain import KinematicChain
from .config import SolverConfig


class SolverStrategy(abc.ABC):
    """Abstract base class for IK solving algorithms.

    A strategy owns the working state of one algorithm bound to a caller-owned
    chain. The `Solver` driver decides when each hook runs:

    - `changed` is polled before every tick and triggers `reset` when True.
    - `iterate` performs one step on working state and reports convergence.
    - `update` commits the working state to the caller's chain.

    Attributes:
        chain: The caller's chain, only mutated according to the commit rule
            of the strategy.
        iteration: Iterations run since the last reset.
    """

    name: str = "strategy"

    def __init__(self, chain: KinematicChain):
        self.chain = chain
        self.iteration = 0

    @abc.abstractmethod
    def set_target(self, target, end_effector: Optional[int] = None) -> None:
        """Bind a new target.

        Args:
            target: A `Target` for chain strategies or a `TargetSet` for
                multi-target strategies. None disables solving.
            end_effector: Index of the joint driven toward the target. Defaults
                to the last joint.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def iterate(self, config: SolverConfig) -> bool:
        """Run one iteration.

        Args:
            config: Current solver settings.

        Returns:
            True if the strategy converged.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def update(self) -> None:
        """Commit pending working state to the caller's chain."""
        raise NotImplementedError

    @abc.abstractmethod
    def changed(self) -> bool:
        """True if the bound target moved since the last reset."""
        raise NotImplementedError

    @abc.abstractmethod
    def reset(self, config: SolverConfig) -> None:
        """Snapshot the target and reinitialize working state."""
        raise NotImplementedError

    @abc.abstractmethod
    def error(self) -> float:
        """Current error of the caller's chain with respect to the target."""
        raise NotImplementedError
