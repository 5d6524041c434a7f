"""Solver budgets and tolerances."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .constants import (
    DEFAULT_MAX_ERROR,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_ORIENTATION_ERROR,
    DEFAULT_TIMES_PER_FRAME,
)
from .exceptions import InvalidConfiguration


@dataclass(frozen=True)
class SolverConfig:
    """Settings shared by every solver strategy.

    Attributes:
        max_error: Convergence threshold on the strategy error.
        max_iterations: Iteration budget between two resets.
        times_per_frame: Iterations run per call to `Solver.solve`. Fractional
            values accumulate across calls.
        max_orientation_error: Orientation convergence threshold [rad], used by
            strategies that track orientation.
        seed: Seed of the random generator used by stochastic strategies.
    """

    max_error: float = DEFAULT_MAX_ERROR
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    times_per_frame: float = DEFAULT_TIMES_PER_FRAME
    max_orientation_error: float = DEFAULT_MAX_ORIENTATION_ERROR
    seed: Optional[int] = None

    def __post_init__(self):
        if self.max_error < 0.0:
            raise InvalidConfiguration(
                f"max_error must be non-negative, got {self.max_error}"
            )
        if self.max_iterations < 1:
            raise InvalidConfiguration(
                f"max_iterations must be at least 1, got {self.max_iterations}"
            )
        if self.times_per_frame <= 0.0:
            raise InvalidConfiguration(
                f"times_per_frame must be positive, got {self.times_per_frame}"
            )
        if self.max_orientation_error < 0.0:
            raise InvalidConfiguration(
                f"max_orientation_error must be non-negative, got {self.max_orientation_error}"
            )

    def replace(self, **changes: Any) -> SolverConfig:
        """Copy of this configuration with some fields changed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> SolverConfig:
        """Build a configuration from a plain mapping, rejecting unknown keys."""
        names = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(mapping) - names)
        if unknown:
            raise InvalidConfiguration(
                f"Unknown solver settings {unknown}. Available settings: {sorted(names)}"
            )
        return cls(**dict(mapping))
