"""TRIK heuristic chain solver."""

from .context import Context
from .heuristics import (
    BackwardHeuristic,
    CCDHeuristic,
    ForwardHeuristic,
    Heuristic,
    TwistHeuristic,
)
from .solver import TRIKMode, TRIKSolver

__all__ = [
    "BackwardHeuristic",
    "CCDHeuristic",
    "Context",
    "ForwardHeuristic",
    "Heuristic",
    "TRIKMode",
    "TRIKSolver",
    "TwistHeuristic",
]
