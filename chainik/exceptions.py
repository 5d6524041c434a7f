"""Exceptions specific to the IK solvers."""

from typing import Sequence


class IKError(Exception):
    """Base class for IK solver exceptions."""


class InvalidChain(IKError):
    """Exception raised when a kinematic chain is malformed or unsuitable."""

    def __init__(self, message: str):
        super().__init__(message)


class NonLinearChain(InvalidChain):
    """Exception raised when a solver that needs a serial chain receives a tree."""

    def __init__(self, solver_name: str, parents: Sequence[int]):
        message = (
            f"{solver_name} requires a serial chain where joint i is the parent of "
            f"joint i + 1. Parent indices: {list(parents)}"
        )
        super().__init__(message)


class InvalidTarget(IKError):
    """Exception raised when a target is invalid."""

    def __init__(self, message: str):
        super().__init__(message)


class InvalidEndEffector(InvalidTarget):
    """Exception raised when an end-effector index is outside the chain."""

    def __init__(self, index: int, size: int):
        super().__init__(
            f"End-effector index {index} is out of range for a chain of {size} joints."
        )


class InvalidConfiguration(IKError):
    """Exception raised when a solver setting is invalid."""

    def __init__(self, message: str):
        super().__init__(message)


class OperatorDefinitionError(IKError):
    """Exception raised when an evolutionary operator is incorrectly defined or used."""

    def __init__(self, message: str):
        super().__init__(message)


class UnknownSolverMode(IKError):
    """Exception raised when a solver mode name is not recognized."""

    def __init__(self, mode: str, available: Sequence[str]):
        message = (
            f"Solver mode '{mode}' is not supported. "
            f"Available modes: {list(available)}"
        )
        super().__init__(message)
