"""Jacobian-based solvers."""

from .builder import Jacobian, apply_delta, build_jacobian, error_vector
from .linear import SDLS, LinearSystem, PseudoInverse, Transpose, clamp_step
from .solver import JacobianSolver

__all__ = [
    "Jacobian",
    "JacobianSolver",
    "LinearSystem",
    "PseudoInverse",
    "SDLS",
    "Transpose",
    "apply_delta",
    "build_jacobian",
    "clamp_step",
    "error_vector",
]
