"""Iterative inverse kinematics solvers for articulated chains.

Jacobian (pseudo-inverse, SDLS, transpose), heuristic (TRIK) and evolutionary
(BioIK) strategies share one driver. The caller owns the chain and its targets
and decides when to call `Solver.solve`.
"""

from .chain import Joint, KinematicChain
from .config import SolverConfig
from .constants import (
    DEFAULT_MAX_ERROR,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_ORIENTATION_ERROR,
    DEFAULT_TIMES_PER_FRAME,
    EPSILON_FLOAT32,
    EPSILON_FLOAT64,
)
from .evolution import BioIKSolver, FitnessFunction
from .exceptions import (
    IKError,
    InvalidChain,
    InvalidConfiguration,
    InvalidEndEffector,
    InvalidTarget,
    NonLinearChain,
    OperatorDefinitionError,
    UnknownSolverMode,
)
from .jacobian import SDLS, JacobianSolver, LinearSystem, PseudoInverse, Transpose
from .lie import SE3, SO3, MatrixLieGroup
from .solver import Solver, SolverMode, build_strategy
from .strategy import SolverStrategy
from .target import Target, TargetSet
from .trik import TRIKMode, TRIKSolver

__version__ = "0.1.0"

__all__ = [
    # Chain and targets
    "Joint",
    "KinematicChain",
    "Target",
    "TargetSet",
    # Solver
    "Solver",
    "SolverConfig",
    "SolverMode",
    "SolverStrategy",
    "build_strategy",
    # Strategies
    "BioIKSolver",
    "FitnessFunction",
    "JacobianSolver",
    "LinearSystem",
    "PseudoInverse",
    "SDLS",
    "Transpose",
    "TRIKMode",
    "TRIKSolver",
    # Lie groups
    "MatrixLieGroup",
    "SE3",
    "SO3",
    # Exceptions
    "IKError",
    "InvalidChain",
    "InvalidConfiguration",
    "InvalidEndEffector",
    "InvalidTarget",
    "NonLinearChain",
    "OperatorDefinitionError",
    "UnknownSolverMode",
    # Constants
    "DEFAULT_MAX_ERROR",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_MAX_ORIENTATION_ERROR",
    "DEFAULT_TIMES_PER_FRAME",
    "EPSILON_FLOAT32",
    "EPSILON_FLOAT64",
]
