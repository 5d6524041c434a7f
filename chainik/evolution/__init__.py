"""BioIK evolutionary solver."""

from .individual import (
    FitnessFunction,
    Individual,
    evaluate,
    normalized_distance,
    orientation_distance,
    path_length,
)
from .operators import Adoption, Mutation, Operator, Recombination
from .population import Population, random_individual
from .selection import Ranking, Roulette, Selection, Uniform
from .solver import BioIKSolver

__all__ = [
    "FitnessFunction",
    "Individual",
    "evaluate",
    "normalized_distance",
    "orientation_distance",
    "path_length",
    "Operator",
    "Mutation",
    "Recombination",
    "Adoption",
    "Population",
    "random_individual",
    "Selection",
    "Uniform",
    "Roulette",
    "Ranking",
    "BioIKSolver",
]
