"""Variation operators of the evolutionary solver.

Every operator exposes the same two calls: `prepare(parents, best)` receives
the context of the current offspring and `apply(*individuals)` produces a new
individual without modifying its inputs.
"""

from __future__ import annotations

import abc
import math
from typing import Optional, Sequence

import numpy as np

from ..exceptions import OperatorDefinitionError
from ..lie import SO3
from .individual import Individual


class Operator(abc.ABC):
    """Abstract base class for variation operators.

    Attributes:
        arity: Number of individuals `apply` expects.
    """

    arity: int = 1

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def prepare(self, parents: Sequence[Individual], best: Individual) -> None:
        """Receive the parents of the offspring being built and the running best."""

    @abc.abstractmethod
    def apply(self, *individuals: Individual) -> Individual:
        raise NotImplementedError

    def _check_arity(self, individuals: Sequence[Individual]) -> None:
        if len(individuals) != self.arity:
            raise OperatorDefinitionError(
                f"{self.__class__.__name__} expects {self.arity} individuals, "
                f"got {len(individuals)}"
            )


class Mutation(Operator):
    """Random rpy rotations whose rate and size grow with the parents' extinction.

    Each joint is mutated with probability (e * (n - 1) + 1) / n, by angles
    drawn uniformly in [-e * pi, e * pi], e being the mean extinction of the
    parents.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        self.extinction = 0.0

    def prepare(self, parents: Sequence[Individual], best: Individual) -> None:
        self.extinction = float(np.mean([parent.extinction for parent in parents])) if parents else 0.0

    def apply(self, *individuals: Individual) -> Individual:
        self._check_arity(individuals)
        individual = individuals[0].clone()
        n = len(individual)
        rate = (self.extinction * (n - 1) + 1) / n
        spread = self.extinction * math.pi
        if spread == 0.0:
            return individual
        for i in range(n):
            if self.rng.random() > rate:
                continue
            roll, pitch, yaw = self.rng.uniform(-spread, spread, size=3)
            individual.chain.rotate(i, SO3.from_rpy(roll, pitch, yaw))
        return individual


class Recombination(Operator):
    """Randomly weighted average of the parents' rpy angles plus their gradients."""

    def __init__(self, rng: Optional[np.random.Generator] = None, arity: int = 2):
        super().__init__(rng)
        if arity < 1:
            raise OperatorDefinitionError(f"Recombination arity must be positive, got {arity}")
        self.arity = arity

    def apply(self, *individuals: Individual) -> Individual:
        self._check_arity(individuals)
        combination = individuals[0].clone()
        for i in range(len(combination)):
            weights = self.rng.random(len(individuals))
            if np.sum(weights) == 0.0:
                weights = np.ones(len(individuals))
            angles = np.array([individual.euler(i) for individual in individuals])
            rpy = weights @ angles / np.sum(weights)
            for individual in individuals:
                rpy = rpy + self.rng.random() * individual.gradient[3 * i:3 * i + 3]
            combination.set_euler(i, rpy)
        return combination


class Adoption(Operator):
    """Pull an individual toward the mean of its parents and toward the running best."""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        self.parents: Sequence[Individual] = ()
        self.best: Optional[Individual] = None

    def prepare(self, parents: Sequence[Individual], best: Individual) -> None:
        self.parents = tuple(parents)
        self.best = best

    def apply(self, *individuals: Individual) -> Individual:
        self._check_arity(individuals)
        if not self.parents or self.best is None:
            raise OperatorDefinitionError("Adoption.apply called before prepare.")
        individual = individuals[0]
        combination = individual.clone()
        for i in range(len(combination)):
            parents = np.mean([parent.euler(i) for parent in self.parents], axis=0)
            mine = individual.euler(i)
            best = self.best.euler(i)
            toward_parents = self.rng.random()
            toward_best = self.rng.random()
            w = self.rng.random(3)
            rpy = (
                mine
                + w * toward_parents * (parents - mine)
                + (1.0 - w) * toward_best * (best - mine)
            )
            combination.set_euler(i, rpy)
        return combination
