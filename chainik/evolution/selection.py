"""Parent selection methods."""

from __future__ import annotations

import abc
from typing import List, Optional, Sequence

import numpy as np

from ..exceptions import OperatorDefinitionError
from .individual import Individual


class Selection(abc.ABC):
    """Abstract base class for picking parents from a mating pool."""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    @abc.abstractmethod
    def choose(
        self,
        population: Sequence[Individual],
        m: int,
        replacement: bool = True,
    ) -> List[Individual]:
        """Choose m individuals.

        Args:
            population: Mating pool.
            m: Number of individuals to choose.
            replacement: If False, an individual is chosen at most once.

        Returns:
            The chosen individuals.
        """
        raise NotImplementedError

    @staticmethod
    def _check(population: Sequence[Individual], m: int, replacement: bool) -> None:
        if len(population) == 0:
            raise OperatorDefinitionError("Cannot select from an empty population.")
        if not replacement and m > len(population):
            raise OperatorDefinitionError(
                f"Cannot choose {m} individuals without replacement from {len(population)}."
            )

    def _weighted(
        self,
        population: Sequence[Individual],
        weights: np.ndarray,
        m: int,
        replacement: bool,
    ) -> List[Individual]:
        probabilities = weights / np.sum(weights)
        indices = self.rng.choice(len(population), size=m, replace=replacement, p=probabilities)
        return [population[i] for i in indices]


class Uniform(Selection):
    def choose(self, population, m, replacement=True):
        self._check(population, m, replacement)
        indices = self.rng.choice(len(population), size=m, replace=replacement)
        return [population[i] for i in indices]


class Roulette(Selection):
    """Fitness-proportional selection for minimization.

    Individual i is chosen with probability proportional to 1 / (1 + f_i).
    """

    def choose(self, population, m, replacement=True):
        self._check(population, m, replacement)
        fitness = np.array([individual.fitness for individual in population])
        return self._weighted(population, 1.0 / (1.0 + np.maximum(fitness, 0.0)), m, replacement)


class Ranking(Selection):
    """Rank-proportional selection.

    Individuals sorted by ascending fitness receive ranks N, N - 1, ..., 1 so
    that the best is the most likely pick. Ties share the better rank. With
    `exponential`, rank r becomes alpha ** (r / N).
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        presorted: bool = False,
        exponential: bool = False,
        alpha: float = 2.0,
    ):
        super().__init__(rng)
        self.presorted = presorted
        self.exponential = exponential
        self.alpha = alpha

    def ranks(self, population: Sequence[Individual]) -> np.ndarray:
        """Selection weight of each individual of an ascending-sorted population."""
        size = len(population)
        ranks = np.zeros(size)
        for i, individual in enumerate(population):
            if i > 0 and individual.fitness == population[i - 1].fitness:
                ranks[i] = ranks[i - 1]
            else:
                ranks[i] = size - i
        if self.exponential:
            ranks = self.alpha ** (ranks / size)
        return ranks

    def choose(self, population, m, replacement=True):
        self._check(population, m, replacement)
        ordered = list(population) if self.presorted else sorted(
            population, key=lambda individual: individual.fitness
        )
        return self._weighted(ordered, self.ranks(ordered), m, replacement)
