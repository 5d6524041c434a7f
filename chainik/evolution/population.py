"""Fixed-size populations of individuals."""

from __future__ import annotations

from typing import Iterator, List, Sequence

import numpy as np

from ..chain import KinematicChain
from ..exceptions import OperatorDefinitionError
from ..lie import SO3
from .individual import Individual


def random_individual(chain: KinematicChain, rng: np.random.Generator, max_angle: float) -> Individual:
    """Copy of chain with every joint rotated by up to max_angle per rpy component."""
    individual = Individual(chain.copy())
    for i in range(len(chain)):
        roll, pitch, yaw = rng.uniform(-max_angle, max_angle, size=3)
        individual.chain.rotate(i, SO3.from_rpy(roll, pitch, yaw))
    return individual


class Population:
    """Ordered list of individuals, sorted ascending by fitness after `sort`."""

    def __init__(self, individuals: Sequence[Individual]):
        if len(individuals) == 0:
            raise OperatorDefinitionError("A population needs at least one individual.")
        self.individuals: List[Individual] = list(individuals)

    @classmethod
    def generate(
        cls,
        chain: KinematicChain,
        size: int,
        rng: np.random.Generator,
        max_angle: float,
    ) -> Population:
        """Population seeded around a chain.

        The first individual is an unmodified copy of the chain, the others are
        random perturbations of it.
        """
        individuals = [Individual(chain.copy())]
        individuals.extend(random_individual(chain, rng, max_angle) for _ in range(size - 1))
        return cls(individuals)

    def __len__(self) -> int:
        return len(self.individuals)

    def __iter__(self) -> Iterator[Individual]:
        return iter(self.individuals)

    def __getitem__(self, index: int) -> Individual:
        return self.individuals[index]

    def sort(self) -> None:
        self.individuals.sort(key=lambda individual: individual.fitness)

    @property
    def best(self) -> Individual:
        return min(self.individuals, key=lambda individual: individual.fitness)

    @property
    def worst(self) -> Individual:
        return max(self.individuals, key=lambda individual: individual.fitness)

    def fitness(self) -> np.ndarray:
        return np.array([individual.fitness for individual in self.individuals])

    def elite(self, size: int) -> List[Individual]:
        """The first `size` individuals. Call `sort` first."""
        return self.individuals[:size]

    def update_extinction(self) -> None:
        """Assign each individual its extinction factor from its rank.

        extinction_i = (f_i + f_min * (i / (N - 1) - 1)) / f_max, with the
        population sorted. The best individual gets 0 and the worst 1. All
        factors are 0 when f_max is 0.
        """
        self.sort()
        size = len(self.individuals)
        f_min = self.individuals[0].fitness
        f_max = self.individuals[-1].fitness
        for i, individual in enumerate(self.individuals):
            if f_max == 0.0 or not np.isfinite(f_max):
                individual.extinction = 0.0
                continue
            rank = i / (size - 1) if size > 1 else 0.0
            individual.extinction = float(
                np.clip((individual.fitness + f_min * (rank - 1.0)) / f_max, 0.0, 1.0)
            )
