"""BioIK: memetic evolutionary solver for one or more end-effector targets."""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Union

import numpy as np

from ..chain import KinematicChain
from ..config import SolverConfig
from ..constants import (
    BIOIK_CROSS_PROBABILITY,
    BIOIK_ELITISM_SIZE,
    BIOIK_INITIAL_SPREAD,
    BIOIK_POPULATION_SIZE,
    BIOIK_POSE_WEIGHT,
    BIOIK_WIPE_INTERVAL,
)
from ..exceptions import InvalidConfiguration, InvalidTarget, OperatorDefinitionError
from ..strategy import SolverStrategy
from ..target import Target, TargetSet
from .individual import FitnessFunction, Individual, evaluate
from .operators import Adoption, Mutation, Operator, Recombination
from .population import Population, random_individual
from .selection import Ranking, Selection


class BioIKSolver(SolverStrategy):
    """Generational search over rotations of every joint of a chain or tree.

    Each generation:

    1. The elite individuals are refined by per-DOF hill climbing, which also
       records the retained change of each rpy component as a gradient.
    2. The remaining slots are filled with offspring: two parents are drawn by
       ranking selection, recombined, mutated according to their extinction
       and pulled toward their mean and the running best. Parents worse than
       their child leave the mating pool. Once the pool is empty, random
       individuals are used.
    3. The population is sorted, the running best updated and extinction
       factors recomputed from the ranks.
    4. Every `wipe_interval` generations the running best is probed; when no
       single-DOF perturbation improves it, the population is reseeded around it.

    Example:
        >>> targets = TargetSet(len(chain))
        >>> targets[chain.end_effector] = Target(np.array([30.0, 80.0, 0.0]))
        >>> solver = BioIKSolver(chain, targets, seed=0)
        >>> solver.execute(SolverConfig(max_iterations=100))
    """

    name = "bioik"

    def __init__(
        self,
        chain: KinematicChain,
        target: Union[Target, TargetSet, None] = None,
        end_effector: Optional[int] = None,
        population_size: int = BIOIK_POPULATION_SIZE,
        elitism_size: int = BIOIK_ELITISM_SIZE,
        cross_probability: float = BIOIK_CROSS_PROBABILITY,
        fitness_function: FitnessFunction = FitnessFunction.POSITION,
        pose_weight: float = BIOIK_POSE_WEIGHT,
        initial_spread: float = BIOIK_INITIAL_SPREAD,
        wipe_interval: int = BIOIK_WIPE_INTERVAL,
        max_angular_velocity: float = 0.0,
        selection: Optional[Selection] = None,
        mutation: Optional[Operator] = None,
        recombination: Optional[Operator] = None,
        adoption: Optional[Operator] = None,
        seed: Optional[int] = None,
    ):
        """Constructor.

        Args:
            chain: Chain or tree whose rotations are copied from the best
                individual on `update`.
            target: A TargetSet aligned to the chain, or a single Target placed
                at `end_effector`.
            end_effector: Joint of a single Target. Defaults to the last joint.
            population_size: Individuals per generation.
            elitism_size: Best individuals carried over and refined each generation.
            cross_probability: Probability of building a child by variation
                rather than cloning its first parent.
            fitness_function: Error measured by the fitness.
            pose_weight: Orientation weight of the POSE fitness.
            initial_spread: Max rpy perturbation [rad] of seeded individuals.
            wipe_interval: Generations between stagnation probes, 0 disables them.
            max_angular_velocity: Max rotation [rad] per joint applied on
                `update`, 0 for unlimited.
            selection: Parent selection. Defaults to Ranking.
            mutation: Defaults to Mutation.
            recombination: Defaults to Recombination.
            adoption: Defaults to Adoption.
            seed: Seed of the random generator shared with default operators.
        """
        super().__init__(chain)
        if population_size < 2:
            raise OperatorDefinitionError(
                f"population_size must be at least 2, got {population_size}"
            )
        if not 1 <= elitism_size < population_size:
            raise OperatorDefinitionError(
                f"elitism_size must be in [1, {population_size - 1}], got {elitism_size}"
            )
        if not 0.0 <= cross_probability <= 1.0:
            raise InvalidConfiguration(
                f"cross_probability must be in [0, 1], got {cross_probability}"
            )
        if not 0.0 <= pose_weight <= 1.0:
            raise InvalidConfiguration(f"pose_weight must be in [0, 1], got {pose_weight}")
        if wipe_interval < 0 or max_angular_velocity < 0.0 or initial_spread < 0.0:
            raise InvalidConfiguration(
                "wipe_interval, max_angular_velocity and initial_spread must be non-negative"
            )

        self.rng = np.random.default_rng(seed)
        self.population_size = population_size
        self.elitism_size = elitism_size
        self.cross_probability = cross_probability
        self.fitness_function = FitnessFunction(fitness_function)
        self.pose_weight = pose_weight
        self.initial_spread = initial_spread
        self.wipe_interval = wipe_interval
        self.max_angular_velocity = max_angular_velocity
        self.selection = selection if selection is not None else Ranking(self.rng, presorted=True)
        self.mutation = mutation if mutation is not None else Mutation(self.rng)
        self.recombination = recombination if recombination is not None else Recombination(self.rng)
        self.adoption = adoption if adoption is not None else Adoption(self.rng)
        if self.mutation.arity != 1 or self.adoption.arity != 1:
            raise OperatorDefinitionError("Mutation and adoption operators must have arity 1.")

        self.targets: Optional[TargetSet] = None
        self.population: Optional[Population] = None
        self.best: Optional[Individual] = None
        self.history: List[float] = []
        self._previous_targets: Optional[TargetSet] = None
        self.set_target(target, end_effector)

    # Targets

    def set_target(
        self,
        target: Union[Target, TargetSet, None],
        end_effector: Optional[int] = None,
    ) -> None:
        """Bind targets.

        A TargetSet replaces every target. A Target is placed at `end_effector`
        (default: last joint), keeping other slots. None clears `end_effector`
        when given, every target otherwise.
        """
        if isinstance(target, TargetSet):
            if len(target) != len(self.chain):
                raise InvalidTarget(
                    f"TargetSet has {len(target)} slots for a chain of {len(self.chain)} joints."
                )
            self.targets = target
            return
        if target is not None and not isinstance(target, Target):
            raise InvalidTarget(
                f"{self.__class__.__name__} expects a Target or TargetSet, "
                f"got {type(target).__name__}"
            )
        if target is None and end_effector is None:
            self.targets = None
            return
        index = self.chain.check_index(
            self.chain.end_effector if end_effector is None else end_effector
        )
        if self.targets is None:
            self.targets = TargetSet(len(self.chain))
        self.targets[index] = target

    def _active(self) -> bool:
        return self.targets is not None and self.targets.count() > 0

    # Fitness

    def _evaluate(self, individual: Individual) -> float:
        return individual.evaluate(self.targets, self.fitness_function, self.pose_weight)

    # Generation steps

    def _seed_population(self, chain: KinematicChain) -> None:
        self.population = Population.generate(
            chain, self.population_size, self.rng, self.initial_spread
        )
        for individual in self.population:
            self._evaluate(individual)
        self.population.update_extinction()

    def exploit(self, individual: Individual) -> None:
        """Per-DOF hill climbing of one individual.

        Each rpy component of each joint is moved by +r and -r, clamped to
        [-pi, pi], and the best of the three values is kept. The retained
        change is recorded in the individual's gradient.
        """
        chain = individual.chain
        for i in range(len(chain)):
            for c in range(3):
                fitness = individual.fitness
                original = chain.rotation(i)
                euler = individual.euler(i)
                r = self.rng.random() * fitness

                plus = euler.copy()
                plus[c] = min(euler[c] + r, math.pi)
                individual.set_euler(i, plus)
                f_plus = self._evaluate(individual)

                minus = euler.copy()
                minus[c] = max(euler[c] - r, -math.pi)
                individual.set_euler(i, minus)
                f_minus = self._evaluate(individual)

                if f_plus < fitness and f_plus <= f_minus:
                    individual.set_euler(i, plus)
                    individual.fitness = f_plus
                    individual.gradient[3 * i + c] = plus[c] - euler[c]
                elif f_minus < fitness:
                    individual.fitness = f_minus
                    individual.gradient[3 * i + c] = minus[c] - euler[c]
                else:
                    chain.set_rotation(i, original)
                    individual.fitness = fitness
                    individual.gradient[3 * i + c] = 0.0

    def probe(self, individual: Individual) -> bool:
        """True if a single-DOF perturbation of the individual improves it.

        Every probed rotation is restored, so the individual is left unchanged.
        """
        chain = individual.chain
        fitness = individual.fitness
        improved = False
        for i in range(len(chain)):
            original = chain.rotation(i)
            euler = individual.euler(i)
            for c in range(3):
                r = self.rng.random() * fitness
                plus = euler.copy()
                plus[c] = min(euler[c] + r, math.pi)
                individual.set_euler(i, plus)
                f_plus = self._evaluate(individual)

                minus = euler.copy()
                minus[c] = max(euler[c] - r, -math.pi)
                individual.set_euler(i, minus)
                f_minus = self._evaluate(individual)

                chain.set_rotation(i, original)
                if min(f_plus, f_minus) < fitness:
                    improved = True
                    break
            if improved:
                break
        individual.fitness = fitness
        return improved

    def wipe(self) -> bool:
        """Reseed the population around the running best if it cannot be improved locally.

        Returns:
            True if the population was reseeded.
        """
        if self.best is None or self.probe(self.best):
            return False
        logging.debug(f"{self.name}: wiping population around best fitness {self.best.fitness:.6f}")
        self._seed_population(self.best.chain)
        return True

    def _offspring(self, pool: List[Individual]) -> Individual:
        if not pool:
            child = random_individual(self.chain, self.rng, math.pi)
            self._evaluate(child)
            return child

        parents = self.selection.choose(pool, 2)
        if self.rng.random() < self.cross_probability:
            for operator in (self.recombination, self.mutation, self.adoption):
                operator.prepare(parents, self.best)
            recombined = self.recombination.apply(*parents[: self.recombination.arity])
            child = self.adoption.apply(self.mutation.apply(recombined))
            self._evaluate(child)
            for i in range(len(child)):
                child.gradient[3 * i:3 * i + 3] = child.euler(i) - recombined.euler(i)
        else:
            child = parents[0].clone()
            self._evaluate(child)

        for parent in parents:
            if parent.fitness > child.fitness and any(parent is member for member in pool):
                pool.remove(parent)
        return child

    def iterate(self, config: SolverConfig) -> bool:
        if not self._active():
            return True
        if self.population is None:
            self.reset(config)
        self.iteration += 1

        self.population.sort()
        elite = self.population.elite(self.elitism_size)
        for individual in elite:
            self.exploit(individual)
        self.population.sort()

        pool = list(self.population)
        children = [self._offspring(pool) for _ in range(self.population_size - self.elitism_size)]

        self.population = Population(elite + children)
        self.population.sort()
        if self.population.best.fitness < self.best.fitness:
            self.best = self.population.best.clone()
        self.population.update_extinction()

        if self.wipe_interval and self.iteration % self.wipe_interval == 0:
            self.wipe()

        self.history.append(self.best.fitness)
        return self.best.fitness < config.max_error

    def update(self) -> None:
        """Copy the best rotations into the caller's chain."""
        if self.best is None:
            return
        if self.max_angular_velocity <= 0.0:
            self.chain.set_rotations(self.best.chain.rotations())
            return
        for i in range(len(self.chain)):
            current = self.chain.orientation(i)
            delta = current.inverse().multiply(self.best.chain.orientation(i))
            self.chain.set_orientation(i, current.multiply(delta.clamp(self.max_angular_velocity)))

    def changed(self) -> bool:
        if self.targets is None:
            self._previous_targets = None
            return False
        if self._previous_targets is None:
            return True
        return not self._previous_targets.matches(self.targets)

    def reset(self, config: SolverConfig) -> None:
        self.iteration = 0
        self.history = []
        if self.targets is None:
            self._previous_targets = None
        else:
            self._previous_targets = self.targets.snapshot()
        if not self._active():
            self.population = None
            self.best = None
            return
        self._seed_population(self.chain)
        self.best = self.population.best.clone()
        self.history.append(self.best.fitness)
        logging.debug(
            f"{self.name}: reset with {self.population_size} individuals, "
            f"best fitness {self.best.fitness:.6f}"
        )

    def execute(self, config: SolverConfig) -> float:
        """Reset and run `config.max_iterations` generations.

        Returns:
            Fitness of the best individual.
        """
        self.reset(config)
        if not self._active():
            return 0.0
        for _ in range(config.max_iterations):
            self.iterate(config)
        return self.best.fitness

    def error(self) -> float:
        """Fitness of the caller's chain, which trails the best individual until `update`."""
        if not self._active():
            return 0.0
        return evaluate(self.chain, self.targets, self.fitness_function, self.pose_weight)
