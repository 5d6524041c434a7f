import numpy as np
import pytest

from chainik import (
    SDLS,
    BioIKSolver,
    InvalidConfiguration,
    JacobianSolver,
    PseudoInverse,
    Solver,
    SolverConfig,
    SolverMode,
    Target,
    TargetSet,
    Transpose,
    TRIKMode,
    TRIKSolver,
    UnknownSolverMode,
)
from chainik.evolution import evaluate


@pytest.mark.parametrize(
    "mode, expected",
    [
        ("sdls", SolverMode.SDLS),
        ("PSEUDO_INVERSE", SolverMode.PSEUDO_INVERSE),
        (" trik_ccd ", SolverMode.TRIK_CCD),
        (SolverMode.EVOLUTIONARY, SolverMode.EVOLUTIONARY),
    ],
)
def test_parse_mode(mode, expected):
    assert SolverMode.parse(mode) is expected


def test_unknown_mode():
    with pytest.raises(UnknownSolverMode, match="Available modes"):
        SolverMode.parse("fabrik")


@pytest.mark.parametrize(
    "mode, strategy_type, system_type",
    [
        ("pseudo_inverse", JacobianSolver, PseudoInverse),
        ("sdls", JacobianSolver, SDLS),
        ("transpose", JacobianSolver, Transpose),
        ("trik_forward", TRIKSolver, None),
        ("trik_back_and_forth", TRIKSolver, None),
        ("evolutionary", BioIKSolver, None),
    ],
)
def test_create_selects_strategy(planar_chain, planar_target, mode, strategy_type, system_type):
    solver = Solver.create(planar_chain, mode, planar_target)
    assert isinstance(solver.strategy, strategy_type)
    if system_type is not None:
        assert isinstance(solver.strategy.system, system_type)
    assert solver.chain is planar_chain


def test_create_forwards_options(planar_chain, planar_target):
    solver = Solver.create(planar_chain, "sdls", planar_target, max_change=0.1, numerical=True)
    assert solver.strategy.system.max_change == 0.1
    assert solver.strategy.numerical

    solver = Solver.create(planar_chain, "trik_ccd", planar_target, twist=True)
    assert solver.strategy.mode is TRIKMode.CCD
    assert solver.strategy.twist is not None

    solver = Solver.create(
        planar_chain, "evolutionary", planar_target, population_size=8, elitism_size=2
    )
    assert solver.strategy.population_size == 8


@pytest.mark.parametrize("mode", ["pseudo_inverse", "sdls", "transpose", "trik_ccd"])
def test_solve_ticks_until_converged(planar_chain, planar_target, mode):
    config = SolverConfig(max_error=0.01, max_iterations=1000, times_per_frame=5.0)
    solver = Solver.create(planar_chain, mode, planar_target, config)
    converged = False
    for _ in range(200):
        converged = solver.solve()
        if converged:
            break
    assert converged
    assert solver.error() <= 0.01
    assert solver.iterations == config.max_iterations
    assert solver.solve()


def test_solve_respects_fractional_times_per_frame(planar_chain, planar_target):
    config = SolverConfig(times_per_frame=0.5)
    solver = Solver.create(planar_chain, "pseudo_inverse", planar_target, config)
    before = planar_chain.position(2)
    assert not solver.solve()
    assert solver.iterations == 0
    np.testing.assert_array_equal(planar_chain.position(2), before)
    assert not solver.solve()
    assert solver.iterations == 1
    assert not np.allclose(planar_chain.position(2), before)


def test_budget_exhaustion_stops_iterating(planar_chain):
    config = SolverConfig(max_iterations=3, times_per_frame=2.0)
    solver = Solver.create(planar_chain, "sdls", Target([0.0, 400.0, 0.0]), config)
    assert not solver.solve()
    assert not solver.solve()
    assert solver.iterations == 3
    position = planar_chain.position(2)
    assert not solver.solve()
    np.testing.assert_array_equal(planar_chain.position(2), position)


def test_moving_target_resets(planar_chain, planar_target):
    solver = Solver.create(planar_chain, "sdls", planar_target, SolverConfig(max_iterations=500))
    while not solver.solve():
        pass
    planar_target.position = [30.0, 84.853, 0.0]
    solver.solve()
    assert solver.last_iteration <= 4
    assert solver.error() < 60.0


def test_change_forces_reset(planar_chain):
    solver = Solver.create(planar_chain, "sdls", Target([0.0, 400.0, 0.0]))
    solver.solve()
    assert solver.iterations == 5
    solver.change(True)
    solver.set_times_per_frame(1.0)
    solver.solve()
    assert solver.iterations == 1
    assert solver.last_iteration == 0


def test_iterate_runs_a_single_committed_iteration(unit_pair, three_degree_target):
    solver = Solver.create(unit_pair, "pseudo_inverse", three_degree_target)
    assert solver.iterate()
    assert solver.error() < 0.01
    assert solver.iterations == 1


def test_transpose_converges_after_one_committed_iteration(unit_pair, three_degree_target):
    solver = Solver.create(unit_pair, "transpose", three_degree_target)
    solver.iterate()
    assert solver.error() < 0.01
    assert solver.iterate()


@pytest.mark.parametrize("mode", ["pseudo_inverse", "sdls", "transpose", "trik_ccd"])
def test_execute_returns_final_error(planar_chain, planar_target, mode):
    solver = Solver.create(planar_chain, mode, planar_target, SolverConfig(max_iterations=1000))
    error = solver.execute()
    assert error <= 0.01
    assert error == pytest.approx(np.linalg.norm(planar_chain.position(2) - planar_target.position))
    assert solver.converged


def test_execute_evolutionary_with_seed(planar_chain, planar_target):
    start = np.linalg.norm(planar_chain.position(2) - planar_target.position)
    config = SolverConfig(max_iterations=30, seed=11)
    first = Solver.create(planar_chain.copy(), "evolutionary", planar_target, config).execute()
    second = Solver.create(planar_chain, "evolutionary", planar_target, config).execute()
    assert first == second
    assert second < start


def test_evolutionary_accepts_target_sets(tree_chain):
    targets = TargetSet(len(tree_chain))
    targets[2] = Target([1.0, 1.5, 0.0])
    targets[4] = Target([0.5, -1.5, 0.0])
    start = evaluate(tree_chain, targets)
    solver = Solver.create(tree_chain, "evolutionary", targets, SolverConfig(seed=3))
    converged = solver.solve()
    assert solver.iterations == (solver.config.max_iterations if converged else 5)
    assert solver.error() < start


def test_setters_validate(planar_chain, planar_target):
    solver = Solver.create(planar_chain, "sdls", planar_target)
    solver.set_max_iterations(7)
    solver.set_max_error(0.5)
    assert solver.config.max_iterations == 7
    assert solver.config.max_error == 0.5
    with pytest.raises(InvalidConfiguration):
        solver.set_max_iterations(0)
    with pytest.raises(InvalidConfiguration):
        solver.set_times_per_frame(-1.0)


def test_none_target_leaves_chain_untouched(planar_chain):
    before = [rotation.quat.copy() for rotation in planar_chain.rotations()]
    for mode in SolverMode:
        solver = Solver.create(planar_chain, mode)
        assert solver.solve()
        assert solver.error() == 0.0
    for quat, rotation in zip(before, planar_chain.rotations()):
        np.testing.assert_array_equal(quat, rotation.quat)


def test_set_target_rebinds(planar_chain, planar_target):
    solver = Solver.create(planar_chain, "pseudo_inverse")
    solver.set_target(planar_target)
    assert solver.execute() <= 0.01
