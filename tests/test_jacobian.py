import math

import numpy as np
import pytest

from chainik import (
    SDLS,
    InvalidConfiguration,
    InvalidTarget,
    JacobianSolver,
    KinematicChain,
    NonLinearChain,
    PseudoInverse,
    SolverConfig,
    Target,
    Transpose,
)
from chainik.jacobian import apply_delta, build_jacobian, clamp_step, error_vector


@pytest.mark.parametrize("size", [2, 3, 5, 8])
def test_jacobian_has_one_column_per_free_joint(size):
    chain = KinematicChain.from_positions([[0.0, float(i), 0.0] for i in range(size)])
    jacobian = build_jacobian(chain, np.array([1.0, 1.0, 0.0]))
    assert jacobian.matrix.shape == (3, size - 1)
    assert jacobian.axes.shape == (size - 1, 3)


def test_planar_jacobian_uses_z_axis(planar_chain, planar_target):
    jacobian = build_jacobian(planar_chain, planar_target.position)
    assert jacobian.rows == 2
    np.testing.assert_allclose(jacobian.axes, [[0.0, 0.0, 1.0]] * 2)
    arm = planar_chain.position(2) - planar_chain.position(0)
    np.testing.assert_allclose(jacobian.matrix[:, 0], [-arm[1], arm[0]])


def test_degenerate_axis_falls_back_to_orthogonal(long_chain):
    # Target on the line of the chain: every cross product vanishes.
    jacobian = build_jacobian(long_chain, np.array([0.0, 10.0, 0.0]))
    for axis in jacobian.axes:
        assert np.linalg.norm(axis) == pytest.approx(1.0)
        assert np.dot(axis, [0.0, 1.0, 0.0]) == pytest.approx(0.0, abs=1e-12)


def test_numerical_jacobian_matches_analytic(spatial_chain):
    target = np.array([-30.0, 84.853, 5.0])
    analytic = build_jacobian(spatial_chain, target)
    numerical = build_jacobian(spatial_chain, target, numerical=True)
    np.testing.assert_allclose(numerical.matrix, analytic.matrix, rtol=1e-3, atol=1e-3)


def test_error_vector_is_clamped(planar_chain):
    error = error_vector(planar_chain, np.array([500.0, 0.0, 0.0]), max_length=10.0)
    assert error.shape == (2,)
    assert np.linalg.norm(error) == pytest.approx(10.0)


def test_apply_delta_rotates_about_world_axis(unit_pair):
    apply_delta(unit_pair, np.array([math.pi / 2]), np.array([[0.0, 0.0, 1.0]]))
    np.testing.assert_allclose(unit_pair.position(1), [-1.0, 0.0, 0.0], atol=1e-12)


def test_clamp_step():
    np.testing.assert_allclose(clamp_step(np.array([2.0, -4.0]), 1.0), [0.5, -1.0])
    np.testing.assert_array_equal(clamp_step(np.array([0.1, 0.2]), 1.0), [0.1, 0.2])


def test_pseudo_inverse_solves_square_system():
    jacobian = np.array([[2.0, 0.0], [0.0, 4.0]])
    np.testing.assert_allclose(PseudoInverse().solve(jacobian, np.array([1.0, 1.0])), [0.5, 0.25])


def test_sdls_skips_small_singular_values():
    jacobian = np.array([[1.0, 0.0], [0.0, 0.0], [0.0, 0.0]])
    terms = SDLS().damped_terms(jacobian, np.array([1.0, 0.0, 0.0]))
    assert set(terms) == {0}


def test_sdls_delta_is_bounded():
    sdls = SDLS()
    jacobian = np.array([[1e-3, 0.0], [0.0, 1e-3], [0.0, 0.0]])
    delta = sdls.solve(jacobian, np.array([100.0, 100.0, 0.0]))
    assert np.max(np.abs(delta)) <= sdls.max_change + 1e-12


def test_transpose_degenerate_step_is_exactly_zero():
    delta = Transpose().solve(np.zeros((3, 2)), np.array([1.0, 2.0, 3.0]))
    np.testing.assert_array_equal(delta, np.zeros(2))


def test_transpose_zero_when_joints_coincide():
    chain = KinematicChain.from_positions([[0.0, 0.0, 0.0]] * 3)
    target = np.array([1.0, 1.0, 0.0])
    jacobian = build_jacobian(chain, target)
    error = error_vector(chain, target)
    np.testing.assert_array_equal(Transpose().solve(jacobian.matrix, error), np.zeros(2))


@pytest.mark.parametrize(
    "system",
    [
        lambda: PseudoInverse(max_step=0.0),
        lambda: SDLS(rank_threshold=-1.0),
        lambda: Transpose(degeneracy_threshold=-1.0),
    ],
)
def test_systems_validate_settings(system):
    with pytest.raises(InvalidConfiguration):
        system()


def _run(solver, config):
    solver.reset(config)
    for _ in range(config.max_iterations):
        converged = solver.iterate(config)
        solver.update()
        if converged:
            return True
    return False


@pytest.mark.parametrize(
    "system, budget",
    [(PseudoInverse, 200), (SDLS, 200), (Transpose, 1000)],
)
def test_planar_chain_reaches_target(planar_chain, planar_target, system, budget):
    config = SolverConfig(max_error=0.01, max_iterations=budget)
    solver = JacobianSolver(planar_chain, system(), planar_target)
    assert _run(solver, config)
    assert solver.error() <= 0.01
    np.testing.assert_allclose(planar_chain.segment_lengths(), [50.0, 50.0], atol=1e-3)


@pytest.mark.parametrize(
    "system, budget",
    [(PseudoInverse, 200), (SDLS, 200), (Transpose, 1000)],
)
def test_iterates_from_construction_without_reset(planar_chain, planar_target, system, budget):
    config = SolverConfig(max_error=0.01)
    solver = JacobianSolver(planar_chain, system(), planar_target)
    assert solver.max_length == pytest.approx(50.0)
    converged = False
    for _ in range(budget):
        converged = solver.iterate(config)
        solver.update()
        if converged:
            break
    assert converged
    assert solver.error() <= 0.01


def test_end_effector_change_updates_lengths(long_chain):
    solver = JacobianSolver(long_chain, SDLS(), Target([1.0, 1.0, 0.0]))
    assert solver.average_length == pytest.approx(1.0)
    solver.set_target(Target([1.0, 1.0, 0.0]), end_effector=0)
    assert solver.max_length == 0.0


def test_unreachable_target_approaches_max_reach(planar_chain):
    config = SolverConfig(max_error=0.01, max_iterations=200)
    target = Target(np.array([0.0, 300.0, 0.0]))
    solver = JacobianSolver(planar_chain, SDLS(), target)
    _run(solver, config)
    reach = np.linalg.norm(planar_chain.position(2))
    assert reach == pytest.approx(100.0, abs=2.0)
    assert solver.error() == pytest.approx(200.0, abs=2.0)


@pytest.mark.parametrize("system", [PseudoInverse, Transpose])
def test_single_free_joint_converges_in_one_iteration(unit_pair, three_degree_target, system):
    config = SolverConfig(max_error=0.01)
    solver = JacobianSolver(unit_pair, system(), three_degree_target)
    solver.reset(config)
    solver.iterate(config)
    solver.update()
    assert solver.error() < 0.01


def test_transpose_defers_commit(unit_pair, three_degree_target):
    config = SolverConfig(max_error=0.01)
    solver = JacobianSolver(unit_pair, Transpose(), three_degree_target)
    solver.reset(config)
    before = unit_pair.position(1)
    assert not solver.iterate(config)
    np.testing.assert_array_equal(unit_pair.position(1), before)
    solver.update()
    assert solver.error() < 0.01


@pytest.mark.parametrize("system", [PseudoInverse, SDLS, Transpose])
def test_none_target_is_a_converged_noop(planar_chain, system):
    config = SolverConfig()
    before = [rotation.quat.copy() for rotation in planar_chain.rotations()]
    solver = JacobianSolver(planar_chain, system())
    solver.reset(config)
    assert solver.iterate(config)
    solver.update()
    for quat, rotation in zip(before, planar_chain.rotations()):
        np.testing.assert_array_equal(quat, rotation.quat)
    assert solver.error() == 0.0
    assert not solver.changed()


def test_changed_tracks_target_snapshot(planar_chain, planar_target):
    solver = JacobianSolver(planar_chain, SDLS(), planar_target)
    assert solver.changed()
    solver.reset(SolverConfig())
    assert not solver.changed()
    planar_target.position = [-30.0, 80.0, 0.0]
    assert solver.changed()


def test_rejects_trees_and_bad_targets(tree_chain, long_chain):
    with pytest.raises(NonLinearChain):
        JacobianSolver(tree_chain, SDLS())
    with pytest.raises(InvalidTarget):
        JacobianSolver(long_chain, SDLS(), target=np.zeros(3))
