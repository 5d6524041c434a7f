import math

import numpy as np
import pytest

from chainik import InvalidChain, InvalidEndEffector, Joint, KinematicChain
from chainik.lie import SE3, SO3


def test_from_positions_reproduces_points(planar_chain):
    np.testing.assert_allclose(planar_chain.position(0), [0.0, 0.0, 0.0])
    np.testing.assert_allclose(planar_chain.position(1), [0.0, 50.0, 0.0])
    np.testing.assert_allclose(planar_chain.position(2), [35.355, 85.355, 0.0])
    assert planar_chain.is_linear()
    assert not planar_chain.is_3d


def test_segment_lengths_skip_root(planar_chain):
    np.testing.assert_allclose(planar_chain.segment_lengths(), [50.0, 50.0], atol=1e-3)


def test_rotating_a_joint_moves_descendants(unit_pair):
    unit_pair.rotate(0, SO3.from_axis_angle(np.array([0.0, 0.0, 1.0]), math.pi / 2))
    np.testing.assert_allclose(unit_pair.position(1), [-1.0, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(unit_pair.position(0), [0.0, 0.0, 0.0])


def test_set_orientation_is_world(long_chain):
    quarter = SO3.from_axis_angle(np.array([0.0, 0.0, 1.0]), math.pi / 2)
    long_chain.rotate(0, quarter)
    long_chain.set_orientation(2, SO3.identity())
    assert long_chain.orientation(2).angle() == pytest.approx(0.0, abs=1e-9)
    assert long_chain.rotation(2).angle() == pytest.approx(math.pi / 2)


def test_set_position_and_location(long_chain):
    long_chain.set_position(4, np.array([0.0, 3.0, 1.0]))
    np.testing.assert_allclose(long_chain.position(4), [0.0, 3.0, 1.0], atol=1e-12)
    np.testing.assert_allclose(long_chain.location(3, long_chain.position(4)), [0.0, 0.0, 1.0], atol=1e-12)


def test_base_pose_offsets_everything():
    base = SE3.from_translation(np.array([10.0, 0.0, 0.0]))
    chain = KinematicChain.from_positions([[10.0, 0.0, 0.0], [10.0, 1.0, 0.0]], base=base)
    np.testing.assert_allclose(chain.translation(0), [0.0, 0.0, 0.0])
    np.testing.assert_allclose(chain.position(1), [10.0, 1.0, 0.0])


def test_tree_structure(tree_chain):
    assert not tree_chain.is_linear()
    assert tree_chain.path(4) == [0, 3, 4]
    assert tree_chain.children(0) == [1, 3]
    assert tree_chain.reference(0) is None
    assert tree_chain.reference(3) == 0
    np.testing.assert_allclose(tree_chain.position(4), [2.0, 0.0, 0.0])


def test_copy_is_independent(long_chain):
    copy = long_chain.copy()
    copy.rotate(0, SO3.from_rpy(0.3, 0.0, 0.0))
    assert long_chain.rotation(0).angle() == 0.0
    long_chain.copy_state_from(copy)
    np.testing.assert_allclose(long_chain.position(4), copy.position(4))


def test_set_rotations_checks_length(long_chain):
    with pytest.raises(InvalidChain):
        long_chain.set_rotations([SO3.identity()])


@pytest.mark.parametrize("parents", [[0, 0], [-1, 1], [-1]])
def test_invalid_parents(parents):
    joints = [Joint(translation=np.zeros(3)), Joint(translation=np.ones(3))]
    with pytest.raises(InvalidChain):
        KinematicChain(joints, parents=parents)


def test_empty_chain():
    with pytest.raises(InvalidChain):
        KinematicChain([])


def test_check_index(long_chain):
    assert long_chain.check_index(-1) == 4
    with pytest.raises(InvalidEndEffector):
        long_chain.check_index(5)
