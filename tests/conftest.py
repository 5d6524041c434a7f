import math

import numpy as np
import pytest

from chainik import Joint, KinematicChain, SolverConfig, Target


@pytest.fixture
def planar_chain():
    """Three joints, two 50-unit segments, lying in the XY plane."""
    return KinematicChain.from_positions(
        [[0.0, 0.0, 0.0], [0.0, 50.0, 0.0], [35.355, 85.355, 0.0]], is_3d=False
    )


@pytest.fixture
def spatial_chain():
    """Same geometry as planar_chain, solved in 3D."""
    return KinematicChain.from_positions(
        [[0.0, 0.0, 0.0], [0.0, 50.0, 0.0], [35.355, 85.355, 0.0]], is_3d=True
    )


@pytest.fixture
def planar_target():
    """Reachable target at distance 90 from the root."""
    return Target(np.array([-30.0, 84.853, 0.0]))


@pytest.fixture
def long_chain():
    """Five-joint serial chain of unit segments along Y."""
    return KinematicChain.from_positions([[0.0, float(i), 0.0] for i in range(5)])


@pytest.fixture
def tree_chain():
    """Root with two branches of two joints each."""
    joints = [
        Joint(translation=np.zeros(3)),
        Joint(translation=np.array([0.0, 1.0, 0.0])),
        Joint(translation=np.array([0.0, 1.0, 0.0])),
        Joint(translation=np.array([1.0, 0.0, 0.0])),
        Joint(translation=np.array([1.0, 0.0, 0.0])),
    ]
    return KinematicChain(joints, parents=[-1, 0, 1, 0, 3])


@pytest.fixture
def unit_pair():
    """Single free joint with a unit segment along Y."""
    return KinematicChain.from_positions([[0.0, 0.0, 0.0], [0.0, 1.0, 0.0]])


@pytest.fixture
def three_degree_target():
    """Target reached by rotating unit_pair 3 degrees about Z."""
    angle = math.radians(3)
    return Target(np.array([-math.sin(angle), math.cos(angle), 0.0]))


@pytest.fixture
def config():
    return SolverConfig(max_error=0.01, max_iterations=200, seed=7)
