import math

import numpy as np
import pytest

from chainik.lie import (
    SE3,
    SO3,
    angle_between,
    normalize,
    orthogonal_vector,
    project_on_plane,
)


def test_identity_leaves_points_unchanged():
    point = np.array([1.0, -2.0, 3.0])
    np.testing.assert_allclose(SO3.identity().apply(point), point)
    np.testing.assert_allclose(SE3.identity().apply(point), point)


def test_axis_angle_rotates_about_z():
    rotation = SO3.from_axis_angle(np.array([0.0, 0.0, 2.0]), math.pi / 2)
    np.testing.assert_allclose(rotation.apply(np.array([1.0, 0.0, 0.0])), [0.0, 1.0, 0.0], atol=1e-12)
    assert rotation.angle() == pytest.approx(math.pi / 2)
    np.testing.assert_allclose(rotation.axis(), [0.0, 0.0, 1.0])


def test_zero_axis_is_identity():
    assert SO3.from_axis_angle(np.zeros(3), 1.0) == SO3.identity()


def test_two_vectors_maps_source_direction_on_dest():
    source = np.array([1.0, 2.0, 0.5])
    dest = np.array([-3.0, 0.2, 1.0])
    rotation = SO3.from_two_vectors(source, dest)
    np.testing.assert_allclose(rotation.apply(normalize(source)), normalize(dest), atol=1e-10)


def test_two_vectors_antiparallel_is_half_turn():
    source = np.array([0.0, 1.0, 0.0])
    rotation = SO3.from_two_vectors(source, -source)
    assert rotation.angle() == pytest.approx(math.pi)
    np.testing.assert_allclose(rotation.apply(source), -source, atol=1e-10)


def test_rpy_conversion():
    rotation = SO3.from_rpy(0.1, -0.4, 1.2)
    np.testing.assert_allclose(rotation.as_rpy(), [0.1, -0.4, 1.2], atol=1e-10)


def test_multiply_with_inverse_is_identity():
    rotation = SO3.from_rpy(0.3, 0.2, -0.7)
    assert rotation.multiply(rotation.inverse()).angle() == pytest.approx(0.0, abs=1e-7)


def test_angle_to_and_clamp():
    a = SO3.from_axis_angle(np.array([1.0, 0.0, 0.0]), 0.2)
    b = SO3.from_axis_angle(np.array([1.0, 0.0, 0.0]), 0.9)
    assert a.angle_to(b) == pytest.approx(0.7)

    clamped = b.clamp(0.5)
    assert clamped.angle() == pytest.approx(0.5)
    np.testing.assert_allclose(clamped.axis(), [1.0, 0.0, 0.0])
    assert a.clamp(0.5) is a


def test_se3_inverse_and_composition():
    a = SE3.from_rotation_and_translation(SO3.from_rpy(0.1, 0.2, 0.3), np.array([1.0, 2.0, 3.0]))
    b = SE3.from_rotation_and_translation(SO3.from_rpy(-0.4, 0.0, 0.9), np.array([0.0, -1.0, 2.0]))
    point = np.array([0.5, 0.5, -0.5])
    np.testing.assert_allclose(a.inverse().apply(a.apply(point)), point, atol=1e-10)
    np.testing.assert_allclose((a @ b) @ point, a.apply(b.apply(point)), atol=1e-10)


def test_vector_helpers():
    x = np.array([3.0, -1.0, 2.0])
    assert np.dot(orthogonal_vector(x), x) == pytest.approx(0.0, abs=1e-12)
    assert np.linalg.norm(orthogonal_vector(x)) == pytest.approx(1.0)
    np.testing.assert_allclose(project_on_plane(x, np.array([0.0, 0.0, 5.0])), [3.0, -1.0, 0.0])
    assert angle_between(np.array([1.0, 0.0, 0.0]), np.array([0.0, 2.0, 0.0])) == pytest.approx(math.pi / 2)
    assert angle_between(np.zeros(3), x) == 0.0
    np.testing.assert_array_equal(normalize(np.zeros(3)), np.zeros(3))
