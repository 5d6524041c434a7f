"""Vector helpers shared by the kinematics and the solvers."""

import numpy as np

from ..constants import EPSILON_FLOAT32, EPSILON_FLOAT64

_EPSILON = {
    np.dtype("float32"): EPSILON_FLOAT32,
    np.dtype("float64"): EPSILON_FLOAT64,
}


def get_epsilon(dtype: np.dtype) -> float:
    """Tolerance under which a norm of the given dtype counts as zero."""
    return _EPSILON.get(np.dtype(dtype), EPSILON_FLOAT64)


def normalize(x: np.ndarray) -> np.ndarray:
    """Return x scaled to unit length, or a zero vector if x is (close to) zero."""
    x = np.asarray(x, dtype=np.float64)
    norm = np.linalg.norm(x)
    if norm < get_epsilon(x.dtype):
        return np.zeros_like(x)
    return x / norm


def orthogonal_vector(x: np.ndarray) -> np.ndarray:
    """Return a unit vector orthogonal to x.

    The basis axis least aligned with x is crossed with it. A zero input gets
    an arbitrary unit vector.

    Args:
        x: 3D vector.

    Returns:
        Unit 3D vector perpendicular to x.
    """
    x = np.asarray(x, dtype=np.float64)
    index = int(np.argmin(np.abs(x)))
    basis = np.zeros(3)
    basis[index] = 1.0
    orthogonal = np.cross(x, basis)
    norm = np.linalg.norm(orthogonal)
    if norm < get_epsilon(x.dtype):
        return np.roll(basis, 1)
    return orthogonal / norm


def project_on_plane(x: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """Project x on the plane through the origin with the given normal."""
    n = normalize(normal)
    return x - np.dot(x, n) * n


def angle_between(a: np.ndarray, b: np.ndarray) -> float:
    """Unsigned angle in [rad] between two vectors. Zero if either is zero."""
    na = np.linalg.norm(a)
    nb = np.linalg.norm(b)
    if na < get_epsilon(np.dtype("float64")) or nb < get_epsilon(np.dtype("float64")):
        return 0.0
    cos = np.clip(np.dot(a, b) / (na * nb), -1.0, 1.0)
    return float(np.arccos(cos))
