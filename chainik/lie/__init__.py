"""Lie group and vector utilities."""

from .base import MatrixLieGroup
from .se3 import SE3
from .so3 import SO3
from .utils import (
    angle_between,
    get_epsilon,
    normalize,
    orthogonal_vector,
    project_on_plane,
)

__all__ = [
    "MatrixLieGroup",
    "SE3",
    "SO3",
    "angle_between",
    "get_epsilon",
    "normalize",
    "orthogonal_vector",
    "project_on_plane",
]
