"""Common interface of joint rotations and rigid frames."""

import abc
from typing import Union, overload

import numpy as np
from typing_extensions import Self


class MatrixLieGroup(abc.ABC):
    """Group element acting on 3D points.

    Joint rotations (SO3) and world frames (SE3) share composition, inversion
    and the point action, so kinematic code can chain them with `@`.

    Attributes:
        space_dim: Dimension of the points the element acts on.
    """

    space_dim: int

    @overload
    def __matmul__(self, other: Self) -> Self: ...

    @overload
    def __matmul__(self, other: np.ndarray) -> np.ndarray: ...

    def __matmul__(self, other: Union[Self, np.ndarray]) -> Union[Self, np.ndarray]:
        """`a @ b` composes elements, `a @ p` maps a point."""
        if isinstance(other, np.ndarray):
            return self.apply(other)
        assert isinstance(other, MatrixLieGroup)
        return self.multiply(other)

    @classmethod
    @abc.abstractmethod
    def identity(cls) -> Self:
        raise NotImplementedError

    @abc.abstractmethod
    def apply(self, target: np.ndarray) -> np.ndarray:
        """Map a 3D point."""
        raise NotImplementedError

    @abc.abstractmethod
    def multiply(self, other: Self) -> Self:
        """Compose, applying `other` first."""
        raise NotImplementedError

    @abc.abstractmethod
    def inverse(self) -> Self:
        raise NotImplementedError

    @abc.abstractmethod
    def copy(self) -> Self:
        raise NotImplementedError
