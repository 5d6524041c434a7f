"""Linear system strategies turning a Jacobian and an error vector into joint deltas."""

from __future__ import annotations

import abc
from typing import Dict, Optional

import numpy as np
import scipy.linalg

from ..constants import (
    PSEUDO_INVERSE_MAX_STEP,
    SDLS_MAX_CHANGE,
    SDLS_RANK_THRESHOLD,
    TRANSPOSE_DEGENERACY_THRESHOLD,
    TRANSPOSE_MAX_STEP,
)
from ..exceptions import InvalidConfiguration


def clamp_step(delta: np.ndarray, max_step: float) -> np.ndarray:
    """Uniformly rescale delta so that its largest component is at most max_step."""
    largest = np.max(np.abs(delta)) if delta.size else 0.0
    if largest > max_step:
        return delta * (max_step / largest)
    return delta


class LinearSystem(abc.ABC):
    """Abstract base class for solving J * delta = e.

    Attributes:
        name: Short identifier used in logs.
        max_step: Cap on the largest delta component [rad] applied by the caller.
        deferred: If True, the caller applies the delta on commit instead of
            right after solving.
    """

    name: str
    max_step: float
    deferred: bool = False

    def __init__(self, max_step: float):
        if max_step <= 0.0:
            raise InvalidConfiguration(
                f"{self.__class__.__name__} max_step must be positive, got {max_step}"
            )
        self.max_step = max_step

    @abc.abstractmethod
    def solve(self, jacobian: np.ndarray, error: np.ndarray) -> np.ndarray:
        """Compute a joint delta.

        Args:
            jacobian: Matrix of shape (rows, n).
            error: Error vector of shape (rows,).

        Returns:
            Joint delta of shape (n,) in [rad].
        """
        raise NotImplementedError


class PseudoInverse(LinearSystem):
    """Moore-Penrose pseudo-inverse solution delta = J^+ e."""

    name = "pseudo_inverse"

    def __init__(self, max_step: float = PSEUDO_INVERSE_MAX_STEP):
        super().__init__(max_step)

    def solve(self, jacobian: np.ndarray, error: np.ndarray) -> np.ndarray:
        return scipy.linalg.pinv(jacobian) @ error


class SDLS(LinearSystem):
    """Selectively damped least squares.

    Each singular direction of J gets its own clamp, proportional to how much
    end-effector motion the direction produces relative to the joint motion it
    requires. See Buss and Kim, "Selectively Damped Least Squares for Inverse
    Kinematics" (2005).

    Attributes:
        rank_threshold: Singular values below this are ignored.
        max_change: Per-direction and global cap on the delta [rad].
        block_size: Rows per end-effector. Defaults to the number of rows.
    """

    name = "sdls"

    def __init__(
        self,
        max_change: float = SDLS_MAX_CHANGE,
        rank_threshold: float = SDLS_RANK_THRESHOLD,
        block_size: Optional[int] = None,
    ):
        super().__init__(max_change)
        if rank_threshold < 0.0:
            raise InvalidConfiguration(
                f"SDLS rank_threshold must be non-negative, got {rank_threshold}"
            )
        if block_size is not None and block_size < 1:
            raise InvalidConfiguration(f"SDLS block_size must be positive, got {block_size}")
        self.max_change = max_change
        self.rank_threshold = rank_threshold
        self.block_size = block_size

    def damped_terms(self, jacobian: np.ndarray, error: np.ndarray) -> Dict[int, np.ndarray]:
        """Damped contribution of each retained singular value.

        Args:
            jacobian: Matrix of shape (rows, n).
            error: Error vector of shape (rows,).

        Returns:
            Mapping from singular value index to its scaled delta term. Indices
            of singular values below the rank threshold are absent.
        """
        rows, cols = jacobian.shape
        if cols == 0:
            return {}
        block = self.block_size or rows
        blocks = max(rows // block, 1)
        U, s, Vh = scipy.linalg.svd(jacobian, full_matrices=False)

        # rho[j]: summed norm of column j over end-effector blocks.
        rho = np.zeros(cols)
        for k in range(blocks):
            rho += np.linalg.norm(jacobian[k * block:(k + 1) * block, :], axis=0)

        terms: Dict[int, np.ndarray] = {}
        for i, sigma in enumerate(s):
            if abs(sigma) < self.rank_threshold:
                continue
            u = U[:, i]
            v = Vh[i, :]
            n_i = sum(np.linalg.norm(u[k * block:(k + 1) * block]) for k in range(blocks))
            m_i = np.sum(np.abs(v) * rho) / abs(sigma)
            ratio = 1.0 if m_i == 0.0 else min(1.0, n_i / m_i)
            gamma = self.max_change * ratio

            delta_i = v * (np.dot(u, error) / sigma)
            largest = np.max(np.abs(delta_i))
            terms[i] = delta_i * (gamma / (gamma + largest))
        return terms

    def solve(self, jacobian: np.ndarray, error: np.ndarray) -> np.ndarray:
        delta = np.zeros(jacobian.shape[1])
        for term in self.damped_terms(jacobian, error).values():
            delta += term
        return clamp_step(delta, self.max_change)


class Transpose(LinearSystem):
    """Jacobian transpose step delta = alpha * J^T e.

    alpha = (e . JJ^T e) / (JJ^T e . JJ^T e). When the denominator is below
    degeneracy_threshold the step is zero.
    """

    name = "transpose"
    deferred = True

    def __init__(
        self,
        max_step: float = TRANSPOSE_MAX_STEP,
        degeneracy_threshold: float = TRANSPOSE_DEGENERACY_THRESHOLD,
    ):
        super().__init__(max_step)
        if degeneracy_threshold < 0.0:
            raise InvalidConfiguration(
                f"Transpose degeneracy_threshold must be non-negative, got {degeneracy_threshold}"
            )
        self.degeneracy_threshold = degeneracy_threshold

    def solve(self, jacobian: np.ndarray, error: np.ndarray) -> np.ndarray:
        delta = jacobian.T @ error
        jjte = jacobian @ delta
        denominator = float(np.dot(jjte, jjte))
        if denominator < self.degeneracy_threshold:
            return np.zeros_like(delta)
        return delta * (float(np.dot(error, jjte)) / denominator)
