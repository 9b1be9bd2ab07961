"""Mixing weights for gossip averaging.

This module provides the mixing matrix used by the matrix-weighted and
two-phase push-sum gossip strategies:

- metropolis_hastings_matrix: the built-in oracle,
  doubly-stochastic for undirected graphs
- LazyMixingMatrix: computes the matrix once per run, on first request, and
  caches it read-only
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

import numpy as np

from core.logging import get_logger
from core.protocols import MixingMatrixOracle, Topology
from distributed.topology import adjacency_matrix

__all__ = [
    "MixingMatrixError",
    "metropolis_hastings_matrix",
    "row_sums_close_to_one",
    "is_doubly_stochastic",
    "LazyMixingMatrix",
]

logger = get_logger(__name__)


class MixingMatrixError(RuntimeError):
    """Raised when the mixing matrix cannot be computed or is malformed."""


def metropolis_hastings_matrix(adjacency: np.ndarray) -> np.ndarray:
    """Mixing matrix oracle returning dense Metropolis-Hastings weights.

    Args:
        adjacency: Square 0/1 adjacency matrix. Symmetrized before use.

    Returns:
        Float64 array ``B`` of the same shape with ``B[i, j] = w_ij``.

    Raises:
        ValueError: If ``adjacency`` is not square.
    """
    adj = np.asarray(adjacency)
    if adj.ndim != 2 or adj.shape[0] != adj.shape[1]:
        raise ValueError(f"Adjacency must be square, got shape {adj.shape}")

    linked = (adj != 0) | (adj.T != 0)
    np.fill_diagonal(linked, False)
    degrees = linked.sum(axis=1)

    n = adj.shape[0]
    matrix = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        for j in np.flatnonzero(linked[i]):
            matrix[i, j] = 1.0 / (1.0 + max(degrees[i], degrees[j]))
        matrix[i, i] = 1.0 - matrix[i].sum()
    return matrix


def row_sums_close_to_one(matrix: np.ndarray, tol: float = 1e-12) -> bool:
    """Check if all row sums of a dense matrix are close to 1.

    Example:
        >>> row_sums_close_to_one(np.full((2, 2), 0.5))
        True
    """
    return bool(np.all(np.abs(np.asarray(matrix).sum(axis=1) - 1.0) <= tol))


def is_doubly_stochastic(matrix: np.ndarray, tol: float = 1e-9) -> bool:
    """Return True if both row and column sums of ``matrix`` are 1 within ``tol``."""
    m = np.asarray(matrix, dtype=np.float64)
    return row_sums_close_to_one(m, tol) and row_sums_close_to_one(m.T, tol)


@dataclass
class LazyMixingMatrix:
    """Run-scoped, lazily computed mixing matrix.

    The oracle is called on the first :meth:`get` and never again; concurrent
    first requests are serialized by a lock. Variants that never ask for the
    matrix never trigger the oracle, so an unavailable oracle only fails runs
    that need it.

    Attributes:
        topology: Topology whose adjacency is handed to the oracle.
        oracle: Callable computing the matrix from the adjacency.
        tol: Row-sum tolerance below which a warning is logged.
    """

    topology: Topology
    oracle: MixingMatrixOracle = metropolis_hastings_matrix
    tol: float = 1e-6
    _matrix: np.ndarray | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _calls: int = field(default=0, init=False, repr=False)

    @property
    def computed(self) -> bool:
        """True once the oracle has produced the matrix."""
        return self._matrix is not None

    @property
    def oracle_calls(self) -> int:
        """Number of times the oracle has been invoked."""
        return self._calls

    def get(self) -> np.ndarray:
        """Return the mixing matrix, computing it on first use.

        Returns:
            Read-only float64 array of shape (n, n).

        Raises:
            MixingMatrixError: If the oracle fails or returns a malformed matrix.
        """
        if self._matrix is not None:
            return self._matrix
        with self._lock:
            if self._matrix is None:
                self._matrix = self._compute()
        return self._matrix

    def _compute(self) -> np.ndarray:
        n = len(self.topology.all_nodes())
        adjacency = adjacency_matrix(self.topology)
        logger.info("Computing mixing matrix for %d nodes", n)
        self._calls += 1
        try:
            raw = self.oracle(adjacency)
        except Exception as exc:
            raise MixingMatrixError(f"Mixing matrix oracle failed: {exc}") from exc

        matrix = np.array(raw, dtype=np.float64, copy=True)
        if matrix.ndim == 1 and matrix.size == n * n:
            # Oracles may hand back the matrix flattened row-major
            matrix = matrix.reshape(n, n)
        if matrix.shape != (n, n):
            raise MixingMatrixError(f"Expected mixing matrix of shape {(n, n)}, got {matrix.shape}")
        if not np.all(np.isfinite(matrix)):
            raise MixingMatrixError("Mixing matrix contains non-finite entries")
        if not row_sums_close_to_one(matrix, self.tol):
            logger.warning("Mixing matrix rows do not sum to 1 (tol=%g)", self.tol)
        elif not is_doubly_stochastic(matrix, self.tol):
            logger.warning("Mixing matrix is not doubly stochastic; averages drift")

        matrix.setflags(write=False)
        return matrix
