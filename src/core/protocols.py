"""Protocol definitions for the simulator's external collaborators.

This module contains Protocol classes defining interfaces for:
- Topologies: neighbor sets, node enumeration and liveness
- Mixing matrix oracles: adjacency in, pairwise mixing weights out
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np

from core.types import NodeId

__all__ = ["Topology", "MixingMatrixOracle"]


@runtime_checkable
class Topology(Protocol):
    """Protocol for peer network topologies.

    A Topology defines which nodes can directly exchange weight vectors and
    which nodes are currently alive.

    Contract:
    - neighbors(i) must not include node i itself
    - all_nodes() enumerates every node, alive or dead, in ascending order
    - Node IDs are the integers 0 .. len(all_nodes()) - 1
    """

    def neighbors(self, node: NodeId) -> Sequence[NodeId]:
        """Return the neighbors of a node (alive or not).

        Args:
            node: The node ID to query.

        Returns:
            Ordered sequence of neighbor node IDs (not including the node itself).
        """
        ...

    def all_nodes(self) -> Sequence[NodeId]:
        """Return every node ID of the network."""
        ...

    def is_alive(self, node: NodeId) -> bool:
        """Return False if the node has failed."""
        ...


@runtime_checkable
class MixingMatrixOracle(Protocol):
    """Protocol for mixing matrix computation.

    Given a square 0/1 adjacency matrix, returns a square matrix of pairwise
    mixing weights whose rows (and, for doubly-stochastic oracles, columns)
    sum to one. Invoked at most once per run.
    """

    def __call__(self, adjacency: np.ndarray) -> np.ndarray:
        ...
