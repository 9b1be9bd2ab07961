"""Network topologies for the gossip simulation.

This module provides concrete topology implementations for the peer network.

Supported topologies:
- RingTopology: Each node connected to its two neighbors in a ring
- CompleteTopology: All nodes connected to all other nodes
- GraphTopology: Arbitrary undirected graph from an explicit edge list

Every topology accepts a ``dead`` set; dead nodes stay in the graph but are
reported by ``is_alive`` so that callers can skip them.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np

from core.protocols import Topology
from core.types import NodeId

__all__ = [
    "RingTopology",
    "CompleteTopology",
    "GraphTopology",
    "alive_neighbors",
    "adjacency_matrix",
]


@dataclass(frozen=True)
class RingTopology:
    """Ring topology where each node is connected to its two neighbors.

    In a ring of n nodes, node i is connected to nodes (i-1) mod n and (i+1) mod n.

    For n=2, each node has exactly one neighbor (the other node).
    For n=1, the topology is invalid (raises ValueError).

    Attributes:
        n: Number of nodes in the ring. Must be >= 2.
        dead: Nodes that have failed.

    Example:
        >>> topo = RingTopology(n=4)
        >>> topo.neighbors(0)
        [3, 1]
        >>> topo.neighbors(1)
        [0, 2]
    """

    n: int
    dead: frozenset[NodeId] = frozenset()
    _neighbor_cache: dict[NodeId, list[NodeId]] = field(
        default_factory=dict, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Validate that n >= 2."""
        if self.n < 2:
            raise ValueError(f"Ring topology requires n >= 2, got {self.n}")
        object.__setattr__(self, "dead", frozenset(self.dead))

    def all_nodes(self) -> Sequence[NodeId]:
        """Return every node ID in ascending order."""
        return list(range(self.n))

    def is_alive(self, node: NodeId) -> bool:
        """Return False for failed nodes."""
        return node not in self.dead

    def neighbors(self, node: NodeId) -> Sequence[NodeId]:
        """Return the neighbors of a node in the ring.

        Args:
            node: Node ID in range [0, n).

        Returns:
            List of neighbor IDs: [(node-1) mod n, (node+1) mod n] for n >= 3,
            or [other_node] for n == 2.
        """
        if node in self._neighbor_cache:
            return self._neighbor_cache[node].copy()

        if self.n == 2:
            result = [1 - node]
        else:
            left = (node - 1) % self.n
            right = (node + 1) % self.n
            result = [left, right]

        # Bypass frozen dataclass for caching
        object.__setattr__(self, "_neighbor_cache", {**self._neighbor_cache, node: result})
        return result.copy()


@dataclass(frozen=True)
class CompleteTopology:
    """Complete (fully-connected) topology where every node is connected to all others.

    Attributes:
        n: Number of nodes. Must be >= 2.
        dead: Nodes that have failed.

    Example:
        >>> topo = CompleteTopology(n=4)
        >>> topo.neighbors(2)
        [0, 1, 3]
    """

    n: int
    dead: frozenset[NodeId] = frozenset()
    _neighbor_cache: dict[NodeId, list[NodeId]] = field(
        default_factory=dict, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Validate that n >= 2."""
        if self.n < 2:
            raise ValueError(f"Complete topology requires n >= 2, got {self.n}")
        object.__setattr__(self, "dead", frozenset(self.dead))

    def all_nodes(self) -> Sequence[NodeId]:
        """Return every node ID in ascending order."""
        return list(range(self.n))

    def is_alive(self, node: NodeId) -> bool:
        """Return False for failed nodes."""
        return node not in self.dead

    def neighbors(self, node: NodeId) -> Sequence[NodeId]:
        """Return all other nodes as neighbors, in sorted order."""
        if node in self._neighbor_cache:
            return self._neighbor_cache[node].copy()

        result = [i for i in range(self.n) if i != node]

        object.__setattr__(self, "_neighbor_cache", {**self._neighbor_cache, node: result})
        return result.copy()


@dataclass(frozen=True)
class GraphTopology:
    """Undirected graph given by an explicit edge list.

    Unlike the ring and complete topologies, a graph may contain a single node
    or isolated nodes with no neighbors.

    Attributes:
        n: Number of nodes. Must be >= 1.
        edges: Undirected edges (i, j) with i != j.
        dead: Nodes that have failed.

    Example:
        >>> topo = GraphTopology(n=3, edges=[(0, 1)])
        >>> topo.neighbors(0), topo.neighbors(2)
        ([1], [])
    """

    n: int
    edges: Iterable[tuple[NodeId, NodeId]] = ()
    dead: frozenset[NodeId] = frozenset()
    _adjacency: dict[NodeId, list[NodeId]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Validate the edge list and build adjacency lists."""
        if self.n < 1:
            raise ValueError(f"Graph topology requires n >= 1, got {self.n}")
        edge_list = [(int(i), int(j)) for i, j in self.edges]
        adjacency: dict[NodeId, set[NodeId]] = {i: set() for i in range(self.n)}
        for i, j in edge_list:
            if i == j:
                raise ValueError(f"Self-loop on node {i} is not allowed")
            if not (0 <= i < self.n and 0 <= j < self.n):
                raise ValueError(f"Edge ({i}, {j}) out of range for n={self.n}")
            adjacency[i].add(j)
            adjacency[j].add(i)
        object.__setattr__(self, "edges", tuple(edge_list))
        object.__setattr__(self, "dead", frozenset(self.dead))
        object.__setattr__(
            self, "_adjacency", {i: sorted(neigh) for i, neigh in adjacency.items()}
        )

    def all_nodes(self) -> Sequence[NodeId]:
        """Return every node ID in ascending order."""
        return list(range(self.n))

    def is_alive(self, node: NodeId) -> bool:
        """Return False for failed nodes."""
        return node not in self.dead

    def neighbors(self, node: NodeId) -> Sequence[NodeId]:
        """Return the sorted neighbors of a node."""
        return self._adjacency[node].copy()


def alive_neighbors(topology: Topology, node: NodeId) -> list[NodeId]:
    """Return the neighbors of ``node`` that are alive, in topology order."""
    return [j for j in topology.neighbors(node) if topology.is_alive(j)]


def adjacency_matrix(topology: Topology) -> np.ndarray:
    """Return the 0/1 adjacency matrix of a topology (dead nodes included).

    Returns:
        Integer array of shape (n, n) with ``A[i, j] = 1`` iff j is a neighbor of i.
    """
    n = len(topology.all_nodes())
    adjacency = np.zeros((n, n), dtype=np.int64)
    for i in topology.all_nodes():
        for j in topology.neighbors(i):
            adjacency[i, j] = 1
    return adjacency
