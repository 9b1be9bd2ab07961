"""Run-scoped simulation state.

This module provides:
- GadgetNode: everything a single peer owns
- SimulationContext: the state shared by one run (config, topology, nodes,
  mixing matrix cache, converged flag), passed to every component
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from core.protocols import Topology
from core.types import NodeId, Phase
from distributed.topology import alive_neighbors
from distributed.weights import LazyMixingMatrix
from experiments.config import GadgetConfig
from models.sparse_vector import SparseWeightVector
from tasks.svm_data import TrainingExample

__all__ = ["GadgetNode", "SimulationContext", "build_nodes"]


@dataclass
class GadgetNode:
    """A peer in the gossip SVM simulation.

    Each node owns its shard, its weight vector and its push-sum state. Only
    calls naming this node (or a gossip round it takes part in) mutate it.

    Attributes:
        node_id: Unique identifier for this node.
        shard: The node's training examples (read-only).
        weights: Current weight vector.
        mass: Push-sum weight, initialized to the shard size.
        rng: Random number generator for neighbor selection.
        misclassified: Misclassified count of the last local update.
        phase: Current phase of the cycle state machine.
        iteration: Outer iteration counter t (starts at 1).
        completed_iterations: Outer iterations finished so far.
        gossip_rounds: Gossip rounds completed in the current iteration.
        staged: Two-phase push-sum staging buffer.
        staged_mass: Mass staged alongside ``staged``.
        awaiting_receive: True between a two-phase send and its receive.
        accumulated: Sum of projected vectors over iterations (two-phase).
        final: Published final model, set on finalization.
    """

    node_id: NodeId
    shard: tuple[TrainingExample, ...]
    weights: SparseWeightVector = field(default_factory=SparseWeightVector)
    mass: float = 0.0
    rng: np.random.Generator = field(default_factory=lambda: np.random.default_rng(0))
    misclassified: int = 0
    phase: Phase = Phase.LOCAL_UPDATE
    iteration: int = 1
    completed_iterations: int = 0
    gossip_rounds: int = 0
    staged: SparseWeightVector = field(default_factory=SparseWeightVector)
    staged_mass: float = 0.0
    awaiting_receive: bool = False
    accumulated: SparseWeightVector = field(default_factory=SparseWeightVector)
    final: SparseWeightVector | None = None

    @classmethod
    def create(
        cls,
        node_id: NodeId,
        shard: Sequence[TrainingExample],
        rng: np.random.Generator | None = None,
    ) -> GadgetNode:
        """Create a fresh node with an empty model and mass equal to its shard size."""
        node = cls(node_id=node_id, shard=tuple(shard))
        node.mass = float(node.shard_size)
        if rng is not None:
            node.rng = rng
        return node

    @property
    def shard_size(self) -> int:
        """Number of training examples N."""
        return len(self.shard)

    @property
    def done(self) -> bool:
        """True once the node reached its terminal phase."""
        return self.phase is Phase.DONE

    def reset(self, rng: np.random.Generator) -> None:
        """Return to the initial state of a run, keeping the shard."""
        self.weights = SparseWeightVector()
        self.mass = float(self.shard_size)
        self.rng = rng
        self.misclassified = 0
        self.phase = Phase.LOCAL_UPDATE
        self.iteration = 1
        self.completed_iterations = 0
        self.gossip_rounds = 0
        self.staged = SparseWeightVector()
        self.staged_mass = 0.0
        self.awaiting_receive = False
        self.accumulated = SparseWeightVector()
        self.final = None

    def estimate(self) -> SparseWeightVector:
        """Return ``weights / mass`` (the push-sum estimate), or a copy of weights for zero mass."""
        estimate = self.weights.copy()
        if self.mass != 0.0:
            estimate.scale(1.0 / self.mass)
        return estimate


def build_nodes(shards: Sequence[Sequence[TrainingExample]]) -> list[GadgetNode]:
    """Create one node per shard, with node IDs 0..len(shards)-1."""
    return [GadgetNode.create(node_id=i, shard=shard) for i, shard in enumerate(shards)]


@dataclass
class SimulationContext:
    """State shared by every component of one run.

    Attributes:
        config: Fixed run configuration.
        topology: Network topology provider.
        nodes: Nodes by ID.
        mixing: Lazily computed mixing matrix.
        converged: Set by the observer when all dimensions agree; cleared by
                   the next local update.
        cycle: Number of completed scheduler cycles.
    """

    config: GadgetConfig
    topology: Topology
    nodes: dict[NodeId, GadgetNode]
    mixing: LazyMixingMatrix
    converged: bool = False
    cycle: int = 0

    def node(self, node_id: NodeId) -> GadgetNode:
        """Return the node with the given ID."""
        return self.nodes[node_id]

    def alive_nodes(self) -> list[GadgetNode]:
        """Return alive nodes in ascending ID order."""
        return [self.nodes[i] for i in sorted(self.nodes) if self.topology.is_alive(i)]

    def alive_peers(self, node_id: NodeId) -> list[GadgetNode]:
        """Return the alive neighbors of a node, in topology order."""
        return [self.nodes[j] for j in alive_neighbors(self.topology, node_id)]

    @property
    def finished(self) -> bool:
        """True once every alive node is done."""
        return all(node.done for node in self.alive_nodes())
