"""Gossip strategies for the distributed SVM.

This module provides the averaging step run by a node while it waits in the
gossip phase. Every strategy mutates only the initiating node and, where the
variant says so, the peer it talks to:

- UniformPairwiseGossip: sum with one random alive neighbor (optionally
  written back into the neighbor), rescaled onto the norm ball
- MatrixWeightedGossip: weighted in-place mix of all alive neighbors
- PushSumSinglePhase: average with one random alive neighbor, both sides
- PushSumTwoPhase: alternating send (stage) and receive (replace) rounds,
  carrying a push-sum mass alongside the vector

A strategy returns True when the call completed a gossip round. The two-phase
strategy returns False on the send half.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from core.types import GossipVariant
from distributed.context import GadgetNode, SimulationContext
from models.sparse_vector import SparseWeightVector
from optim.constraints import PegasosBallConstraint

__all__ = [
    "GossipStrategy",
    "UniformPairwiseGossip",
    "MatrixWeightedGossip",
    "PushSumSinglePhase",
    "PushSumTwoPhase",
    "build_strategy",
]


class GossipStrategy(Protocol):
    """Protocol for gossip averaging strategies."""

    def gossip(self, node: GadgetNode, context: SimulationContext) -> bool:
        """Run one gossip action for ``node``.

        Args:
            node: The initiating node (mutated).
            context: Run-scoped state, used to reach peers and the mixing matrix.

        Returns:
            True if a full gossip round completed.
        """
        ...


def _pick_peer(node: GadgetNode, context: SimulationContext) -> GadgetNode | None:
    peers = context.alive_peers(node.node_id)
    if not peers:
        return None
    return peers[int(node.rng.integers(len(peers)))]


def _union_keys(a: SparseWeightVector, b: SparseWeightVector) -> list[int]:
    return sorted(set(a.keys()) | set(b.keys()))


@dataclass(frozen=True)
class UniformPairwiseGossip:
    """Add a random alive neighbor's vector into the local one.

    Over the union of present dimensions, ``local[d] = local[d] + peer[d]``.
    In symmetric mode the same sum is also written into the peer. The sum is
    then rescaled by ``constraint`` on every vector it was written into.

    Attributes:
        symmetric: Write the sum back into the peer.
        constraint: Scaling applied right after the sum; None leaves it raw.

    Example:
        >>> # local = {0: 1.0}, peer = {1: 2.0}, symmetric, no constraint
        >>> # after gossip: local == peer == {0: 1.0, 1: 2.0}
    """

    symmetric: bool = True
    constraint: PegasosBallConstraint | None = None

    def gossip(self, node: GadgetNode, context: SimulationContext) -> bool:
        peer = _pick_peer(node, context)
        if peer is None:
            return True
        for index in _union_keys(node.weights, peer.weights):
            total = node.weights.get(index) + peer.weights.get(index)
            node.weights.set(index, total)
            if self.symmetric:
                peer.weights.set(index, total)

        if self.constraint is not None:
            self.constraint.project(node.weights)
            if self.symmetric:
                self.constraint.project(peer.weights)
        return True


@dataclass(frozen=True)
class PushSumSinglePhase:
    """Average with a random alive neighbor and write the result into both.

    Over the union of present dimensions, both vectors become
    ``(local[d] + peer[d]) / 2``. The pairwise sum is preserved.
    """

    def gossip(self, node: GadgetNode, context: SimulationContext) -> bool:
        peer = _pick_peer(node, context)
        if peer is None:
            return True
        for index in _union_keys(node.weights, peer.weights):
            mean = (node.weights.get(index) + peer.weights.get(index)) / 2.0
            node.weights.set(index, mean)
            peer.weights.set(index, mean)
        return True


@dataclass(frozen=True)
class MatrixWeightedGossip:
    """Replace the local vector with a mixing-matrix weighted sum.

    ``w_i <- B[i][i] * w_i + sum_j B[i][j] * w_j`` over alive neighbors j, where
    the self term uses a snapshot taken before the update. Neighbor vectors are
    read as they are at call time, so results depend on activation order.
    """

    def gossip(self, node: GadgetNode, context: SimulationContext) -> bool:
        matrix = context.mixing.get()
        i = node.node_id
        snapshot = node.weights.copy()

        mixed = SparseWeightVector()
        mixed.add_vector(snapshot, float(matrix[i, i]))
        for peer in context.alive_peers(i):
            mixed.add_vector(peer.weights, float(matrix[i, peer.node_id]))
        node.weights.replace_with(mixed)
        return True


@dataclass(frozen=True)
class PushSumTwoPhase:
    """Two-phase push-sum over the mixing matrix.

    Send (first call): stage ``B[i][i] * w_i + sum_j B[j][i] * w_j`` and the
    matching mass combination, reading only current vectors and writing only
    the staging buffer. Receive (second call): replace vector and mass with the
    staged values. Total mass is conserved when every node sends before any
    node receives and ``B`` is row-stochastic with no dead nodes.
    """

    def gossip(self, node: GadgetNode, context: SimulationContext) -> bool:
        if node.awaiting_receive:
            node.weights.replace_with(node.staged)
            node.mass = node.staged_mass
            node.staged.clear()
            node.staged_mass = 0.0
            node.awaiting_receive = False
            return True

        matrix = context.mixing.get()
        i = node.node_id
        staged = SparseWeightVector()
        staged.add_vector(node.weights, float(matrix[i, i]))
        mass = float(matrix[i, i]) * node.mass
        for peer in context.alive_peers(i):
            coefficient = float(matrix[peer.node_id, i])
            staged.add_vector(peer.weights, coefficient)
            mass += coefficient * peer.mass

        node.staged = staged
        node.staged_mass = mass
        node.awaiting_receive = True
        return False


def build_strategy(
    variant: GossipVariant | str,
    *,
    symmetric: bool = True,
    constraint: PegasosBallConstraint | None = None,
) -> GossipStrategy:
    """Return the strategy implementing a gossip variant.

    ``constraint`` is only used by uniform pairwise gossip, whose raw sums
    must be rescaled after every round.

    Raises:
        ValueError: If ``variant`` names no known variant.
    """
    variant = GossipVariant(variant)
    if variant is GossipVariant.UNIFORM_PAIRWISE:
        return UniformPairwiseGossip(symmetric=symmetric, constraint=constraint)
    if variant is GossipVariant.MATRIX_WEIGHTED:
        return MatrixWeightedGossip()
    if variant is GossipVariant.PUSHSUM_SINGLE_PHASE:
        return PushSumSinglePhase()
    return PushSumTwoPhase()
