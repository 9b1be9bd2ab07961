"""Distributed gossip SVM components.

This package provides the building blocks of the gossip SVM simulation:

- Topologies: Graph structures defining node connectivity
  - RingTopology, CompleteTopology, GraphTopology

- Weights: Mixing matrix computation
  - metropolis_hastings_matrix: Default oracle, doubly-stochastic for undirected graphs
  - LazyMixingMatrix: Run-scoped cache computing the matrix once

- Context: Per-node and per-run state
  - GadgetNode, SimulationContext

- Strategies: Gossip averaging variants
  - UniformPairwiseGossip, MatrixWeightedGossip, PushSumSinglePhase, PushSumTwoPhase

- Engine and observer
  - GadgetEngine: Per-node phase state machine
  - ConvergenceObserver: Sets the converged flag from cross-node std
"""

from __future__ import annotations

from distributed.context import GadgetNode, SimulationContext, build_nodes
from distributed.engine import GadgetEngine
from distributed.observer import ConvergenceObserver, ObserverReport, dimension_std
from distributed.strategies import (
    GossipStrategy,
    MatrixWeightedGossip,
    PushSumSinglePhase,
    PushSumTwoPhase,
    UniformPairwiseGossip,
    build_strategy,
)
from distributed.topology import CompleteTopology, GraphTopology, RingTopology
from distributed.weights import (
    LazyMixingMatrix,
    MixingMatrixError,
    metropolis_hastings_matrix,
    row_sums_close_to_one,
)

__all__ = [
    # Topologies
    "RingTopology",
    "CompleteTopology",
    "GraphTopology",
    # Weights
    "metropolis_hastings_matrix",
    "row_sums_close_to_one",
    "LazyMixingMatrix",
    "MixingMatrixError",
    # Context
    "GadgetNode",
    "SimulationContext",
    "build_nodes",
    # Strategies
    "GossipStrategy",
    "UniformPairwiseGossip",
    "MatrixWeightedGossip",
    "PushSumSinglePhase",
    "PushSumTwoPhase",
    "build_strategy",
    # Engine
    "GadgetEngine",
    "ConvergenceObserver",
    "ObserverReport",
    "dimension_std",
]
