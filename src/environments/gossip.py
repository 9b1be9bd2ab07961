"""Discrete-cycle scheduler host for the gossip SVM.

This module provides a GadgetEnvironment that owns the nodes of one run and
advances every alive node once per cycle, then lets the convergence observer
inspect the network.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from core.logging import get_logger
from core.protocols import MixingMatrixOracle, Topology
from core.rng import spawn_node_rngs
from core.types import CycleRecord, NodeId
from distributed.context import GadgetNode, SimulationContext, build_nodes
from distributed.engine import GadgetEngine
from distributed.observer import ConvergenceObserver
from distributed.strategies import GossipStrategy, build_strategy
from distributed.weights import LazyMixingMatrix, metropolis_hastings_matrix
from environments.base import BaseEnvironment
from experiments.config import GadgetConfig
from models.sparse_vector import SparseWeightVector
from optim.constraints import PegasosBallConstraint
from tasks.svm_data import TrainingExample

__all__ = ["GadgetEnvironment"]

logger = get_logger(__name__)


class GadgetEnvironment(BaseEnvironment):
    """Multi-node gossip SVM simulation.

    Every cycle:
    1. Alive nodes are activated once each, in shuffled order (or ascending
       ID order with ``shuffle_order=False``); dead nodes are skipped
    2. Each activation advances the node's phase state machine by one step
    3. The convergence observer inspects all alive nodes

    The run is done once every alive node reached its terminal phase.

    Attributes:
        _config: Fixed run configuration.
        _topology: Network topology.
        _nodes: Nodes sorted by node_id.
        _oracle: Mixing matrix oracle handed to each run's lazy cache.
        _strategy: Gossip strategy built from the configured variant.

    Example:
        >>> env = GadgetEnvironment(
        ...     shards=split_across_nodes(examples, n_nodes=4, heterogeneity="iid", rng=rng),
        ...     topology=RingTopology(n=4),
        ...     config=GadgetConfig(lam=0.1, iterations=20),
        ... )
        >>> env.reset(seed=42)
        >>> history = env.run(steps=10_000)
        >>> env.final_weights()[0]
    """

    def __init__(
        self,
        *,
        topology: Topology,
        config: GadgetConfig,
        shards: Sequence[Sequence[TrainingExample]] | None = None,
        nodes: Sequence[GadgetNode] | None = None,
        oracle: MixingMatrixOracle = metropolis_hastings_matrix,
        strategy: GossipStrategy | None = None,
    ) -> None:
        """Initialize the environment.

        Args:
            topology: Network topology; must cover exactly the node IDs.
            config: Run configuration.
            shards: One shard per node (node IDs are shard positions).
            nodes: Prebuilt nodes, as an alternative to ``shards``.
            oracle: Mixing matrix oracle for matrix-dependent variants.
            strategy: Overrides the strategy chosen by ``config.variant``.

        Raises:
            ValueError: If neither or both of shards/nodes are given, node IDs
                        are not unique, or they do not match the topology.
        """
        super().__init__()

        if (shards is None) == (nodes is None):
            raise ValueError("Exactly one of shards or nodes must be given")
        built = build_nodes(shards) if shards is not None else list(nodes or ())

        node_ids = [node.node_id for node in built]
        if len(node_ids) != len(set(node_ids)):
            raise ValueError("Node IDs must be unique")
        if sorted(node_ids) != sorted(topology.all_nodes()):
            raise ValueError(
                f"Node IDs {sorted(node_ids)} do not match topology nodes "
                f"{sorted(topology.all_nodes())}"
            )

        self._config = config
        self._topology = topology
        self._nodes: list[GadgetNode] = sorted(built, key=lambda n: n.node_id)
        self._oracle = oracle
        self._constraint = PegasosBallConstraint(
            lam=config.lam,
            mode=config.projection,
            normalize_after=config.normalize_after_projection,
        )
        self._strategy: GossipStrategy = (
            strategy
            if strategy is not None
            else build_strategy(
                config.variant, symmetric=config.symmetric, constraint=self._constraint
            )
        )
        self._observer = ConvergenceObserver(
            accuracy=config.accuracy,
            divide_by_mass=config.variant.is_two_phase,
        )
        self._seed: int | None = None
        self._context: SimulationContext | None = None
        self._engine: GadgetEngine | None = None
        self._master_rng: np.random.Generator | None = None

    @property
    def num_nodes(self) -> int:
        """Number of nodes in the environment."""
        return len(self._nodes)

    @property
    def config(self) -> GadgetConfig:
        return self._config

    @property
    def context(self) -> SimulationContext:
        """Run-scoped state of the current run.

        Raises:
            RuntimeError: If reset() has not been called.
        """
        if self._context is None:
            raise RuntimeError("Environment not initialized. Call reset() before step().")
        return self._context

    @property
    def done(self) -> bool:
        return self._context is not None and self._context.finished

    def reset(self, *, seed: int | None = None) -> None:
        """Start a new run with deterministic per-node RNGs.

        Node state (weights, mass, phase, counters) is reinitialized and a
        fresh mixing matrix cache is created, so the oracle runs at most once
        per run.

        Args:
            seed: Master random seed. Defaults to ``config.seed``.
        """
        self._t = 0
        self._seed = self._config.seed if seed is None else seed

        master_rng, rngs = spawn_node_rngs(self._seed, [n.node_id for n in self._nodes])
        self._master_rng = master_rng
        for node in self._nodes:
            node.reset(rngs[node.node_id])

        self._context = SimulationContext(
            config=self._config,
            topology=self._topology,
            nodes={node.node_id: node for node in self._nodes},
            mixing=LazyMixingMatrix(topology=self._topology, oracle=self._oracle),
        )
        self._engine = GadgetEngine(
            context=self._context, strategy=self._strategy, constraint=self._constraint
        )
        logger.info(
            "Reset run: %d nodes, variant=%s, T=%d, seed=%d",
            self.num_nodes,
            self._config.variant.value,
            self._config.iterations,
            self._seed,
        )

    def _activation_order(self) -> list[GadgetNode]:
        alive = self.context.alive_nodes()
        if self._config.shuffle_order and self._master_rng is not None:
            order = self._master_rng.permutation(len(alive))
            return [alive[int(i)] for i in order]
        return alive

    def step(self) -> CycleRecord:
        """Execute one scheduler cycle.

        Returns:
            CycleRecord with per-node misclassified counts, observer statistics
            and node phases after the cycle.

        Raises:
            RuntimeError: If reset() has not been called.
            MixingMatrixError: If a matrix-dependent variant cannot obtain the
                               mixing matrix.
        """
        context = self.context
        assert self._engine is not None

        for node in self._activation_order():
            self._engine.next_cycle(node)

        report = self._observer.observe(context)
        alive = context.alive_nodes()
        record = CycleRecord(
            cycle=self._t,
            misclassified={node.node_id: node.misclassified for node in alive},
            max_std=report.max_std,
            std_sum=report.std_sum,
            converged=report.converged and not report.skipped,
            phases={node.node_id: node.phase for node in alive},
        )

        self._t += 1
        context.cycle = self._t
        if context.finished:
            logger.info("All nodes finished after %d cycles", self._t)
        return record

    def final_weights(self) -> dict[NodeId, SparseWeightVector]:
        """Return each alive node's published model (current vector if unfinished)."""
        return {
            node.node_id: (node.final if node.final is not None else node.weights).copy()
            for node in self.context.alive_nodes()
        }

    def state_dict(self) -> dict[str, Any]:
        """Return the current state of the environment.

        Returns a dictionary containing:
        - "t": Current cycle index
        - "seed": The master seed used for initialization
        - "converged": The run-scoped converged flag
        - "nodes": Dict mapping node_id (as string) to phase, iteration,
          mass and weights

        String node keys keep the result JSON compatible.
        """
        nodes: dict[str, dict[str, Any]] = {}
        for node in self._nodes:
            nodes[str(node.node_id)] = {
                "phase": node.phase.value,
                "iteration": node.iteration,
                "mass": node.mass,
                "weights": {str(k): v for k, v in node.weights.items()},
            }
        return {
            "t": self._t,
            "seed": self._seed,
            "converged": self._context.converged if self._context is not None else False,
            "nodes": nodes,
        }
