"""Tests for the per-node phase state machine."""

from __future__ import annotations

import math

import numpy as np
import pytest

from core.types import Phase
from distributed.context import GadgetNode, SimulationContext
from distributed.engine import GadgetEngine
from distributed.strategies import build_strategy
from distributed.topology import GraphTopology
from distributed.weights import LazyMixingMatrix
from experiments.config import GadgetConfig
from optim.constraints import PegasosBallConstraint
from tasks.svm_data import TrainingExample


def make_engine(config: GadgetConfig, shard: list[TrainingExample]) -> tuple[GadgetEngine, GadgetNode]:
    topology = GraphTopology(n=1)
    node = GadgetNode.create(node_id=0, shard=shard, rng=np.random.default_rng(0))
    context = SimulationContext(
        config=config,
        topology=topology,
        nodes={0: node},
        mixing=LazyMixingMatrix(topology=topology),
    )
    engine = GadgetEngine(
        context=context,
        strategy=build_strategy(config.variant, symmetric=config.symmetric),
        constraint=PegasosBallConstraint(lam=config.lam),
    )
    return engine, node


SHARD = [TrainingExample(label=1, features={0: 1.0})]


class TestLocalUpdate:
    """Tests for the LOCAL_UPDATE phase."""

    def test_projects_single_phase(self) -> None:
        """Single-phase variants project right after the local step."""
        config = GadgetConfig(lam=0.5, iterations=2, variant="pushsum-single-phase")
        engine, node = make_engine(config, SHARD)
        engine.context.converged = True
        engine.next_cycle(node)
        assert node.phase is Phase.GOSSIP_WAIT
        assert node.weights.get(0) == pytest.approx(1.0 / math.sqrt(0.5))
        assert not engine.context.converged
        assert node.misclassified == 0

    def test_two_phase_defers_projection(self) -> None:
        """The two-phase variant keeps the raw vector until the iteration ends."""
        config = GadgetConfig(lam=0.5, iterations=2, variant="pushsum-two-phase")
        engine, node = make_engine(config, SHARD)
        engine.next_cycle(node)
        assert node.weights.get(0) == pytest.approx(2.0)


class TestGossipWait:
    """Tests for the GOSSIP_WAIT phase."""

    def test_budget_counts_rounds(self) -> None:
        """The node gossips max_gossip_rounds times, then moves on."""
        config = GadgetConfig(lam=0.5, iterations=2, max_gossip_rounds=2)
        engine, node = make_engine(config, SHARD)
        engine.next_cycle(node)
        engine.next_cycle(node)
        engine.next_cycle(node)
        assert node.gossip_rounds == 2
        assert node.phase is Phase.GOSSIP_WAIT
        engine.next_cycle(node)
        assert node.phase is Phase.LOCAL_UPDATE
        assert node.iteration == 2
        assert node.completed_iterations == 1

    def test_converged_ends_iteration(self) -> None:
        """The converged flag ends the iteration on the next cycle."""
        config = GadgetConfig(lam=0.5, iterations=3, max_gossip_rounds=50)
        engine, node = make_engine(config, SHARD)
        engine.next_cycle(node)
        engine.context.converged = True
        engine.next_cycle(node)
        assert node.phase is Phase.LOCAL_UPDATE
        assert node.iteration == 2
        assert node.gossip_rounds == 0

    def test_last_iteration_finalizes(self) -> None:
        """After T iterations the node finalizes, then stays done."""
        config = GadgetConfig(lam=0.5, iterations=1, max_gossip_rounds=1)
        engine, node = make_engine(config, SHARD)
        for _ in range(3):
            engine.next_cycle(node)
        assert node.phase is Phase.FINALIZE
        engine.next_cycle(node)
        assert node.phase is Phase.DONE
        assert node.final is not None
        assert node.final.to_dict() == node.weights.to_dict()
        final = node.final.to_dict()
        engine.next_cycle(node)
        assert node.final.to_dict() == final
        assert node.completed_iterations == 1

    def test_two_phase_iteration_end(self) -> None:
        """Ending a two-phase iteration accumulates and reseeds mass."""
        shard = SHARD + [TrainingExample(label=1, features={1: 1.0})]
        config = GadgetConfig(lam=0.5, iterations=2, max_gossip_rounds=1, variant="pushsum-two-phase")
        engine, node = make_engine(config, shard)
        engine.next_cycle(node)  # local update
        engine.next_cycle(node)  # send
        assert node.gossip_rounds == 0
        engine.next_cycle(node)  # receive
        assert node.gossip_rounds == 1
        raw = node.weights.to_dict()
        engine.next_cycle(node)  # end of iteration
        assert node.phase is Phase.LOCAL_UPDATE
        assert node.mass == 2.0
        radius = 1.0 / math.sqrt(0.5)
        norm = math.sqrt(sum(v * v for v in raw.values()))
        scale = min(1.0, radius / norm)
        for index, value in raw.items():
            assert node.accumulated.get(index) == pytest.approx(value * scale)
            assert node.weights.get(index) == pytest.approx(value * scale / 2.0)

    def test_two_phase_finalize_averages(self) -> None:
        """FINALIZE publishes accumulated / T."""
        config = GadgetConfig(lam=0.5, iterations=2, max_gossip_rounds=1, variant="pushsum-two-phase")
        engine, node = make_engine(config, SHARD)
        while node.phase is not Phase.FINALIZE:
            engine.next_cycle(node)
        accumulated = node.accumulated.to_dict()
        engine.next_cycle(node)
        assert node.phase is Phase.DONE
        assert node.final is not None
        for index, value in accumulated.items():
            assert node.final.get(index) == pytest.approx(value / 2.0)
