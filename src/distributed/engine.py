"""Per-node cycle state machine.

Every scheduler cycle calls :meth:`GadgetEngine.next_cycle` once per alive
node. The node then does exactly one thing, depending on its phase:

    LOCAL_UPDATE  -> hinge sub-gradient pass, then GOSSIP_WAIT
    GOSSIP_WAIT   -> one gossip action; leaves the phase once the run is
                     converged or the per-iteration gossip budget is spent,
                     moving to LOCAL_UPDATE (t + 1) or, after T iterations,
                     to FINALIZE
    FINALIZE      -> publish the final model, then DONE
    DONE          -> nothing
"""

from __future__ import annotations

from dataclasses import dataclass

from core.logging import get_logger
from core.types import Phase
from distributed.context import GadgetNode, SimulationContext
from distributed.strategies import GossipStrategy
from optim.constraints import PegasosBallConstraint, project_to_pegasos_ball
from optim.pegasos import pegasos_step

__all__ = ["GadgetEngine"]

logger = get_logger(__name__)


@dataclass
class GadgetEngine:
    """Drives one node through its phases.

    Attributes:
        context: Run-scoped state (config, peers, converged flag).
        strategy: Gossip averaging strategy.
        constraint: Projection applied after the local update by single-phase
                    variants.
    """

    context: SimulationContext
    strategy: GossipStrategy
    constraint: PegasosBallConstraint

    @property
    def two_phase(self) -> bool:
        return self.context.config.variant.is_two_phase

    def next_cycle(self, node: GadgetNode) -> None:
        """Advance ``node`` by one cycle."""
        if node.phase is Phase.LOCAL_UPDATE:
            self._local_update(node)
        elif node.phase is Phase.GOSSIP_WAIT:
            self._gossip_wait(node)
        elif node.phase is Phase.FINALIZE:
            self._finalize(node)

    def _local_update(self, node: GadgetNode) -> None:
        config = self.context.config
        result = pegasos_step(
            node.weights,
            node.shard,
            t=node.iteration,
            lam=config.lam,
            scale_decay_by_shard_size=config.scale_decay_by_shard_size,
        )
        node.misclassified = result.misclassified
        logger.debug(
            "Node %d iteration %d: %d misclassified",
            node.node_id,
            node.iteration,
            result.misclassified,
        )

        # Fresh local models invalidate any earlier agreement
        self.context.converged = False
        if not self.two_phase:
            self.constraint.project(node.weights)
        node.gossip_rounds = 0
        node.phase = Phase.GOSSIP_WAIT

    def _gossip_wait(self, node: GadgetNode) -> None:
        budget_spent = node.gossip_rounds >= self.context.config.max_gossip_rounds
        if node.awaiting_receive or not (self.context.converged or budget_spent):
            if self.strategy.gossip(node, self.context):
                node.gossip_rounds += 1
            return
        self._end_iteration(node)

    def _end_iteration(self, node: GadgetNode) -> None:
        config = self.context.config
        if self.two_phase:
            project_to_pegasos_ball(node.weights, config.lam)
            node.accumulated.add_vector(node.weights)
            node.mass = float(node.shard_size)
            if node.shard_size:
                node.weights.scale(1.0 / node.shard_size)

        node.completed_iterations += 1
        if node.iteration >= config.iterations:
            node.phase = Phase.FINALIZE
        else:
            node.iteration += 1
            node.phase = Phase.LOCAL_UPDATE

    def _finalize(self, node: GadgetNode) -> None:
        if self.two_phase:
            final = node.accumulated.copy()
            final.scale(1.0 / self.context.config.iterations)
            node.weights.replace_with(final)
        node.final = node.weights.copy()
        node.phase = Phase.DONE
        logger.debug("Node %d finished after %d iterations", node.node_id, node.completed_iterations)
