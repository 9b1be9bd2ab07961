"""Convergence observer for the gossip phase.

Runs once per scheduler cycle. It computes the cross-node standard deviation
of every weight dimension and, when all of them fall within the configured
accuracy, sets the run's converged flag so nodes leave the gossip phase.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np

from core.logging import get_logger
from core.types import FeatureIndex
from distributed.context import GadgetNode, SimulationContext

__all__ = ["ObserverReport", "ConvergenceObserver", "dimension_std"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class ObserverReport:
    """Result of one observer pass.

    Attributes:
        converged: Value of the converged flag after the pass.
        max_std: Largest per-dimension standard deviation.
        std_sum: Sum of per-dimension standard deviations.
        per_dimension: Standard deviation of every observed dimension.
        skipped: True when the flag was already set and nothing was computed.
    """

    converged: bool
    max_std: float = 0.0
    std_sum: float = 0.0
    per_dimension: Mapping[FeatureIndex, float] = field(default_factory=dict)
    skipped: bool = False


def dimension_std(
    nodes: Sequence[GadgetNode], *, divide_by_mass: bool = False
) -> dict[FeatureIndex, float]:
    """Sample standard deviation (ddof=1) of every dimension across nodes.

    A dimension absent from a node counts as 0.0 for that node. With a single
    node every deviation is 0.0.

    Args:
        nodes: Nodes to compare.
        divide_by_mass: Use each node's push-sum estimate ``w / mass``.

    Returns:
        Mapping from dimension to its standard deviation.
    """
    vectors = [node.estimate() if divide_by_mass else node.weights for node in nodes]
    dims = sorted({index for vector in vectors for index in vector.keys()})
    if not dims:
        return {}

    values = np.array([[vector.get(d) for d in dims] for vector in vectors], dtype=np.float64)
    if len(vectors) < 2:
        stds = np.zeros(len(dims), dtype=np.float64)
    else:
        stds = values.std(axis=0, ddof=1)
    return {d: float(s) for d, s in zip(dims, stds)}


@dataclass
class ConvergenceObserver:
    """Sets the converged flag once every dimension agrees within ``accuracy``.

    A negative accuracy disables the criterion: statistics are still reported
    but the flag is never set.

    Attributes:
        accuracy: Threshold on the per-dimension standard deviation.
        divide_by_mass: Compare push-sum estimates rather than raw vectors.
    """

    accuracy: float
    divide_by_mass: bool = False

    def observe(self, context: SimulationContext) -> ObserverReport:
        """Run one observer pass over the alive nodes of ``context``."""
        if context.converged or context.finished:
            return ObserverReport(converged=context.converged, skipped=True)

        stds = dimension_std(context.alive_nodes(), divide_by_mass=self.divide_by_mass)
        max_std = max(stds.values(), default=0.0)
        std_sum = float(sum(stds.values()))

        converged = self.accuracy >= 0 and max_std <= self.accuracy
        if converged:
            context.converged = True
            logger.info(
                "Converged at cycle %d: max_std=%.3g <= accuracy=%g",
                context.cycle,
                max_std,
                self.accuracy,
            )
        else:
            logger.debug("Cycle %d: max_std=%.3g sum=%.3g", context.cycle, max_std, std_sum)

        return ObserverReport(
            converged=converged, max_std=max_std, std_sum=std_sum, per_dimension=stds
        )
