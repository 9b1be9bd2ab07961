"""Core type definitions for the gossip SVM simulator.

This module contains:
- Type aliases for node and feature identifiers
- Enumerations for the configurable protocol variants and node phases
- Data containers for per-cycle diagnostics
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "NodeId",
    "FeatureIndex",
    "GossipVariant",
    "ProjectionMode",
    "Phase",
    "CycleRecord",
    "History",
]

# Type alias for node identifiers in the peer network
NodeId = int

# Type alias for sparse feature dimensions
FeatureIndex = int


class GossipVariant(str, Enum):
    """Gossip averaging strategy used by every node of a run."""

    UNIFORM_PAIRWISE = "uniform-pairwise"
    MATRIX_WEIGHTED = "matrix-weighted"
    PUSHSUM_SINGLE_PHASE = "pushsum-single-phase"
    PUSHSUM_TWO_PHASE = "pushsum-two-phase"

    @property
    def is_two_phase(self) -> bool:
        """True for the staged send/receive push-sum variant."""
        return self is GossipVariant.PUSHSUM_TWO_PHASE


class ProjectionMode(str, Enum):
    """Scaling rule applied after gossip.

    BALL is the offset-free PEGASOS projection. LEGACY_OFFSET multiplies by
    ``1 + scale`` and is kept to reproduce older runs.
    """

    BALL = "ball"
    LEGACY_OFFSET = "legacy-offset"


class Phase(str, Enum):
    """Per-node phase of the cycle state machine."""

    LOCAL_UPDATE = "local_update"
    GOSSIP_WAIT = "gossip_wait"
    FINALIZE = "finalize"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class CycleRecord:
    """Diagnostics collected for one scheduler cycle.

    Attributes:
        cycle: Zero-based cycle index.
        misclassified: Misclassified count reported by each node's last local update.
        max_std: Largest cross-node standard deviation over all dimensions.
        std_sum: Sum of the per-dimension standard deviations.
        converged: Whether the observer signalled convergence in this cycle.
        phases: Phase of every node after the cycle.
    """

    cycle: int
    misclassified: Mapping[NodeId, int] = field(default_factory=dict)
    max_std: float = 0.0
    std_sum: float = 0.0
    converged: bool = False
    phases: Mapping[NodeId, Phase] = field(default_factory=dict)

    @property
    def total_misclassified(self) -> int:
        """Sum of misclassified counts over nodes."""
        return sum(self.misclassified.values())


@dataclass
class History:
    """Container for per-cycle diagnostics of a simulation run.

    Example:
        >>> history = History()
        >>> history.append(CycleRecord(cycle=0, max_std=0.5))
        >>> history.append(CycleRecord(cycle=1, max_std=0.1, converged=True))
        >>> history.convergence_cycles()
        [1]
    """

    records: list[CycleRecord] = field(default_factory=list)

    def __len__(self) -> int:
        """Return the number of recorded cycles."""
        return len(self.records)

    def append(self, record: CycleRecord) -> None:
        """Append a cycle record."""
        self.records.append(record)

    def last(self) -> CycleRecord:
        """Return the most recent record.

        Raises:
            IndexError: If history is empty.
        """
        return self.records[-1]

    def max_std_series(self) -> list[float]:
        """Return the max standard deviation of every cycle, in order."""
        return [r.max_std for r in self.records]

    def misclassified_series(self) -> list[int]:
        """Return the total misclassified count of every cycle, in order."""
        return [r.total_misclassified for r in self.records]

    def convergence_cycles(self) -> list[int]:
        """Return indices of cycles in which convergence was signalled."""
        return [r.cycle for r in self.records if r.converged]
