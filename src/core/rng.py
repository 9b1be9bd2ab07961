"""Random number generation utilities.

Per-node generators are derived from a single master seed so that a run is
reproducible regardless of how many nodes draw from their stream.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from core.types import NodeId

__all__ = ["spawn_node_rngs"]


def spawn_node_rngs(
    seed: int, node_ids: Sequence[NodeId]
) -> tuple[np.random.Generator, dict[NodeId, np.random.Generator]]:
    """Create a master generator and one independent generator per node.

    Args:
        seed: Master random seed.
        node_ids: Node identifiers, seeded in sorted order.

    Returns:
        Tuple of (master_rng, rngs_by_node). The master generator has already
        been used to draw the per-node seeds and can drive scheduling.
    """
    master_rng = np.random.default_rng(seed)
    ordered = sorted(node_ids)
    per_node_seeds = master_rng.integers(0, 2**32 - 1, size=len(ordered), dtype=np.uint64)
    rngs = {
        node_id: np.random.default_rng(int(node_seed))
        for node_id, node_seed in zip(ordered, per_node_seeds)
    }
    return master_rng, rngs
