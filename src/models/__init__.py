"""Models module for the gossip SVM simulator.

Available models:
- SparseWeightVector: sparse linear SVM weights owned by each node
"""

from __future__ import annotations

from models.sparse_vector import SparseWeightVector

__all__ = ["SparseWeightVector"]
