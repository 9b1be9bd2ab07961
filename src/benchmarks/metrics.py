"""Metrics computation for simulation runs.

This module provides helpers for judging model quality and agreement:
the PEGASOS primal objective, classification accuracy, the network-average
model and the consensus spread across nodes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np

from core.types import NodeId
from models.sparse_vector import SparseWeightVector
from tasks.svm_data import TrainingExample

__all__ = [
    "hinge_loss",
    "accuracy",
    "mean_weights",
    "consensus_spread",
]


def hinge_loss(
    vector: SparseWeightVector, examples: Sequence[TrainingExample], lam: float
) -> float:
    """Compute the PEGASOS primal objective.

        f(w) = lam / 2 * ||w||^2 + mean_i max(0, 1 - y_i <w, x_i>)

    Args:
        vector: Model to evaluate.
        examples: Evaluation examples.
        lam: Regularization parameter.

    Returns:
        The objective value; only the regularizer for an empty example set.
    """
    reg = 0.5 * lam * vector.l2_norm() ** 2
    if not examples:
        return reg
    margins = np.array([ex.label * vector.dot(ex.features) for ex in examples], dtype=np.float64)
    return float(reg + np.mean(np.maximum(0.0, 1.0 - margins)))


def accuracy(vector: SparseWeightVector, examples: Sequence[TrainingExample]) -> float:
    """Fraction of examples with ``sign(<w, x>) == y`` (a zero score counts as +1).

    Raises:
        ValueError: If examples is empty.
    """
    if not examples:
        raise ValueError("Cannot compute accuracy on empty examples")
    correct = 0
    for ex in examples:
        predicted = 1 if vector.dot(ex.features) >= 0 else -1
        correct += int(predicted == ex.label)
    return correct / len(examples)


def mean_weights(vectors: Mapping[NodeId, SparseWeightVector]) -> SparseWeightVector:
    """Compute the element-wise average of per-node vectors.

    Absent components count as 0.0.

    Raises:
        ValueError: If vectors is empty.
    """
    if not vectors:
        raise ValueError("Cannot compute mean of empty vectors")

    total = SparseWeightVector()
    for node_id in sorted(vectors):
        total.add_vector(vectors[node_id])
    total.scale(1.0 / len(vectors))
    return total


def consensus_spread(vectors: Mapping[NodeId, SparseWeightVector]) -> float:
    """Largest cross-node sample standard deviation over all dimensions.

    Uses the same statistic as the convergence observer, so a run whose
    spread is within ``accuracy`` would be reported converged.

    Returns:
        0.0 for fewer than two vectors or no stored dimensions.
    """
    ordered = [vectors[i] for i in sorted(vectors)]
    dims = sorted({index for vector in ordered for index in vector.keys()})
    if len(ordered) < 2 or not dims:
        return 0.0
    values = np.array([[v.get(d) for d in dims] for v in ordered], dtype=np.float64)
    return float(values.std(axis=0, ddof=1).max())
