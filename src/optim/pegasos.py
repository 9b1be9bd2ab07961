"""PEGASOS-style hinge-loss sub-gradient step on a node's shard.

One call makes a full pass over the shard:

    alpha = 1 / (lam * t)
    L     = sum_{(y, x) : y <w, x> < 1} y * x
    w     <- (1 - lam * alpha) * N * w + alpha * L

The decay is multiplied by the shard size N because the push-sum protocols
carry ``w / N`` between iterations; ``scale_decay_by_shard_size=False`` drops
that factor for runs that need the unscaled PEGASOS update.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from models.sparse_vector import SparseWeightVector
from tasks.svm_data import TrainingExample

__all__ = ["LocalStepResult", "step_size", "hinge_subgradient", "pegasos_step"]


@dataclass(frozen=True, slots=True)
class LocalStepResult:
    """Outcome of one local pass.

    Attributes:
        misclassified: Examples with ``y <w, x> < 0`` before the update.
        margin_violators: Examples with ``y <w, x> < 1`` before the update.
        alpha: Step size used.
    """

    misclassified: int
    margin_violators: int
    alpha: float


def step_size(lam: float, t: int) -> float:
    """Diminishing step size ``1 / (lam * t)``.

    Raises:
        ValueError: If lam <= 0 or t < 1.
    """
    if lam <= 0:
        raise ValueError(f"lam must be positive, got {lam}")
    if t < 1:
        raise ValueError(f"iteration t must be >= 1, got {t}")
    return 1.0 / (lam * t)


def hinge_subgradient(
    weights: SparseWeightVector, shard: Sequence[TrainingExample]
) -> tuple[SparseWeightVector, int, int]:
    """Accumulate ``y * x`` over margin violators.

    Returns:
        Tuple of (loss_vector, misclassified, margin_violators).
    """
    loss = SparseWeightVector()
    misclassified = 0
    violators = 0
    for example in shard:
        margin = example.label * weights.dot(example.features)
        if margin < 1:
            violators += 1
            if margin < 0:
                misclassified += 1
            for index, value in example.features.items():
                loss.add(index, example.label * value)
    return loss, misclassified, violators


def pegasos_step(
    weights: SparseWeightVector,
    shard: Sequence[TrainingExample],
    *,
    t: int,
    lam: float,
    scale_decay_by_shard_size: bool = True,
) -> LocalStepResult:
    """Run one hinge-loss sub-gradient pass, mutating ``weights`` in place.

    Args:
        weights: The node's weight vector (updated in place).
        shard: The node's training examples.
        t: Outer iteration counter, >= 1.
        lam: Regularization / learning-rate parameter, > 0.
        scale_decay_by_shard_size: Multiply the decay factor by ``len(shard)``.

    Returns:
        LocalStepResult with the misclassified count for diagnostics.

    Raises:
        ValueError: If lam <= 0 or t < 1.
    """
    alpha = step_size(lam, t)
    if not shard:
        return LocalStepResult(misclassified=0, margin_violators=0, alpha=alpha)

    loss, misclassified, violators = hinge_subgradient(weights, shard)

    decay = 1.0 - lam * alpha
    if scale_decay_by_shard_size:
        decay *= len(shard)
    weights.scale(decay)
    weights.add_vector(loss, alpha)

    return LocalStepResult(misclassified=misclassified, margin_violators=violators, alpha=alpha)
