"""Labelled sparse data for the linear SVM.

This module provides:
- TrainingExample, the immutable (label, sparse features) pair each shard holds
- Synthetic sparse data generation from a random separating hyperplane
- Per-node data splitting with heterogeneity options
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

import numpy as np

from core.types import FeatureIndex

__all__ = [
    "TrainingExample",
    "make_svm_data",
    "split_across_nodes",
]


@dataclass(frozen=True)
class TrainingExample:
    """A labelled sparse feature vector.

    Attributes:
        label: Class label, -1 or +1.
        features: Read-only mapping feature index -> value.
    """

    label: int
    features: Mapping[FeatureIndex, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the label and freeze the feature mapping."""
        if self.label not in (-1, 1):
            raise ValueError(f"label must be -1 or +1, got {self.label}")
        frozen = MappingProxyType(
            {int(index): float(value) for index, value in sorted(self.features.items())}
        )
        object.__setattr__(self, "features", frozen)

    def __len__(self) -> int:
        """Number of non-zero features."""
        return len(self.features)


def make_svm_data(
    *,
    n: int,
    dim: int,
    rng: np.random.Generator,
    density: float = 0.3,
    separable: bool = True,
) -> list[TrainingExample]:
    """Generate sparse binary classification data.

    Each example activates a random subset of ``dim`` features and is
    labelled by the sign of a random unit hyperplane. Non-separable data flips
    labels with probability given by the sigmoid of the margin.

    Args:
        n: Number of samples.
        dim: Feature dimensionality.
        rng: Random number generator.
        density: Probability that a feature is non-zero in an example.
        separable: If True, labels follow the hyperplane exactly.

    Returns:
        List of ``n`` TrainingExample instances.

    Raises:
        ValueError: If n, dim or density are out of range.
    """
    if n < 1 or dim < 1:
        raise ValueError(f"n and dim must be >= 1, got n={n}, dim={dim}")
    if not 0.0 < density <= 1.0:
        raise ValueError(f"density must be in (0, 1], got {density}")

    w_true = rng.standard_normal(dim)
    w_true = w_true / np.linalg.norm(w_true)

    examples: list[TrainingExample] = []
    for _ in range(n):
        mask = rng.random(dim) < density
        if not np.any(mask):
            # Every example keeps at least one active feature
            mask[rng.integers(dim)] = True
        x = np.where(mask, rng.standard_normal(dim), 0.0)
        margin = float(x @ w_true)

        if separable:
            label = 1 if margin >= 0 else -1
        else:
            prob = 1.0 / (1.0 + np.exp(-4.0 * margin))
            label = 1 if rng.random() < prob else -1

        features = {int(i): float(x[i]) for i in np.flatnonzero(mask)}
        examples.append(TrainingExample(label=label, features=features))

    return examples


def split_across_nodes(
    examples: Sequence[TrainingExample],
    n_nodes: int,
    heterogeneity: str,
    rng: np.random.Generator,
) -> list[list[TrainingExample]]:
    """Split a dataset into one shard per node.

    Args:
        examples: Full dataset.
        n_nodes: Number of shards to produce.
        heterogeneity: Type of split:
            - "iid": Random uniform split
            - "label_skew": Even nodes get mostly -1, odd nodes mostly +1
        rng: Random number generator.

    Returns:
        List of ``n_nodes`` shards (lists of examples).

    Raises:
        ValueError: If n_nodes < 1 or heterogeneity type is unknown.
    """
    if n_nodes < 1:
        raise ValueError(f"n_nodes must be >= 1, got {n_nodes}")
    n = len(examples)

    if heterogeneity == "iid":
        indices = rng.permutation(n)
        splits = np.array_split(indices, n_nodes)
        return [[examples[int(i)] for i in split] for split in splits]

    elif heterogeneity == "label_skew":
        neg = [i for i, ex in enumerate(examples) if ex.label == -1]
        pos = [i for i, ex in enumerate(examples) if ex.label == 1]
        rng.shuffle(neg)
        rng.shuffle(pos)

        shards: list[list[TrainingExample]] = []
        samples_per_node = n // n_nodes
        n_neg, n_pos = len(neg), len(pos)

        for i in range(n_nodes):
            # Nodes with even i get more -1 labels, odd i get more +1
            p_neg = 0.8 if i % 2 == 0 else 0.2
            neg_count = min(int(p_neg * samples_per_node), n_neg)
            pos_count = min(samples_per_node - neg_count, n_pos)

            start_neg = (i * n_neg // n_nodes) % max(n_neg, 1)
            start_pos = (i * n_pos // n_nodes) % max(n_pos, 1)

            # Wrap around the class pools when a slice runs off the end
            node_idx = [neg[(start_neg + k) % n_neg] for k in range(neg_count)]
            node_idx += [pos[(start_pos + k) % n_pos] for k in range(pos_count)]
            order = rng.permutation(len(node_idx))

            shards.append([examples[node_idx[int(k)]] for k in order])

        return shards

    else:
        raise ValueError(f"Unknown heterogeneity type: {heterogeneity}")
