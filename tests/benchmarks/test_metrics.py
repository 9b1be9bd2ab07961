from __future__ import annotations

import math

import pytest

from benchmarks.metrics import accuracy, consensus_spread, hinge_loss, mean_weights
from models.sparse_vector import SparseWeightVector
from tasks.svm_data import TrainingExample

EXAMPLES = [
    TrainingExample(label=1, features={0: 2.0}),
    TrainingExample(label=-1, features={0: 1.0}),
]


def test_hinge_loss() -> None:
    w = SparseWeightVector({0: 1.0})
    # reg = 0.25 * 1, losses = [0, 2]
    assert hinge_loss(w, EXAMPLES, lam=0.5) == pytest.approx(1.25)


def test_hinge_loss_empty_examples() -> None:
    w = SparseWeightVector({0: 2.0})
    assert hinge_loss(w, [], lam=0.5) == pytest.approx(1.0)


def test_accuracy() -> None:
    w = SparseWeightVector({0: 1.0})
    assert accuracy(w, EXAMPLES) == pytest.approx(0.5)
    assert accuracy(SparseWeightVector({0: -1.0}), EXAMPLES[1:]) == pytest.approx(1.0)


def test_accuracy_empty_raises() -> None:
    with pytest.raises(ValueError, match="empty"):
        accuracy(SparseWeightVector(), [])


def test_mean_weights() -> None:
    mean = mean_weights({0: SparseWeightVector({0: 2.0}), 1: SparseWeightVector({1: 4.0})})
    assert mean.to_dict() == {0: pytest.approx(1.0), 1: pytest.approx(2.0)}


def test_mean_weights_empty_raises() -> None:
    with pytest.raises(ValueError):
        mean_weights({})


def test_consensus_spread() -> None:
    spread = consensus_spread({0: SparseWeightVector({0: 1.0}), 1: SparseWeightVector({0: 3.0})})
    assert spread == pytest.approx(math.sqrt(2.0))
    assert consensus_spread({0: SparseWeightVector({0: 1.0})}) == 0.0
    assert consensus_spread({0: SparseWeightVector(), 1: SparseWeightVector()}) == 0.0
