from __future__ import annotations

import numpy as np
import pytest

from tasks.svm_data import TrainingExample, make_svm_data, split_across_nodes


def test_training_example_rejects_bad_label() -> None:
    with pytest.raises(ValueError, match="label must be -1 or \\+1"):
        TrainingExample(label=0, features={0: 1.0})


def test_training_example_features_read_only() -> None:
    example = TrainingExample(label=1, features={3: 1.0, 1: 2.0})
    assert list(example.features) == [1, 3]
    assert len(example) == 2
    with pytest.raises(TypeError):
        example.features[0] = 1.0  # type: ignore[index]


def test_make_svm_data_shape() -> None:
    rng = np.random.default_rng(0)
    examples = make_svm_data(n=50, dim=8, rng=rng, density=0.2)
    assert len(examples) == 50
    for ex in examples:
        assert ex.label in (-1, 1)
        assert len(ex) >= 1
        assert all(0 <= i < 8 for i in ex.features)


def test_make_svm_data_reproducible() -> None:
    a = make_svm_data(n=10, dim=4, rng=np.random.default_rng(3))
    b = make_svm_data(n=10, dim=4, rng=np.random.default_rng(3))
    assert [ex.label for ex in a] == [ex.label for ex in b]
    assert [dict(ex.features) for ex in a] == [dict(ex.features) for ex in b]


def test_make_svm_data_invalid() -> None:
    rng = np.random.default_rng(0)
    with pytest.raises(ValueError):
        make_svm_data(n=0, dim=3, rng=rng)
    with pytest.raises(ValueError, match="density"):
        make_svm_data(n=5, dim=3, rng=rng, density=0.0)


def test_make_svm_data_non_separable() -> None:
    examples = make_svm_data(n=20, dim=3, rng=np.random.default_rng(1), separable=False)
    assert len(examples) == 20


def test_split_iid_covers_dataset() -> None:
    rng = np.random.default_rng(0)
    examples = make_svm_data(n=23, dim=5, rng=rng)
    shards = split_across_nodes(examples, n_nodes=4, heterogeneity="iid", rng=rng)
    assert len(shards) == 4
    assert sum(len(s) for s in shards) == 23
    assert {id(ex) for s in shards for ex in s} == {id(ex) for ex in examples}


def test_split_label_skew() -> None:
    examples = [TrainingExample(label=-1, features={0: 1.0}) for _ in range(40)]
    examples += [TrainingExample(label=1, features={0: 1.0}) for _ in range(40)]
    shards = split_across_nodes(
        examples, n_nodes=2, heterogeneity="label_skew", rng=np.random.default_rng(0)
    )
    neg0 = sum(ex.label == -1 for ex in shards[0])
    neg1 = sum(ex.label == -1 for ex in shards[1])
    assert neg0 == 32
    assert neg1 == 8
    assert len(shards[0]) == len(shards[1]) == 40


def test_split_invalid() -> None:
    rng = np.random.default_rng(0)
    examples = make_svm_data(n=4, dim=2, rng=rng)
    with pytest.raises(ValueError, match="Unknown heterogeneity"):
        split_across_nodes(examples, n_nodes=2, heterogeneity="bogus", rng=rng)
    with pytest.raises(ValueError, match="n_nodes"):
        split_across_nodes(examples, n_nodes=0, heterogeneity="iid", rng=rng)
