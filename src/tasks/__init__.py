"""Tasks module for the gossip SVM simulator.

This package contains the labelled data every node trains on:
- TrainingExample: immutable (label, sparse features) pair
- make_svm_data: synthetic sparse linearly separable data
- split_across_nodes: iid or label-skewed sharding
"""

from __future__ import annotations

from tasks.svm_data import TrainingExample, make_svm_data, split_across_nodes

__all__ = [
    "TrainingExample",
    "make_svm_data",
    "split_across_nodes",
]
