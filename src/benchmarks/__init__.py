"""Benchmarks module for evaluating simulation runs.

- metrics: Model quality and consensus helpers
"""

from __future__ import annotations

from benchmarks.metrics import accuracy, consensus_spread, hinge_loss, mean_weights

__all__ = [
    "hinge_loss",
    "accuracy",
    "mean_weights",
    "consensus_spread",
]
