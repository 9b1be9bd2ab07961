"""Environments module for the simulator.

This package contains the scheduler hosts that drive simulation runs
cycle by cycle.
"""

from __future__ import annotations

from environments.base import BaseEnvironment
from environments.gossip import GadgetEnvironment

__all__ = [
    "BaseEnvironment",
    "GadgetEnvironment",
]
