"""Tests for BaseEnvironment.

This module tests the BaseEnvironment abstract base class using a dummy
implementation that finishes after a fixed number of cycles.
"""

from __future__ import annotations

import pytest

from core.types import CycleRecord
from environments.base import BaseEnvironment

# =============================================================================
# Dummy implementation for testing
# =============================================================================


class DummyEnv(BaseEnvironment):
    """A dummy environment that is done after ``limit`` cycles.

    Reports max_std = 1 / (t + 1).
    """

    def __init__(self, limit: int) -> None:
        super().__init__()
        self._limit = limit

    @property
    def done(self) -> bool:
        return self._t >= self._limit

    def reset(self, *, seed: int | None = None) -> None:
        """Reset the environment."""
        self._t = 0
        self._seed = seed

    def step(self) -> CycleRecord:
        """Return a record with a decreasing spread."""
        record = CycleRecord(cycle=self._t, max_std=1.0 / (self._t + 1))
        self._t += 1
        return record


# =============================================================================
# Tests
# =============================================================================


class TestBaseEnvironment:
    """Tests for the shared run loop."""

    def test_initial_t(self) -> None:
        """t starts at 0."""
        env = DummyEnv(limit=3)
        env.reset(seed=0)
        assert env.t == 0

    def test_run_collects_records(self) -> None:
        """run() returns one record per executed cycle."""
        env = DummyEnv(limit=10)
        env.reset(seed=0)
        history = env.run(steps=4)
        assert len(history) == 4
        assert env.t == 4
        assert history.max_std_series() == pytest.approx([1.0, 0.5, 1 / 3, 0.25])

    def test_run_stops_when_done(self) -> None:
        """run() stops early once the environment is done."""
        env = DummyEnv(limit=3)
        env.reset(seed=0)
        history = env.run(steps=100)
        assert len(history) == 3
        assert env.done

    def test_run_invalid_steps(self) -> None:
        """steps < 1 raises ValueError."""
        env = DummyEnv(limit=3)
        env.reset(seed=0)
        with pytest.raises(ValueError, match="steps must be >= 1"):
            env.run(steps=0)

    def test_state_dict(self) -> None:
        """The base state contains the cycle counter."""
        env = DummyEnv(limit=3)
        env.reset(seed=0)
        env.step()
        assert env.state_dict() == {"t": 1}

    def test_abstract(self) -> None:
        """BaseEnvironment cannot be instantiated directly."""
        with pytest.raises(TypeError):
            BaseEnvironment()  # type: ignore[abstract]
