"""Base environment class for the simulator.

This module provides an abstract base class that implements the common
run loop logic while leaving environment-specific behavior to subclasses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from core.types import CycleRecord, History

__all__ = ["BaseEnvironment"]


class BaseEnvironment(ABC):
    """Abstract base class for cycle-driven simulation environments.

    Provides a reusable run loop that collects a History of per-cycle
    records. Subclasses must implement `reset()` and `step()` and may
    override `done` to stop the loop early.

    Attributes:
        _t: Internal cycle counter, starts at 0 after reset() and increments
            on each step() call.

    Example:
        >>> env = MyEnv()
        >>> env.reset(seed=42)
        >>> history = env.run(steps=100)
        >>> history.last().max_std
    """

    _t: int

    def __init__(self) -> None:
        """Initialize the environment with cycle counter at 0."""
        self._t = 0

    @property
    def t(self) -> int:
        """Current cycle index (read-only).

        Returns 0 after reset() and before any step() calls.
        Increments by 1 after each step() call.
        """
        return self._t

    @property
    def done(self) -> bool:
        """True when further steps would do nothing."""
        return False

    @abstractmethod
    def reset(self, *, seed: int | None = None) -> None:
        """Reset the environment for a new run.

        Subclasses must:
        - Reset internal cycle counter to 0 (set self._t = 0)
        - Reinitialize any random state using the provided seed
        - Reset node state to initial values

        Args:
            seed: Random seed for reproducibility.
        """
        ...

    @abstractmethod
    def step(self) -> CycleRecord:
        """Execute one scheduler cycle.

        Subclasses should increment self._t at the end of this method.

        Returns:
            Diagnostics of the cycle.
        """
        ...

    def run(self, *, steps: int) -> History:
        """Run up to ``steps`` cycles and collect history.

        Stops early once :attr:`done` becomes True.

        Args:
            steps: Maximum number of cycles to execute. Must be >= 1.

        Returns:
            History containing one record per executed cycle.

        Raises:
            ValueError: If steps < 1.
        """
        if steps < 1:
            raise ValueError(f"steps must be >= 1, got {steps}")

        history = History()
        for _ in range(steps):
            if self.done:
                break
            history.append(self.step())

        return history

    def state_dict(self) -> dict[str, Any]:
        """Return the current state of the environment.

        This base implementation returns minimal state. Subclasses should
        override to include node state.

        Returns:
            A dictionary containing:
            - "t": Current cycle index
        """
        return {"t": self._t}
