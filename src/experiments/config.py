"""Config loading and validation for simulation runs."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from core.types import GossipVariant, ProjectionMode

__all__ = ["GadgetConfig", "load_json", "apply_overrides", "load_config"]


@dataclass(frozen=True)
class GadgetConfig:
    """Fixed configuration of one simulation run.

    Validated once at construction; never mutated during a run.

    Attributes:
        lam: Learning-rate / regularization parameter lambda. Must be > 0.
        iterations: Outer iteration budget T. Must be >= 1.
        accuracy: Observer threshold on per-dimension std. Negative disables
            convergence-based early exit from gossip.
        variant: Gossip averaging strategy.
        symmetric: Uniform pairwise gossip writes the sum back into the peer.
        max_gossip_rounds: Gossip rounds per outer iteration when the observer
            does not signal convergence first. Must be >= 1.
        projection: Scaling rule of single-phase variants.
        normalize_after_projection: Rescale to unit norm after projection.
        scale_decay_by_shard_size: Multiply the local decay factor by shard size.
        seed: Master seed for node RNGs and scheduling order.
        shuffle_order: Randomize node activation order every cycle.
    """

    lam: float = 0.01
    iterations: int = 100
    accuracy: float = -1.0
    variant: GossipVariant = GossipVariant.PUSHSUM_SINGLE_PHASE
    symmetric: bool = True
    max_gossip_rounds: int = 50
    projection: ProjectionMode = ProjectionMode.BALL
    normalize_after_projection: bool = False
    scale_decay_by_shard_size: bool = True
    seed: int = 0
    shuffle_order: bool = True

    def __post_init__(self) -> None:
        """Coerce enum fields and reject malformed values."""
        object.__setattr__(self, "variant", GossipVariant(self.variant))
        object.__setattr__(self, "projection", ProjectionMode(self.projection))
        if self.lam <= 0:
            raise ValueError(f"lam must be positive, got {self.lam}")
        if self.iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {self.iterations}")
        if self.max_gossip_rounds < 1:
            raise ValueError(f"max_gossip_rounds must be >= 1, got {self.max_gossip_rounds}")

    @property
    def convergence_enabled(self) -> bool:
        """False when a negative accuracy disables the observer criterion."""
        return self.accuracy >= 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GadgetConfig:
        """Build a config from a plain mapping.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible dict."""
        result = asdict(self)
        result["variant"] = self.variant.value
        result["projection"] = self.projection.value
        return result


def load_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def apply_overrides(config: dict[str, Any], overrides: list[str]) -> dict[str, Any]:
    """Apply ``dotted.key=value`` overrides to a copy of ``config``."""
    result = json.loads(json.dumps(config))
    for item in overrides:
        if "=" not in item:
            raise ValueError(f"Override must be key=value, got: {item}")
        path, raw_val = item.split("=", 1)
        keys = path.split(".")
        target = result
        for key in keys[:-1]:
            if key not in target or not isinstance(target[key], dict):
                target[key] = {}
            target = target[key]
        target[keys[-1]] = _parse_value(raw_val)
    return result


def load_config(path: Path, overrides: list[str] | None = None) -> GadgetConfig:
    """Load a GadgetConfig from a JSON file, applying optional overrides."""
    raw = load_json(path)
    if overrides:
        raw = apply_overrides(raw, overrides)
    return GadgetConfig.from_dict(raw)
