"""Optimization module.

This package contains the local learning and projection steps:
- PEGASOS hinge-loss sub-gradient pass
- Step size schedule
- PEGASOS norm-ball projection (and the legacy offset rescaling)
"""

from __future__ import annotations

from optim.constraints import (
    PegasosBallConstraint,
    legacy_offset_scale,
    project_to_pegasos_ball,
    projection_scale,
)
from optim.pegasos import LocalStepResult, hinge_subgradient, pegasos_step, step_size

__all__ = [
    # Constraints
    "PegasosBallConstraint",
    "projection_scale",
    "project_to_pegasos_ball",
    "legacy_offset_scale",
    # PEGASOS
    "LocalStepResult",
    "step_size",
    "hinge_subgradient",
    "pegasos_step",
]
