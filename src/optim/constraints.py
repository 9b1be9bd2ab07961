"""Norm-ball scaling applied after gossip.

This module provides:
- projection_scale: ``min(1, 1 / (sqrt(lam) * ||w||))``
- project_to_pegasos_ball: offset-free projection onto ``||w|| <= 1/sqrt(lam)``
- legacy_offset_scale: the ``(1 + scale)`` rescaling of older runs
- PegasosBallConstraint: configured combination of the above
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from core.types import ProjectionMode
from models.sparse_vector import SparseWeightVector

__all__ = [
    "projection_scale",
    "project_to_pegasos_ball",
    "legacy_offset_scale",
    "PegasosBallConstraint",
]


def projection_scale(vector: SparseWeightVector, lam: float) -> float:
    """Return ``min(1, 1 / (sqrt(lam) * ||w||))``.

    A zero-norm vector yields 1.0.
    """
    norm = vector.l2_norm()
    if norm == 0.0:
        return 1.0
    return min(1.0, 1.0 / (math.sqrt(lam) * norm))


def project_to_pegasos_ball(vector: SparseWeightVector, lam: float) -> float:
    """Scale ``vector`` in place onto the ball of radius ``1/sqrt(lam)``.

    Returns:
        The scale factor applied.
    """
    scale = projection_scale(vector, lam)
    vector.scale(scale)
    return scale


def legacy_offset_scale(vector: SparseWeightVector, lam: float) -> float:
    """Multiply ``vector`` in place by ``1 + scale``.

    Does not bound the norm.

    Returns:
        The factor applied (``1 + scale``).
    """
    factor = 1.0 + projection_scale(vector, lam)
    vector.scale(factor)
    return factor


@dataclass(frozen=True)
class PegasosBallConstraint:
    """PEGASOS norm constraint ``||w||_2 <= 1/sqrt(lam)``.

    Attributes:
        lam: Regularization parameter. Must be positive.
        mode: BALL for the bound-enforcing projection, LEGACY_OFFSET for the
              ``(1 + scale)`` rescaling.
        normalize_after: Rescale to unit norm after the projection.

    Example:
        >>> constraint = PegasosBallConstraint(lam=0.25)
        >>> w = SparseWeightVector({0: 6.0, 1: 8.0})
        >>> constraint.project(w)
        0.2
        >>> w.l2_norm()
        2.0
    """

    lam: float
    mode: ProjectionMode = ProjectionMode.BALL
    normalize_after: bool = False

    def __post_init__(self) -> None:
        """Validate that lam is positive."""
        if self.lam <= 0:
            raise ValueError(f"lam must be positive, got {self.lam}")

    @property
    def radius(self) -> float:
        """Radius ``1/sqrt(lam)`` of the feasible ball."""
        return 1.0 / math.sqrt(self.lam)

    def contains(self, vector: SparseWeightVector, tol: float = 1e-12) -> bool:
        """Return True if ``vector`` lies in the ball (within ``tol``)."""
        return vector.l2_norm() <= self.radius + tol

    def project(self, vector: SparseWeightVector) -> float:
        """Apply the configured scaling to ``vector`` in place.

        Returns:
            The multiplicative factor applied before any normalization.
        """
        if self.mode is ProjectionMode.BALL:
            factor = project_to_pegasos_ball(vector, self.lam)
        else:
            factor = legacy_offset_scale(vector, self.lam)
        if self.normalize_after:
            vector.normalize()
        return factor
