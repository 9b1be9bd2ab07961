"""Sparse weight vector model for the linear SVM.

This module provides the weight vector every node owns: a sparse mapping
from feature index to weight, where an absent index means 0.0.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping

import numpy as np

from core.types import FeatureIndex

__all__ = ["SparseWeightVector"]


class SparseWeightVector:
    """A sparse mapping ``feature index -> weight``.

    Iteration is always in ascending index order so that every traversal is
    deterministic. The vector is mutated in place; callers that need an
    independent value take a :meth:`copy`.

    Attributes:
        _weights: Internal index -> weight mapping.

    Example:
        >>> w = SparseWeightVector({0: 3.0})
        >>> w.add(1, 4.0)
        >>> w.l2_norm()
        5.0
        >>> w.normalize()
        >>> w.get(1)
        0.8
    """

    def __init__(self, weights: Mapping[FeatureIndex, float] | None = None) -> None:
        self._weights: dict[FeatureIndex, float] = {}
        if weights:
            for index, value in weights.items():
                self._weights[int(index)] = float(value)

    def __len__(self) -> int:
        """Number of stored components."""
        return len(self._weights)

    def __contains__(self, index: object) -> bool:
        return index in self._weights

    def __iter__(self) -> Iterator[FeatureIndex]:
        return iter(self.keys())

    def __repr__(self) -> str:
        return f"SparseWeightVector({self.to_dict()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseWeightVector):
            return NotImplemented
        return self._weights == other._weights

    def keys(self) -> list[FeatureIndex]:
        """Return stored feature indices in ascending order."""
        return sorted(self._weights)

    def items(self) -> list[tuple[FeatureIndex, float]]:
        """Return ``(index, weight)`` pairs in ascending index order."""
        return [(index, self._weights[index]) for index in self.keys()]

    def get(self, index: FeatureIndex) -> float:
        """Read a component (0.0 if absent)."""
        return self._weights.get(index, 0.0)

    def set(self, index: FeatureIndex, value: float) -> None:
        """Overwrite a component, creating it if absent."""
        self._weights[index] = float(value)

    def add(self, index: FeatureIndex, value: float) -> None:
        """Accumulate into a component, creating it if absent."""
        self._weights[index] = self._weights.get(index, 0.0) + float(value)

    def add_vector(self, other: SparseWeightVector, coefficient: float = 1.0) -> None:
        """In place ``self += coefficient * other``."""
        for index, value in other.items():
            self.add(index, coefficient * value)

    def dot(self, features: Mapping[FeatureIndex, float]) -> float:
        """Inner product with a sparse feature mapping over shared indices."""
        total = 0.0
        for index, value in features.items():
            weight = self._weights.get(index)
            if weight is not None:
                total += value * weight
        return total

    def l2_norm(self) -> float:
        """Euclidean norm ``sqrt(sum w_i^2)``."""
        return math.sqrt(sum(value * value for value in self._weights.values()))

    def scale(self, factor: float) -> None:
        """Multiply every stored component by ``factor``."""
        for index in self._weights:
            self._weights[index] *= factor

    def normalize(self) -> None:
        """Rescale to unit L2 norm. A zero vector is left unchanged."""
        norm = self.l2_norm()
        if norm == 0.0:
            return
        self.scale(1.0 / norm)

    def clear(self) -> None:
        """Remove every component."""
        self._weights.clear()

    def replace_with(self, other: SparseWeightVector) -> None:
        """Overwrite contents with a copy of ``other``'s values."""
        self._weights = dict(other._weights)

    def copy(self) -> SparseWeightVector:
        """Return an independent copy."""
        clone = SparseWeightVector()
        clone._weights = dict(self._weights)
        return clone

    def to_dict(self) -> dict[FeatureIndex, float]:
        """Return a plain dict copy in ascending index order."""
        return dict(self.items())

    def to_dense(self, dim: int) -> np.ndarray:
        """Return a dense float64 array of length ``dim``.

        Raises:
            ValueError: If a stored index falls outside ``[0, dim)``.
        """
        dense = np.zeros(dim, dtype=np.float64)
        for index, value in self._weights.items():
            if not 0 <= index < dim:
                raise ValueError(f"Index {index} out of range for dim={dim}")
            dense[index] = value
        return dense
