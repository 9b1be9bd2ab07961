"""Tests for SparseWeightVector."""

from __future__ import annotations

import numpy as np
import pytest

from models.sparse_vector import SparseWeightVector


class TestAccess:
    """Tests for reads and writes."""

    def test_absent_reads_zero(self) -> None:
        """A missing component reads as 0.0."""
        w = SparseWeightVector()
        assert w.get(5) == 0.0
        assert 5 not in w
        assert len(w) == 0

    def test_add_creates_then_accumulates(self) -> None:
        """add creates a component, then accumulates into it."""
        w = SparseWeightVector()
        w.add(3, 1.5)
        w.add(3, 2.0)
        assert w.get(3) == pytest.approx(3.5)

    def test_set_overwrites(self) -> None:
        """set replaces the stored value."""
        w = SparseWeightVector({1: 4.0})
        w.set(1, -1.0)
        assert w.get(1) == -1.0

    def test_keys_sorted(self) -> None:
        """Keys iterate in ascending order regardless of insertion order."""
        w = SparseWeightVector()
        for index in (9, 2, 5):
            w.set(index, 1.0)
        assert w.keys() == [2, 5, 9]
        assert list(w) == [2, 5, 9]
        assert [k for k, _ in w.items()] == [2, 5, 9]


class TestArithmetic:
    """Tests for vector arithmetic."""

    def test_dot_sparse_intersection(self) -> None:
        """dot only sums over indices present in both."""
        w = SparseWeightVector({0: 2.0, 1: 3.0})
        assert w.dot({1: 2.0, 7: 100.0}) == pytest.approx(6.0)

    def test_norm_and_normalize(self) -> None:
        """normalize rescales to unit norm."""
        w = SparseWeightVector({0: 3.0})
        w.add(1, 4.0)
        assert w.l2_norm() == pytest.approx(5.0)
        w.normalize()
        assert w.get(1) == pytest.approx(0.8)
        assert w.l2_norm() == pytest.approx(1.0)

    def test_normalize_zero_is_noop(self) -> None:
        """A zero-norm vector is left unchanged."""
        w = SparseWeightVector({0: 0.0})
        w.normalize()
        assert w.to_dict() == {0: 0.0}

    def test_scale(self) -> None:
        """scale multiplies every component."""
        w = SparseWeightVector({0: 1.0, 4: -2.0})
        w.scale(0.5)
        assert w.to_dict() == {0: 0.5, 4: -1.0}

    def test_add_vector_with_coefficient(self) -> None:
        """add_vector accumulates coefficient * other over the union."""
        w = SparseWeightVector({0: 1.0})
        w.add_vector(SparseWeightVector({0: 1.0, 2: 2.0}), 3.0)
        assert w.to_dict() == {0: 4.0, 2: 6.0}


class TestOwnership:
    """Tests for copy semantics."""

    def test_copy_is_independent(self) -> None:
        """Mutating a copy leaves the source untouched."""
        w = SparseWeightVector({0: 1.0})
        clone = w.copy()
        clone.set(0, 9.0)
        assert w.get(0) == 1.0
        assert clone == SparseWeightVector({0: 9.0})

    def test_replace_with_does_not_alias(self) -> None:
        """replace_with copies values, not storage."""
        source = SparseWeightVector({1: 2.0})
        target = SparseWeightVector({0: 5.0})
        target.replace_with(source)
        source.set(1, 7.0)
        assert target.to_dict() == {1: 2.0}

    def test_clear(self) -> None:
        """clear removes every component."""
        w = SparseWeightVector({0: 1.0, 1: 2.0})
        w.clear()
        assert len(w) == 0


class TestDense:
    """Tests for dense conversion."""

    def test_to_dense(self) -> None:
        """Absent indices become zeros."""
        w = SparseWeightVector({1: 2.0, 3: -1.0})
        np.testing.assert_array_equal(w.to_dense(4), np.array([0.0, 2.0, 0.0, -1.0]))

    def test_to_dense_out_of_range(self) -> None:
        """A stored index beyond dim raises ValueError."""
        with pytest.raises(ValueError, match="out of range"):
            SparseWeightVector({5: 1.0}).to_dense(3)
