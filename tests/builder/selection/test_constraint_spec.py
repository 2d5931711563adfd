"""
Unit tests for ConstraintSpec validation and queries.
"""

import pytest

from paper_toolkit.builder.selection import ConstraintSpec


class TestConstraintSpecValidation:
    """Tests for construction-time validation."""

    @pytest.mark.parametrize("total", [0, -3])
    def test_create_when_total_not_positive_then_raises(self, total):
        with pytest.raises(ValueError, match="total_count must be positive"):
            ConstraintSpec(total_count=total)

    def test_create_when_total_not_integer_then_raises(self):
        with pytest.raises(ValueError, match="must be an integer"):
            ConstraintSpec(total_count=2.5)

    def test_create_when_total_is_bool_then_raises(self):
        with pytest.raises(ValueError, match="must be an integer"):
            ConstraintSpec(total_count=True)

    def test_create_when_minimum_negative_then_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            ConstraintSpec(total_count=3, category_minimums={"A": -1})

    def test_create_when_maximum_below_minimum_then_raises(self):
        with pytest.raises(ValueError, match="must be >="):
            ConstraintSpec(
                total_count=5,
                category_minimums={"A": 3},
                category_maximums={"A": 2},
            )

    def test_create_when_difficulty_minimum_negative_then_raises(self):
        with pytest.raises(ValueError, match="difficulty_minimums"):
            ConstraintSpec(total_count=3, difficulty_minimums={1: -1})

    def test_create_when_pinned_ids_repeat_then_raises(self):
        with pytest.raises(ValueError, match="repeat"):
            ConstraintSpec(total_count=3, pinned_question_ids=("q1", "q1"))

    def test_create_when_pinned_ids_list_then_stored_as_tuple(self):
        spec = ConstraintSpec(total_count=3, pinned_question_ids=["q1", "q2"])
        assert spec.pinned_question_ids == ("q1", "q2")
        assert spec.pinned_set == frozenset({"q1", "q2"})

    def test_create_when_minimums_exceed_total_then_allowed(self):
        """Bank-dependent feasibility is checked later, not at construction."""
        spec = ConstraintSpec(total_count=2, category_minimums={"A": 2, "B": 2})
        assert spec.minimum_total == 4


class TestConstraintSpecQueries:
    """Tests for quota lookups."""

    @pytest.fixture
    def spec(self) -> ConstraintSpec:
        return ConstraintSpec(
            total_count=6,
            category_minimums={"B": 2, "A": 1, "C": 0},
            category_maximums={"A": 3, "D": 10},
            difficulty_minimums={"hard": 1, 2: 1, 1: 2},
        )

    def test_minimum_for_when_unconstrained_then_zero(self, spec):
        assert spec.minimum_for("Z") == 0
        assert spec.minimum_for("B") == 2

    def test_maximum_for_when_unconstrained_then_total(self, spec):
        assert spec.maximum_for("Z") == 6

    def test_maximum_for_when_above_total_then_capped(self, spec):
        assert spec.maximum_for("D") == 6
        assert spec.maximum_for("A") == 3

    def test_required_categories_when_called_then_sorted_positive_only(self, spec):
        assert spec.required_categories() == ("A", "B")

    def test_required_difficulties_when_mixed_types_then_ints_first(self, spec):
        assert spec.required_difficulties() == (1, 2, "hard")

    def test_describe_when_called_then_plain_dict(self, spec):
        summary = spec.describe()
        assert summary["total_count"] == 6
        assert "pinned_question_ids" not in summary
