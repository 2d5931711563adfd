"""
Unit tests for the constrained sampler.
"""

import random
from collections import Counter

import pytest

from paper_toolkit.builder.diagnostics import chi_square_uniform
from paper_toolkit.builder.selection import (
    ConstraintSpec,
    Sampler,
    SamplingConflict,
    sample_questions,
)
from paper_toolkit.core.errors import UnsatisfiableConstraint
from paper_toolkit.core.models.bank import load_bank
from paper_toolkit.core.models.questions import Question


def make_open(qid: str, category: str, difficulty=None, group=None) -> Question:
    """Helper to create an open-ended question."""
    return Question(
        id=qid,
        category=category,
        prompt=f"Prompt {qid}",
        difficulty=difficulty,
        group=group,
    )


class TestSampleQuestions:
    """Tests for sample_questions guarantees."""

    def test_sample_when_constrained_then_quotas_hold(self, large_bank):
        """Every sample has the exact total and respects every quota."""
        # Arrange
        spec = ConstraintSpec(
            total_count=9,
            category_minimums={"algebra": 3, "geometry": 2},
            category_maximums={"statistics": 2},
        )

        for seed in range(100):
            # Act
            ids = sample_questions(large_bank, spec, random.Random(seed))

            # Assert
            counts = Counter(large_bank[qid].category for qid in ids)
            assert len(ids) == 9
            assert len(set(ids)) == 9
            assert counts["algebra"] >= 3
            assert counts["geometry"] >= 2
            assert counts["statistics"] <= 2

    def test_sample_when_same_seed_then_same_ids(self, large_bank):
        spec = ConstraintSpec(total_count=5)
        first = sample_questions(large_bank, spec, random.Random(42))
        second = sample_questions(large_bank, spec, random.Random(42))
        assert first == second

    def test_sample_when_used_given_then_used_first(self, large_bank):
        """Used ids lead the selection and are not drawn again."""
        # Arrange
        spec = ConstraintSpec(total_count=4, category_minimums={"algebra": 2})

        # Act
        ids = sample_questions(large_bank, spec, random.Random(3), used=("q0", "q1"))

        # Assert
        assert ids[:2] == ("q0", "q1")
        assert len(set(ids)) == 4
        algebra = [qid for qid in ids if large_bank[qid].category == "algebra"]
        assert len(algebra) >= 2

    def test_sample_when_difficulty_minimum_then_met(self, large_bank):
        spec = ConstraintSpec(total_count=4, difficulty_minimums={3: 3})
        for seed in range(50):
            ids = sample_questions(large_bank, spec, random.Random(seed))
            hard = [qid for qid in ids if large_bank[qid].difficulty == 3]
            assert len(hard) >= 3

    def test_sample_when_groups_then_one_per_group(self):
        """Questions sharing a group never appear together."""
        # Arrange
        bank = load_bank([
            make_open("q1", "A", group="g1"),
            make_open("q2", "A", group="g1"),
            make_open("q3", "A", group="g2"),
            make_open("q4", "A", group="g2"),
            make_open("q5", "A"),
        ])
        spec = ConstraintSpec(total_count=3)

        for seed in range(100):
            # Act
            ids = sample_questions(bank, spec, random.Random(seed))

            # Assert
            groups = [bank[qid].group for qid in ids if bank[qid].group is not None]
            assert len(groups) == len(set(groups))
            assert "q5" in ids

    def test_sample_when_fill_then_uniform_over_pool(self):
        """Each question is equally likely to be drawn."""
        # Arrange
        bank = load_bank([make_open(f"q{i}", "A") for i in range(5)])
        spec = ConstraintSpec(total_count=1)
        rng = random.Random(2024)

        # Act
        counts = Counter(sample_questions(bank, spec, rng)[0] for _ in range(5000))

        # Assert
        _, _, p_value = chi_square_uniform([counts[f"q{i}"] for i in range(5)])
        assert p_value > 0.001


class TestSamplerFailures:
    """Tests for structural and transient sampling failures."""

    def test_sample_when_category_short_then_unsatisfiable(self, worked_example_bank):
        """A shortage no draw caused is structural."""
        spec = ConstraintSpec(total_count=3, category_minimums={"B": 2})
        with pytest.raises(UnsatisfiableConstraint, match="category 'B' ran out"):
            Sampler(worked_example_bank, spec).sample(random.Random(0))

    def test_sample_when_used_unknown_then_unsatisfiable(self, worked_example_bank):
        spec = ConstraintSpec(total_count=2)
        with pytest.raises(UnsatisfiableConstraint, match="not in the bank"):
            sample_questions(worked_example_bank, spec, random.Random(0), used=("Q9",))

    def test_sample_when_used_repeated_then_unsatisfiable(self, worked_example_bank):
        spec = ConstraintSpec(total_count=2)
        with pytest.raises(UnsatisfiableConstraint, match="used twice"):
            sample_questions(worked_example_bank, spec, random.Random(0), used=("Q1", "Q1"))

    def test_sample_when_used_exceed_maximum_then_unsatisfiable(self, worked_example_bank):
        spec = ConstraintSpec(total_count=3, category_maximums={"A": 1})
        with pytest.raises(UnsatisfiableConstraint, match="maximum of category 'A'"):
            sample_questions(worked_example_bank, spec, random.Random(0), used=("Q1", "Q2"))

    def test_sample_when_used_crowd_out_minimums_then_unsatisfiable(self, worked_example_bank):
        spec = ConstraintSpec(total_count=2, category_minimums={"B": 1})
        with pytest.raises(UnsatisfiableConstraint, match="exceed total_count"):
            sample_questions(worked_example_bank, spec, random.Random(0), used=("Q1", "Q2"))

    def test_sample_when_draw_takes_needed_group_then_conflict(self):
        """A shortage caused by this attempt's own draws is transient."""
        # Arrange: drawing q1 for A locks q2 out of B
        bank = load_bank([
            make_open("q1", "A", group="g"),
            make_open("q4", "A"),
            make_open("q2", "B", group="g"),
            make_open("q3", "B"),
        ])
        spec = ConstraintSpec(total_count=3, category_minimums={"A": 1, "B": 2})
        sampler = Sampler(bank, spec)
        outcomes = []

        # Act
        for seed in range(50):
            try:
                outcomes.append(sampler.sample(random.Random(seed)))
            except SamplingConflict:
                outcomes.append(None)

        # Assert
        assert None in outcomes
        successes = [ids for ids in outcomes if ids is not None]
        assert successes
        assert all(set(ids) == {"q4", "q2", "q3"} for ids in successes)

    def test_sample_when_forced_pick_takes_shared_group_then_unsatisfiable(self):
        """A's only question locks B's only question out on every draw."""
        # Arrange
        bank = load_bank([
            make_open("a1", "A", group="g"),
            make_open("b1", "B", group="g"),
            make_open("c1", "C"),
        ])
        spec = ConstraintSpec(total_count=2, category_minimums={"A": 1, "B": 1})
        sampler = Sampler(bank, spec)

        for seed in range(20):
            # Act / Assert
            with pytest.raises(UnsatisfiableConstraint, match="category 'B' ran out"):
                sampler.sample(random.Random(seed))

    def test_sample_when_forced_picks_fill_paper_then_unsatisfiable(self):
        """Meeting A's minimum always leaves no slot for the hard question."""
        # Arrange
        bank = load_bank([
            make_open("a1", "A", difficulty=1),
            make_open("a2", "A", difficulty=1),
            make_open("b1", "B", difficulty=3),
        ])
        spec = ConstraintSpec(
            total_count=2,
            category_minimums={"A": 2},
            difficulty_minimums={3: 1},
        )
        sampler = Sampler(bank, spec)

        for seed in range(20):
            # Act / Assert
            with pytest.raises(UnsatisfiableConstraint, match="already full"):
                sampler.sample(random.Random(seed))
