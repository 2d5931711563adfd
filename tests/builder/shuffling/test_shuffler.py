"""
Unit tests for question and option shuffling.
"""

import itertools
import random
from collections import Counter

from paper_toolkit.builder.diagnostics import chi_square_uniform
from paper_toolkit.builder.shuffling import shuffle_options, shuffle_paper
from paper_toolkit.core.models.bank import load_bank
from paper_toolkit.core.models.options import Option
from paper_toolkit.core.models.questions import Question, QuestionKind


def make_mc(qid: str, category: str, n_options: int = 4) -> Question:
    """Helper to create a multiple-choice question; option ids are f"{qid}o{i}"."""
    return Question(
        id=qid,
        category=category,
        kind=QuestionKind.MULTIPLE_CHOICE,
        options=tuple(
            Option(f"{qid}o{i}", is_correct=(i == 0)) for i in range(n_options)
        ),
    )


def make_open(qid: str, category: str) -> Question:
    """Helper to create an open-ended question."""
    return Question(id=qid, category=category)


class TestShuffleOptions:
    """Tests for shuffle_options."""

    def test_shuffle_when_open_ended_then_empty(self):
        assert shuffle_options(make_open("q1", "A"), random.Random(1)) == ()

    def test_shuffle_when_mc_then_same_option_set(self):
        question = make_mc("q1", "A", n_options=5)
        order = shuffle_options(question, random.Random(1))
        assert sorted(order) == sorted(question.option_ids)

    def test_shuffle_when_many_draws_then_permutations_uniform(self):
        """All 3! option orders occur equally often."""
        # Arrange
        question = make_mc("q1", "A", n_options=3)
        rng = random.Random(99)

        # Act
        counts = Counter(shuffle_options(question, rng) for _ in range(6000))

        # Assert
        perms = list(itertools.permutations(question.option_ids))
        assert set(counts) == set(perms)
        _, df, p_value = chi_square_uniform([counts[p] for p in perms])
        assert df == 5
        assert p_value > 0.001


class TestShufflePaper:
    """Tests for shuffle_paper."""

    def test_shuffle_when_called_then_questions_preserved(self, large_bank):
        # Arrange
        ids = ("q1", "q2", "q3", "q4", "q5")

        # Act
        paper = shuffle_paper(ids, large_bank, random.Random(5))

        # Assert
        assert sorted(paper.question_ids) == sorted(ids)
        for item in paper.items:
            question = large_bank[item.question_id]
            assert sorted(item.option_order) == sorted(question.option_ids)

    def test_shuffle_when_called_then_correct_answers_recoverable(self, large_bank):
        """Correct options keep their identity after shuffling."""
        # Arrange
        ids = ("q1", "q3", "q5", "q7")
        paper = shuffle_paper(ids, large_bank, random.Random(8))

        # Act
        key = paper.correct_positions(large_bank)

        # Assert
        for item, positions in zip(paper.items, key):
            question = large_bank[item.question_id]
            recovered = tuple(item.option_order[p - 1] for p in positions)
            assert recovered == question.correct_option_ids

    def test_shuffle_when_called_then_bank_untouched(self, large_bank):
        before = [(q.id, q.option_ids) for q in large_bank]
        shuffle_paper(("q1", "q3", "q5"), large_bank, random.Random(1))
        assert [(q.id, q.option_ids) for q in large_bank] == before

    def test_shuffle_when_same_seed_then_same_paper(self, large_bank):
        ids = ("q1", "q2", "q3")
        assert (
            shuffle_paper(ids, large_bank, random.Random(4))
            == shuffle_paper(ids, large_bank, random.Random(4))
        )

    def test_shuffle_when_many_draws_then_question_positions_uniform(self):
        """Each question lands in first position equally often."""
        # Arrange
        bank = load_bank([make_open(f"q{i}", "A") for i in range(4)])
        ids = tuple(q.id for q in bank)
        rng = random.Random(7)

        # Act
        firsts = Counter(shuffle_paper(ids, bank, rng).question_ids[0] for _ in range(4000))

        # Assert
        _, _, p_value = chi_square_uniform([firsts[qid] for qid in ids])
        assert p_value > 0.001
