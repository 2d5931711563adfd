"""
Module: bank

Purpose:
    Provides the QuestionBank - the immutable, validated in-memory
    catalog every paper is drawn from - and load_bank(), the only way
    to build one.

Key Functions:
    - load_bank(questions): Validate and build a QuestionBank
    - QuestionBank.questions_by_category(cat): Read-only category query
    - QuestionBank.index_of(qid) / option_index(qid, oid): Interned ids

Dependencies:
    - core.errors.InvalidBank
    - .questions.Question

Used By:
    - builder.selection: feasibility checks and sampler
    - builder.shuffling.shuffler
    - builder.distinctness.enforcer

Design Notes:
    Question and option ids are interned into small integers at load
    time. The distinctness index hashes tuples of those integers rather
    than re-hashing id strings on every comparison. Nothing mutates a
    bank after load, so worker threads read it without locking.
"""

from __future__ import annotations

import logging
from collections import Counter
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from ..errors import InvalidBank
from .questions import Difficulty, Question

logger = logging.getLogger(__name__)


class QuestionBank:
    """
    Immutable question catalog.

    Built by load_bank(); do not construct directly with unvalidated data.

    Example:
        >>> bank = load_bank([q1, q2, q3])
        >>> bank.size()
        3
        >>> [q.id for q in bank.questions_by_category("A")]
        ['q1', 'q2']
    """

    __slots__ = (
        "_questions",
        "_by_id",
        "_index",
        "_option_index",
        "_by_category",
        "_by_difficulty",
        "_by_group",
    )

    def __init__(self, questions: Tuple[Question, ...]) -> None:
        self._questions = questions
        self._by_id: Mapping[str, Question] = MappingProxyType({q.id: q for q in questions})
        self._index: Mapping[str, int] = MappingProxyType(
            {q.id: i for i, q in enumerate(questions)}
        )
        self._option_index: Mapping[str, Mapping[str, int]] = MappingProxyType({
            q.id: MappingProxyType({oid: i for i, oid in enumerate(q.option_ids)})
            for q in questions
        })

        by_category: Dict[str, list] = {}
        by_difficulty: Dict[Difficulty, list] = {}
        by_group: Dict[str, list] = {}
        for q in questions:
            by_category.setdefault(q.category, []).append(q)
            if q.difficulty is not None:
                by_difficulty.setdefault(q.difficulty, []).append(q)
            if q.group is not None:
                by_group.setdefault(q.group, []).append(q)
        self._by_category = MappingProxyType({k: tuple(v) for k, v in by_category.items()})
        self._by_difficulty = MappingProxyType({k: tuple(v) for k, v in by_difficulty.items()})
        self._by_group = MappingProxyType({k: tuple(v) for k, v in by_group.items()})

    # ─────────────────────────────────────────────────────────────────────────
    # Read-only Queries
    # ─────────────────────────────────────────────────────────────────────────

    def size(self) -> int:
        """Number of questions in the bank."""
        return len(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._by_id

    @property
    def questions(self) -> Tuple[Question, ...]:
        """All questions in load order."""
        return self._questions

    @property
    def categories(self) -> Tuple[str, ...]:
        """Categories present in the bank, in first-seen order."""
        return tuple(self._by_category)

    @property
    def difficulties(self) -> Tuple[Difficulty, ...]:
        """Difficulty tags present in the bank, in first-seen order."""
        return tuple(self._by_difficulty)

    def get(self, question_id: str) -> Optional[Question]:
        """Look up a question by id, or None."""
        return self._by_id.get(question_id)

    def __getitem__(self, question_id: str) -> Question:
        return self._by_id[question_id]

    def questions_by_category(self, category: str) -> Tuple[Question, ...]:
        """Questions tagged with category (empty tuple if none)."""
        return self._by_category.get(category, ())

    def questions_by_difficulty(self, difficulty: Difficulty) -> Tuple[Question, ...]:
        """Questions tagged with difficulty (empty tuple if none)."""
        return self._by_difficulty.get(difficulty, ())

    def questions_in_group(self, group: str) -> Tuple[Question, ...]:
        """Questions sharing an exclusion group (empty tuple if none)."""
        return self._by_group.get(group, ())

    @property
    def has_groups(self) -> bool:
        """True if any exclusion group holds two or more questions."""
        return any(len(members) > 1 for members in self._by_group.values())

    # ─────────────────────────────────────────────────────────────────────────
    # Interned Ids
    # ─────────────────────────────────────────────────────────────────────────

    def index_of(self, question_id: str) -> int:
        """
        Stable small-integer handle for a question id.

        Raises:
            KeyError: If the id is not in the bank
        """
        return self._index[question_id]

    def option_index(self, question_id: str, option_id: str) -> int:
        """
        Stable small-integer handle for an option within its question.

        Raises:
            KeyError: If the question or option id is unknown
        """
        return self._option_index[question_id][option_id]

    def __repr__(self) -> str:
        return (
            f"QuestionBank(questions={len(self._questions)}, "
            f"categories={len(self._by_category)})"
        )


def _check_question(question: Question) -> Iterator[str]:
    """Yield structural problems of a single question."""
    if not question.is_multiple_choice:
        return
    if len(question.options) < 2:
        yield (
            f"multiple-choice question {question.id!r} has "
            f"{len(question.options)} option(s), needs at least 2"
        )
    if question.options and not question.correct_option_ids:
        yield f"multiple-choice question {question.id!r} has no correct option"
    repeated = [oid for oid, n in Counter(question.option_ids).items() if n > 1]
    if repeated:
        yield f"question {question.id!r} repeats option id(s) {sorted(repeated)}"


def load_bank(questions: Iterable[Question]) -> QuestionBank:
    """
    Validate questions and build an immutable QuestionBank.

    Args:
        questions: Questions in authoring order

    Returns:
        QuestionBank

    Raises:
        InvalidBank: If any id is duplicated, a multiple-choice question
            has fewer than 2 options or none marked correct, or option
            ids repeat within a question. Every defect is listed.

    Example:
        >>> bank = load_bank([Question("q1", "A"), Question("q1", "B")])
        Traceback (most recent call last):
        ...
        InvalidBank: Invalid question bank: duplicate question id 'q1' (2 occurrences)
    """
    items = tuple(questions)
    problems: list[str] = []

    counts = Counter(q.id for q in items)
    for qid, n in counts.items():
        if n > 1:
            problems.append(f"duplicate question id {qid!r} ({n} occurrences)")

    for q in items:
        problems.extend(_check_question(q))

    if problems:
        logger.warning(f"Rejected question bank with {len(problems)} problem(s)")
        raise InvalidBank(problems)

    bank = QuestionBank(items)
    logger.debug(f"Loaded {bank!r}")
    return bank
