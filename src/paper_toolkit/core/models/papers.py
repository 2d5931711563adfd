"""
Module: papers

Purpose:
    Provides the Paper value type (one student's presented exam) and
    the Batch of accepted papers returned by generation.

Key Functions:
    - Paper.fingerprint: Order-normalized question set (diagnostics only)
    - Paper.correct_positions(bank): 1-based answer key per MC item
    - Batch.answer_keys(bank): Answer keys for every paper

Dependencies:
    - dataclasses (std)
    - functools (std)
    - .bank.QuestionBank (TYPE_CHECKING only)

Used By:
    - builder.shuffling.shuffler: Creates papers
    - builder.distinctness.enforcer: Compares papers
    - builder.controller: Builds the batch

Design Notes:
    A Paper is compared by ids only. Two papers are equal iff their
    question-id sequences are equal element-wise and every
    multiple-choice option order is equal element-wise. The prompt and
    option text never take part in comparison.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, FrozenSet, Iterator, Optional, Tuple

if TYPE_CHECKING:
    from .bank import QuestionBank


@dataclass(frozen=True, slots=True)
class PaperItem:
    """
    One question slot of a paper.

    Attributes:
        question_id: Id of the bank question presented in this slot
        option_order: Presented option ids (empty for open-ended)
    """

    question_id: str
    option_order: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"question_id": self.question_id, "option_order": list(self.option_order)}


@dataclass(frozen=True)
class Paper:
    """
    Presented exam paper (immutable value).

    Attributes:
        items: Ordered question slots with their option orders

    Invariants:
        - No question id repeats

    Example:
        >>> paper = Paper((PaperItem("q3"), PaperItem("q1", ("o2", "o1"))))
        >>> paper.question_ids
        ('q3', 'q1')
        >>> paper.fingerprint == frozenset({"q1", "q3"})
        True
    """

    items: Tuple[PaperItem, ...]

    def __post_init__(self) -> None:
        """Validate paper on construction."""
        ids = [item.question_id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate question ids in paper: {ids}")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties
    # ─────────────────────────────────────────────────────────────────────────

    @cached_property
    def question_ids(self) -> Tuple[str, ...]:
        """Question ids in presented order."""
        return tuple(item.question_id for item in self.items)

    @cached_property
    def fingerprint(self) -> FrozenSet[str]:
        """
        Canonical fingerprint: the order-normalized question set.

        Used to tell "same questions, different order" from "different
        questions" in diagnostics. Never used to reject a paper.
        """
        return frozenset(self.question_ids)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[PaperItem]:
        return iter(self.items)

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def option_order(self, question_id: str) -> Optional[Tuple[str, ...]]:
        """Presented option order for a question, or None if absent."""
        for item in self.items:
            if item.question_id == question_id:
                return item.option_order
        return None

    def correct_positions(self, bank: QuestionBank) -> Tuple[Tuple[int, ...], ...]:
        """
        Answer key for this paper.

        Correctness is resolved through option identity, so the key is
        right whatever order the options were presented in.

        Args:
            bank: Bank the paper was generated from

        Returns:
            One tuple per item of 1-based positions of correct options
            (empty tuple for open-ended items)
        """
        key = []
        for item in self.items:
            correct = set(bank[item.question_id].correct_option_ids)
            key.append(tuple(
                pos for pos, oid in enumerate(item.option_order, start=1)
                if oid in correct
            ))
        return tuple(key)

    def to_dict(self) -> dict:
        """Serialize for an external renderer."""
        return {"items": [item.to_dict() for item in self.items]}

    def __repr__(self) -> str:
        return f"Paper({list(self.question_ids)})"


@dataclass(frozen=True)
class GenerationStats:
    """
    Bookkeeping of one generation run.

    Attributes:
        attempts: Sampler+Shuffler cycles run
        duplicate_rejections: Candidates rejected as exact duplicates
        sampling_conflicts: Attempts abandoned by the sampler (transient)
        distinct_question_sets: Distinct fingerprints among accepted papers
        workers: Worker threads used
        elapsed_seconds: Wall-clock duration
        estimated_space: Estimated number of distinguishable papers
        rejection_budget: Consecutive rejections allowed
    """

    attempts: int = 0
    duplicate_rejections: int = 0
    sampling_conflicts: int = 0
    distinct_question_sets: int = 0
    workers: int = 1
    elapsed_seconds: float = 0.0
    estimated_space: Optional[int] = None
    rejection_budget: Optional[int] = None

    @property
    def rejections(self) -> int:
        """All rejected attempts."""
        return self.duplicate_rejections + self.sampling_conflicts


@dataclass(frozen=True)
class Batch:
    """
    Accepted papers of one generation run (immutable).

    Paper index is acceptance order, not attempt order.

    Attributes:
        papers: Pairwise-distinct papers
        seed: Master seed of the run (replayable in single-worker mode)
        stats: Run bookkeeping

    Invariants:
        - All papers pairwise distinct
    """

    papers: Tuple[Paper, ...]
    seed: Optional[int] = None
    stats: GenerationStats = field(default_factory=GenerationStats)

    def __post_init__(self) -> None:
        """Validate batch on construction."""
        if len(set(self.papers)) != len(self.papers):
            raise ValueError("Batch papers must be pairwise distinct")

    def __len__(self) -> int:
        return len(self.papers)

    def __iter__(self) -> Iterator[Paper]:
        return iter(self.papers)

    def __getitem__(self, index: int) -> Paper:
        return self.papers[index]

    @property
    def distinct_question_sets(self) -> int:
        """Number of distinct canonical fingerprints in the batch."""
        return len({paper.fingerprint for paper in self.papers})

    def answer_keys(self, bank: QuestionBank) -> Tuple[Tuple[Tuple[int, ...], ...], ...]:
        """Answer key of every paper, by paper index."""
        return tuple(paper.correct_positions(bank) for paper in self.papers)

    def __repr__(self) -> str:
        return (
            f"Batch(papers={len(self.papers)}, seed={self.seed}, "
            f"question_sets={self.distinct_question_sets})"
        )
