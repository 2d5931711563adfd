"""
Module: builder.selection.sampler

Purpose:
    Constrained sampling without replacement. Draws the question set of
    one paper so that it has exactly total_count questions, meets every
    category and difficulty minimum, stays within every category
    maximum, never repeats a question and holds at most one question
    per exclusion group.

Key Functions:
    - sample_questions(): Convenience wrapper around Sampler.sample

Key Classes:
    - Sampler: Stateless sampler bound to a bank and spec
    - SamplingConflict: Transient failure caused by the attempt's own draws

Algorithm:
    1. Seed the draft with ids already used in the paper (pinned ids)
    2. Meet each category minimum, drawing uniformly from that category
    3. Meet each difficulty minimum, drawing uniformly from eligible
       questions of that difficulty
    4. Fill remaining slots uniformly from every eligible question
       (category below its maximum, group not yet taken)

Dependencies:
    - random (std): Caller-supplied random.Random
    - core.errors.UnsatisfiableConstraint
    - core.models: QuestionBank, Question

Used By:
    - builder.controller: One call per generation attempt
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from paper_toolkit.core.errors import UnsatisfiableConstraint
from paper_toolkit.core.models.bank import QuestionBank
from paper_toolkit.core.models.questions import Question

from .config import ConstraintSpec

logger = logging.getLogger(__name__)


class SamplingConflict(Exception):
    """
    Sampling attempt abandoned because of its own random draws.

    Not an error for callers: a different draw may succeed, so the
    orchestrator counts it as a rejected attempt and retries.
    """
    pass


@dataclass
class _PaperDraft:
    """Mutable working state of one sampling attempt."""

    spec: ConstraintSpec
    selected: List[Question] = field(default_factory=list)
    ids: Set[str] = field(default_factory=set)
    drawn_ids: Set[str] = field(default_factory=set)
    category_counts: Counter = field(default_factory=Counter)
    drawn_category_counts: Counter = field(default_factory=Counter)
    difficulty_counts: Counter = field(default_factory=Counter)
    # group -> True if taken by a random draw, False if used or forced
    taken_groups: Dict[str, bool] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.selected)

    def add(self, question: Question, drawn: bool) -> None:
        self.selected.append(question)
        self.ids.add(question.id)
        self.category_counts[question.category] += 1
        if question.difficulty is not None:
            self.difficulty_counts[question.difficulty] += 1
        if question.group is not None:
            self.taken_groups[question.group] = drawn
        if drawn:
            self.drawn_ids.add(question.id)
            self.drawn_category_counts[question.category] += 1

    def category_full(self, category: str) -> bool:
        return self.category_counts[category] >= self.spec.maximum_for(category)

    def is_eligible(self, question: Question) -> bool:
        if question.id in self.ids:
            return False
        if question.group is not None and question.group in self.taken_groups:
            return False
        return not self.category_full(question.category)

    def blocked_by_chance(self, question: Question) -> bool:
        """True if this attempt's random draws made question ineligible."""
        if question.id in self.drawn_ids:
            return True
        if self.taken_groups.get(question.group, False):
            return True
        return (
            self.category_full(question.category)
            and self.drawn_category_counts[question.category] > 0
        )

    def overflow_by_chance(self) -> bool:
        """True if any selected question came from a random draw."""
        return bool(self.drawn_ids)


def sample_questions(
    bank: QuestionBank,
    spec: ConstraintSpec,
    rng: random.Random,
    used: Iterable[str] = (),
) -> Tuple[str, ...]:
    """
    Draw one paper's question ids.

    Args:
        bank: Question bank
        spec: Constraint spec
        rng: Randomness source, owned by the caller
        used: Ids already placed in the paper being built

    Returns:
        Ids in selection order: used ids first, then drawn ids

    Raises:
        UnsatisfiableConstraint: Structural bank/spec mismatch
        SamplingConflict: This attempt's draws painted it into a corner

    Example:
        >>> ids = sample_questions(bank, ConstraintSpec(total_count=2), random.Random(7))
        >>> len(ids)
        2
    """
    return Sampler(bank, spec).sample(rng, used)


@dataclass
class Sampler:
    """
    Question sampler bound to one bank and spec.

    Holds no per-attempt state, so one instance may be shared by
    several worker threads as long as each passes its own rng.

    Attributes:
        bank: Question bank (read-only)
        spec: Constraint spec
    """

    bank: QuestionBank
    spec: ConstraintSpec

    def sample(self, rng: random.Random, used: Iterable[str] = ()) -> Tuple[str, ...]:
        """
        Draw one paper's question ids.

        See sample_questions() for arguments and errors.
        """
        draft = _PaperDraft(self.spec)

        self._seed_used(draft, used)
        self._meet_category_minimums(draft, rng)
        self._meet_difficulty_minimums(draft, rng)
        self._fill_remaining(draft, rng)

        result = tuple(q.id for q in draft.selected)
        logger.debug(f"Sampled {len(result)} questions: {list(result)}")
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Step 1: Used Questions
    # ─────────────────────────────────────────────────────────────────────────

    def _seed_used(self, draft: _PaperDraft, used: Iterable[str]) -> None:
        """Place already-used questions, rejecting structurally invalid input."""
        for qid in used:
            question = self.bank.get(qid)
            if question is None:
                raise UnsatisfiableConstraint([f"question {qid!r} is not in the bank"])
            if qid in draft.ids:
                raise UnsatisfiableConstraint([f"question {qid!r} is used twice"])
            if question.group is not None and question.group in draft.taken_groups:
                raise UnsatisfiableConstraint([
                    f"question {qid!r} shares group {question.group!r} "
                    "with another used question"
                ])
            if draft.category_full(question.category):
                raise UnsatisfiableConstraint([
                    f"used questions exceed the maximum of category {question.category!r}"
                ])
            draft.add(question, drawn=False)

        # Slots the category minimums will still claim
        pending = sum(
            max(0, self.spec.minimum_for(c) - draft.category_counts[c])
            for c in self.spec.required_categories()
        )
        if len(draft) + pending > self.spec.total_count:
            raise UnsatisfiableConstraint([
                f"{len(draft)} used questions plus {pending} required by category "
                f"minimums exceed total_count {self.spec.total_count}"
            ])

    # ─────────────────────────────────────────────────────────────────────────
    # Step 2: Category Minimums
    # ─────────────────────────────────────────────────────────────────────────

    def _meet_category_minimums(self, draft: _PaperDraft, rng: random.Random) -> None:
        for category in self.spec.required_categories():
            need = self.spec.minimum_for(category) - draft.category_counts[category]
            if need <= 0:
                continue
            self._draw(
                draft,
                rng,
                self.bank.questions_by_category(category),
                need,
                f"category {category!r}",
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Step 3: Difficulty Minimums
    # ─────────────────────────────────────────────────────────────────────────

    def _meet_difficulty_minimums(self, draft: _PaperDraft, rng: random.Random) -> None:
        for difficulty in self.spec.required_difficulties():
            need = self.spec.difficulty_minimums[difficulty] - draft.difficulty_counts[difficulty]
            if need <= 0:
                continue
            room = self.spec.total_count - len(draft)
            if need > room:
                self._overflow(draft, f"difficulty {difficulty!r} needs {need} more questions")
            self._draw(
                draft,
                rng,
                self.bank.questions_by_difficulty(difficulty),
                need,
                f"difficulty {difficulty!r}",
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Step 4: Fill
    # ─────────────────────────────────────────────────────────────────────────

    def _fill_remaining(self, draft: _PaperDraft, rng: random.Random) -> None:
        need = self.spec.total_count - len(draft)
        if need > 0:
            self._draw(draft, rng, self.bank.questions, need, "the fill pool")

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _draw(
        self,
        draft: _PaperDraft,
        rng: random.Random,
        candidates: Sequence[Question],
        need: int,
        pool_name: str,
    ) -> None:
        """
        Draw need questions uniformly without replacement from candidates.

        A pick from a pool no larger than the remaining need is forced,
        not random, unless earlier random draws shrank that pool.
        """
        pool = [q for q in candidates if draft.is_eligible(q)]
        while need > 0:
            if not pool:
                self._shortage(draft, candidates, need, pool_name)
            forced = len(pool) <= need and not self._shrunk_by_chance(draft, candidates)
            i = rng.randrange(len(pool))
            question = pool[i]
            pool[i] = pool[-1]
            pool.pop()
            draft.add(question, drawn=not forced)
            need -= 1
            if question.group is not None or draft.category_full(question.category):
                pool = [q for q in pool if draft.is_eligible(q)]

    def _shortage(
        self,
        draft: _PaperDraft,
        candidates: Sequence[Question],
        need: int,
        pool_name: str,
    ) -> None:
        """Raise the right error for an empty pool with demand left."""
        message = f"{pool_name} ran out with {need} question(s) still required"
        if self._shrunk_by_chance(draft, candidates):
            raise SamplingConflict(message)
        raise UnsatisfiableConstraint([message])

    @staticmethod
    def _shrunk_by_chance(draft: _PaperDraft, candidates: Sequence[Question]) -> bool:
        return any(draft.blocked_by_chance(q) for q in candidates if q.id not in draft.ids)

    def _overflow(self, draft: _PaperDraft, message: str) -> None:
        """Raise when the draft cannot meet a minimum within total_count."""
        if draft.overflow_by_chance():
            raise SamplingConflict(message)
        raise UnsatisfiableConstraint([f"{message} but the paper is already full"])
