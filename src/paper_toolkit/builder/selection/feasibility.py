"""
Module: builder.selection.feasibility

Purpose:
    Structural checks of a ConstraintSpec against a QuestionBank, and
    an estimate of how many distinguishable papers the pairing allows.
    Both run before any sampling so that spec/bank mismatches surface as
    UnsatisfiableConstraint and impossible batch sizes fail fast.

Key Functions:
    - check_feasibility(): Raise UnsatisfiableConstraint listing every problem
    - estimate_paper_space(): Count of distinguishable papers (upper bound)
    - effective_availability(): Questions usable per category under groups

Dependencies:
    - math (std)
    - core.errors.UnsatisfiableConstraint
    - core.models: QuestionBank, Question

Used By:
    - builder.controller: Pre-flight before the generation loop

Counting:
    A paper is distinguished by which questions it holds, their order,
    and each multiple-choice question's option order. For a question
    set Q of size n the number of presentations is
        n! * prod(len(q.options)! for q in Q if q is multiple-choice)
    Summing over every constraint-satisfying Q is done per category
    with elementary symmetric polynomials of the per-question option
    factorials, then convolved across categories. Group exclusions and
    difficulty minimums are not modelled, so with either present the
    result is an upper bound.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence

from paper_toolkit.core.errors import UnsatisfiableConstraint
from paper_toolkit.core.models.bank import QuestionBank
from paper_toolkit.core.models.questions import Question

from .config import ConstraintSpec

logger = logging.getLogger(__name__)


def _presentation_weight(question: Question) -> int:
    """Number of distinct option orders of a question."""
    if question.is_multiple_choice:
        return math.factorial(len(question.options))
    return 1


def _excluded_by_pins(bank: QuestionBank, spec: ConstraintSpec) -> set:
    """Ids that can never appear because a pinned question holds their group."""
    excluded = set()
    for qid in spec.pinned_question_ids:
        question = bank.get(qid)
        if question is None or question.group is None:
            continue
        for member in bank.questions_in_group(question.group):
            if member.id != qid:
                excluded.add(member.id)
    return excluded


def _slot_count(questions: Sequence[Question]) -> int:
    """Questions usable together: each group contributes at most one."""
    groups = {q.group for q in questions if q.group is not None}
    return sum(1 for q in questions if q.group is None) + len(groups)


def effective_availability(bank: QuestionBank, spec: ConstraintSpec) -> Dict[str, int]:
    """
    Most questions of each category one paper could hold.

    Counts each exclusion group once and drops questions locked out by a
    pinned question's group. Category maximums are not applied.

    Args:
        bank: Question bank
        spec: Constraint spec (for pinned ids)

    Returns:
        category -> usable question count
    """
    excluded = _excluded_by_pins(bank, spec)
    return {
        category: _slot_count([
            q for q in bank.questions_by_category(category) if q.id not in excluded
        ])
        for category in bank.categories
    }


def check_feasibility(bank: QuestionBank, spec: ConstraintSpec) -> None:
    """
    Verify a spec can be met by a bank, before any sampling.

    Args:
        bank: Question bank
        spec: Constraint spec

    Raises:
        UnsatisfiableConstraint: Listing every structural problem found:
            - sum of category minimums exceeds total_count
            - a category minimum exceeds that category's usable questions
            - a pinned id is unknown, pinned ids share a group, or pinned
              ids alone exceed total_count or a category maximum
            - required categories share groups, so their minimums
              cannot be met together
            - a difficulty minimum exceeds usable questions of that level,
              or the slots category minimums leave for it
            - the bank cannot fill total_count under the maximums
    """
    reasons: List[str] = []

    if spec.minimum_total > spec.total_count:
        reasons.append(
            f"category minimums sum to {spec.minimum_total}, "
            f"exceeding total_count {spec.total_count}"
        )

    # Pinned questions
    pinned = [bank.get(qid) for qid in spec.pinned_question_ids]
    for qid, question in zip(spec.pinned_question_ids, pinned):
        if question is None:
            reasons.append(f"pinned question {qid!r} is not in the bank")
    pinned = [q for q in pinned if q is not None]
    if len(spec.pinned_question_ids) > spec.total_count:
        reasons.append(
            f"{len(spec.pinned_question_ids)} pinned questions exceed "
            f"total_count {spec.total_count}"
        )
    pinned_groups: Dict[str, str] = {}
    pinned_per_category: Dict[str, int] = {}
    for q in pinned:
        pinned_per_category[q.category] = pinned_per_category.get(q.category, 0) + 1
        if q.group is None:
            continue
        if q.group in pinned_groups:
            reasons.append(
                f"pinned questions {pinned_groups[q.group]!r} and {q.id!r} "
                f"share group {q.group!r}"
            )
        else:
            pinned_groups[q.group] = q.id
    for category, count in sorted(pinned_per_category.items()):
        if count > spec.maximum_for(category):
            reasons.append(
                f"{count} pinned questions in category {category!r} exceed "
                f"its maximum {spec.maximum_for(category)}"
            )

    # Category minimums
    available = effective_availability(bank, spec)
    for category in spec.required_categories():
        minimum = spec.minimum_for(category)
        have = available.get(category, 0)
        if minimum > have:
            reasons.append(
                f"category {category!r} needs {minimum} questions "
                f"but only {have} are available"
            )

    # Groups spanning required categories
    excluded = _excluded_by_pins(bank, spec)
    required = spec.required_categories()
    if len(required) > 1:
        joint = _slot_count([
            q for c in required for q in bank.questions_by_category(c) if q.id not in excluded
        ])
        if spec.minimum_total > joint:
            reasons.append(
                f"category minimums need {spec.minimum_total} questions together "
                f"but shared groups leave only {joint}"
            )

    # Difficulty minimums
    difficulty_total = sum(spec.difficulty_minimums.values())
    if difficulty_total > spec.total_count:
        reasons.append(
            f"difficulty minimums sum to {difficulty_total}, "
            f"exceeding total_count {spec.total_count}"
        )
    for difficulty in spec.required_difficulties():
        minimum = spec.difficulty_minimums[difficulty]
        have = _slot_count([
            q for q in bank.questions_by_difficulty(difficulty) if q.id not in excluded
        ])
        if minimum > have:
            reasons.append(
                f"difficulty {difficulty!r} needs {minimum} questions "
                f"but only {have} are available"
            )
            continue

        # Slots left over once category minimums take theirs
        room = max(0, spec.total_count - spec.minimum_total) + sum(
            min(spec.minimum_for(c), _slot_count([
                q for q in bank.questions_by_category(c)
                if q.difficulty == difficulty and q.id not in excluded
            ]))
            for c in required
        )
        if minimum > room:
            reasons.append(
                f"difficulty {difficulty!r} needs {minimum} questions "
                f"but category minimums leave room for only {room}"
            )

    # Overall capacity under maximums
    capacity = sum(
        min(spec.maximum_for(category), have) for category, have in available.items()
    )
    overall = _slot_count([q for q in bank if q.id not in excluded])
    if min(capacity, overall) < spec.total_count:
        reasons.append(
            f"bank can supply at most {min(capacity, overall)} questions per paper "
            f"under the constraints, total_count is {spec.total_count}"
        )

    if reasons:
        logger.warning(f"Constraint spec rejected: {len(reasons)} problem(s)")
        raise UnsatisfiableConstraint(reasons)


def _elementary_symmetric(weights: Sequence[int], limit: int) -> List[int]:
    """
    Elementary symmetric polynomials e_0..e_limit of integer weights.

    e_k is the sum over all k-subsets of the product of their weights.
    """
    e = [1] + [0] * limit
    for w in weights:
        for k in range(limit, 0, -1):
            e[k] += e[k - 1] * w
    return e


def estimate_paper_space(bank: QuestionBank, spec: ConstraintSpec) -> int:
    """
    Number of distinguishable papers the bank and spec allow.

    Exact when the bank has no multi-member exclusion groups and the constraint
    spec has no difficulty minimums; an upper bound otherwise. Callers should
    run check_feasibility() first; an infeasible pairing returns 0.

    Args:
        bank: Question bank
        spec: Constraint spec

    Returns:
        Count of distinct (question order, option orders) presentations
    """
    total = spec.total_count
    pinned = spec.pinned_set
    excluded = _excluded_by_pins(bank, spec)

    # ways[n]: weighted number of ways to choose n questions so far
    ways = [1] + [0] * total
    pinned_weight = 1
    for category in bank.categories:
        members = [q for q in bank.questions_by_category(category) if q.id not in excluded]
        fixed = [q for q in members if q.id in pinned]
        free = [q for q in members if q.id not in pinned]
        for q in fixed:
            pinned_weight *= _presentation_weight(q)

        lower = max(spec.minimum_for(category), len(fixed))
        upper = spec.maximum_for(category)
        if lower > upper:
            return 0

        e = _elementary_symmetric([_presentation_weight(q) for q in free], min(len(free), total))
        # poly[k]: weighted ways for this category to contribute k questions
        poly = [0] * (total + 1)
        for k in range(lower, upper + 1):
            j = k - len(fixed)
            if 0 <= j < len(e):
                poly[k] = e[j]

        combined = [0] * (total + 1)
        for a, wa in enumerate(ways):
            if not wa:
                continue
            for b in range(0, total + 1 - a):
                if poly[b]:
                    combined[a + b] += wa * poly[b]
        ways = combined

    # Required categories absent from the bank
    for category in spec.required_categories():
        if not bank.questions_by_category(category):
            return 0

    return ways[total] * pinned_weight * math.factorial(total)
