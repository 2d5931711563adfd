"""
Module: builder.selection.config

Purpose:
    Constraint spec dataclass for the sampler.
    Immutable configuration with validation on construction.

Key Classes:
    - ConstraintSpec: How many questions per paper, and from where

Dependencies:
    - dataclasses (std)

Used By:
    - builder.selection.feasibility: Structural checks against a bank
    - builder.selection.sampler: Constrained sampling
    - builder.controller: Batch orchestration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from paper_toolkit.core.models.questions import Difficulty


@dataclass(frozen=True)
class ConstraintSpec:
    """
    Per-paper question constraints (immutable).

    Construction only rejects malformed values. Whether a well-formed
    spec can be met by a particular bank (minimums summing past the
    total, a category short of questions) is checked against the bank
    by check_feasibility() and reported as UnsatisfiableConstraint.

    Attributes:
        total_count: Exact number of questions per paper
        category_minimums: category -> least questions per paper
        category_maximums: category -> most questions per paper
            (categories not listed are capped only by total_count)
        difficulty_minimums: difficulty -> least questions per paper
        pinned_question_ids: Questions included in every paper

    Invariants:
        - total_count > 0
        - every minimum and maximum >= 0
        - category_maximums[c] >= category_minimums[c]

    Example:
        >>> spec = ConstraintSpec(total_count=2, category_minimums={"A": 1, "B": 1})
        >>> spec.maximum_for("A")
        2
    """

    total_count: int
    category_minimums: Mapping[str, int] = field(default_factory=dict)
    category_maximums: Mapping[str, int] = field(default_factory=dict)
    difficulty_minimums: Mapping[Difficulty, int] = field(default_factory=dict)
    pinned_question_ids: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if isinstance(self.total_count, bool) or not isinstance(self.total_count, int):
            raise ValueError(f"total_count must be an integer: {self.total_count!r}")
        if self.total_count <= 0:
            raise ValueError(f"total_count must be positive: {self.total_count}")

        for name in ("category_minimums", "category_maximums", "difficulty_minimums"):
            for key, value in getattr(self, name).items():
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError(f"{name}[{key!r}] must be an integer: {value!r}")
                if value < 0:
                    raise ValueError(f"{name}[{key!r}] must be non-negative: {value}")

        for category, maximum in self.category_maximums.items():
            minimum = self.category_minimums.get(category, 0)
            if maximum < minimum:
                raise ValueError(
                    f"category_maximums[{category!r}] ({maximum}) must be >= "
                    f"category_minimums[{category!r}] ({minimum})"
                )

        # Accept any iterable of ids
        if not isinstance(self.pinned_question_ids, tuple):
            object.__setattr__(self, "pinned_question_ids", tuple(self.pinned_question_ids))
        if len(set(self.pinned_question_ids)) != len(self.pinned_question_ids):
            raise ValueError(f"pinned_question_ids repeat an id: {self.pinned_question_ids}")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def minimum_total(self) -> int:
        """Sum of all category minimums."""
        return sum(self.category_minimums.values())

    def minimum_for(self, category: str) -> int:
        """Least questions of category per paper (0 if unconstrained)."""
        return self.category_minimums.get(category, 0)

    def maximum_for(self, category: str) -> int:
        """Most questions of category per paper (total_count if unconstrained)."""
        return min(self.category_maximums.get(category, self.total_count), self.total_count)

    def required_categories(self) -> Tuple[str, ...]:
        """Categories with a positive minimum, in sorted order."""
        return tuple(sorted(c for c, n in self.category_minimums.items() if n > 0))

    def required_difficulties(self) -> Tuple[Difficulty, ...]:
        """Difficulties with a positive minimum, in a stable order."""
        return tuple(sorted(
            (d for d, n in self.difficulty_minimums.items() if n > 0),
            key=lambda d: (isinstance(d, str), d),
        ))

    @property
    def pinned_set(self) -> frozenset:
        """Pinned question ids as a set for efficient lookup."""
        return frozenset(self.pinned_question_ids)

    def describe(self) -> Dict[str, object]:
        """Plain-dict summary for logging."""
        summary: Dict[str, object] = {"total_count": self.total_count}
        if self.category_minimums:
            summary["category_minimums"] = dict(self.category_minimums)
        if self.category_maximums:
            summary["category_maximums"] = dict(self.category_maximums)
        if self.difficulty_minimums:
            summary["difficulty_minimums"] = dict(self.difficulty_minimums)
        if self.pinned_question_ids:
            summary["pinned_question_ids"] = list(self.pinned_question_ids)
        return summary
