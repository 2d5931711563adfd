"""
Module: questions

Purpose:
    Provides the Question dataclass - one entry of the question bank.
    Carries category/difficulty tags used by the sampler and, for
    multiple-choice questions, the ordered tuple of options.

Key Functions:
    - Question.correct_option_ids: Ids of options marked correct
    - Question.get_option(option_id): Find an option by id
    - Question.to_dict() / Question.from_dict(): Loader hand-off

Dependencies:
    - dataclasses (std)
    - functools (std)
    - .options.Option

Used By:
    - core.models.bank.QuestionBank
    - builder.selection.sampler
    - builder.shuffling.shuffler
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Optional, Tuple, Union

from .options import Option

Difficulty = Union[int, str]


class QuestionKind(str, Enum):
    """Presentation kind of a question."""
    OPEN_ENDED = "open-ended"
    MULTIPLE_CHOICE = "multiple-choice"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Question:
    """
    Bank question (immutable).

    Structural checks that need the whole option list (at least two
    options, at least one correct) are done by load_bank() so every
    defect in a bank is reported at once.

    Attributes:
        id: Stable unique identifier like "q17"
        category: Category tag used for per-paper quotas
        prompt: Opaque question text
        kind: OPEN_ENDED or MULTIPLE_CHOICE
        options: Ordered options (multiple-choice only)
        difficulty: Optional ordered level (int) or tag (str)
        group: Optional exclusion group; at most one question of a
            group appears in any single paper

    Example:
        >>> q = Question(
        ...     id="q1",
        ...     category="algebra",
        ...     prompt="2 + 2 = ?",
        ...     kind=QuestionKind.MULTIPLE_CHOICE,
        ...     options=(Option("a", "4", True), Option("b", "5")),
        ... )
        >>> q.correct_option_ids
        ('a',)
    """

    id: str
    category: str
    prompt: str = ""
    kind: QuestionKind = QuestionKind.OPEN_ENDED
    options: Tuple[Option, ...] = ()
    difficulty: Optional[Difficulty] = None
    group: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate question on construction."""
        if not self.id:
            raise ValueError("Question id must be a non-empty string")
        if not self.category:
            raise ValueError(f"Question {self.id!r} has no category")
        if not isinstance(self.kind, QuestionKind):
            raise ValueError(f"Invalid question kind for {self.id!r}: {self.kind!r}")
        if self.kind is QuestionKind.OPEN_ENDED and self.options:
            raise ValueError(f"Open-ended question {self.id!r} cannot carry options")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_multiple_choice(self) -> bool:
        """True for multiple-choice questions."""
        return self.kind is QuestionKind.MULTIPLE_CHOICE

    @cached_property
    def option_ids(self) -> Tuple[str, ...]:
        """Option ids in bank (authoring) order."""
        return tuple(opt.id for opt in self.options)

    @cached_property
    def correct_option_ids(self) -> Tuple[str, ...]:
        """Ids of options marked correct, in bank order."""
        return tuple(opt.id for opt in self.options if opt.is_correct)

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def get_option(self, option_id: str) -> Optional[Option]:
        """
        Find an option by id.

        Args:
            option_id: Option id to look up

        Returns:
            Matching Option or None
        """
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """
        Serialize to dictionary.

        Returns:
            Dict representation (options omitted for open-ended questions)
        """
        d = {
            "id": self.id,
            "category": self.category,
            "prompt": self.prompt,
            "kind": self.kind.value,
        }
        if self.options:
            d["options"] = [opt.to_dict() for opt in self.options]
        if self.difficulty is not None:
            d["difficulty"] = self.difficulty
        if self.group is not None:
            d["group"] = self.group
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        """
        Deserialize from dictionary.

        Args:
            data: Dict representation, as produced by an external loader

        Returns:
            Question instance

        Raises:
            ValueError: If kind is not a recognised QuestionKind value
        """
        return cls(
            id=str(data["id"]),
            category=str(data["category"]),
            prompt=data.get("prompt", ""),
            kind=QuestionKind(data.get("kind", QuestionKind.OPEN_ENDED.value)),
            options=tuple(Option.from_dict(o) for o in data.get("options", [])),
            difficulty=data.get("difficulty"),
            group=data.get("group"),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return (
            f"Question({self.id!r}, category={self.category!r}, "
            f"kind={self.kind.value}, options={len(self.options)})"
        )
