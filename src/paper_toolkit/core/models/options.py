"""
Module: options

Purpose:
    Provides the Option dataclass - one answer choice of a
    multiple-choice question. Correctness travels with the option's
    identity, never with its position, so shuffled papers stay scorable.

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.questions.Question
    - builder.shuffling.shuffler
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Option:
    """
    Multiple-choice option (immutable).

    Attributes:
        id: Stable identifier, unique within its question
        text: Opaque option text (never compared by the engine)
        is_correct: Whether choosing this option is a correct answer

    Example:
        >>> opt = Option("o1", "Paris", is_correct=True)
        >>> opt.is_correct
        True
    """

    id: str
    text: str = ""
    is_correct: bool = False

    def __post_init__(self) -> None:
        """Validate option on construction."""
        if not self.id:
            raise ValueError("Option id must be a non-empty string")

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {"id": self.id, "text": self.text, "is_correct": self.is_correct}

    @classmethod
    def from_dict(cls, data: dict) -> Option:
        """Deserialize from dictionary."""
        return cls(
            id=str(data["id"]),
            text=data.get("text", ""),
            is_correct=bool(data.get("is_correct", False)),
        )
