"""
Paper Toolkit Core Package

Data models and the error taxonomy shared by the builder stages.
These models are the single source of truth for question, bank and
paper data; the builder only ever reorders references to them.
"""

from .errors import ExhaustedPool, GenerationError, InvalidBank, UnsatisfiableConstraint
from .models import (
    Batch,
    GenerationStats,
    Option,
    Paper,
    PaperItem,
    Question,
    QuestionBank,
    QuestionKind,
    load_bank,
)

__all__ = [
    "ExhaustedPool",
    "GenerationError",
    "InvalidBank",
    "UnsatisfiableConstraint",
    "Batch",
    "GenerationStats",
    "Option",
    "Paper",
    "PaperItem",
    "Question",
    "QuestionBank",
    "QuestionKind",
    "load_bank",
]
