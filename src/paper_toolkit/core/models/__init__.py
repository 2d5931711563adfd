"""
Core Models Package

Immutable, validated data models shared by every builder stage.

All question and paper models are frozen dataclasses. This ensures:
1. No accidental mutation of bank data during shuffling
2. Safe to share between worker threads
3. Papers can be used as dict keys or in sets
"""

from .options import Option
from .questions import Question, QuestionKind
from .bank import QuestionBank, load_bank
from .papers import Batch, GenerationStats, Paper, PaperItem

__all__ = [
    "Option",
    "Question",
    "QuestionKind",
    "QuestionBank",
    "load_bank",
    "Batch",
    "GenerationStats",
    "Paper",
    "PaperItem",
]
