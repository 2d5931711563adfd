"""
Module: builder.selection

Purpose:
    Question sampling for paper generation. Checks a constraint spec
    against the bank, estimates how many distinct papers exist, and
    draws constraint-satisfying question sets.

Key Functions:
    - sample_questions(): Draw one paper's question ids
    - check_feasibility(): Structural spec/bank checks
    - estimate_paper_space(): Count of distinguishable papers

Key Classes:
    - ConstraintSpec: Per-paper constraints
    - Sampler: Constrained sampler

Used By:
    - builder.controller: Batch orchestration
"""

from .config import ConstraintSpec
from .feasibility import check_feasibility, effective_availability, estimate_paper_space
from .sampler import Sampler, SamplingConflict, sample_questions

__all__ = [
    "ConstraintSpec",
    "check_feasibility",
    "effective_availability",
    "estimate_paper_space",
    "Sampler",
    "SamplingConflict",
    "sample_questions",
]
