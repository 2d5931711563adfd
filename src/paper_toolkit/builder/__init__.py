"""
Paper Builder Package

Generates batches of pairwise-distinct exam papers from a validated
question bank.

Main entry point:
    from paper_toolkit.builder import generate, ConstraintSpec, GeneratorConfig

    spec = ConstraintSpec(total_count=10, category_minimums={"algebra": 3})
    batch = generate(bank, spec, 30, seed=42)

Stages:
    - selection: feasibility checks, paper space estimate, sampler
    - shuffling: question and option order randomization
    - distinctness: batch-wide duplicate index
    - controller: retry loop and worker orchestration
    - diagnostics: answer-position balance report
"""

from .config import GeneratorConfig
from .controller import BatchOrchestrator, OrchestratorState, derive_worker_seed, generate
from .diagnostics import (
    AnswerPositionReport,
    PositionBalance,
    answer_position_report,
    chi_square_uniform,
    position_counts,
)
from .distinctness import DistinctnessEnforcer
from .selection import (
    ConstraintSpec,
    Sampler,
    check_feasibility,
    estimate_paper_space,
    sample_questions,
)
from .shuffling import shuffle_options, shuffle_paper

__all__ = [
    "GeneratorConfig",
    "BatchOrchestrator",
    "OrchestratorState",
    "derive_worker_seed",
    "generate",
    "AnswerPositionReport",
    "PositionBalance",
    "answer_position_report",
    "chi_square_uniform",
    "position_counts",
    "DistinctnessEnforcer",
    "ConstraintSpec",
    "Sampler",
    "check_feasibility",
    "estimate_paper_space",
    "sample_questions",
    "shuffle_options",
    "shuffle_paper",
]
