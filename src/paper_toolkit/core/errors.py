"""
Module: core.errors

Purpose:
    Error taxonomy for paper generation. Every fatal condition surfaced
    to callers derives from GenerationError so a single except clause
    can catch the whole family.

Key Classes:
    - GenerationError: Base class for all fatal generation errors
    - InvalidBank: Structural problem in the question data (load time)
    - UnsatisfiableConstraint: Constraint spec cannot be met by the bank
    - ExhaustedPool: Requested number of distinct papers not reachable

Used By:
    - core.models.bank: load_bank
    - builder.selection: feasibility checks and sampler
    - builder.controller: batch orchestration
"""

from __future__ import annotations

from typing import Iterable, Optional


class GenerationError(Exception):
    """Base class for fatal paper generation errors."""
    pass


class InvalidBank(GenerationError):
    """
    Question data failed structural validation.

    Raised by load_bank() for duplicate question ids, multiple-choice
    questions with fewer than two options or no correct option, and
    repeated option ids. All problems found are reported together.

    Attributes:
        problems: One human-readable line per defect
    """

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = tuple(problems)
        summary = "; ".join(self.problems) if self.problems else "unknown problem"
        super().__init__(f"Invalid question bank: {summary}")


class UnsatisfiableConstraint(GenerationError):
    """
    Constraint spec cannot be met by the given bank.

    Structural: no amount of retrying fixes it, so it propagates out
    of generate() immediately and is never silently relaxed.

    Attributes:
        reasons: One human-readable line per violated requirement
    """

    def __init__(self, reasons: Iterable[str]) -> None:
        self.reasons = tuple(reasons)
        summary = "; ".join(self.reasons) if self.reasons else "unknown reason"
        super().__init__(f"Unsatisfiable constraint: {summary}")


class ExhaustedPool(GenerationError):
    """
    The requested number of pairwise-distinct papers could not be produced.

    Recoverable only by the caller: request fewer papers, loosen the
    constraint spec or enlarge the bank. No partial batch is attached.

    Attributes:
        requested: Number of papers requested
        accepted: Number of distinct papers found before giving up
        attempts: Total sampling attempts made
        reason: Which bound stopped the run
    """

    def __init__(
        self,
        requested: int,
        accepted: int,
        attempts: int,
        reason: str,
        space: Optional[int] = None,
    ) -> None:
        self.requested = requested
        self.accepted = accepted
        self.attempts = attempts
        self.reason = reason
        self.space = space
        message = (
            f"Could not produce {requested} distinct papers "
            f"(accepted {accepted} after {attempts} attempts): {reason}"
        )
        super().__init__(message)
