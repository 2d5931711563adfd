"""
Module: builder.config

Purpose:
    Run-policy configuration for batch generation: seeding, worker
    count and the bounds that stop an unproductive retry loop.
    Immutable configuration with validation on construction.

Key Classes:
    - GeneratorConfig: Main configuration for generate()

Dependencies:
    - dataclasses (std)

Used By:
    - builder.controller: Batch orchestration
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeneratorConfig:
    """
    Configuration for batch generation (immutable).

    The retry budget bounds *consecutive* rejected attempts (exact
    duplicates and sampler conflicts); every accepted paper resets the
    count. Unless fixed with max_consecutive_rejections it is derived
    from the estimated paper space S and the requested count N:

        budget = clamp(ceil(rejection_factor * S / (S - N + 1)),
                       min_rejection_budget, max_rejection_budget)

    S / (S - N + 1) is the expected number of draws needed to find the
    last new paper when draws are uniform, so a large space keeps the
    budget at its floor while a nearly exhausted one raises it.

    Attributes:
        seed: Master seed; None draws one from the OS and logs it
        workers: Worker threads (reproducible only with 1)
        max_consecutive_rejections: Fixed budget overriding the formula
        rejection_factor: Multiplier in the budget formula
        min_rejection_budget: Floor of the derived budget
        max_rejection_budget: Ceiling of the derived budget
        max_attempts: Optional cap on total attempts
        deadline_seconds: Optional wall-clock bound

    Example:
        >>> config = GeneratorConfig(seed=7)
        >>> config.rejection_budget(space=10**6, count=30)
        64
    """

    seed: Optional[int] = None
    workers: int = 1

    max_consecutive_rejections: Optional[int] = None
    rejection_factor: int = 20
    min_rejection_budget: int = 64
    max_rejection_budget: int = 100_000

    max_attempts: Optional[int] = None
    deadline_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1: {self.workers}")
        if self.max_consecutive_rejections is not None and self.max_consecutive_rejections < 0:
            raise ValueError(
                f"max_consecutive_rejections must be non-negative: "
                f"{self.max_consecutive_rejections}"
            )
        if self.rejection_factor <= 0:
            raise ValueError(f"rejection_factor must be positive: {self.rejection_factor}")
        if self.min_rejection_budget < 0:
            raise ValueError(
                f"min_rejection_budget must be non-negative: {self.min_rejection_budget}"
            )
        if self.max_rejection_budget < self.min_rejection_budget:
            raise ValueError(
                f"max_rejection_budget ({self.max_rejection_budget}) must be >= "
                f"min_rejection_budget ({self.min_rejection_budget})"
            )
        if self.max_attempts is not None and self.max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive: {self.max_attempts}")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError(f"deadline_seconds must be positive: {self.deadline_seconds}")

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_parallel(self) -> bool:
        """True if more than one worker is configured."""
        return self.workers > 1

    def rejection_budget(self, space: int, count: int) -> int:
        """
        Consecutive rejections allowed for a run.

        Args:
            space: Estimated number of distinguishable papers
            count: Requested number of papers

        Returns:
            Budget (explicit value if configured, else the formula)
        """
        if self.max_consecutive_rejections is not None:
            return self.max_consecutive_rejections
        spare = max(1, space - count + 1)
        # Integer ceiling division; space can be far larger than a float holds
        derived = -(-self.rejection_factor * space // spare)
        return max(self.min_rejection_budget, min(self.max_rejection_budget, derived))
