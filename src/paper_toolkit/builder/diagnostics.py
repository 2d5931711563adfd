"""
Module: builder.diagnostics

Purpose:
    Anti-cheating diagnostics for a generated batch. Measures how evenly
    correct answers are spread over option positions (a batch whose
    answers cluster on position 1 leaks information) and how many
    papers share a question set.

Key Functions:
    - answer_position_report(): Position balance report for a batch
    - position_counts(): Correct-answer position counts per option count
    - chi_square_uniform(): Pearson chi-square against uniform

Key Classes:
    - AnswerPositionReport: Immutable report
    - PositionBalance: Per option-count statistics

Dependencies:
    - numpy: Count vectors and chi-square arithmetic
    - scipy.stats: Chi-square survival function for p-values

Used By:
    - Callers inspecting a Batch before distribution
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

import numpy as np
from scipy import stats

from paper_toolkit.core.models.bank import QuestionBank
from paper_toolkit.core.models.papers import Batch, Paper

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Chi-square
# ─────────────────────────────────────────────────────────────────────────────

def chi_square_uniform(observed: np.ndarray) -> Tuple[float, int, float]:
    """
    Pearson chi-square test of counts against a uniform distribution.

    Args:
        observed: 1-D array of non-negative counts

    Returns:
        (statistic, degrees of freedom, p-value); p-value is 1.0 when
        there is nothing to test

    Example:
        >>> stat, df, p = chi_square_uniform(np.array([25, 25, 25, 25]))
        >>> stat, df, p
        (0.0, 3, 1.0)
    """
    observed = np.asarray(observed, dtype=float)
    if observed.ndim != 1:
        raise ValueError(f"observed must be 1-D, got shape {observed.shape}")
    df = observed.size - 1
    n = observed.sum()
    if df < 1 or n <= 0:
        return 0.0, max(df, 0), 1.0
    expected = np.full(observed.size, n / observed.size)
    statistic = float(np.sum((observed - expected) ** 2 / expected))
    p_value = float(stats.chi2.sf(statistic, df))
    return statistic, df, p_value


# ─────────────────────────────────────────────────────────────────────────────
# Position Balance
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PositionBalance:
    """
    Correct-answer position statistics for questions with k options.

    Attributes:
        option_count: k
        counts: Correct answers seen at positions 1..k
        chi_square: Pearson statistic against uniform
        degrees_of_freedom: k - 1
        p_value: Probability of a spread at least this uneven by chance
    """

    option_count: int
    counts: Tuple[int, ...]
    chi_square: float
    degrees_of_freedom: int
    p_value: float

    @property
    def total(self) -> int:
        return sum(self.counts)

    def is_balanced(self, alpha: float = 0.01) -> bool:
        """True unless uniformity is rejected at significance alpha."""
        return self.p_value >= alpha


@dataclass(frozen=True)
class AnswerPositionReport:
    """
    Batch-level anti-cheating report.

    Attributes:
        paper_count: Papers analysed
        balances: Per option-count position statistics
        shared_set_fraction: Fraction of papers whose question set also
            appears on another paper
    """

    paper_count: int
    balances: Tuple[PositionBalance, ...]
    shared_set_fraction: float

    def balance_for(self, option_count: int) -> PositionBalance:
        """Statistics for questions with option_count options."""
        for balance in self.balances:
            if balance.option_count == option_count:
                return balance
        raise KeyError(option_count)

    def is_balanced(self, alpha: float = 0.01) -> bool:
        return all(b.is_balanced(alpha) for b in self.balances)


def position_counts(papers: Iterable[Paper], bank: QuestionBank) -> Dict[int, np.ndarray]:
    """
    Count correct-answer positions across papers.

    Questions are grouped by option count so that positions are
    comparable. A question with several correct options contributes
    one count per correct option.

    Args:
        papers: Papers to analyse
        bank: Bank the papers were generated from

    Returns:
        option count k -> int array of length k (index 0 = position 1)
    """
    counts: Dict[int, np.ndarray] = {}
    for paper in papers:
        for item, positions in zip(paper.items, paper.correct_positions(bank)):
            k = len(item.option_order)
            if not k:
                continue
            vector = counts.setdefault(k, np.zeros(k, dtype=np.int64))
            for pos in positions:
                vector[pos - 1] += 1
    return counts


def answer_position_report(batch: Batch, bank: QuestionBank) -> AnswerPositionReport:
    """
    Build the anti-cheating report for a batch.

    Args:
        batch: Generated batch
        bank: Bank the batch was generated from

    Returns:
        AnswerPositionReport
    """
    balances = []
    for k, vector in sorted(position_counts(batch.papers, bank).items()):
        statistic, df, p_value = chi_square_uniform(vector)
        balances.append(PositionBalance(
            option_count=k,
            counts=tuple(int(c) for c in vector),
            chi_square=statistic,
            degrees_of_freedom=df,
            p_value=p_value,
        ))

    fingerprints = Counter(paper.fingerprint for paper in batch.papers)
    shared = sum(n for n in fingerprints.values() if n > 1)
    fraction = shared / len(batch) if len(batch) else 0.0

    report = AnswerPositionReport(
        paper_count=len(batch),
        balances=tuple(balances),
        shared_set_fraction=fraction,
    )
    for balance in report.balances:
        if not balance.is_balanced():
            logger.warning(
                f"Correct answers unevenly spread over {balance.option_count} positions: "
                f"{list(balance.counts)} (p={balance.p_value:.4f})"
            )
    return report
