"""
Module: builder.distinctness.enforcer

Purpose:
    Accept or reject candidate papers so that every paper in a batch is
    pairwise distinct. Two papers are equal iff their question-id
    sequences match element-wise and every multiple-choice option order
    matches element-wise; same questions in the same order with a
    different option shuffle are distinct.

Key Classes:
    - DistinctnessEnforcer: Thread-safe duplicate index

Dependencies:
    - threading (std): Lock around insert-if-absent
    - core.models: QuestionBank, Paper

Used By:
    - builder.controller: Shared by every generation worker

Design Notes:
    Lookups hash a key made of the bank's interned integer ids rather
    than comparing papers pairwise, so each check is O(paper length)
    regardless of batch size. The lock is held only for the
    check-and-insert itself.
"""

from __future__ import annotations

import logging
from collections import Counter
from threading import Lock
from typing import FrozenSet, List, Optional, Set, Tuple

from paper_toolkit.core.models.bank import QuestionBank
from paper_toolkit.core.models.papers import Paper

logger = logging.getLogger(__name__)

PaperKey = Tuple[Tuple[int, ...], ...]


class DistinctnessEnforcer:
    """
    Duplicate index for one batch.

    Example:
        >>> enforcer = DistinctnessEnforcer(bank, capacity=2)
        >>> enforcer.try_accept(paper_a)
        0
        >>> enforcer.try_accept(paper_a) is None
        True
    """

    def __init__(
        self,
        bank: QuestionBank,
        capacity: Optional[int] = None,
        reference: Optional[Paper] = None,
    ) -> None:
        """
        Args:
            bank: Bank the candidate papers are drawn from
            capacity: Stop accepting once this many papers are held
            reference: Canonical paper that no accepted paper may equal;
                it is indexed but never part of the batch
        """
        if capacity is not None and capacity < 0:
            raise ValueError(f"capacity must be non-negative: {capacity}")
        self._bank = bank
        self._capacity = capacity
        self._keys: Set[PaperKey] = set()
        self._accepted: List[Paper] = []
        self._fingerprints: Counter = Counter()
        self._lock = Lock()

        self.duplicates = 0
        self.reference_hits = 0
        self.reordered_accepts = 0

        self._reference_key: Optional[PaperKey] = None
        if reference is not None:
            self._reference_key = self.paper_key(reference)
            self._keys.add(self._reference_key)

    # ─────────────────────────────────────────────────────────────────────────
    # Keys
    # ─────────────────────────────────────────────────────────────────────────

    def paper_key(self, paper: Paper) -> PaperKey:
        """
        Canonical hash key of a paper's full presentation.

        Each item becomes (question handle, option handle, ...) using
        the bank's interned integer ids, in presented order.

        Raises:
            KeyError: If the paper references ids unknown to the bank
        """
        bank = self._bank
        return tuple(
            (bank.index_of(item.question_id),)
            + tuple(bank.option_index(item.question_id, oid) for oid in item.option_order)
            for item in paper.items
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def is_duplicate(self, paper: Paper) -> bool:
        """True if paper equals an accepted paper or the reference."""
        key = self.paper_key(paper)
        with self._lock:
            return key in self._keys

    @property
    def accepted(self) -> Tuple[Paper, ...]:
        """Accepted papers in acceptance order."""
        with self._lock:
            return tuple(self._accepted)

    @property
    def accepted_count(self) -> int:
        with self._lock:
            return len(self._accepted)

    @property
    def is_full(self) -> bool:
        """True once capacity papers are held."""
        with self._lock:
            return self._is_full_locked()

    @property
    def distinct_fingerprints(self) -> int:
        """Distinct question sets among accepted papers."""
        with self._lock:
            return len(self._fingerprints)

    def fingerprint_count(self, fingerprint: FrozenSet[str]) -> int:
        """How many accepted papers share a question set."""
        with self._lock:
            return self._fingerprints[fingerprint]

    def _is_full_locked(self) -> bool:
        return self._capacity is not None and len(self._accepted) >= self._capacity

    # ─────────────────────────────────────────────────────────────────────────
    # Acceptance
    # ─────────────────────────────────────────────────────────────────────────

    def try_accept(self, paper: Paper) -> Optional[int]:
        """
        Insert paper if absent.

        Args:
            paper: Candidate paper

        Returns:
            Acceptance index (0-based) or None if the paper is a
            duplicate or the enforcer is already full
        """
        key = self.paper_key(paper)
        with self._lock:
            if self._is_full_locked():
                return None
            if key in self._keys:
                self.duplicates += 1
                if key == self._reference_key:
                    self.reference_hits += 1
                logger.debug(f"Rejected duplicate paper {paper!r}")
                return None

            self._keys.add(key)
            index = len(self._accepted)
            self._accepted.append(paper)
            if self._fingerprints[paper.fingerprint]:
                self.reordered_accepts += 1
                logger.debug(f"Accepted paper {index}: known question set, new presentation")
            else:
                logger.debug(f"Accepted paper {index}: new question set")
            self._fingerprints[paper.fingerprint] += 1
            return index

    def __len__(self) -> int:
        return self.accepted_count
