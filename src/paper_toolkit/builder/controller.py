"""
Module: builder.controller

Purpose:
    Orchestrate batch generation.
    Check → Estimate → (Sample → Shuffle → Enforce)* → Batch

Key Functions:
    - generate(): Main entry point for generating a batch of papers
    - derive_worker_seed(): Independent per-worker seed from a master seed

Key Classes:
    - BatchOrchestrator: Drives the retry loop over one or more workers
    - OrchestratorState: Per-worker state machine states

Dependencies:
    - concurrent.futures (std): Parallel workers
    - threading (std): Shared counters and stop signal
    - builder.selection: Feasibility, space estimate, sampler
    - builder.shuffling: Paper shuffling
    - builder.distinctness: Duplicate index

Used By:
    - paper_toolkit: Public generate()
"""

from __future__ import annotations

import hashlib
import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from enum import Enum
from threading import Event, Lock
from typing import Callable, Dict, FrozenSet, List, Optional

from paper_toolkit.core.errors import ExhaustedPool, GenerationError
from paper_toolkit.core.models.bank import QuestionBank
from paper_toolkit.core.models.papers import Batch, GenerationStats, Paper

from .config import GeneratorConfig
from .distinctness import DistinctnessEnforcer
from .selection import (
    ConstraintSpec,
    Sampler,
    SamplingConflict,
    check_feasibility,
    estimate_paper_space,
)
from .shuffling import shuffle_paper

logger = logging.getLogger(__name__)


class OrchestratorState(str, Enum):
    """States of one generation worker."""
    IDLE = "idle"
    SAMPLING = "sampling"
    SHUFFLING = "shuffling"
    CHECKING = "checking"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    DONE = "done"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (OrchestratorState.DONE, OrchestratorState.FAILED)


_S = OrchestratorState
_TRANSITIONS: Dict[OrchestratorState, FrozenSet[OrchestratorState]] = {
    _S.IDLE: frozenset({_S.SAMPLING, _S.DONE, _S.FAILED}),
    _S.SAMPLING: frozenset({_S.SHUFFLING, _S.REJECTED, _S.FAILED}),
    _S.SHUFFLING: frozenset({_S.CHECKING, _S.FAILED}),
    _S.CHECKING: frozenset({_S.ACCEPTED, _S.REJECTED, _S.DONE, _S.FAILED}),
    _S.ACCEPTED: frozenset({_S.SAMPLING, _S.DONE, _S.FAILED}),
    _S.REJECTED: frozenset({_S.SAMPLING, _S.DONE, _S.FAILED}),
    _S.DONE: frozenset(),
    _S.FAILED: frozenset(),
}

TransitionHook = Callable[[int, OrchestratorState, OrchestratorState], None]


def derive_worker_seed(master_seed: int, worker_index: int) -> int:
    """
    Deterministic, well-separated seed for one worker.

    Args:
        master_seed: Run seed
        worker_index: 0-based worker number

    Returns:
        64-bit seed

    Example:
        >>> derive_worker_seed(42, 0) == derive_worker_seed(42, 0)
        True
        >>> derive_worker_seed(42, 0) == derive_worker_seed(42, 1)
        False
    """
    digest = hashlib.sha256(f"{master_seed}:{worker_index}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def generate(
    bank: QuestionBank,
    spec: ConstraintSpec,
    requested_count: int,
    seed: Optional[int] = None,
    *,
    config: Optional[GeneratorConfig] = None,
    reference: Optional[Paper] = None,
) -> Batch:
    """
    Generate a batch of pairwise-distinct papers.

    Args:
        bank: Validated question bank (see load_bank)
        spec: Per-paper constraints
        requested_count: Number of papers (students)
        seed: Master seed; overrides config.seed when given
        config: Run policy (workers, retry budget, deadline)
        reference: Canonical paper no generated paper may equal

    Returns:
        Batch with exactly requested_count papers in acceptance order

    Raises:
        ValueError: If requested_count is not a positive integer
        UnsatisfiableConstraint: Spec cannot be met by the bank
        ExhaustedPool: Distinct papers ran out within the retry budget,
            attempt cap or deadline; no partial batch is returned

    Example:
        >>> batch = generate(bank, ConstraintSpec(total_count=10), 30, seed=7)
        >>> len(batch)
        30
    """
    config = config or GeneratorConfig()
    if seed is not None:
        config = replace(config, seed=seed)
    orchestrator = BatchOrchestrator(bank, spec, requested_count, config, reference=reference)
    return orchestrator.run()


class BatchOrchestrator:
    """
    Drives Sampler → Shuffler → Enforcer until the batch is complete.

    Owns the growing batch (through the enforcer), the randomness
    streams and the retry bookkeeping. Runs once.

    Example:
        >>> orchestrator = BatchOrchestrator(bank, spec, 5, GeneratorConfig(seed=1))
        >>> batch = orchestrator.run()
        >>> orchestrator.state
        <OrchestratorState.DONE: 'done'>
    """

    def __init__(
        self,
        bank: QuestionBank,
        spec: ConstraintSpec,
        count: int,
        config: Optional[GeneratorConfig] = None,
        *,
        reference: Optional[Paper] = None,
        on_transition: Optional[TransitionHook] = None,
    ) -> None:
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError(f"requested count must be a positive integer: {count!r}")
        self.bank = bank
        self.spec = spec
        self.count = count
        self.config = config or GeneratorConfig()
        self.reference = reference
        self.on_transition = on_transition

        self._sampler = Sampler(bank, spec)
        self._enforcer: Optional[DistinctnessEnforcer] = None
        self._workers: List[_Worker] = []
        self._started = False

        self._lock = Lock()
        self._stop = Event()
        self._failure: Optional[BaseException] = None
        self._attempts = 0
        self._conflicts = 0
        self._consecutive_rejections = 0
        self._budget = 0
        self._space: Optional[int] = None
        self._deadline: Optional[float] = None

    # ─────────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> OrchestratorState:
        """Overall state: IDLE before run, DONE/FAILED after, else worker 0's."""
        if not self._started:
            return OrchestratorState.IDLE
        if self._failure is not None:
            return OrchestratorState.FAILED
        if self._workers and all(w.state.is_terminal for w in self._workers):
            return OrchestratorState.DONE
        return self._workers[0].state if self._workers else OrchestratorState.IDLE

    def run(self) -> Batch:
        """
        Execute the generation loop.

        Returns:
            Completed Batch

        Raises:
            RuntimeError: If called twice
            UnsatisfiableConstraint, ExhaustedPool: See generate()
        """
        if self._started:
            raise RuntimeError("BatchOrchestrator.run() may only be called once")
        self._started = True
        start_time = time.perf_counter()

        logger.info(f"Generating {self.count} papers with spec {self.spec.describe()}")

        try:
            self._preflight()
        except GenerationError as e:
            self._failure = e
            raise

        master_seed = self.config.seed
        if master_seed is None:
            master_seed = random.SystemRandom().getrandbits(63)
            logger.info(f"No seed given, using master seed {master_seed}")

        self._enforcer = DistinctnessEnforcer(
            self.bank, capacity=self.count, reference=self.reference
        )
        self._workers = [
            _Worker(self, i, random.Random(derive_worker_seed(master_seed, i)))
            for i in range(self.config.workers)
        ]
        if self.config.deadline_seconds is not None:
            self._deadline = time.monotonic() + self.config.deadline_seconds

        if not self.config.is_parallel:
            self._workers[0].run()
        else:
            with ThreadPoolExecutor(max_workers=len(self._workers)) as pool:
                futures = [pool.submit(worker.run) for worker in self._workers]
                for future in futures:
                    future.result()

        elapsed = time.perf_counter() - start_time
        if self._failure is not None:
            logger.warning(f"Generation failed after {elapsed:.3f}s: {self._failure}")
            raise self._failure

        papers = self._enforcer.accepted
        stats = GenerationStats(
            attempts=self._attempts,
            duplicate_rejections=self._enforcer.duplicates,
            sampling_conflicts=self._conflicts,
            distinct_question_sets=self._enforcer.distinct_fingerprints,
            workers=len(self._workers),
            elapsed_seconds=elapsed,
            estimated_space=self._space,
            rejection_budget=self._budget,
        )
        logger.info(
            f"Generated {len(papers)} papers in {stats.attempts} attempts "
            f"({stats.rejections} rejected, {stats.distinct_question_sets} question sets) "
            f"in {elapsed:.3f}s"
        )
        if stats.rejections > len(papers):
            logger.warning(
                f"High rejection ratio: {stats.rejections} of {stats.attempts} attempts "
                f"rejected; the paper space ({self._space}) is close to exhausted"
            )
        return Batch(papers=papers, seed=master_seed, stats=stats)

    # ─────────────────────────────────────────────────────────────────────────
    # Preflight
    # ─────────────────────────────────────────────────────────────────────────

    def _preflight(self) -> None:
        """Structural checks and retry budget, before any sampling."""
        check_feasibility(self.bank, self.spec)

        self._space = estimate_paper_space(self.bank, self.spec)
        if self._space < self.count:
            raise ExhaustedPool(
                requested=self.count,
                accepted=0,
                attempts=0,
                reason=f"only {self._space} distinguishable papers exist",
                space=self._space,
            )

        self._budget = self.config.rejection_budget(self._space, self.count)
        exact = not self.bank.has_groups and not self.spec.difficulty_minimums
        logger.info(
            f"Estimated paper space {self._space} ({'exact' if exact else 'upper bound'}), "
            f"consecutive rejection budget {self._budget}"
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Shared Bookkeeping (called by workers)
    # ─────────────────────────────────────────────────────────────────────────

    def _claim_attempt(self) -> bool:
        """Count an attempt; False if the attempt cap or deadline stops the run."""
        with self._lock:
            if self._stop.is_set():
                return False
            if self.config.max_attempts is not None and self._attempts >= self.config.max_attempts:
                self._fail_locked(self._exhausted(
                    f"attempt cap of {self.config.max_attempts} reached"
                ))
                return False
            if self._deadline is not None and time.monotonic() > self._deadline:
                self._fail_locked(self._exhausted(
                    f"deadline of {self.config.deadline_seconds}s expired"
                ))
                return False
            self._attempts += 1
            return True

    def _record_rejection(self, conflict: bool) -> None:
        with self._lock:
            if conflict:
                self._conflicts += 1
            self._consecutive_rejections += 1
            if self._consecutive_rejections > self._budget:
                self._fail_locked(self._exhausted(
                    f"{self._consecutive_rejections} consecutive rejections "
                    f"exceeded the budget of {self._budget}"
                ))

    def _record_acceptance(self) -> None:
        with self._lock:
            self._consecutive_rejections = 0

    def _fail(self, error: BaseException) -> None:
        with self._lock:
            self._fail_locked(error)

    def _fail_locked(self, error: BaseException) -> None:
        # First failure wins
        if self._failure is None:
            self._failure = error
        self._stop.set()

    def _finish(self) -> None:
        self._stop.set()

    def _exhausted(self, reason: str) -> ExhaustedPool:
        accepted = self._enforcer.accepted_count if self._enforcer is not None else 0
        return ExhaustedPool(
            requested=self.count,
            accepted=accepted,
            attempts=self._attempts,
            reason=reason,
            space=self._space,
        )


class _Worker:
    """One Sampler → Shuffler → Enforcer loop with its own randomness."""

    def __init__(self, orchestrator: BatchOrchestrator, index: int, rng: random.Random) -> None:
        self.orchestrator = orchestrator
        self.index = index
        self.rng = rng
        self.state = OrchestratorState.IDLE

    def transition(self, new_state: OrchestratorState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal worker transition {self.state} -> {new_state}")
        old_state, self.state = self.state, new_state
        hook = self.orchestrator.on_transition
        if hook is not None:
            hook(self.index, old_state, new_state)

    def run(self) -> None:
        orch = self.orchestrator
        try:
            self._loop()
        except GenerationError as e:
            orch._fail(e)
            if not self.state.is_terminal:
                self.transition(OrchestratorState.FAILED)
        except Exception as e:
            orch._fail(e)
            raise

    def _loop(self) -> None:
        orch = self.orchestrator
        enforcer = orch._enforcer
        pinned = orch.spec.pinned_question_ids
        S = OrchestratorState

        while True:
            if not orch._claim_attempt():
                self.transition(S.FAILED if orch._failure is not None else S.DONE)
                return

            self.transition(S.SAMPLING)
            try:
                question_ids = orch._sampler.sample(self.rng, pinned)
            except SamplingConflict as e:
                logger.debug(f"Worker {self.index}: sampling conflict ({e})")
                self.transition(S.REJECTED)
                orch._record_rejection(conflict=True)
                continue

            self.transition(S.SHUFFLING)
            paper = shuffle_paper(question_ids, orch.bank, self.rng)

            self.transition(S.CHECKING)
            index = enforcer.try_accept(paper)
            if index is None:
                if enforcer.is_full:
                    self.transition(S.DONE)
                    orch._finish()
                    return
                self.transition(S.REJECTED)
                orch._record_rejection(conflict=False)
                continue

            self.transition(S.ACCEPTED)
            orch._record_acceptance()
            if enforcer.is_full:
                self.transition(S.DONE)
                orch._finish()
                return
