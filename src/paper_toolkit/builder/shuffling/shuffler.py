"""
Module: builder.shuffling.shuffler

Purpose:
    Randomize question order within a paper and option order within
    each multiple-choice question. Only references are reordered; bank
    data is never touched, and correctness stays attached to option
    identity rather than position.

Key Functions:
    - shuffle_paper(): Build a presented Paper from sampled ids
    - shuffle_options(): Presented option order of one question

Dependencies:
    - random (std): random.Random.shuffle is an unbiased Fisher-Yates
    - core.models: QuestionBank, Question, Paper, PaperItem

Used By:
    - builder.controller: One call per generation attempt
"""

from __future__ import annotations

import random
from typing import Sequence, Tuple

from paper_toolkit.core.models.bank import QuestionBank
from paper_toolkit.core.models.papers import Paper, PaperItem
from paper_toolkit.core.models.questions import Question


def shuffle_options(question: Question, rng: random.Random) -> Tuple[str, ...]:
    """
    Presented option order for one question.

    Args:
        question: Bank question
        rng: Randomness source

    Returns:
        Uniformly permuted option ids (empty for open-ended questions)
    """
    if not question.is_multiple_choice:
        return ()
    order = list(question.option_ids)
    rng.shuffle(order)
    return tuple(order)


def shuffle_paper(
    question_ids: Sequence[str],
    bank: QuestionBank,
    rng: random.Random,
) -> Paper:
    """
    Build a presented paper from a sampled question list.

    Question order is permuted uniformly first; then each
    multiple-choice question's options are permuted independently, in
    presented order.

    Args:
        question_ids: Sampled ids (pre-shuffle, selection order)
        bank: Bank the ids came from
        rng: Randomness source

    Returns:
        New Paper

    Raises:
        KeyError: If an id is not in the bank

    Example:
        >>> paper = shuffle_paper(["q1", "q3"], bank, random.Random(3))
        >>> sorted(paper.question_ids)
        ['q1', 'q3']
    """
    order = list(question_ids)
    rng.shuffle(order)
    return Paper(tuple(
        PaperItem(qid, shuffle_options(bank[qid], rng)) for qid in order
    ))
