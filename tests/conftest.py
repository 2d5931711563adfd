import pytest
import sys
from pathlib import Path

# Add src to sys.path so we can import paper_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from paper_toolkit.core.models.bank import load_bank  # noqa: E402
from paper_toolkit.core.models.options import Option  # noqa: E402
from paper_toolkit.core.models.questions import Question, QuestionKind  # noqa: E402


def _make_mc(
    qid: str,
    category: str,
    n_options: int = 4,
    correct: int = 0,
    difficulty=None,
    group=None,
) -> Question:
    """Helper to create a multiple-choice question with one correct option."""
    options = tuple(
        Option(f"{qid}o{i}", f"option {i}", is_correct=(i == correct))
        for i in range(n_options)
    )
    return Question(
        id=qid,
        category=category,
        prompt=f"Prompt {qid}",
        kind=QuestionKind.MULTIPLE_CHOICE,
        options=options,
        difficulty=difficulty,
        group=group,
    )


def _make_open(qid: str, category: str, difficulty=None, group=None) -> Question:
    """Helper to create an open-ended question."""
    return Question(
        id=qid,
        category=category,
        prompt=f"Prompt {qid}",
        difficulty=difficulty,
        group=group,
    )


# Common test fixtures
@pytest.fixture
def worked_example_bank():
    """Q1 (A, MC with 2 options), Q2 (A, open), Q3 (B, open)."""
    return load_bank([
        _make_mc("Q1", "A", n_options=2),
        _make_open("Q2", "A"),
        _make_open("Q3", "B"),
    ])


@pytest.fixture
def large_bank():
    """Thirty questions over three categories, mixed kinds and difficulties."""
    questions = []
    for i in range(30):
        category = ("algebra", "geometry", "statistics")[i % 3]
        difficulty = 1 + i % 3
        if i % 2:
            questions.append(_make_mc(f"q{i}", category, n_options=4, correct=i % 4,
                                      difficulty=difficulty))
        else:
            questions.append(_make_open(f"q{i}", category, difficulty=difficulty))
    return load_bank(questions)
