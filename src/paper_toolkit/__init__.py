"""Top-level package for the exam paper toolkit.

Provides subpackages:
- paper_toolkit.core – question, bank and paper models plus the error taxonomy
- paper_toolkit.builder – sampling, shuffling, distinctness and batch generation
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
        except OSError:
            content = ""
        for line in content.splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.1.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    # Fallback to importlib.metadata for installed package
    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("paper-toolkit")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()

from .core import (  # noqa: E402
    Batch,
    ExhaustedPool,
    GenerationError,
    GenerationStats,
    InvalidBank,
    Option,
    Paper,
    PaperItem,
    Question,
    QuestionBank,
    QuestionKind,
    UnsatisfiableConstraint,
    load_bank,
)
from .builder import ConstraintSpec, GeneratorConfig, generate  # noqa: E402

__all__: list[str] = [
    "__version__",
    "Batch",
    "ConstraintSpec",
    "ExhaustedPool",
    "GenerationError",
    "GenerationStats",
    "GeneratorConfig",
    "InvalidBank",
    "Option",
    "Paper",
    "PaperItem",
    "Question",
    "QuestionBank",
    "QuestionKind",
    "UnsatisfiableConstraint",
    "generate",
    "load_bank",
]
