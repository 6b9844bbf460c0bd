"""Event types for generator-based operations.

Long-running operations yield ProgressEvents while they work and finish
with exactly one CompletionEvent carrying the result, so callers decide
how (and whether) to render progress.
"""

from dataclasses import dataclass
from typing import Literal

ProgressStyle = Literal["info", "success", "warning", "error"]


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification emitted during an operation."""

    message: str
    style: ProgressStyle = "info"


@dataclass(frozen=True)
class CompletionEvent[T]:
    """Final event carrying the operation result."""

    result: T
