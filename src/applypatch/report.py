from __future__ import annotations

import copy
from typing import List, Optional

from .errors import ContextNotFoundError, DiffError, FormatError
from .models import ApplyResult

SUCCESS_HEADER = "Success. Updated the following files:"


class ResultReporter:
    """Collects per-operation outcomes of one run into an ApplyResult."""

    def __init__(self) -> None:
        self._result = ApplyResult()

    @property
    def result(self) -> ApplyResult:
        return self._result

    def added(self, path: str) -> None:
        self._result.added.add(path)

    def modified(self, path: str, move_to: Optional[str] = None) -> None:
        self._result.modified.add(path)
        if move_to is not None and move_to != path:
            self._result.moved.add((path, move_to))

    def deleted(self, path: str) -> None:
        self._result.deleted.add(path)

    def fail(self, error: DiffError, operation_index: int, path: str) -> DiffError:
        """Attach the failing operation and the partial result to error."""
        error.operation_index = operation_index
        if error.path is None:
            error.path = path
        error.result = copy.deepcopy(self._result)
        return error


def render_summary(result: ApplyResult) -> str:
    """
    Render the success text, e.g.

        Success. Updated the following files:
        A new.txt
        M changed.txt
        D gone.txt

    Moved files are listed under their destination path.
    """
    moved_from = {old: new for old, new in result.moved}
    lines: List[str] = [SUCCESS_HEADER]
    for path in sorted(result.added):
        lines.append(f"A {path}")
    for path in sorted(moved_from.get(p, p) for p in result.modified):
        lines.append(f"M {path}")
    for path in sorted(result.deleted):
        lines.append(f"D {path}")
    return "\n".join(lines)


def render_error(error: DiffError) -> str:
    if isinstance(error, FormatError):
        return f"Error: {error}"

    lines: List[str] = []
    if error.operation_index is not None:
        lines.append(f"Error: operation {error.operation_index + 1} ({error.path}): {error}")
    else:
        lines.append(f"Error: {error}")

    if isinstance(error, ContextNotFoundError):
        if error.expected:
            lines.append("Expected lines:")
            lines.extend(f"  | {ln}" for ln in error.expected)
        if error.nearby_lines:
            lines.append("Closest lines in the file:")
            lines.extend(error.nearby_lines)

    result = error.result
    if result is not None and not result.is_empty:
        lines.append("Changes applied before the failure:")
        lines.extend(render_summary(result).splitlines()[1:])
    elif result is not None:
        lines.append("No changes were applied.")
    return "\n".join(lines)
