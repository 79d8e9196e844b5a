from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .models import ApplyResult


class DiffError(ValueError):
    """Any problem detected while parsing or applying a patch.

    When raised while a script is being applied, the reporter fills in
    ``operation_index`` (0-based position in the script), ``path`` and
    ``result`` (everything that was applied before the failure).
    """

    def __init__(self, msg: str, *, path: Optional[str] = None) -> None:
        super().__init__(msg)
        self.msg = msg
        self.path = path
        self.operation_index: Optional[int] = None
        self.result: Optional["ApplyResult"] = None


class FormatError(DiffError):
    def __init__(self, line: Optional[int], reason: str) -> None:
        loc = f"line {line}: " if line is not None else ""
        super().__init__(f"Invalid patch: {loc}{reason}")
        self.line = line
        self.reason = reason


class PathExistsError(DiffError):
    def __init__(self, path: str) -> None:
        super().__init__(f"File already exists: {path}", path=path)


class PathNotFoundError(DiffError):
    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}", path=path)


class DestinationExistsError(DiffError):
    def __init__(self, path: str, destination: str) -> None:
        super().__init__(
            f"Cannot move {path} to {destination}: destination already exists",
            path=path,
        )
        self.destination = destination


class PathEscapeError(DiffError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Path escapes project root: {path}", path=path)


class ContextNotFoundError(DiffError):
    def __init__(
        self,
        path: Optional[str],
        hunk_index: int,
        nearby_lines: Sequence[str] = (),
        *,
        expected: Sequence[str] = (),
    ) -> None:
        where = f" in {path}" if path else ""
        super().__init__(
            f"Failed to find context for hunk {hunk_index + 1}{where}", path=path
        )
        self.hunk_index = hunk_index
        self.nearby_lines: Tuple[str, ...] = tuple(nearby_lines)
        self.expected: Tuple[str, ...] = tuple(expected)


class FileOperationError(DiffError):
    """An OS level failure (permissions, disk full...) tied to a path."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{reason}: {path}", path=path)
        self.reason = reason
