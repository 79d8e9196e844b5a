from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .errors import (
    DestinationExistsError,
    DiffError,
    PathExistsError,
    PathNotFoundError,
)
from .fileops import PatchFileOps
from .locator import FUZZ_STAGES, FuzzStage, find_anchor
from .logger import logger
from .models import (
    AddFile,
    Anchor,
    ApplyResult,
    DeleteFile,
    FileOperation,
    Hunk,
    PatchScript,
    UpdateFile,
)
from .report import ResultReporter


def split_content(content: str) -> Tuple[List[str], str, bool]:
    """
    Return (lines, line terminator, ends with terminator) for file content.
    The terminator is whichever of "\\r\\n" and "\\n" ends more lines (a tie
    goes to "\\n"). Under "\\n" any "\\r" stays part of the line text.
    """
    if content == "":
        return [], "\n", True
    crlf = content.count("\r\n")
    newline = "\r\n" if crlf > content.count("\n") - crlf else "\n"
    lines = content.split("\n")
    had_eol = lines[-1] == ""
    if had_eol:
        lines.pop()
    if newline == "\r\n":
        terminated = len(lines) if had_eol else len(lines) - 1
        for k in range(terminated):
            if lines[k].endswith("\r"):
                lines[k] = lines[k][:-1]
    return lines, newline, had_eol


def join_content(lines: Sequence[str], newline: str, eol: bool) -> str:
    if not lines:
        return ""
    s = newline.join(lines)
    return s + (newline if eol else "")


def apply_hunks(
    lines: Sequence[str],
    hunks: Sequence[Hunk],
    *,
    path: Optional[str] = None,
    stages: Sequence[FuzzStage] = FUZZ_STAGES,
) -> Tuple[List[str], List[Anchor]]:
    """
    Anchor every hunk in order and rebuild the line sequence.

    Each search starts right after the previous hunk's window, so hunks never
    overlap. Raises ContextNotFoundError on the first hunk that cannot be
    anchored; lines is never modified.
    """
    result: List[str] = []
    anchors: List[Anchor] = []
    cursor = 0
    for idx, hunk in enumerate(hunks):
        anchor = find_anchor(
            lines, hunk, cursor, path=path, hunk_index=idx, stages=stages
        )
        if anchor.fuzz_level > 1:
            logger.info(
                "hunk matched with fuzz",
                path=path,
                hunk=idx + 1,
                offset=anchor.line_offset,
                fuzz_level=anchor.fuzz_level,
            )
        else:
            logger.debug("hunk anchored", path=path, hunk=idx + 1, offset=anchor.line_offset)

        start = anchor.line_offset
        window_end = start + len(hunk.window)
        # Context lines are copied from the file so fuzzy matches keep its text.
        n_before = len(hunk.context_before)
        n_removed = len(hunk.removed)
        result.extend(lines[cursor:start])
        result.extend(lines[start : start + n_before])
        result.extend(hunk.added)
        result.extend(lines[start + n_before + n_removed : window_end])
        cursor = window_end
        anchors.append(anchor)

    result.extend(lines[cursor:])
    return result, anchors


class PatchApplier:
    """
    Executes a parsed PatchScript through a PatchFileOps, one operation at a
    time and in script order. Not transactional: on the first failure the
    error is annotated with the partial ApplyResult and re-raised, leaving
    earlier operations in place.
    """

    def __init__(self, ops: PatchFileOps, stages: Sequence[FuzzStage] = FUZZ_STAGES):
        self.ops = ops
        self.stages = tuple(stages)

    def apply(self, script: PatchScript) -> ApplyResult:
        reporter = ResultReporter()
        for index, op in enumerate(script.operations):
            try:
                self._apply_operation(op, reporter)
            except DiffError as e:
                logger.debug(
                    "patch operation failed",
                    index=index,
                    path=op.path,
                    error=str(e),
                )
                raise reporter.fail(e, index, op.path)
        return reporter.result

    def _apply_operation(self, op: FileOperation, reporter: ResultReporter) -> None:
        if isinstance(op, AddFile):
            self._add(op)
            reporter.added(op.path)
        elif isinstance(op, DeleteFile):
            self._delete(op)
            reporter.deleted(op.path)
        elif isinstance(op, UpdateFile):
            self._update(op)
            reporter.modified(op.path, op.move_to)
        else:
            raise TypeError(f"Unknown patch operation: {op!r}")

    def _add(self, op: AddFile) -> None:
        self.ops.check_path(op.path)
        if self.ops.exists(op.path):
            raise PathExistsError(op.path)
        content = "".join(f"{ln}\n" for ln in op.content)
        self.ops.write(op.path, content)
        logger.debug("file added", path=op.path, lines=len(op.content))

    def _delete(self, op: DeleteFile) -> None:
        self.ops.check_path(op.path)
        if not self.ops.exists(op.path):
            raise PathNotFoundError(op.path)
        self.ops.delete(op.path)
        logger.debug("file deleted", path=op.path)

    def _update(self, op: UpdateFile) -> None:
        self.ops.check_path(op.path)
        move_to = op.move_to if op.move_to and op.move_to != op.path else None
        if move_to is not None:
            self.ops.check_path(move_to)
        if not self.ops.exists(op.path):
            raise PathNotFoundError(op.path)
        if move_to is not None and self.ops.exists(move_to):
            raise DestinationExistsError(op.path, move_to)

        original = self.ops.read(op.path)
        lines, newline, had_eol = split_content(original)
        new_lines, _anchors = apply_hunks(
            lines, op.hunks, path=op.path, stages=self.stages
        )
        self.ops.write(op.path, join_content(new_lines, newline, had_eol))
        if move_to is not None:
            self.ops.move(op.path, move_to)
            logger.debug("file moved", path=op.path, move_to=move_to)
        logger.debug("file updated", path=op.path, hunks=len(op.hunks))
