from __future__ import annotations

import pathlib
from typing import Optional, Union

from .applier import PatchApplier
from .errors import (
    ContextNotFoundError,
    DestinationExistsError,
    DiffError,
    FileOperationError,
    FormatError,
    PathEscapeError,
    PathExistsError,
    PathNotFoundError,
)
from .fileops import FileSystemPatchFileOps, PatchFileOps
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
from .parser import parse_patch
from .report import render_error, render_summary

__all__ = [
    "AddFile",
    "Anchor",
    "ApplyResult",
    "ContextNotFoundError",
    "DeleteFile",
    "DestinationExistsError",
    "DiffError",
    "FUZZ_STAGES",
    "FileOperation",
    "FileOperationError",
    "FileSystemPatchFileOps",
    "FormatError",
    "FuzzStage",
    "Hunk",
    "PatchApplier",
    "PatchFileOps",
    "PatchScript",
    "PathEscapeError",
    "PathExistsError",
    "PathNotFoundError",
    "UpdateFile",
    "apply_patch",
    "find_anchor",
    "parse_patch",
    "render_error",
    "render_summary",
]


def apply_patch(
    text: str,
    base_path: Union[str, pathlib.Path],
    ops: Optional[PatchFileOps] = None,
) -> ApplyResult:
    """
    Parse text and apply it under base_path.
    If ops is not provided, a file-backed implementation under base_path is used.

    FormatError is raised before anything is touched. Any other DiffError
    stops the run at the failing operation; error.result then describes the
    operations that were already applied.
    """
    script = parse_patch(text)
    logger.debug("patch parsed", operations=len(script))
    file_ops = ops or FileSystemPatchFileOps(pathlib.Path(base_path))
    return PatchApplier(file_ops).apply(script)
