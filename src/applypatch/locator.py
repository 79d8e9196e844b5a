from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import ContextNotFoundError
from .models import Anchor, Hunk


@dataclass(frozen=True)
class FuzzStage:
    level: int
    name: str
    normalize: Callable[[str], str]


def _exact(s: str) -> str:
    return s


def _collapse_whitespace(s: str) -> str:
    return " ".join(s.split())


# Tried in order; the first stage that matches wins.
FUZZ_STAGES: Tuple[FuzzStage, ...] = (
    FuzzStage(1, "exact", _exact),
    FuzzStage(2, "trailing-whitespace", str.rstrip),
    FuzzStage(3, "whitespace", _collapse_whitespace),
)

NEARBY_CONTEXT = 3


def _window_matches(
    lines: Sequence[str], offset: int, needle: Sequence[str], normalize: Callable[[str], str]
) -> bool:
    for k, expected in enumerate(needle):
        if normalize(lines[offset + k]) != normalize(expected):
            return False
    return True


def _candidate_offsets(
    n_lines: int, n_needle: int, start: int, is_end_of_file: bool
) -> range:
    last = n_lines - n_needle
    if last < start:
        return range(0)
    if is_end_of_file:
        return range(last, last + 1)
    return range(start, last + 1)


def find_anchor(
    lines: Sequence[str],
    hunk: Hunk,
    start: int = 0,
    *,
    path: Optional[str] = None,
    hunk_index: int = 0,
    stages: Sequence[FuzzStage] = FUZZ_STAGES,
) -> Anchor:
    """
    Locate hunk.window in lines at or after start.

    Every stage scans offsets in increasing order, so the lowest matching
    offset of the strictest matching stage is returned. A hunk with
    is_end_of_file set may only match a window ending at the last line.
    A hunk with no context and no removed lines anchors at start (or at the
    end of the file for is_end_of_file) without searching.
    """
    start = max(0, start)
    needle = hunk.window
    n_lines = len(lines)

    if not needle:
        offset = n_lines if hunk.is_end_of_file else min(start, n_lines)
        return Anchor(line_offset=offset, fuzz_level=1)

    offsets = _candidate_offsets(n_lines, len(needle), start, hunk.is_end_of_file)
    for stage in stages:
        for offset in offsets:
            if _window_matches(lines, offset, needle, stage.normalize):
                return Anchor(line_offset=offset, fuzz_level=stage.level)

    raise ContextNotFoundError(
        path,
        hunk_index,
        nearby_lines(lines, needle, start),
        expected=needle,
    )


def _shared_prefix(
    lines: Sequence[str], offset: int, needle: Sequence[str]
) -> int:
    count = 0
    for k, expected in enumerate(needle):
        if offset + k >= len(lines):
            break
        if _collapse_whitespace(lines[offset + k]) != _collapse_whitespace(expected):
            break
        count += 1
    return count


def nearby_lines(
    lines: Sequence[str], needle: Sequence[str], start: int = 0
) -> List[str]:
    """
    Excerpt of lines around the best partial match of needle, for diagnostics.

    The best partial match is the offset (at or after start) whose window
    shares the longest whitespace-insensitive prefix with needle. When nothing
    matches at all, the excerpt is taken from start.
    """
    if not lines:
        return []
    start = min(max(0, start), len(lines) - 1)
    best_offset, best_len = start, 0
    for offset in range(start, len(lines)):
        shared = _shared_prefix(lines, offset, needle)
        if shared > best_len:
            best_offset, best_len = offset, shared
            if shared == len(needle):
                break
    lo = max(0, best_offset - NEARBY_CONTEXT)
    hi = min(len(lines), best_offset + max(best_len, 1) + NEARBY_CONTEXT)
    return [f"{n + 1:>5} | {lines[n]}" for n in range(lo, hi)]
