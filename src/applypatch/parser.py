from __future__ import annotations

import re
from typing import List, Optional, Tuple

from .errors import FormatError
from .models import AddFile, DeleteFile, FileOperation, Hunk, PatchScript, UpdateFile


BEGIN_MARKER = "*** Begin Patch"
END_MARKER = "*** End Patch"
EOF_MARKER = "*** End of File"
HEADER_PREFIX = "***"
FILE_HEADER_RE = re.compile(r"^\*\*\* (Add|Update|Delete) File:(.*)$")
MOVE_TO_RE = re.compile(r"^\*\*\* Move to:(.*)$")
ANCHOR_PREFIX = "@@"
CONTEXT_PREFIX = " "
DELETE_PREFIX = "-"
ADD_PREFIX = "+"
HUNK_PREFIXES = (CONTEXT_PREFIX, DELETE_PREFIX, ADD_PREFIX)


def split_patch_lines(text: str) -> List[str]:
    """Split on LF only and drop one CR per line, so CRLF patches parse the same.

    str.splitlines() is avoided on purpose: it also breaks on form feeds and
    unicode separators that may legitimately appear inside content lines.
    """
    return [ln[:-1] if ln.endswith("\r") else ln for ln in text.split("\n")]


def parse_patch(text: str) -> PatchScript:
    """
    Parse a patch script into an ordered PatchScript.

    The envelope must be exactly:

        *** Begin Patch
        ...file sections...
        *** End Patch

    Sections are `*** Add File: <path>` (body of '+' lines),
    `*** Update File: <path>` (optional `*** Move to: <path>`, then hunks) and
    `*** Delete File: <path>` (no body). Raises FormatError on the first
    malformed line; nothing is read from or written to disk here.
    """
    lines = split_patch_lines(text)
    begin, end = _find_envelope(lines)

    operations: List[FileOperation] = []
    i = begin + 1
    while i < end:
        raw = lines[i]
        line_no = i + 1
        if raw.strip() == "":
            i += 1
            continue

        m_header = FILE_HEADER_RE.match(raw)
        if m_header is None:
            if MOVE_TO_RE.match(raw):
                raise FormatError(
                    line_no,
                    "'*** Move to:' is only allowed directly after an '*** Update File:' header",
                )
            if raw.startswith(HEADER_PREFIX):
                raise FormatError(line_no, f"unknown header: {raw!r}")
            raise FormatError(line_no, f"expected a file header, got {raw!r}")

        action, path = m_header.group(1), m_header.group(2).strip()
        if not path:
            raise FormatError(line_no, f"empty path in '*** {action} File:' header")
        i += 1

        if action == "Add":
            content, i = _parse_add_body(lines, i, end)
            operations.append(AddFile(path=path, content=content, line=line_no))
        elif action == "Delete":
            operations.append(DeleteFile(path=path, line=line_no))
        else:
            move_to: Optional[str] = None
            if i < end:
                m_move = MOVE_TO_RE.match(lines[i])
                if m_move is not None:
                    move_to = m_move.group(1).strip()
                    if not move_to:
                        raise FormatError(i + 1, "empty path in '*** Move to:' header")
                    i += 1
            hunks, i = _parse_update_body(lines, i, end)
            if not hunks:
                raise FormatError(line_no, f"update of {path} contains no hunks")
            operations.append(
                UpdateFile(path=path, hunks=tuple(hunks), move_to=move_to, line=line_no)
            )

    return PatchScript(operations=tuple(operations))


def _find_envelope(lines: List[str]) -> Tuple[int, int]:
    non_blank = [i for i, ln in enumerate(lines) if ln.strip()]
    if not non_blank or lines[non_blank[0]] != BEGIN_MARKER:
        raise FormatError(
            non_blank[0] + 1 if non_blank else None,
            f"the first line of the patch must be '{BEGIN_MARKER}'",
        )
    begin, end = non_blank[0], non_blank[-1]
    if end == begin or lines[end] != END_MARKER:
        # Name the stray line when the marker does appear earlier.
        earlier = [i for i in non_blank[1:-1] if lines[i] == END_MARKER]
        if earlier:
            trailing = next(i for i in non_blank if i > earlier[-1])
            raise FormatError(trailing + 1, f"unexpected text after '{END_MARKER}'")
        raise FormatError(end + 1, f"the last line of the patch must be '{END_MARKER}'")
    return begin, end


def _blank_run_continues(lines: List[str], i: int, end: int, prefixes) -> bool:
    """True if the blank lines starting at i are followed by a line with one of prefixes."""
    j = i
    while j < end and lines[j] == "":
        j += 1
    if j >= end:
        return False
    nxt = lines[j]
    return nxt == EOF_MARKER or (nxt[:1] in prefixes)


def _parse_add_body(lines: List[str], i: int, end: int) -> Tuple[Tuple[str, ...], int]:
    content: List[str] = []
    while i < end:
        raw = lines[i]
        if raw.startswith(HEADER_PREFIX):
            break
        if raw.startswith(ADD_PREFIX):
            content.append(raw[len(ADD_PREFIX) :])
            i += 1
            continue
        if raw.strip() == "" and not _blank_run_continues(lines, i, end, (ADD_PREFIX,)):
            # Trailing blank lines separate this section from the next header.
            break
        raise FormatError(i + 1, f"lines of an added file must start with '+', got {raw!r}")
    return tuple(content), i


def _parse_update_body(lines: List[str], i: int, end: int) -> Tuple[List[Hunk], int]:
    hunks: List[Hunk] = []
    first = True
    while i < end:
        raw = lines[i]
        if raw.strip() == "":
            i += 1
            continue
        if raw.startswith(HEADER_PREFIX):
            break
        if raw.startswith(ANCHOR_PREFIX):
            hint = raw[len(ANCHOR_PREFIX) :].strip() or None
            start_line = i + 1
            i += 1
        elif first and raw[:1] in HUNK_PREFIXES:
            # The first hunk of a section may omit its "@@" line.
            hint = None
            start_line = i + 1
        else:
            break
        parsed, i = _parse_hunk(lines, i, end, hint, start_line)
        hunks.extend(parsed)
        first = False
    return hunks, i


def _parse_hunk(
    lines: List[str], i: int, end: int, hint: Optional[str], start_line: int
) -> Tuple[List[Hunk], int]:
    body: List[Tuple[str, str]] = []
    is_eof = False
    while i < end:
        raw = lines[i]
        if raw == EOF_MARKER:
            is_eof = True
            i += 1
            break
        if raw == "":
            # Editors strip the lone space of a blank context line.
            if _blank_run_continues(lines, i, end, HUNK_PREFIXES):
                body.append((CONTEXT_PREFIX, ""))
                i += 1
                continue
            break
        prefix = raw[0]
        if prefix not in HUNK_PREFIXES:
            break
        body.append((prefix, raw[1:]))
        i += 1

    if not body:
        raise FormatError(start_line, "hunk has no context lines and no changes")
    return _split_hunk_body(body, is_eof, hint, start_line), i


def _split_hunk_body(
    body: List[Tuple[str, str]], is_eof: bool, hint: Optional[str], start_line: int
) -> List[Hunk]:
    """
    Turn the lines of one "@@" block into Hunks.

    A block that alternates change groups and context is split so that every
    Hunk holds a single contiguous change; the context between two groups
    becomes the context_before of the later Hunk.
    """
    hunks: List[Hunk] = []
    before: List[str] = []
    removed: List[str] = []
    added: List[str] = []
    after: List[str] = []

    for prefix, text in body:
        if prefix == CONTEXT_PREFIX:
            if removed or added:
                after.append(text)
            else:
                before.append(text)
            continue
        if after:
            hunks.append(
                Hunk(
                    context_before=tuple(before),
                    removed=tuple(removed),
                    added=tuple(added),
                    hint=hint,
                    line=start_line,
                )
            )
            before, removed, added, after = after, [], [], []
        if prefix == DELETE_PREFIX:
            removed.append(text)
        else:
            added.append(text)

    hunks.append(
        Hunk(
            context_before=tuple(before),
            removed=tuple(removed),
            added=tuple(added),
            context_after=tuple(after),
            is_end_of_file=is_eof,
            hint=hint,
            line=start_line,
        )
    )
    return hunks
