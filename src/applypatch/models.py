from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Set, Tuple, Union


@dataclass(frozen=True)
class Hunk:
    """One contiguous edit region of an Update section.

    ``context_before``, ``removed`` and ``context_after`` hold the original
    file's text; ``added`` holds the target text. Whitespace is kept verbatim.
    """

    context_before: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    added: Tuple[str, ...] = ()
    context_after: Tuple[str, ...] = ()
    is_end_of_file: bool = False
    # Text after "@@", if any. Only used in diagnostics.
    hint: Optional[str] = None
    line: Optional[int] = None

    @property
    def window(self) -> Tuple[str, ...]:
        """Lines that must be present in the current file."""
        return self.context_before + self.removed + self.context_after

    @property
    def replacement(self) -> Tuple[str, ...]:
        """Lines that take the place of ``window`` in the new file."""
        return self.context_before + self.added + self.context_after


@dataclass(frozen=True)
class AddFile:
    path: str
    content: Tuple[str, ...] = ()
    line: Optional[int] = None


@dataclass(frozen=True)
class DeleteFile:
    path: str
    line: Optional[int] = None


@dataclass(frozen=True)
class UpdateFile:
    path: str
    hunks: Tuple[Hunk, ...] = ()
    move_to: Optional[str] = None
    line: Optional[int] = None


FileOperation = Union[AddFile, UpdateFile, DeleteFile]


@dataclass(frozen=True)
class PatchScript:
    operations: Tuple[FileOperation, ...] = ()

    def __iter__(self):
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)


@dataclass(frozen=True)
class Anchor:
    # Insertion point in [0, len(lines)] where the hunk window starts.
    line_offset: int
    # 1 = exact, 2 = trailing whitespace ignored, 3 = all whitespace collapsed
    fuzz_level: int


@dataclass
class ApplyResult:
    added: Set[str] = field(default_factory=set)
    modified: Set[str] = field(default_factory=set)
    deleted: Set[str] = field(default_factory=set)
    moved: Set[Tuple[str, str]] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.deleted or self.moved)
