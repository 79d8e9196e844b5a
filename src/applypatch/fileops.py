from __future__ import annotations

import os
import pathlib
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from .errors import FileOperationError, PathEscapeError


class PatchFileOps(ABC):
    """
    Abstract contract for file operations used by the patch applier.
    Paths are relative to the patch root. Implementations must reject paths
    outside the root with PathEscapeError and report OS failures as
    FileOperationError.
    """

    @abstractmethod
    def check_path(self, rel: str) -> None: ...

    @abstractmethod
    def exists(self, rel: str) -> bool: ...

    @abstractmethod
    def read(self, rel: str) -> str: ...

    @abstractmethod
    def write(self, rel: str, content: str) -> None: ...

    @abstractmethod
    def delete(self, rel: str) -> None: ...

    @abstractmethod
    def move(self, src: str, dst: str) -> None: ...


@contextmanager
def _wrap_os_error(rel: str) -> Iterator[None]:
    try:
        yield
    except OSError as e:
        reason = e.strerror or type(e).__name__
        raise FileOperationError(rel, reason) from e
    except UnicodeDecodeError as e:
        raise FileOperationError(rel, "Not a UTF-8 text file") from e


class FileSystemPatchFileOps(PatchFileOps):
    """
    File-backed implementation that enforces path safety under base_path.
    Content is read and written as UTF-8 without newline translation.
    """

    def __init__(self, base_path: pathlib.Path):
        self._base_path = pathlib.Path(base_path)

    def _resolve_safe_path(self, rel: str) -> pathlib.Path:
        """
        Return the path for rel under the root without following a final symlink.
        Both the lexical path and its symlink-resolved target must stay inside
        the root.
        """
        if rel.startswith("~"):
            raise PathEscapeError(rel)
        base_abs = pathlib.Path(os.path.abspath(self._base_path))
        lexical = pathlib.Path(os.path.normpath(base_abs / rel))
        if base_abs not in lexical.parents:
            raise PathEscapeError(rel)
        if base_abs.resolve() not in lexical.resolve().parents:
            raise PathEscapeError(rel)
        return lexical

    def check_path(self, rel: str) -> None:
        self._resolve_safe_path(rel)

    def exists(self, rel: str) -> bool:
        return self._resolve_safe_path(rel).exists()

    def read(self, rel: str) -> str:
        path = self._resolve_safe_path(rel)
        with _wrap_os_error(rel):
            with path.open("rt", encoding="utf-8", newline="") as fh:
                return fh.read()

    def write(self, rel: str, content: str) -> None:
        path = self._resolve_safe_path(rel)
        with _wrap_os_error(rel):
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wt", encoding="utf-8", newline="") as fh:
                fh.write(content)

    def delete(self, rel: str) -> None:
        path = self._resolve_safe_path(rel)
        with _wrap_os_error(rel):
            path.unlink()

    def move(self, src: str, dst: str) -> None:
        src_path = self._resolve_safe_path(src)
        dst_path = self._resolve_safe_path(dst)
        with _wrap_os_error(dst):
            dst_path.parent.mkdir(parents=True, exist_ok=True)
            os.replace(src_path, dst_path)
