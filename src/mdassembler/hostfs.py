"""
Host file-system access.

The tree builder and the generators only talk to the small interface below,
so any object offering ``list_entries``/``read``/``read_text`` can stand in for
the local disk (tests use in-memory fakes).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from .core import (
    FileReadError,
    InvalidRootError,
    UnsupportedEnvironmentError,
    is_binary_data,
    is_binary_name,
)

FILE = "file"
DIRECTORY = "directory"

REQUIRED_OPERATIONS = ("list_entries", "read", "read_text")


@dataclass(frozen=True)
class Entry:
    name: str
    kind: str
    handle: Any


@dataclass(frozen=True)
class FileContent:
    """Result of reading one file; ``text is None`` marks binary data."""

    byte_length: int
    text: Optional[str] = None

    @property
    def is_binary(self) -> bool:
        return self.text is None


def display_name(name: str) -> str:
    """Make an OS file name safe to write as UTF-8.

    Undecodable bytes come back from the OS as surrogate escapes; they are
    shown as U+FFFD instead.
    """
    return name.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def check_support(fs: object) -> None:
    """Fail fast when *fs* cannot serve the operations the core needs."""
    missing = [op for op in REQUIRED_OPERATIONS if not callable(getattr(fs, op, None))]
    if missing:
        raise UnsupportedEnvironmentError(
            f"File system {type(fs).__name__} does not support: {', '.join(missing)}"
        )


class LocalFileSystem:
    """Local disk access with :class:`pathlib.Path` objects as handles."""

    def open_root(self, root: Path) -> Path:
        try:
            root = root.resolve()
        except (OSError, RuntimeError) as e:
            raise InvalidRootError(f"Could not resolve root path '{root}': {e}")
        if not root.exists():
            raise InvalidRootError(f"Root directory '{root}' does not exist")
        if not root.is_dir():
            raise InvalidRootError(f"Root path '{root}' is not a directory")
        return root

    def name_of(self, handle: Path) -> str:
        return display_name(handle.name or str(handle))

    def list_entries(self, handle: Path) -> List[Entry]:
        entries: List[Entry] = []
        with os.scandir(handle) as it:
            for child in it:
                try:
                    is_dir = child.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False
                entries.append(Entry(display_name(child.name), DIRECTORY if is_dir else FILE, Path(child.path)))
        return entries

    def read(self, handle: Path) -> FileContent:
        try:
            if is_binary_name(handle.name):
                return FileContent(handle.stat().st_size)
            raw = handle.read_bytes()
        except OSError as e:
            raise FileReadError(display_name(f"Could not read '{handle.name}': {e}")) from e
        if is_binary_data(raw):
            return FileContent(len(raw))
        return FileContent(len(raw), raw.decode("utf-8", errors="replace"))

    def read_text(self, handle: Path, name: str) -> Optional[str]:
        path = handle / name
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise FileReadError(display_name(f"Could not read '{path}': {e}")) from e
