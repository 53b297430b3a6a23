"""
Markdown generators.

Three output modes trade metadata for size:

* ``minimal`` - path line plus fenced content per text file
* ``compact`` - grouped by directory with file sizes
* ``full``    - banner, navigable index, per-file metadata, large-file
  warnings and a statistics section

Every generator reads files sequentially in path order, reports progress
after each file and calls the ``pause`` hook every :data:`YIELD_EVERY`
files. ``pause`` may raise :class:`~mdassembler.core.GenerationCancelled`;
the partially built output is then dropped.
"""

from __future__ import annotations

import datetime
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from .core import FileReadError, file_extension, format_size, slugify
from .hostfs import FileContent
from .tree import TreeNode

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
PauseHook = Callable[[], None]

YIELD_EVERY = 5
ROOT_GROUP = ""
ROOT_LABEL = "root"
LARGE_FILE_LINES = 1000
LARGE_FILE_BYTES = 100 * 1024
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class OutputMode(str, Enum):
    MINIMAL = "minimal"
    COMPACT = "compact"
    FULL = "full"


def organize_by_directory(files: Sequence[TreeNode]) -> Dict[str, List[TreeNode]]:
    """Group *files* by parent path; files at the top level use :data:`ROOT_GROUP`."""
    structure: Dict[str, List[TreeNode]] = {}
    for node in files:
        directory = node.path.rpartition("/")[0]
        structure.setdefault(directory, []).append(node)
    return structure


def _display_dir(directory: str) -> str:
    return ROOT_LABEL if directory == ROOT_GROUP else directory


def _fenced(name: str, text: str) -> str:
    body = text.rstrip("\n")
    return f"```{file_extension(name)}\n{body}\n```\n\n"


def _line_count(text: str) -> int:
    return text.count("\n") + 1


class _Run:
    """Bookkeeping shared by the three generators."""

    def __init__(
        self,
        mode: str,
        files: Sequence[TreeNode],
        fs: Any,
        progress: Optional[ProgressCallback],
        pause: Optional[PauseHook],
    ) -> None:
        self.mode = mode
        self.files = sorted(files, key=lambda n: n.path)
        self.fs = fs
        self.progress = progress
        self.pause = pause
        self.processed = 0
        self.read_time = 0.0
        self.started = time.perf_counter()

    def read(self, node: TreeNode) -> FileContent:
        started = time.perf_counter()
        try:
            return self.fs.read(node.handle)
        finally:
            self.read_time += time.perf_counter() - started

    def advance(self, node: TreeNode) -> None:
        self.processed += 1
        if self.progress is not None:
            self.progress(self.processed, len(self.files), node.name)
        if self.pause is not None and self.processed % YIELD_EVERY == 0:
            self.pause()

    def finish(self, **extra: Any) -> None:
        total = time.perf_counter() - self.started
        details = "".join(f", {key}={value}" for key, value in extra.items())
        logger.debug(
            "[%s] %d files in %.0fms (read %.0fms)%s",
            self.mode.upper(), len(self.files), total * 1000, self.read_time * 1000, details,
        )


def generate_minimal(
    files: Sequence[TreeNode],
    root_name: str,
    fs: Any,
    progress: Optional[ProgressCallback] = None,
    pause: Optional[PauseHook] = None,
    now: Optional[datetime.datetime] = None,
) -> str:
    run = _Run("minimal", files, fs, progress, pause)
    parts = [f"# {root_name}\n\n"]
    binary = 0

    for node in run.files:
        try:
            content = run.read(node)
        except FileReadError as e:
            logger.debug("Skipping %s: %s", node.path, e)
        else:
            if content.is_binary:
                binary += 1
            else:
                parts.append(f"{node.path}\n")
                parts.append(_fenced(node.name, content.text))
        run.advance(node)

    run.finish(binary=binary)
    return "".join(parts)


def generate_compact(
    files: Sequence[TreeNode],
    root_name: str,
    fs: Any,
    progress: Optional[ProgressCallback] = None,
    pause: Optional[PauseHook] = None,
    now: Optional[datetime.datetime] = None,
) -> str:
    run = _Run("compact", files, fs, progress, pause)
    now = now or datetime.datetime.now()
    structure = organize_by_directory(run.files)

    parts = [f"# {root_name}\n", f"Files: {len(run.files)} | {now.strftime(TIMESTAMP_FORMAT)}\n\n"]
    text_files = 0

    for directory in sorted(structure):
        parts.append(f"## {_display_dir(directory)}\n\n")
        for node in structure[directory]:
            try:
                content = run.read(node)
            except FileReadError as e:
                parts.append(f"### {node.name}\n")
                parts.append(f"[Error: {e}]\n\n")
            else:
                parts.append(f"### {node.name}\n")
                parts.append(f"`{node.path}` - {format_size(content.byte_length)}\n\n")
                if content.is_binary:
                    parts.append("[Binary]\n\n")
                else:
                    parts.append(_fenced(node.name, content.text))
                    text_files += 1
            run.advance(node)

    parts.append(f"---\n{text_files} files processed\n")
    run.finish()
    return "".join(parts)


def generate_full(
    files: Sequence[TreeNode],
    root_name: str,
    fs: Any,
    progress: Optional[ProgressCallback] = None,
    pause: Optional[PauseHook] = None,
    now: Optional[datetime.datetime] = None,
) -> str:
    run = _Run("full", files, fs, progress, pause)
    stamp = (now or datetime.datetime.now()).strftime(TIMESTAMP_FORMAT)
    structure = organize_by_directory(run.files)
    directories = sorted(structure)

    parts = [
        "##############################################\n",
        f"# DIRECTORY: {root_name}\n",
        f"# GENERATED: {stamp}\n",
        "##############################################\n\n",
        "## INDEX\n\n",
        f"> Total files: **{len(run.files)}**\n\n",
    ]
    for directory in directories:
        parts.append(f"### {_display_dir(directory)}\n\n")
        for node in structure[directory]:
            parts.append(f"- [{node.name}](#{slugify(node.path)})\n")
        parts.append("\n")
    parts.append("---\n\n")

    text_files = skipped = warnings = total_lines = total_size = 0

    for directory in directories:
        parts.append(f"# {_display_dir(directory)}\n\n")
        for node in structure[directory]:
            try:
                content = run.read(node)
            except FileReadError as e:
                parts.append(f"> **ERROR READING FILE:** {e}\n\n")
                parts.append("---\n\n")
                skipped += 1
                run.advance(node)
                continue

            parts.append(f'<a id="{slugify(node.path)}"></a>\n\n')
            parts.append(f"## {node.name}\n\n")
            parts.append(f"**Path:** `{node.path}`  \n")
            parts.append(f"**Size:** {format_size(content.byte_length)}\n\n")
            total_size += content.byte_length

            if content.is_binary:
                parts.append("> **BINARY FILE** - content not shown\n\n")
                skipped += 1
            else:
                lines = _line_count(content.text)
                total_lines += lines
                parts.append(f"**Lines:** {lines}\n\n")

                reasons = []
                if lines > LARGE_FILE_LINES:
                    reasons.append(f"{lines} lines")
                if content.byte_length > LARGE_FILE_BYTES:
                    reasons.append(format_size(content.byte_length))
                if reasons:
                    parts.append(
                        f"> **WARNING: LARGE FILE** ({', '.join(reasons)}) - "
                        "consider whether it needs to be included\n\n"
                    )
                    warnings += 1

                parts.append(_fenced(node.name, content.text))
                text_files += 1

            parts.append("---\n\n")
            run.advance(node)
        parts.append("\n")

    parts.extend([
        "# STATISTICS\n\n",
        "## Summary\n\n",
        f"- **Total files:** {len(run.files)}\n",
        f"- **Processed files:** {text_files}\n",
        f"- **Binary/skipped files:** {skipped}\n",
        f"- **Files with warnings:** {warnings}\n",
        f"- **Total lines:** {total_lines:,}\n",
        f"- **Total size:** {format_size(total_size)}\n\n",
        "## Files per directory\n\n",
    ])
    for directory in directories:
        parts.append(f"- **{_display_dir(directory)}:** {len(structure[directory])} file(s)\n")
    parts.append(f"\n---\n\n*Generated by mdassembler at {stamp}*\n")

    run.finish(lines=total_lines, size=format_size(total_size))
    return "".join(parts)


GENERATORS = {
    OutputMode.MINIMAL: generate_minimal,
    OutputMode.COMPACT: generate_compact,
    OutputMode.FULL: generate_full,
}


def generate(
    mode: str,
    files: Sequence[TreeNode],
    root_name: str,
    fs: Any,
    progress: Optional[ProgressCallback] = None,
    pause: Optional[PauseHook] = None,
    now: Optional[datetime.datetime] = None,
) -> str:
    return GENERATORS[OutputMode(mode)](files, root_name, fs, progress=progress, pause=pause, now=now)
