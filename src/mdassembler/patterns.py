"""
Ignore-pattern parsing and matching.

Only the common ``.gitignore`` forms are understood:

* ``name`` - matches a path equal to ``name`` or ending in ``/name``
* ``dir/`` - matches the directory ``dir`` and everything below it
* ``*.ext`` / ``folder/*`` - ``*`` matches any run of characters; the match
  starts at a path-segment boundary and runs to the end of the path

Negation (``!``) and ``**`` are not supported.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List

import pathspec
from pathspec.pattern import RegexPattern

from .core import ConfigFileError


def parse_patterns(text: str) -> List[str]:
    """Split ignore-file *text* into patterns, dropping blanks and comments."""
    patterns: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        patterns.append(stripped)
    return patterns


def load_pattern_file(config_path: Path) -> List[str]:
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")
    return parse_patterns(text)


def pattern_to_regex(pattern: str) -> str:
    """Translate one ignore *pattern* into a regular expression.

    The expression is meant for ``re.match`` against a slash-separated path
    with no leading slash.
    """
    clean = pattern[1:] if pattern.startswith("/") else pattern

    if clean.endswith("/"):
        return f"^{re.escape(clean[:-1])}(?:/.*)?$"

    if "*" not in clean:
        return f"^(?:.*/)?{re.escape(clean)}$"

    body = ".*".join(re.escape(part) for part in clean.split("*"))
    return f"^(?:.*/)?{body}$"


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> RegexPattern:
    return RegexPattern(re.compile(pattern_to_regex(pattern)), include=True)


class PatternMatcher:
    """A compiled, ordered list of ignore patterns."""

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.patterns: List[str] = list(patterns)
        self._spec = pathspec.PathSpec([_compile(p) for p in self.patterns])

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __repr__(self) -> str:
        return f"PatternMatcher({self.patterns!r})"

    def is_ignored(self, path: str) -> bool:
        if not self.patterns:
            return False
        return self._spec.match_file(path)


def matches(path: str, pattern: str) -> bool:
    return PatternMatcher([pattern]).is_ignored(path)


def is_ignored(path: str, patterns: Iterable[str]) -> bool:
    return PatternMatcher(patterns).is_ignored(path)
