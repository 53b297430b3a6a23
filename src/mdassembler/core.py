"""
Shared definitions for the mdassembler package: exceptions, built-in
name lists and small formatting helpers.
"""

from __future__ import annotations

import re
from typing import FrozenSet, List

# Exceptions
class AssemblerError(Exception): ...
class UnsupportedEnvironmentError(AssemblerError): ...
class InvalidRootError(AssemblerError): ...
class ConfigFileError(AssemblerError): ...
class OutputError(AssemblerError): ...
class FileReadError(AssemblerError): ...
class GenerationCancelled(AssemblerError): ...
class EmptySelectionError(AssemblerError): ...


# Directories that start collapsed (and unselected) regardless of .gitignore.
NOISE_DIRECTORIES: FrozenSet[str] = frozenset({
    "node_modules",
    ".git",
    ".next",
    ".nuxt",
    "dist",
    "build",
    "out",
    ".cache",
    "coverage",
    ".turbo",
    ".vercel",
    ".netlify",
    "__pycache__",
    "venv",
    ".venv",
    "vendor",
    "target",
    ".gradle",
    ".maven",
    ".idea",
    ".vscode",
    ".ds_store",
})

# Dot-directories that are worth showing expanded.
ALLOWED_DOT_DIRECTORIES: FrozenSet[str] = frozenset({".github", ".husky", ".storybook"})

# Matched case-insensitively against the file name only.
AUTO_DESELECT_PATTERNS: List[str] = [
    # lock files
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "composer.lock",
    "gemfile.lock",
    "poetry.lock",
    "cargo.lock",
    # logs
    "*.log",
    # OS / IDE metadata
    ".ds_store",
    "thumbs.db",
    "desktop.ini",
    "*.swp",
    "*.swo",
    "*~",
    # build artifacts
    "*.map",
    "*.min.js",
    "*.min.css",
    # data
    "*.sqlite",
    "*.db",
    # images
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    "*.ico",
    "*.svg",
    "*.webp",
    "*.bmp",
    # fonts
    "*.ttf",
    "*.otf",
    "*.woff",
    "*.woff2",
    "*.eot",
    # audio / video
    "*.mp4",
    "*.mp3",
    "*.wav",
    "*.avi",
    "*.mov",
    # documents
    "*.pdf",
    "*.doc",
    "*.docx",
]

BINARY_EXTENSIONS: FrozenSet[str] = frozenset({
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".7z", ".tar", ".gz",
    ".exe", ".dll", ".so", ".dylib",
    ".mp3", ".mp4", ".avi", ".mov", ".wav",
    ".ttf", ".otf", ".woff", ".woff2",
    ".db", ".sqlite", ".bin",
})


# Misc helpers
def is_binary_name(name: str) -> bool:
    return any(name.lower().endswith(ext) for ext in BINARY_EXTENSIONS)


def is_binary_data(data: bytes) -> bool:
    return b"\0" in data


def file_extension(name: str) -> str:
    """Fence tag for *name*: the last dot suffix, lowercased, or ``txt``."""
    parts = name.split(".")
    if len(parts) > 1:
        return parts[-1].lower()
    return "txt"


_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower()).strip("-")


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"
