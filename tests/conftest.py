"""Pytest bootstrap for local source imports.

Lets ``import mdassembler`` resolve to ``src/`` without an installed copy,
and lets test modules import the shared fakes in this directory.
"""

from __future__ import annotations

import sys
from pathlib import Path


TESTS_DIR = Path(__file__).resolve().parent
SRC_DIR = TESTS_DIR.parent / "src"

for entry in (str(SRC_DIR), str(TESTS_DIR)):
    if entry not in sys.path:
        sys.path.insert(0, entry)
