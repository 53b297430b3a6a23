"""
mdassembler - assemble a project subtree into one Markdown document for LLM
ingestion.

The tree is built lazily over a host file system, files are selected with
tri-state directory aggregation, and the selection is written in one of three
output modes (minimal, compact, full).
"""

__version__ = "0.1.0"

from .core import (
    AssemblerError,
    ConfigFileError,
    EmptySelectionError,
    FileReadError,
    GenerationCancelled,
    InvalidRootError,
    OutputError,
    UnsupportedEnvironmentError,
)
from .generators import OutputMode, generate, generate_compact, generate_full, generate_minimal
from .hostfs import LocalFileSystem
from .patterns import PatternMatcher, is_ignored, matches, parse_patterns
from .tree import (
    CheckState,
    TreeBuilder,
    TreeNode,
    build_tree,
    collect_selected_files,
    get_check_state,
    set_selected,
)
