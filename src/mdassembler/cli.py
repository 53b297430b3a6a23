"""
CLI entrypoint for mdassembler.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from colorama import Fore, Style, init as colorama_init

from .core import AssemblerError, EmptySelectionError, OutputError
from .generators import OutputMode, generate
from .hostfs import LocalFileSystem
from .patterns import load_pattern_file, parse_patterns
from .tree import TreeBuilder, collect_selected_files, render_tree, set_selected

logger = logging.getLogger("mdassembler")

_LEVEL_COLORS = {
    logging.DEBUG: "",
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED,
}


class _ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = f"[mdassembler] {super().format(record)}"
        color = _LEVEL_COLORS.get(record.levelno, "")
        return f"{color}{msg}{Style.RESET_ALL}" if color else msg


def _setup_logging(verbose: bool) -> None:
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if logger.handlers:
        return
    colorama_init()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_ColorFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def _selection(value: bool) -> Callable[[str], Tuple[str, bool]]:
    def convert(path: str) -> Tuple[str, bool]:
        return path, value
    return convert


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="mdassembler",
        description="Assemble selected project files into one Markdown context document.",
    )
    p.add_argument("--root", type=Path, default=Path("."), help="Project root dir")
    p.add_argument(
        "--out",
        help="Output file (default: <root name>_context.md, '-' for stdout)",
    )
    p.add_argument(
        "--mode",
        choices=[m.value for m in OutputMode],
        default=OutputMode.FULL.value,
        help="Output format (default: full)",
    )
    p.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra ignore patterns (one per line)",
    )
    p.add_argument("--no-gitignore", action="store_true", help="Do not read <root>/.gitignore")
    p.add_argument(
        "--full-load",
        action="store_true",
        help="Enumerate ignored/noise directories up front instead of deferring them",
    )
    bulk = p.add_mutually_exclusive_group()
    bulk.add_argument("--all", action="store_true", help="Start from everything selected")
    bulk.add_argument("--none", action="store_true", help="Start from nothing selected")
    p.add_argument(
        "--select",
        dest="changes",
        action="append",
        type=_selection(True),
        metavar="PATH",
        help="Select a path (repeatable, applied in order)",
    )
    p.add_argument(
        "--deselect",
        dest="changes",
        action="append",
        type=_selection(False),
        metavar="PATH",
        help="Deselect a path (repeatable, applied in order)",
    )
    p.set_defaults(changes=[])
    p.add_argument("--tree", action="store_true", help="Print the selection tree and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def _load_patterns(fs: LocalFileSystem, root: Path, ns: argparse.Namespace) -> List[str]:
    patterns: List[str] = []
    if not ns.no_gitignore:
        text = fs.read_text(root, ".gitignore")
        if text is None:
            logger.debug("No .gitignore found, using default rules")
        else:
            patterns.extend(parse_patterns(text))
            logger.debug("Loaded .gitignore with %d patterns", len(patterns))
    if ns.config:
        extra = load_pattern_file(ns.config.resolve())
        logger.debug("Loaded %d extra patterns from %s", len(extra), ns.config)
        patterns.extend(extra)
    return patterns


def _apply_selection(builder: TreeBuilder, ns: argparse.Namespace) -> None:
    if ns.all or ns.none:
        set_selected(builder.root, ns.all)
    for raw, value in ns.changes:
        node = builder.resolve(raw)
        if node is None:
            logger.warning("No such path in tree: %s", raw)
            continue
        set_selected(node, value)


def _write_output(text: str, out: str) -> None:
    if out == "-":
        sys.stdout.write(text)
        return
    out_path = Path(out)
    try:
        out_path = out_path.resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8", newline="\n")
    except (OSError, RuntimeError, UnicodeError) as e:
        raise OutputError(f"Could not write '{out_path}': {e}")


def run(argv: Optional[List[str]] = None) -> int:
    ns = _parse_args(argv)
    _setup_logging(ns.verbose)

    fs = LocalFileSystem()
    root = fs.open_root(ns.root)
    patterns = _load_patterns(fs, root, ns)

    logger.debug("Scanning %s …", root)
    builder = TreeBuilder(fs, patterns, full_load=ns.full_load)
    tree = builder.build(root)
    _apply_selection(builder, ns)

    if ns.tree:
        sys.stdout.write(render_tree(tree))
        return 0

    selected = collect_selected_files(tree)
    if not selected:
        raise EmptySelectionError("No files selected, nothing to generate")
    logger.debug("%d files selected", len(selected))

    def progress(done: int, total: int, name: str) -> None:
        logger.debug("(%d/%d) %s", done, total, name)

    text = generate(ns.mode, selected, tree.name, fs, progress=progress)
    out = ns.out or f"{tree.name}_context.md"
    _write_output(text, out)
    logger.info("Done → %s. %d files, %d bytes.", out, len(selected), len(text.encode("utf-8")))
    return 0


def main() -> None:
    try:
        sys.exit(run())
    except AssemblerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
