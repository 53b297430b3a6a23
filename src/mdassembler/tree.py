"""
Selectable project tree.

:class:`TreeBuilder` walks a host file system into :class:`TreeNode` objects.
Noisy or ignored directories (``node_modules``, ``.git``, anything matched by
``.gitignore``) are created as childless stubs and only enumerated when
:meth:`TreeBuilder.expand_deferred` is called for them.

Selection is tri-state: files carry a boolean ``selected`` flag and
directories report ``checked``, ``unchecked`` or ``indeterminate`` from their
loaded children. The aggregate is cached per node and invalidated upwards on
every :func:`set_selected` call.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .core import (
    ALLOWED_DOT_DIRECTORIES,
    AUTO_DESELECT_PATTERNS,
    NOISE_DIRECTORIES,
)
from .hostfs import DIRECTORY, FILE, Entry, check_support
from .patterns import PatternMatcher

logger = logging.getLogger(__name__)

AUTO_DESELECT = PatternMatcher(AUTO_DESELECT_PATTERNS)


class CheckState(str, Enum):
    CHECKED = "checked"
    UNCHECKED = "unchecked"
    INDETERMINATE = "indeterminate"


class TreeNode:
    """One file or directory of a built tree.

    A directory owns ``children``; ``parent`` is only used to walk upwards when
    the cached check state has to be dropped.
    """

    def __init__(
        self,
        name: str,
        kind: str,
        path: str = "",
        handle: Any = None,
        selected: bool = True,
        expanded: bool = True,
    ) -> None:
        self.name = name
        self.kind = kind
        self.path = path
        self.handle = handle
        self.selected = selected
        self.expanded = expanded
        self.children: List[TreeNode] = []
        self.parent: Optional[TreeNode] = None
        self.loaded = kind == FILE
        self._check_state: Optional[CheckState] = None

    @property
    def is_dir(self) -> bool:
        return self.kind == DIRECTORY

    @property
    def is_stub(self) -> bool:
        return self.is_dir and not self.loaded

    def add_child(self, child: TreeNode) -> None:
        child.parent = self
        self.children.append(child)

    def invalidate(self) -> None:
        node: Optional[TreeNode] = self
        while node is not None:
            node._check_state = None
            node = node.parent

    def __repr__(self) -> str:
        return f"TreeNode(path={self.path!r}, kind={self.kind!r}, selected={self.selected})"


# Selection
def set_selected(node: TreeNode, value: bool) -> None:
    """Select or deselect *node* and every loaded descendant."""
    node.invalidate()
    stack = [node]
    while stack:
        current = stack.pop()
        current.selected = value
        current._check_state = None
        stack.extend(current.children)


def get_check_state(node: TreeNode) -> CheckState:
    # post-order walk; children are resolved before their parent
    stack = [(node, False)]
    while stack:
        current, ready = stack.pop()
        if current._check_state is not None:
            continue
        if not current.children:
            current._check_state = CheckState.CHECKED if current.selected else CheckState.UNCHECKED
        elif not ready:
            stack.append((current, True))
            stack.extend((child, False) for child in current.children if child._check_state is None)
        else:
            states = {child._check_state for child in current.children}
            if states == {CheckState.CHECKED}:
                current._check_state = CheckState.CHECKED
            elif states == {CheckState.UNCHECKED}:
                current._check_state = CheckState.UNCHECKED
            else:
                current._check_state = CheckState.INDETERMINATE
    return node._check_state


def collect_selected_files(node: TreeNode) -> List[TreeNode]:
    """Selected file nodes under *node*, in tree order."""
    result: List[TreeNode] = []
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_dir:
            stack.extend(reversed(current.children))
        elif current.selected:
            result.append(current)
    return result


def count_tree_nodes(node: TreeNode) -> Tuple[int, int]:
    """Return ``(files, folders)`` for the loaded part of the tree."""
    files = folders = 0
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_dir:
            folders += 1
            stack.extend(current.children)
        else:
            files += 1
    return files, folders


# Default-selection rules
def should_collapse(path: str, name: str, matcher: PatternMatcher) -> bool:
    if matcher.is_ignored(path):
        return True
    if name.startswith("."):
        return name not in ALLOWED_DOT_DIRECTORIES
    return name.lower() in NOISE_DIRECTORIES


def should_auto_deselect(path: str, name: str, matcher: PatternMatcher) -> bool:
    if matcher.is_ignored(path):
        return True
    return AUTO_DESELECT.is_ignored(name.lower())


def _entry_sort_key(entry: Entry) -> Tuple[bool, str]:
    return (entry.kind != DIRECTORY, entry.name)


class TreeBuilder:
    """Builds and lazily extends one tree.

    ``nodes`` maps every created node's path to the node. Only this class
    writes to it.
    """

    def __init__(self, fs: Any, patterns: Iterable[str] = (), full_load: bool = False) -> None:
        check_support(fs)
        self.fs = fs
        self.matcher = patterns if isinstance(patterns, PatternMatcher) else PatternMatcher(patterns)
        self.full_load = full_load
        self.nodes: Dict[str, TreeNode] = {}
        self.root: Optional[TreeNode] = None

    def build(self, root_handle: Any, name: Optional[str] = None) -> TreeNode:
        if name is None:
            name = self.fs.name_of(root_handle)
        root = TreeNode(name, DIRECTORY, "", root_handle)
        self.nodes = {"": root}
        self.root = root
        self._populate(root, inherit=None)
        files, folders = count_tree_nodes(root)
        logger.debug("Built tree for %s: %d files, %d folders", name, files, folders)
        return root

    def expand_deferred(self, node: TreeNode) -> bool:
        """Enumerate a stub directory; returns ``False`` if there was nothing to do."""
        if not node.is_dir or node.loaded or node.handle is None:
            return False
        self._populate(node, inherit=node.selected)
        node.invalidate()
        logger.debug("Loaded children for %s (%d items)", node.path, len(node.children))
        return True

    def resolve(self, path: str) -> Optional[TreeNode]:
        """Find the node at *path*, expanding stubs along the way."""
        path = path.strip("/")
        if path in self.nodes:
            return self.nodes[path]
        if self.root is None:
            return None

        current = self.root
        for part in path.split("/"):
            self.expand_deferred(current)
            child_path = f"{current.path}/{part}" if current.path else part
            found = self.nodes.get(child_path)
            if found is None:
                return None
            current = found
        return current

    def _visit_directory(self, entry: Entry, path: str, inherit: Optional[bool]) -> TreeNode:
        node = TreeNode(entry.name, DIRECTORY, path, entry.handle)
        self.nodes[path] = node

        collapse = should_collapse(path, entry.name, self.matcher)
        if inherit is not None:
            node.selected = inherit
        elif collapse:
            node.selected = False
        if collapse:
            node.expanded = False
            if not self.full_load:
                logger.debug("Deferring %s", path)
                return node

        self._populate(node, inherit=node.selected if collapse else inherit)
        return node

    def _populate(self, node: TreeNode, inherit: Optional[bool]) -> None:
        node.loaded = True
        try:
            entries = sorted(self.fs.list_entries(node.handle), key=_entry_sort_key)
        except OSError as e:
            logger.warning("Could not list '%s': %s", node.path or node.name, e)
            return

        for entry in entries:
            path = f"{node.path}/{entry.name}" if node.path else entry.name
            if entry.kind == DIRECTORY:
                node.add_child(self._visit_directory(entry, path, inherit))
                continue

            if inherit is not None:
                selected = inherit
            else:
                selected = not should_auto_deselect(path, entry.name, self.matcher)
            child = TreeNode(entry.name, FILE, path, entry.handle, selected=selected)
            self.nodes[path] = child
            node.add_child(child)


def build_tree(
    fs: Any,
    root_handle: Any,
    patterns: Iterable[str] = (),
    full_load: bool = False,
    name: Optional[str] = None,
) -> Tuple[TreeNode, TreeBuilder]:
    builder = TreeBuilder(fs, patterns, full_load=full_load)
    return builder.build(root_handle, name=name), builder


# ASCII rendering
_MARKERS = {
    CheckState.CHECKED: "[x]",
    CheckState.UNCHECKED: "[ ]",
    CheckState.INDETERMINATE: "[-]",
}


def render_tree(root: TreeNode) -> str:
    """
    Return the loaded tree as text with a check marker per node.

    Uses ``├──``, ``└──``, ``│   `` connectors; stubs are suffixed with ``…``.
    """
    lines: List[str] = [f"{_MARKERS[get_check_state(root)]} {root.name}/"]

    stack = [(child, "", idx == len(root.children) - 1) for idx, child in enumerate(root.children)]
    stack.reverse()
    while stack:
        node, prefix, last = stack.pop()
        connector = "└── " if last else "├── "
        suffix = ""
        if node.is_dir:
            suffix = "/ …" if node.is_stub else "/"
        lines.append(f"{prefix}{connector}{_MARKERS[get_check_state(node)]} {node.name}{suffix}")
        child_prefix = prefix + ("    " if last else "│   ")
        count = len(node.children)
        for idx in range(count - 1, -1, -1):
            stack.append((node.children[idx], child_prefix, idx == count - 1))
    lines.append("")
    return "\n".join(lines)
