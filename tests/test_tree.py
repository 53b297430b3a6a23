"""Tests for lazy tree construction and deferred expansion."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from fakes import MemoryFileSystem

from mdassembler.core import UnsupportedEnvironmentError
from mdassembler.hostfs import LocalFileSystem
from mdassembler.tree import (
    CheckState,
    TreeBuilder,
    build_tree,
    collect_selected_files,
    get_check_state,
    set_selected,
)


def _project() -> dict:
    return {
        "src": {"b.py": "b", "a.py": "a"},
        "README.md": "readme",
        "node_modules": {"pkg": {"index.js": "x", "logo.png": b"\x00"}},
        "docs": {},
        "logo.png": b"\x89PNG\x00",
        "yarn.lock": "lock",
        ".github": {"ci.yml": "on: push"},
        ".config": {"settings.json": "{}"},
    }


class BuildTreeTests(unittest.TestCase):
    def test_children_sorted_directories_first_then_by_name(self) -> None:
        root, _builder = build_tree(MemoryFileSystem(_project()), (), name="proj")
        self.assertEqual(
            [child.name for child in root.children],
            [".config", ".github", "docs", "node_modules", "src", "README.md", "logo.png", "yarn.lock"],
        )
        self.assertEqual([c.name for c in root.children[4].children], ["a.py", "b.py"])

    def test_paths_are_relative_and_registered(self) -> None:
        root, builder = build_tree(MemoryFileSystem(_project()), (), name="proj")
        self.assertEqual(root.path, "")
        self.assertIs(builder.nodes[""], root)
        self.assertEqual(builder.nodes["src/a.py"].path, "src/a.py")
        self.assertIs(builder.nodes["src/a.py"].parent, builder.nodes["src"])
        self.assertNotIn("node_modules/pkg", builder.nodes)

    def test_noise_directories_become_unselected_stubs(self) -> None:
        fs = MemoryFileSystem(_project())
        _root, builder = build_tree(fs, (), name="proj")
        for path in ("node_modules", ".config"):
            with self.subTest(path=path):
                stub = builder.nodes[path]
                self.assertEqual(stub.children, [])
                self.assertTrue(stub.is_stub)
                self.assertFalse(stub.selected)
                self.assertFalse(stub.expanded)
                self.assertEqual(get_check_state(stub), CheckState.UNCHECKED)
        self.assertFalse(builder.nodes[".github"].is_stub)
        self.assertNotIn(("node_modules",), fs.list_calls)

    def test_huge_noise_directory_is_never_listed(self) -> None:
        tree = {"node_modules": {f"f{i}.js": "" for i in range(10_000)}, "index.js": "x"}
        fs = MemoryFileSystem(tree)
        root, _builder = build_tree(fs, (), name="proj")
        self.assertEqual(fs.list_calls, [()])
        stub = root.children[0]
        self.assertEqual((stub.name, stub.children, stub.selected), ("node_modules", [], False))

    def test_auto_deselect_rules_for_files(self) -> None:
        _root, builder = build_tree(MemoryFileSystem(_project()), (), name="proj")
        self.assertTrue(builder.nodes["README.md"].selected)
        self.assertFalse(builder.nodes["logo.png"].selected)
        self.assertFalse(builder.nodes["yarn.lock"].selected)
        self.assertEqual(get_check_state(builder.nodes[""]), CheckState.INDETERMINATE)

    def test_ignore_patterns_collapse_directories_and_deselect_files(self) -> None:
        tree = {
            "generated": {"out.js": "x"},
            "generator": {"gen.py": "y"},
            "src": {"main.py": "m", "keys.secret": "k"},
        }
        fs = MemoryFileSystem(tree)
        _root, builder = build_tree(fs, (), ["generated/", "*.secret"], name="proj")
        self.assertTrue(builder.nodes["generated"].is_stub)
        self.assertFalse(builder.nodes["generated"].selected)
        self.assertNotIn(("generated",), fs.list_calls)
        self.assertFalse(builder.nodes["generator"].is_stub)
        self.assertFalse(builder.nodes["src/keys.secret"].selected)
        self.assertTrue(builder.nodes["src/main.py"].selected)

    def test_directory_listing_failure_is_isolated(self) -> None:
        fs = MemoryFileSystem(_project(), deny={("src",)})
        with self.assertLogs("mdassembler.tree", level="WARNING") as logs:
            root, builder = build_tree(fs, (), name="proj")
        self.assertIn("src", "\n".join(logs.output))
        self.assertEqual(builder.nodes["src"].children, [])
        self.assertTrue(builder.nodes["src"].loaded)
        self.assertIn("README.md", builder.nodes)
        self.assertIn("README.md", [n.path for n in collect_selected_files(root)])

    def test_full_load_enumerates_collapsed_directories_unselected(self) -> None:
        fs = MemoryFileSystem(_project())
        _root, builder = build_tree(fs, (), full_load=True, name="proj")
        node_modules = builder.nodes["node_modules"]
        self.assertFalse(node_modules.is_stub)
        self.assertIn("node_modules/pkg/index.js", builder.nodes)
        self.assertFalse(builder.nodes["node_modules/pkg/index.js"].selected)
        self.assertEqual(get_check_state(node_modules), CheckState.UNCHECKED)

    def test_unsupported_file_system_fails_before_any_work(self) -> None:
        with self.assertRaises(UnsupportedEnvironmentError):
            TreeBuilder(object())

    def test_builds_from_local_disk(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root_dir = Path(tmp) / "proj"
            (root_dir / "src").mkdir(parents=True)
            (root_dir / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
            (root_dir / "__pycache__").mkdir()
            (root_dir / "__pycache__" / "app.cpython.pyc").write_bytes(b"\x00")

            fs = LocalFileSystem()
            root, builder = build_tree(fs, fs.open_root(root_dir))

            self.assertEqual(root.name, "proj")
            self.assertEqual([c.name for c in root.children], ["__pycache__", "src"])
            self.assertTrue(builder.nodes["__pycache__"].is_stub)
            self.assertEqual([n.path for n in collect_selected_files(root)], ["src/app.py"])


class ExpandDeferredTests(unittest.TestCase):
    def test_expand_is_idempotent(self) -> None:
        fs = MemoryFileSystem(_project())
        _root, builder = build_tree(fs, (), name="proj")
        stub = builder.nodes["node_modules"]

        self.assertTrue(builder.expand_deferred(stub))
        calls = len(fs.list_calls)
        names = [c.name for c in stub.children]
        self.assertEqual(names, ["pkg"])

        self.assertFalse(builder.expand_deferred(stub))
        self.assertEqual([c.name for c in stub.children], names)
        self.assertEqual(len(fs.list_calls), calls)

    def test_expand_is_noop_for_files_and_loaded_directories(self) -> None:
        fs = MemoryFileSystem(_project())
        _root, builder = build_tree(fs, (), name="proj")
        calls = len(fs.list_calls)
        self.assertFalse(builder.expand_deferred(builder.nodes["README.md"]))
        self.assertFalse(builder.expand_deferred(builder.nodes["src"]))
        self.assertFalse(builder.expand_deferred(builder.nodes["docs"]))
        self.assertEqual(len(fs.list_calls), calls)

    def test_untouched_stub_expands_to_unselected_content(self) -> None:
        _root, builder = build_tree(MemoryFileSystem(_project()), (), name="proj")
        stub = builder.nodes["node_modules"]
        builder.expand_deferred(stub)
        self.assertFalse(builder.nodes["node_modules/pkg"].selected)
        self.assertFalse(builder.nodes["node_modules/pkg/index.js"].selected)
        self.assertEqual(get_check_state(stub), CheckState.UNCHECKED)

    def test_expanded_stub_inherits_last_bulk_selection(self) -> None:
        root, builder = build_tree(MemoryFileSystem(_project()), (), name="proj")
        set_selected(root, True)
        stub = builder.nodes["node_modules"]
        self.assertEqual(get_check_state(stub), CheckState.CHECKED)

        builder.expand_deferred(stub)
        self.assertTrue(builder.nodes["node_modules/pkg/index.js"].selected)
        self.assertTrue(builder.nodes["node_modules/pkg/logo.png"].selected)
        self.assertEqual(get_check_state(stub), CheckState.CHECKED)
        self.assertEqual(get_check_state(root), CheckState.CHECKED)

    def test_expansion_invalidates_ancestor_state(self) -> None:
        tree = {"node_modules": {"a.js": "a", "b.png": b"\x00"}, "main.py": "m"}
        root, builder = build_tree(MemoryFileSystem(tree), (), name="proj")
        stub = builder.nodes["node_modules"]
        set_selected(stub, True)
        self.assertEqual(get_check_state(root), CheckState.CHECKED)

        builder.expand_deferred(stub)
        set_selected(builder.nodes["node_modules/b.png"], False)
        self.assertEqual(get_check_state(stub), CheckState.INDETERMINATE)
        self.assertEqual(get_check_state(root), CheckState.INDETERMINATE)

    def test_listing_failure_during_expansion_is_not_retried(self) -> None:
        fs = MemoryFileSystem(_project(), deny={("node_modules",)})
        _root, builder = build_tree(fs, (), name="proj")
        stub = builder.nodes["node_modules"]

        with self.assertLogs("mdassembler.tree", level="WARNING") as logs:
            self.assertTrue(builder.expand_deferred(stub))
        self.assertIn("node_modules", "\n".join(logs.output))
        self.assertEqual(stub.children, [])
        self.assertTrue(stub.loaded)
        self.assertEqual(get_check_state(stub), CheckState.UNCHECKED)

        calls = len(fs.list_calls)
        self.assertFalse(builder.expand_deferred(stub))
        self.assertEqual(len(fs.list_calls), calls)

    def test_resolve_materializes_stubs_on_the_way(self) -> None:
        _root, builder = build_tree(MemoryFileSystem(_project()), (), name="proj")
        node = builder.resolve("node_modules/pkg/index.js")
        self.assertIsNotNone(node)
        self.assertEqual(node.path, "node_modules/pkg/index.js")
        self.assertIs(builder.resolve("/src/a.py"), builder.nodes["src/a.py"])
        self.assertIs(builder.resolve(""), builder.root)
        self.assertIsNone(builder.resolve("missing/file.py"))
        self.assertIsNone(builder.resolve("README.md/inner"))


if __name__ == "__main__":
    unittest.main()
