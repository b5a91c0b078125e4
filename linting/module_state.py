#!/usr/bin/env python
"""Reject module-level mutable state in the client package.

Every session owns its buffers, timers and connection, so several sessions can
run in one process. Module globals that hold containers, queues or lazily set
instances would be shared between them.
"""

from __future__ import annotations

import ast
import sys
import argparse
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
PACKAGE_DIR = ROOT / "autochat"

MUTABLE_FACTORIES = frozenset(
    {
        "dict",
        "list",
        "set",
        "bytearray",
        "defaultdict",
        "deque",
        "OrderedDict",
        "Counter",
        "Queue",
        "Event",
        "Lock",
        "Condition",
        "Semaphore",
    }
)
LAZY_INSTANCE_SUFFIXES = ("_instance", "_session", "_state", "_connection")
MUTABLE_LITERALS = (ast.List, ast.Dict, ast.Set, ast.ListComp, ast.DictComp, ast.SetComp)


def _target_names(node: ast.Assign | ast.AnnAssign) -> list[str]:
    targets = [node.target] if isinstance(node, ast.AnnAssign) else node.targets
    return [t.id for t in targets if isinstance(t, ast.Name)]


def _call_name(value: ast.expr) -> str:
    if not isinstance(value, ast.Call):
        return ""
    func = value.func
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return ""


def _mutable_reason(names: list[str], value: ast.expr | None) -> str:
    if value is None:
        return ""
    if isinstance(value, MUTABLE_LITERALS):
        return "mutable container literal"
    factory = _call_name(value)
    if factory in MUTABLE_FACTORIES:
        return f"`{factory}()` instance"
    if isinstance(value, ast.Constant) and value.value is None:
        if any(name.lower().endswith(LAZY_INSTANCE_SUFFIXES) for name in names):
            return "lazily assigned instance"
    return ""


def check_file(filepath: Path, root: Path = ROOT) -> list[str]:
    try:
        tree = ast.parse(filepath.read_text(encoding="utf-8"), filename=str(filepath))
    except (OSError, UnicodeDecodeError, SyntaxError):
        return []

    try:
        rel = filepath.relative_to(root)
    except ValueError:
        rel = filepath

    violations: list[str] = []
    for node in tree.body:
        if not isinstance(node, (ast.Assign, ast.AnnAssign)):
            continue
        names = [n for n in _target_names(node) if n != "__all__"]
        if not names:
            continue
        reason = _mutable_reason(names, node.value)
        if reason:
            violations.append(f"  {rel}:{node.lineno} module state `{', '.join(names)}` is a {reason}")
    return violations


def main() -> int:
    parser = argparse.ArgumentParser(description="Reject module-level mutable state.")
    parser.add_argument("--dir", type=Path, default=PACKAGE_DIR, help="Package directory to scan")
    args = parser.parse_args()

    if not args.dir.is_dir():
        print(f"[module-state] Missing package directory: {args.dir}", file=sys.stderr)
        return 1

    violations: list[str] = []
    for py_file in sorted(args.dir.rglob("*.py")):
        if "__pycache__" in py_file.parts:
            continue
        violations.extend(check_file(py_file))

    if not violations:
        return 0

    print("Module state violations:", file=sys.stderr)
    for violation in violations:
        print(violation, file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
