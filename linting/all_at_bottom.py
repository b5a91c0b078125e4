#!/usr/bin/env python
"""Check that each module's export list is one `__all__ = [...]` closing the file."""

from __future__ import annotations

import ast
import sys
import argparse
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DIRS = ("autochat", "tests")


def _names_all(target: ast.AST) -> bool:
    return isinstance(target, ast.Name) and target.id == "__all__"


def _classify(node: ast.stmt) -> str:
    """Return "define", "mutate" or "" for a top-level statement."""
    if isinstance(node, ast.Assign) and any(_names_all(t) for t in node.targets):
        return "define" if len(node.targets) == 1 else "mutate"
    if isinstance(node, ast.AnnAssign) and _names_all(node.target):
        return "define"
    if isinstance(node, ast.AugAssign) and _names_all(node.target):
        return "mutate"
    if isinstance(node, ast.Delete) and any(_names_all(t) for t in node.targets):
        return "mutate"
    if isinstance(node, ast.Expr) and isinstance(node.value, ast.Call):
        func = node.value.func
        if isinstance(func, ast.Attribute) and _names_all(func.value):
            return "mutate"
    return ""


def _describe(node: ast.stmt) -> str:
    name = getattr(node, "name", None)
    return f"`{name}`" if name else type(node).__name__


def check_file(filepath: Path, root: Path = ROOT) -> list[str]:
    try:
        tree = ast.parse(filepath.read_text(encoding="utf-8"), filename=str(filepath))
    except (OSError, UnicodeDecodeError, SyntaxError):
        return []
    try:
        rel = filepath.relative_to(root)
    except ValueError:
        rel = filepath

    problems: list[str] = []
    defined_at: int | None = None
    for node in tree.body:
        kind = _classify(node)
        if kind == "mutate":
            problems.append(f"  {rel}:{node.lineno} `__all__` must not be mutated")
        elif kind == "define" and defined_at is not None:
            problems.append(f"  {rel}:{node.lineno} duplicate `__all__` assignment")
        elif kind == "define":
            defined_at = node.lineno
        elif defined_at is not None:
            problems.append(f"  {rel}:{node.lineno} {_describe(node)} defined after `__all__`")
    return problems


def main() -> int:
    parser = argparse.ArgumentParser(description="Require `__all__` at the bottom of each module.")
    parser.add_argument("--dirs", nargs="+", default=list(DEFAULT_DIRS), help="Directories to scan")
    args = parser.parse_args()

    problems: list[str] = []
    for d in args.dirs:
        for py_file in sorted((ROOT / d).rglob("*.py")):
            if "__pycache__" not in py_file.parts:
                problems.extend(check_file(py_file))

    if problems:
        print("__all__ placement violations:", file=sys.stderr)
        print("\n".join(problems), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
