#!/usr/bin/env python3
"""
Keep restcore.core service-agnostic.

Every module under src/restcore/core/ is parsed, each import is resolved to an
absolute module name (relative imports against the file's own package), and
anything under restcore.services or restcore.models is reported.
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path
from typing import Iterator, NamedTuple

SRC_DIR = Path(__file__).resolve().parent.parent / "src"
CORE_PACKAGE = "restcore.core"
FORBIDDEN = ("restcore.services", "restcore.models")


class Violation(NamedTuple):
    path: Path
    lineno: int
    module: str

    def __str__(self) -> str:
        return f"{self.path}:{self.lineno}: core must not import {self.module}"


def is_forbidden(module: str) -> bool:
    return any(module == name or module.startswith(name + ".") for name in FORBIDDEN)


def package_of(path: Path, src_dir: Path = SRC_DIR) -> str:
    parts = list(path.relative_to(src_dir).with_suffix("").parts)
    parts.pop()  # module name, or "__init__" for the package itself
    return ".".join(parts)


def _absolute(node: ast.ImportFrom, package: str) -> str:
    if node.level == 0:
        return node.module or ""
    parts = package.split(".")
    if node.level > 1:
        parts = parts[: len(parts) - (node.level - 1)]
    if node.module:
        parts.append(node.module)
    return ".".join(parts)


def imported_modules(tree: ast.AST, package: str) -> Iterator[tuple[int, str]]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom):
            base = _absolute(node, package)
            yield node.lineno, base
            # "from restcore import models" imports a submodule by name
            for alias in node.names:
                yield node.lineno, f"{base}.{alias.name}"


def scan_file(path: Path, package: str = CORE_PACKAGE) -> list[Violation]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    seen: set[tuple[int, str]] = set()
    found: list[Violation] = []
    for lineno, module in imported_modules(tree, package):
        if not is_forbidden(module):
            continue
        root = next(name for name in FORBIDDEN if module.startswith(name))
        if (lineno, root) in seen:
            continue
        seen.add((lineno, root))
        found.append(Violation(path, lineno, module))
    return found


def main(src_dir: Path = SRC_DIR) -> int:
    core_dir = src_dir.joinpath(*CORE_PACKAGE.split("."))
    violations: list[Violation] = []
    for py_file in sorted(core_dir.rglob("*.py")):
        violations.extend(scan_file(py_file, package_of(py_file, src_dir)))

    for violation in violations:
        print(violation, file=sys.stderr)
    return 1 if violations else 0


if __name__ == "__main__":
    sys.exit(main())
