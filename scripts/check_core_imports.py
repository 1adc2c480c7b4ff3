#!/usr/bin/env python3
"""
Keep oslc_mcp.core transport-agnostic.

Every module under src/oslc_mcp/core/ is parsed and its imports are checked:
core may use httpx, lxml, pydantic and dotenv, but never the MCP server
library or anything under oslc_mcp.transports (absolute or relative).
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path
from typing import Iterator, Tuple

REPO_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = REPO_ROOT / "src"
CORE_DIR = SRC_DIR / "oslc_mcp" / "core"

FORBIDDEN_PREFIXES = (
    "mcp",
    "fastmcp",
    "oslc_mcp.transports",
)


def is_forbidden(module: str) -> bool:
    return any(
        module == prefix or module.startswith(prefix + ".")
        for prefix in FORBIDDEN_PREFIXES
    )


def _package_of(path: Path) -> str:
    try:
        rel = path.resolve().relative_to(SRC_DIR)
    except ValueError:
        return ""
    return ".".join(rel.parent.parts)


def _resolve_relative(package: str, level: int, module: str) -> str:
    parts = package.split(".") if package else []
    base = parts[: len(parts) - (level - 1)] if level > 1 else parts
    return ".".join([*base, module] if module else base)


def iter_imports(path: Path) -> Iterator[Tuple[int, str]]:
    """(line, absolute module name) for each import statement in `path`."""
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    package = _package_of(path)
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom):
            module = node.module or ""
            if node.level:
                module = _resolve_relative(package, node.level, module)
            if module:
                yield node.lineno, module


def scan_file(path: Path) -> list[str]:
    return [
        f"{path}:{line}: forbidden import '{module}'"
        for line, module in iter_imports(path)
        if is_forbidden(module)
    ]


def main() -> int:
    violations: list[str] = []
    for py_file in sorted(CORE_DIR.rglob("*.py")):
        violations.extend(scan_file(py_file))

    for v in violations:
        print(v, file=sys.stderr)
    return 1 if violations else 0


if __name__ == "__main__":
    sys.exit(main())
