from __future__ import annotations
import re
from pathlib import Path
from typing import Iterable, List

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def iter_python_files(repo_dir: str) -> Iterable[str]:
    """Yield repo-relative paths of .py files (skip venv, build, hidden dirs)."""
    root = Path(repo_dir).resolve()
    skip = {".git", ".venv", "venv", "__pycache__", "build", "dist", ".mypy_cache", ".pytest_cache"}
    for p in sorted(root.rglob("*.py")):
        parts = p.relative_to(root).parts
        if any(s in parts for s in skip):
            continue
        if any(part.startswith(".") for part in parts):
            continue
        yield p.relative_to(root).as_posix()


def split_lines(text: str) -> List[str]:
    """Split on LF or CRLF; a trailing newline yields a final empty line."""
    return _LINE_SPLIT_RE.split(text)


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def snippet_from_lines(lines: List[str], start: int, end: int) -> str:
    """Join lines[start:end] (zero-based, end-exclusive), clipped to bounds."""
    start = max(0, start)
    end = min(len(lines), max(start, end))
    return "\n".join(lines[start:end])
