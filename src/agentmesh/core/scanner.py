"""Project file discovery for agents.

Used when an ``AnalysisContext`` carries no explicit file list.
"""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Iterable, Optional

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EXCLUDE_DIRS = {
    "node_modules", ".git", "__pycache__", ".venv", "venv",
    "dist", "build", ".next", ".nuxt", "coverage", ".pytest_cache",
    ".agentmesh", ".mypy_cache", ".tox", "vendor",
    "bin", "obj", ".vs", ".idea",
}

EXCLUDE_PATTERNS = {
    "*.min.js", "*.min.css", "*.map", "*.lock", "package-lock.json",
    "*.generated.*", "*.d.ts",
}

TEST_DIRS = {"tests", "test", "__tests__", "spec", "specs"}


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def file_type(path: str | Path) -> str:
    """Extension without the dot, lower-cased ("" when there is none)."""
    suffix = Path(path).suffix.lower()
    return suffix[1:] if suffix else ""


def is_test_file(name: str) -> bool:
    """Check if a filename indicates a test file."""
    return (
        name.startswith("test_")
        or name.endswith("_test.py")
        or "_test." in name
        or ".test." in name
        or ".spec." in name
        or name == "conftest.py"
    )


def _is_excluded_name(name: str) -> bool:
    return any(fnmatch.fnmatch(name.lower(), pattern) for pattern in EXCLUDE_PATTERNS)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

def discover_source_files(
    project_path: Path,
    file_types: Optional[Iterable[str]] = None,
    exclude_dirs: Optional[set[str]] = None,
) -> list[Path]:
    """Walk the project and return matching files in a stable order."""
    excludes = exclude_dirs or EXCLUDE_DIRS
    wanted = {t.lower().lstrip(".") for t in file_types} if file_types else None

    found: list[Path] = []
    for root, dirs, files in os.walk(project_path):
        # Prune excluded dirs
        dirs[:] = sorted(d for d in dirs if d not in excludes)
        for fname in sorted(files):
            if _is_excluded_name(fname):
                continue
            if wanted is not None and file_type(fname) not in wanted:
                continue
            found.append(Path(root) / fname)
    return found


def candidate_test_files(source: Path) -> list[Path]:
    """Conventional locations of a test file for ``source``."""
    stem, suffix = source.stem, source.suffix
    parent = source.parent
    if suffix == ".py":
        return [
            parent / f"test_{stem}.py",
            parent / f"{stem}_test.py",
            parent / "tests" / f"test_{stem}.py",
            parent.parent / "tests" / f"test_{stem}.py",
        ]
    return [
        parent / f"{stem}.test{suffix}",
        parent / f"{stem}.spec{suffix}",
        parent / "__tests__" / f"{stem}.test{suffix}",
        parent.parent / "__tests__" / f"{stem}.test{suffix}",
    ]
