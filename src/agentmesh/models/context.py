"""Analysis target data models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator


class AnalysisDepth(str, Enum):
    SHALLOW = "shallow"
    DEEP = "deep"
    COMPREHENSIVE = "comprehensive"


class AnalysisContext(BaseModel):
    """Immutable description of what to analyze.

    An empty ``files`` tuple means agents discover files under
    ``project_path`` themselves.
    """

    model_config = ConfigDict(frozen=True)

    project_path: str
    files: tuple[str, ...] = ()
    depth: AnalysisDepth = AnalysisDepth.DEEP

    @field_validator("project_path")
    @classmethod
    def _project_path_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("project_path must not be empty")
        return value

    @field_validator("files")
    @classmethod
    def _files_not_blank(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if any(not f or not f.strip() for f in value):
            raise ValueError("files must not contain empty paths")
        return value

    @property
    def root(self) -> Path:
        return Path(self.project_path)

    def resolve(self, file: str) -> Path:
        """Map a context file entry to a filesystem path."""
        path = Path(file)
        if path.is_absolute():
            return path
        return self.root / path

    def relative(self, path: Path) -> str:
        """Display path: project-relative posix path when under the root."""
        try:
            return path.resolve().relative_to(self.root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()
