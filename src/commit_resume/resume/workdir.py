"""Layout of the intermediate resume-parts directory."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from commit_resume.models import RepoSummary, Section

PARTS_DIR_PREFIX = ".temp-resume-parts-"
REPOS_DIR_NAME = "repos"
TECH_STACK_FILE_NAME = "tech-stack.md"

_UNSAFE_FILE_CHARS = re.compile(r'[/\\:*?"<>|]')
_SECTION_FILE = re.compile(r"^\d{4}-\d{2}\.md$")


def safe_file_stem(name: str) -> str:
    return _UNSAFE_FILE_CHARS.sub("_", name)


@dataclass(slots=True, frozen=True)
class ResumeParts:
    """Paths of one resume run's intermediate artifacts."""

    root: Path

    @classmethod
    def create(cls, output_dir: Path, timestamp: str) -> ResumeParts:
        parts = cls(root=output_dir / f"{PARTS_DIR_PREFIX}{timestamp}")
        parts.root.mkdir(parents=True, exist_ok=True)
        return parts

    @property
    def repos_dir(self) -> Path:
        return self.root / REPOS_DIR_NAME

    @property
    def tech_stack_path(self) -> Path:
        return self.root / TECH_STACK_FILE_NAME

    def section_path(self, year_month: str) -> Path:
        return self.root / f"{year_month}.md"

    def repo_summary_path(self, repo_name: str) -> Path:
        return self.repos_dir / f"{safe_file_stem(repo_name)}.md"

    def write_section(self, year_month: str, content: str) -> Section:
        path = self.section_path(year_month)
        path.write_text(content, "utf-8")
        return Section(year_month=year_month, content=content, path=path)

    def write_repo_summary(self, repo_name: str, content: str) -> RepoSummary:
        self.repos_dir.mkdir(parents=True, exist_ok=True)
        path = self.repo_summary_path(repo_name)
        path.write_text(content, "utf-8")
        return RepoSummary(repo_name=repo_name, content=content, path=path)

    def write_tech_stack(self, content: str) -> Path:
        self.tech_stack_path.write_text(content, "utf-8")
        return self.tech_stack_path


def list_parts_dirs(directory: Path) -> list[Path]:
    """Return ``.temp-resume-parts-*`` directories, newest first."""

    if not directory.is_dir():
        return []
    return sorted(
        (
            path
            for path in directory.iterdir()
            if path.is_dir() and path.name.startswith(PARTS_DIR_PREFIX)
        ),
        key=lambda path: path.name,
        reverse=True,
    )


def load_sections(parts_dir: Path) -> list[Section]:
    """Read ``YYYY-MM.md`` section files, newest month first."""

    files = sorted(
        (path for path in parts_dir.iterdir() if path.is_file() and _SECTION_FILE.match(path.name)),
        key=lambda path: path.name,
        reverse=True,
    )
    return [
        Section(year_month=path.stem, content=path.read_text("utf-8"), path=path)
        for path in files
    ]
