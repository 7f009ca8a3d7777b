"""Commit collection fan-out across repositories."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from commit_resume.collect.git import (
    GitCommandError,
    parse_log_records,
    read_author_log,
    remove_tree,
    transient_clone,
)
from commit_resume.collect.ledger import sort_commits
from commit_resume.concurrency import CompletionEvent, ProgressTracker, run_with_concurrency
from commit_resume.config import CollectionSettings
from commit_resume.models import Commit, Repository

logger = logging.getLogger(__name__)

_UNSAFE_DIR_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass(slots=True)
class RepositoryCommits:
    """Commits found in one repository."""

    repository: Repository
    commits: list[Commit] = field(default_factory=list)


@dataclass(slots=True)
class CollectionResult:
    """Outcome of one collection run."""

    per_repository: list[RepositoryCommits]
    commits: list[Commit]

    @property
    def total_repositories(self) -> int:
        return len(self.per_repository)

    @property
    def repositories_with_commits(self) -> int:
        return sum(1 for item in self.per_repository if item.commits)


def temp_root_for(output_dir: Path) -> Path:
    return output_dir / f".temp-repos-{int(time.time() * 1000)}"


def clone_dir_name(repository: Repository) -> str:
    return _UNSAFE_DIR_CHARS.sub("_", repository.name) or "repo"


async def collect_repository_commits(
    repository: Repository,
    authors: Sequence[str],
    temp_root: Path,
    settings: CollectionSettings,
    *,
    emit: Callable[[str], None] = lambda _: None,
) -> list[Commit]:
    """Clone, read authored commits, and clean up; failures yield an empty list."""

    destination = temp_root / clone_dir_name(repository)
    try:
        async with transient_clone(
            repository.clone_url,
            destination,
            timeout_seconds=settings.clone_timeout_seconds,
            clone_filter=settings.clone_filter,
        ) as repo_path:
            output = await read_author_log(
                repo_path,
                authors,
                timeout_seconds=settings.log_timeout_seconds,
            )
    except GitCommandError as error:
        logger.warning("Skipping repository %s: %s", repository.name, error)
        emit(f"✘ {repository.name} failed: {error}")
        return []

    return parse_log_records(output, repository)


async def collect_commits(  # noqa: PLR0913
    repositories: Sequence[Repository],
    authors: Sequence[str],
    *,
    settings: CollectionSettings,
    temp_root: Path,
    limit: int,
    emit: Callable[[str], None] = lambda _: None,
) -> CollectionResult:
    """Collect authored commits from every repository with bounded concurrency."""

    tracker = ProgressTracker(total=len(repositories), label="searching")

    def _on_complete(event: CompletionEvent[list[Commit]]) -> None:
        tracker.record(ok=event.outcome.ok)
        repository = repositories[event.index]
        found = event.outcome.value or []
        if not event.outcome.ok:
            emit(f"✘ {repository.name} failed: {event.outcome.error}")
        elif found:
            emit(f"● {repository.name} → {len(found)} commits")
        emit(tracker.status_line())

    def _unit(repository: Repository):
        return lambda: collect_repository_commits(
            repository,
            authors,
            temp_root,
            settings,
            emit=emit,
        )

    temp_root.mkdir(parents=True, exist_ok=True)
    emit(tracker.status_line())
    try:
        outcomes = await run_with_concurrency(
            [_unit(repository) for repository in repositories],
            limit,
            on_complete=_on_complete,
        )
    finally:
        await remove_tree(temp_root)

    per_repository: list[RepositoryCommits] = []
    for repository, outcome in zip(repositories, outcomes, strict=True):
        if not outcome.ok:
            logger.warning("Collection failed for %s: %s", repository.name, outcome.error)
        per_repository.append(
            RepositoryCommits(repository=repository, commits=list(outcome.value or [])),
        )

    emit(f"✔ searched {tracker.total} repositories")
    return CollectionResult(
        per_repository=per_repository,
        commits=sort_commits(commit for item in per_repository for commit in item.commits),
    )
