"""CLI controller for commit collection."""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

from commit_resume.collect.github_cli import GH_LOGIN_HINTS, GitHubCli, read_git_email
from commit_resume.collect.ledger import ledger_file_name, write_ledger
from commit_resume.collect.pipeline import collect_commits, temp_root_for
from commit_resume.config import Settings
from commit_resume.errors import PrerequisiteError
from commit_resume.models import AuthorIdentity
from commit_resume.streaming import stream_progress

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CollectSession:
    """Authenticated GitHub identity and the owners it can collect from."""

    login: str
    email: str = ""
    organizations: list[str] = field(default_factory=list)

    @property
    def owners(self) -> list[str]:
        return [self.login, *self.organizations]


@dataclass(slots=True)
class CollectCommand:
    """Input for commit collection."""

    owner: str
    username: str
    email: str = ""
    aliases: tuple[str, ...] = ()
    output_dir: Path | None = None


@dataclass(slots=True)
class CollectOutcome:
    """Result of one collection run."""

    ledger_path: Path | None
    commit_count: int = 0
    repository_count: int = 0


class CollectCliController:
    """CLI controller for the collection stage."""

    def open_session(self, output_dir: Path | None = None) -> CollectSession:
        """Check ``gh`` and resolve the user's identity and organizations."""

        settings = Settings.from_env(output_dir=output_dir)
        settings.validate()
        github = GitHubCli(timeout_seconds=settings.collection.gh_timeout_seconds)
        github.ensure_ready()

        login = github.fetch_login()
        if not login:
            raise PrerequisiteError("Could not read the GitHub login.", hints=GH_LOGIN_HINTS)
        return CollectSession(
            login=login,
            email=read_git_email(),
            organizations=github.fetch_organizations(),
        )

    def collect(self, command: CollectCommand) -> Generator[str, None, CollectOutcome]:
        """Collect the user's commits from every repository of ``command.owner``."""

        settings = Settings.from_env(output_dir=command.output_dir)
        settings.validate()
        github = GitHubCli(timeout_seconds=settings.collection.gh_timeout_seconds)

        authors = AuthorIdentity(
            username=command.username,
            email=command.email,
            aliases=list(command.aliases),
        ).patterns()
        yield f"✔ Author filters: {', '.join(authors)}"

        yield f"Listing repositories of {command.owner}..."
        repositories = github.list_repositories(
            command.owner,
            limit=settings.collection.repo_list_limit,
        )
        if not repositories:
            yield f"✘ No repositories found for {command.owner}."
            return CollectOutcome(ledger_path=None)
        yield f"✔ Found {len(repositories)} repositories"

        temp_root = temp_root_for(settings.output_dir)
        result = yield from stream_progress(
            lambda emit: collect_commits(
                repositories,
                authors,
                settings=settings.collection,
                temp_root=temp_root,
                limit=settings.concurrency_limit,
                emit=emit,
            ),
        )

        ledger_path = write_ledger(
            settings.output_dir / ledger_file_name(command.owner),
            owner=command.owner,
            username=command.username,
            commits=result.commits,
        )
        logger.info(
            "Collected %s commits from %s/%s repositories of %s",
            len(result.commits),
            result.repositories_with_commits,
            result.total_repositories,
            command.owner,
        )
        yield (
            f"Found {len(result.commits)} commits in "
            f"{result.repositories_with_commits}/{result.total_repositories} repositories."
        )
        yield f"Ledger: {ledger_path}"
        return CollectOutcome(
            ledger_path=ledger_path,
            commit_count=len(result.commits),
            repository_count=result.total_repositories,
        )
