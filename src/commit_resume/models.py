"""Domain records for commit collection and resume generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path


class FailureClass(str, Enum):
    """Normalized failure classes for one text-generation call."""

    TIMEOUT = "timeout"
    EMPTY_OUTPUT = "empty_output"
    COMMAND_NOT_FOUND = "command_not_found"
    BACKEND_TRANSIENT = "backend_transient"
    BACKEND_NON_RETRYABLE = "backend_non_retryable"
    BILLING_OR_QUOTA = "billing_or_quota"
    ACCESS_OR_AUTH = "access_or_auth"
    MODEL_NOT_AVAILABLE = "model_not_available"


@dataclass(slots=True, frozen=True)
class Repository:
    """Remote repository as returned by the listing service."""

    name: str
    url: str

    @property
    def clone_url(self) -> str:
        if self.url.endswith(".git"):
            return self.url
        return f"{self.url.rstrip('/')}.git"


@dataclass(slots=True)
class AuthorIdentity:
    """Author filters used to select a user's commits."""

    username: str
    email: str = ""
    aliases: list[str] = field(default_factory=list)

    def patterns(self) -> list[str]:
        """Return non-empty author filters in order, without duplicates."""

        ordered: list[str] = []
        seen: set[str] = set()
        for value in (self.username, self.email, *self.aliases):
            normalized = value.strip()
            if not normalized or normalized in seen:
                continue
            seen.add(normalized)
            ordered.append(normalized)
        return ordered


@dataclass(slots=True, frozen=True)
class Commit:
    """One authored commit found in a repository."""

    hash: str
    message: str
    timestamp: datetime
    repo_name: str
    repo_url: str

    @property
    def commit_url(self) -> str:
        return f"{self.repo_url}/commit/{self.hash}"


@dataclass(slots=True, frozen=True)
class LedgerEntry:
    """One row parsed back from a commit ledger file."""

    date: str
    repo: str
    message: str
    link: str


@dataclass(slots=True, frozen=True)
class Section:
    """Generated resume section for one year-month group."""

    year_month: str
    content: str
    path: Path | None = None


@dataclass(slots=True, frozen=True)
class RepoActivity:
    """One marked section line attributed to a repository."""

    year_month: str
    line: str


@dataclass(slots=True, frozen=True)
class RepoSummary:
    """Generated project-experience summary for one repository."""

    repo_name: str
    content: str
    path: Path | None = None
