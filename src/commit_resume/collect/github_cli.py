"""Identity and repository listing through the GitHub CLI (``gh``)."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from collections.abc import Sequence

from commit_resume.errors import PrerequisiteError
from commit_resume.models import Repository

logger = logging.getLogger(__name__)

GH_INSTALL_HINTS = (
    "macOS:   brew install gh",
    "Windows: winget install GitHub.cli",
    "Linux:   https://github.com/cli/cli/blob/trunk/docs/install_linux.md",
)
GH_LOGIN_HINTS = ("gh auth login",)


class GitHubCli:
    """Synchronous wrapper over ``gh``; failed calls return ``None`` or empty."""

    def __init__(self, *, timeout_seconds: float = 60.0, executable: str = "gh") -> None:
        self.timeout_seconds = timeout_seconds
        self.executable = executable

    def ensure_ready(self) -> None:
        """Raise ``PrerequisiteError`` if ``gh`` is missing or not authenticated."""

        if shutil.which(self.executable) is None or self._run(["--version"]) is None:
            raise PrerequisiteError(
                "GitHub CLI (gh) is not installed.",
                hints=GH_INSTALL_HINTS,
            )
        if self._run(["auth", "status"]) is None:
            raise PrerequisiteError(
                "GitHub CLI authentication is required.",
                hints=GH_LOGIN_HINTS,
            )

    def fetch_login(self) -> str | None:
        return self._run(["api", "user", "--jq", ".login"]) or None

    def fetch_organizations(self) -> list[str]:
        output = self._run(["api", "user/orgs", "--jq", ".[].login"])
        if not output:
            return []
        return sorted(
            (line.strip() for line in output.splitlines() if line.strip()),
            key=str.casefold,
        )

    def list_repositories(self, owner: str, *, limit: int = 1000) -> list[Repository]:
        output = self._run(
            ["repo", "list", owner, "--limit", str(limit), "--json", "name,url"],
        )
        if not output:
            return []
        try:
            payload = json.loads(output)
        except json.JSONDecodeError:
            logger.warning("Unexpected repository listing for %s: %.200s", owner, output)
            return []
        return [
            Repository(name=str(item["name"]), url=str(item["url"]))
            for item in payload
            if isinstance(item, dict) and item.get("name") and item.get("url")
        ]

    def _run(self, args: Sequence[str]) -> str | None:
        return run_command([self.executable, *args], timeout_seconds=self.timeout_seconds)


def read_git_email(*, timeout_seconds: float = 10.0) -> str:
    """Return the configured ``git`` user email, or an empty string."""

    return run_command(["git", "config", "user.email"], timeout_seconds=timeout_seconds) or ""


def run_command(argv: Sequence[str], *, timeout_seconds: float) -> str | None:
    """Run ``argv`` and return stripped stdout, or ``None`` on any failure."""

    try:
        completed = subprocess.run(  # noqa: S603
            list(argv),
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %ss: %s", timeout_seconds, argv[0])
        return None
    except OSError as error:
        logger.debug("Command failed to start: %s (%s)", argv[0], error)
        return None

    if completed.returncode != 0:
        logger.debug(
            "Command exited %s: %s %s",
            completed.returncode,
            " ".join(argv[:3]),
            completed.stderr.strip()[:200],
        )
        return None
    return completed.stdout.strip()
