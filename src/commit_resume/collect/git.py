"""Git subprocess helpers for transient repository copies."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from commit_resume.models import Commit, Repository
from commit_resume.subprocesses import terminate_process

logger = logging.getLogger(__name__)

LOG_FIELD_SEPARATOR = "<|>"
LOG_FORMAT = f"%H{LOG_FIELD_SEPARATOR}%s{LOG_FIELD_SEPARATOR}%aI"


class GitCommandError(RuntimeError):
    """Git invocation failed, timed out, or could not start."""

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


async def run_git(
    args: Sequence[str],
    *,
    timeout_seconds: float,
    cwd: Path | None = None,
    executable: str = "git",
) -> str:
    """Run one git command and return its stdout; raise ``GitCommandError`` otherwise."""

    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            *args,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as error:
        raise GitCommandError(f"Executable not found: {executable}") from error
    except OSError as error:
        raise GitCommandError(f"{executable} failed to start: {error}") from error

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except TimeoutError as error:
        await terminate_process(process)
        raise GitCommandError(
            f"{executable} {args[0] if args else ''} timed out after {timeout_seconds:g}s",
            timed_out=True,
        ) from error
    except asyncio.CancelledError:
        await terminate_process(process)
        raise

    if process.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()[:500]
        raise GitCommandError(
            f"{executable} {args[0] if args else ''} exited {process.returncode}: {detail}",
        )
    return stdout.decode("utf-8", errors="replace")


async def clone_repository(
    url: str,
    destination: Path,
    *,
    timeout_seconds: float,
    clone_filter: str = "blob:none",
) -> None:
    """Make a reduced local copy of ``url``: partial clone without a checkout."""

    args = ["clone", "--quiet", "--no-checkout"]
    if clone_filter:
        args.append(f"--filter={clone_filter}")
    args.extend([url, str(destination)])
    await run_git(args, timeout_seconds=timeout_seconds)


async def read_author_log(
    repo_path: Path,
    authors: Sequence[str],
    *,
    timeout_seconds: float,
) -> str:
    """Return raw log records for commits by any of ``authors`` across all refs."""

    if not authors:
        return ""
    args = ["log", "--all", "--fixed-strings"]
    args.extend(f"--author={author}" for author in authors)
    args.append(f"--format={LOG_FORMAT}")
    return await run_git(args, timeout_seconds=timeout_seconds, cwd=repo_path)


def parse_log_records(output: str, repository: Repository) -> list[Commit]:
    """Map ``LOG_FORMAT`` lines to commits of ``repository``."""

    commits: list[Commit] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split(LOG_FIELD_SEPARATOR)
        if len(parts) < 3:
            continue
        commit_hash, date_raw = parts[0], parts[-1]
        message = LOG_FIELD_SEPARATOR.join(parts[1:-1])
        try:
            timestamp = datetime.fromisoformat(date_raw.strip())
        except ValueError:
            logger.warning(
                "Skipping commit %s in %s: bad date %r",
                commit_hash,
                repository.name,
                date_raw,
            )
            continue
        commits.append(
            Commit(
                hash=commit_hash.strip(),
                message=message,
                timestamp=timestamp,
                repo_name=repository.name,
                repo_url=repository.url,
            ),
        )
    return commits


@asynccontextmanager
async def transient_clone(
    url: str,
    destination: Path,
    *,
    timeout_seconds: float,
    clone_filter: str = "blob:none",
) -> AsyncIterator[Path]:
    """Clone into ``destination`` and remove it on every exit path."""

    try:
        await clone_repository(
            url,
            destination,
            timeout_seconds=timeout_seconds,
            clone_filter=clone_filter,
        )
        yield destination
    finally:
        await remove_tree(destination)


async def remove_tree(path: Path) -> None:
    await asyncio.to_thread(shutil.rmtree, path, ignore_errors=True)

