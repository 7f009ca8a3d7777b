"""Markdown commit ledger: writing and parsing back."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

from commit_resume.models import Commit, LedgerEntry

KST = timezone(timedelta(hours=9), name="KST")

LEDGER_PREFIX = "commits-"
LEDGER_HEADER = "| 일시 | 레포지토리 | 커밋 메시지 | 링크 |"
LEDGER_SEPARATOR = "|------|------------|-------------|------|"
LINK_LABEL = "링크"

_UNESCAPED_PIPE = re.compile(r"(?<!\\)\|")
_LINK_PATTERN = re.compile(rf"\[{LINK_LABEL}\]\((.*?)\)")


def file_timestamp(now: datetime | None = None) -> str:
    """Return a filesystem-safe UTC timestamp such as ``2025-01-15T10-20-30-123``."""

    moment = (now or datetime.now(tz=UTC)).astimezone(UTC)
    return f"{moment.strftime('%Y-%m-%dT%H-%M-%S')}-{moment.microsecond // 1000:03d}"


def ledger_file_name(owner: str, now: datetime | None = None) -> str:
    return f"{LEDGER_PREFIX}{owner}-{file_timestamp(now)}.md"


def list_ledger_files(directory: Path) -> list[Path]:
    """Return ``commits-*.md`` files in ``directory`` sorted by name."""

    if not directory.is_dir():
        return []
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and path.name.startswith(LEDGER_PREFIX) and path.suffix == ".md"
    )


def sort_commits(commits: Iterable[Commit]) -> list[Commit]:
    """Most recent first."""

    return sorted(commits, key=lambda commit: _as_utc(commit.timestamp), reverse=True)


def format_kst(moment: datetime) -> str:
    return _as_utc(moment).astimezone(KST).strftime("%Y-%m-%d %H:%M:%S")


def escape_cell(value: str) -> str:
    return value.replace("|", "\\|")


def unescape_cell(value: str) -> str:
    return value.replace("\\|", "|")


def format_row(commit: Commit) -> str:
    return (
        f"| {format_kst(commit.timestamp)} | {commit.repo_name} | "
        f"{escape_cell(commit.message)} | [{LINK_LABEL}]({commit.commit_url}) |"
    )


def render_ledger(
    *,
    owner: str,
    username: str,
    commits: Iterable[Commit],
    generated_at: datetime | None = None,
) -> str:
    lines = [
        f"# {owner} - {username}의 커밋 기록",
        "",
        f"생성일시: {format_kst(generated_at or datetime.now(tz=UTC))} KST",
        "",
        LEDGER_HEADER,
        LEDGER_SEPARATOR,
    ]
    lines.extend(format_row(commit) for commit in sort_commits(commits))
    return "\n".join(lines) + "\n"


def write_ledger(
    path: Path,
    *,
    owner: str,
    username: str,
    commits: Iterable[Commit],
    generated_at: datetime | None = None,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        render_ledger(
            owner=owner,
            username=username,
            commits=commits,
            generated_at=generated_at,
        ),
        "utf-8",
    )
    return path


def parse_ledger(path: Path) -> list[LedgerEntry]:
    return parse_ledger_text(path.read_text("utf-8"))


def parse_ledger_text(content: str) -> list[LedgerEntry]:
    """Parse table rows that follow the ledger header."""

    entries: list[LedgerEntry] = []
    in_table = False
    for line in content.splitlines():
        if line.startswith("| 일시 |"):
            in_table = True
            continue
        if line.startswith("|------"):
            continue
        if not in_table or not line.startswith("|"):
            continue

        cells = [cell.strip() for cell in _UNESCAPED_PIPE.split(line)]
        if cells and not cells[0]:
            cells = cells[1:]
        if cells and not cells[-1]:
            cells = cells[:-1]
        if len(cells) < 4:
            continue

        link_match = _LINK_PATTERN.search(cells[3])
        entries.append(
            LedgerEntry(
                date=cells[0],
                repo=cells[1],
                message=unescape_cell(cells[2]),
                link=link_match.group(1) if link_match else "",
            ),
        )
    return entries


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)
