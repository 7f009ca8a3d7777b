"""Grouping of ledger entries by month and of section lines by repository."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from commit_resume.models import LedgerEntry, RepoActivity, Section

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})")
_REPO_MARKER = re.compile(r"^-\s*\[([^\]]+)\]")


@dataclass(slots=True)
class YearMonthGrouping:
    """Ledger entries keyed by ``YYYY-MM``, newest month first."""

    groups: dict[str, list[LedgerEntry]] = field(default_factory=dict)
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.groups)


def year_month_of(date: str) -> str | None:
    match = _YEAR_MONTH.match(date.strip())
    if match is None:
        return None
    return f"{match.group(1)}-{match.group(2)}"


def group_entries_by_year_month(entries: Iterable[LedgerEntry]) -> YearMonthGrouping:
    """Bucket entries by the year-month prefix of their date.

    Entries keep their ledger order inside a bucket.  Entries whose date has
    no ``YYYY-MM`` prefix are counted in ``skipped`` instead of being grouped.
    """

    buckets: dict[str, list[LedgerEntry]] = {}
    skipped = 0
    for entry in entries:
        key = year_month_of(entry.date)
        if key is None:
            skipped += 1
            continue
        buckets.setdefault(key, []).append(entry)
    return YearMonthGrouping(
        groups={key: buckets[key] for key in sorted(buckets, reverse=True)},
        skipped=skipped,
    )


def group_sections_by_repo(sections: Iterable[Section]) -> dict[str, list[RepoActivity]]:
    """Attribute ``- [repo] ...`` lines to their repository, first seen first."""

    repo_map: dict[str, list[RepoActivity]] = {}
    for section in sections:
        for line in section.content.splitlines():
            match = _REPO_MARKER.match(line)
            if match is None:
                continue
            repo_map.setdefault(match.group(1), []).append(
                RepoActivity(year_month=section.year_month, line=line.strip()),
            )
    return repo_map
