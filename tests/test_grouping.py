from __future__ import annotations

import allure

from commit_resume.models import LedgerEntry, RepoActivity, Section
from commit_resume.resume.grouping import (
    group_entries_by_year_month,
    group_sections_by_repo,
    year_month_of,
)

pytestmark = [
    allure.epic("Resume Generation"),
    allure.feature("Grouping"),
]


def _entry(date: str, repo: str = "api", message: str = "msg") -> LedgerEntry:
    return LedgerEntry(date=date, repo=repo, message=message, link="")


def test_entries_are_grouped_by_month_newest_first() -> None:
    entries = [
        _entry("2025-01-15 10:00:00", message="a"),
        _entry("2025-02-01 09:00:00", message="b"),
        _entry("2025-01-03 08:00:00", message="c"),
    ]

    grouping = group_entries_by_year_month(entries)

    assert list(grouping.groups) == ["2025-02", "2025-01"]
    assert [entry.message for entry in grouping.groups["2025-01"]] == ["a", "c"]
    assert grouping.skipped == 0
    assert len(grouping) == 2


def test_entries_without_a_date_prefix_are_counted_as_skipped() -> None:
    grouping = group_entries_by_year_month(
        [_entry("yesterday"), _entry("2025-1-05"), _entry("2024-12-31 23:59:59")],
    )

    assert list(grouping.groups) == ["2024-12"]
    assert grouping.skipped == 2


def test_year_month_of() -> None:
    assert year_month_of(" 2025-03-09 10:00:00") == "2025-03"
    assert year_month_of("03/09/2025") is None


def test_sections_are_regrouped_by_repository_marker() -> None:
    sections = [
        Section(
            year_month="2025-02",
            content="- [api] 로그인 기능 (Python)\n  설명 줄\n- [web] 대시보드\n",
        ),
        Section(
            year_month="2025-01",
            content="intro\n-[api] 캐시 도입\n* [docs] bullet without dash",
        ),
    ]

    repo_map = group_sections_by_repo(sections)

    assert list(repo_map) == ["api", "web"]
    assert repo_map["api"] == [
        RepoActivity(year_month="2025-02", line="- [api] 로그인 기능 (Python)"),
        RepoActivity(year_month="2025-01", line="-[api] 캐시 도입"),
    ]
    assert repo_map["web"] == [RepoActivity(year_month="2025-02", line="- [web] 대시보드")]


def test_sections_without_markers_give_empty_map() -> None:
    assert group_sections_by_repo([Section(year_month="2025-01", content="nothing here")]) == {}
