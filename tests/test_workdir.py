from __future__ import annotations

from pathlib import Path

import allure

from commit_resume.resume.workdir import (
    ResumeParts,
    list_parts_dirs,
    load_sections,
    safe_file_stem,
)

pytestmark = [
    allure.epic("Resume Generation"),
    allure.feature("Intermediate Files"),
]


def test_safe_file_stem_replaces_path_unsafe_characters() -> None:
    assert safe_file_stem('a/b\\c:d*e?f"g<h>i|j') == "a_b_c_d_e_f_g_h_i_j"
    assert safe_file_stem("my-repo.v2") == "my-repo.v2"


def test_resume_parts_layout(tmp_path: Path) -> None:
    parts = ResumeParts.create(tmp_path, "2025-01-15T10-20-30")

    section = parts.write_section("2025-01", "- [api] x")
    summary = parts.write_repo_summary("acme/api", "## api")
    tech = parts.write_tech_stack("# 기술 역량")

    assert parts.root == tmp_path / ".temp-resume-parts-2025-01-15T10-20-30"
    assert section.path == parts.root / "2025-01.md"
    assert summary.path == parts.root / "repos" / "acme_api.md"
    assert tech == parts.root / "tech-stack.md"
    assert summary.path.read_text("utf-8") == "## api"


def test_load_sections_reads_month_files_newest_first(tmp_path: Path) -> None:
    (tmp_path / "2024-12.md").write_text("old", "utf-8")
    (tmp_path / "2025-02.md").write_text("new", "utf-8")
    (tmp_path / "tech-stack.md").write_text("skip", "utf-8")
    (tmp_path / "notes-2025-01.md").write_text("skip", "utf-8")
    (tmp_path / "repos").mkdir()

    sections = load_sections(tmp_path)

    assert [(section.year_month, section.content) for section in sections] == [
        ("2025-02", "new"),
        ("2024-12", "old"),
    ]


def test_list_parts_dirs_newest_first(tmp_path: Path) -> None:
    for name in (
        ".temp-resume-parts-2025-01-01T00-00-00",
        ".temp-resume-parts-2025-03-01T00-00-00",
        ".temp-repos-123",
    ):
        (tmp_path / name).mkdir()
    (tmp_path / ".temp-resume-parts-file").write_text("", "utf-8")

    assert [path.name for path in list_parts_dirs(tmp_path)] == [
        ".temp-resume-parts-2025-03-01T00-00-00",
        ".temp-resume-parts-2025-01-01T00-00-00",
    ]
