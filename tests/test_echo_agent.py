from __future__ import annotations

from pathlib import Path

import allure

from commit_resume.agent import echo_agent
from commit_resume.models import LedgerEntry
from commit_resume.resume.prompts import build_section_prompt

pytestmark = [
    allure.epic("Agent Runtime"),
    allure.feature("Echo Agent"),
]


def test_section_reply_marks_each_commit_with_its_repository() -> None:
    prompt = build_section_prompt(
        "2025-01",
        [
            LedgerEntry(date="2025-01-02", repo="api", message="feat: login", link=""),
            LedgerEntry(date="2025-01-03", repo="web", message="fix: layout", link=""),
        ],
    )

    reply = echo_agent.render_reply(prompt, "resume_section")

    assert reply == "- [api] feat: login\n- [web] fix: layout"


def test_other_stages_echo_first_line() -> None:
    assert echo_agent.render_reply("\nhello\nworld", "tech_stack") == "## echo tech_stack\n\nhello"


def test_main_reads_prompt_file_and_fails_on_request(tmp_path: Path, monkeypatch, capsys) -> None:
    prompt_file = tmp_path / "prompt.txt"
    prompt_file.write_text("summary prompt", "utf-8")
    monkeypatch.setenv("COMMIT_RESUME_LLM_STAGE", "repo_summary")

    assert echo_agent.main(["--prompt-file", str(prompt_file)]) == 0
    assert capsys.readouterr().out == "## echo repo_summary\n\nsummary prompt\n"

    assert echo_agent.main(["--prompt-file", str(prompt_file), "--fail-stage", "repo_summary"]) == 3
