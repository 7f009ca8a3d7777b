from __future__ import annotations

from pathlib import Path

import allure
import pytest

from commit_resume.config import CollectionSettings, GenerationSettings, Settings

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Environment Settings"),
]


def test_defaults_without_environment() -> None:
    settings = Settings.from_env()

    assert settings.output_dir == Path(".")
    assert settings.concurrency_limit == 10
    assert settings.collection.clone_filter == "blob:none"
    assert settings.generation.default_agent == "claude"
    assert settings.generation.claude_command_template == "claude -p --model {model}"
    assert settings.generation.stage_profile_map["resume_section"] == "fast"
    assert settings.agent_workdir == Path(".")
    settings.validate()


def test_default_agent_commands_pipe_the_prompt() -> None:
    generation = GenerationSettings()

    for template in (
        generation.claude_command_template,
        generation.codex_command_template,
        generation.gemini_command_template,
    ):
        assert "{prompt}" not in template
        assert "{model}" in template


def test_environment_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("COMMIT_RESUME_CONCURRENCY_LIMIT", "3")
    monkeypatch.setenv("COMMIT_RESUME_CLONE_TIMEOUT_SECONDS", "5.5")
    monkeypatch.setenv("COMMIT_RESUME_LLM_DEFAULT_AGENT", " Gemini ")
    monkeypatch.setenv(
        "COMMIT_RESUME_LLM_STAGE_PROFILES",
        "resume_section=quality, tech_stack=fast",
    )
    monkeypatch.setenv("COMMIT_RESUME_LLM_WORKDIR", str(tmp_path / "agent"))
    monkeypatch.setenv("COMMIT_RESUME_LLM_DEBUG", "yes")

    settings = Settings.from_env(output_dir=tmp_path)

    assert settings.output_dir == tmp_path
    assert settings.concurrency_limit == 3
    assert settings.collection.clone_timeout_seconds == 5.5
    assert settings.generation.default_agent == "gemini"
    assert settings.generation.stage_profile_map == {
        "resume_section": "quality",
        "repo_summary": "quality",
        "tech_stack": "fast",
    }
    assert settings.agent_workdir == tmp_path / "agent"
    assert settings.generation.debug is True


def test_output_dir_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("COMMIT_RESUME_OUTPUT_DIR", str(tmp_path))

    assert Settings.from_env().output_dir == tmp_path


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("COMMIT_RESUME_CONCURRENCY_LIMIT", "many", "Invalid integer value"),
        ("COMMIT_RESUME_LLM_TIMEOUT_SECONDS", "soon", "Invalid numeric value"),
        ("COMMIT_RESUME_LLM_DEBUG", "maybe", "Invalid boolean value"),
        ("COMMIT_RESUME_LLM_STAGE_PROFILES", "resume_section", "Expected format"),
    ],
)
def test_invalid_environment_values(monkeypatch, name: str, value: str, message: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=message):
        Settings.from_env()


@pytest.mark.parametrize(
    ("settings", "message"),
    [
        (Settings(concurrency_limit=0), "COMMIT_RESUME_CONCURRENCY_LIMIT"),
        (
            Settings(collection=CollectionSettings(clone_timeout_seconds=0)),
            "COMMIT_RESUME_CLONE_TIMEOUT_SECONDS",
        ),
        (
            Settings(generation=GenerationSettings(default_agent="gpt")),
            "COMMIT_RESUME_LLM_DEFAULT_AGENT",
        ),
        (
            Settings(generation=GenerationSettings(stage_profile_map={"resume_section": "max"})),
            "Unsupported model profile",
        ),
    ],
)
def test_validate_rejects_unusable_values(settings: Settings, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        settings.validate()
