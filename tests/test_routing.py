from __future__ import annotations

import allure
import pytest

from commit_resume.agent.routing import (
    STAGE_REPO_SUMMARY,
    STAGE_RESUME_SECTION,
    STAGE_TECH_STACK,
    RoutingDefaults,
    resolve_route,
)
from commit_resume.config import GenerationSettings

pytestmark = [
    allure.epic("Agent Runtime"),
    allure.feature("Routing"),
]


def _defaults() -> RoutingDefaults:
    return RoutingDefaults(
        default_agent="codex",
        stage_profile_map={STAGE_RESUME_SECTION: "fast", STAGE_REPO_SUMMARY: "quality"},
        command_templates={
            "claude": "claude -p {prompt} --model {model}",
            "codex": "codex exec --model {model} {prompt}",
            "gemini": "gemini --model {model} --prompt {prompt}",
        },
        models={
            "claude": {"fast": "claude-fast", "quality": "claude-quality"},
            "codex": {"fast": "codex-fast", "quality": "codex-quality"},
            "gemini": {"fast": "gemini-fast", "quality": "gemini-quality"},
        },
    )


def test_resolve_route_uses_stage_profile() -> None:
    route = resolve_route(defaults=_defaults(), stage=STAGE_REPO_SUMMARY)

    assert route.agent == "codex"
    assert route.profile == "quality"
    assert route.model == "codex-quality"
    assert route.command_template.startswith("codex exec")


def test_unknown_stage_falls_back_to_fast_profile() -> None:
    route = resolve_route(defaults=_defaults(), stage=STAGE_TECH_STACK)

    assert route.profile == "fast"
    assert route.model == "codex-fast"


def test_resolve_route_respects_overrides() -> None:
    route = resolve_route(
        defaults=_defaults(),
        stage=STAGE_RESUME_SECTION,
        agent_override=" Gemini ",
        model_override="gemini-custom",
    )

    assert route.agent == "gemini"
    assert route.model == "gemini-custom"
    assert "gemini --model" in route.command_template


def test_resolve_route_rejects_unknown_agent() -> None:
    with pytest.raises(ValueError, match="Unsupported LLM agent"):
        resolve_route(defaults=_defaults(), stage=STAGE_RESUME_SECTION, agent_override="gpt")


def test_routing_defaults_from_settings() -> None:
    defaults = RoutingDefaults.from_settings(GenerationSettings(default_agent=" Claude "))

    assert defaults.default_agent == "claude"
    assert defaults.models["claude"] == {"fast": "haiku", "quality": "sonnet"}
    assert defaults.stage_profile_map[STAGE_TECH_STACK] == "quality"
    route = resolve_route(defaults=defaults, stage=STAGE_RESUME_SECTION)
    assert route.model == "haiku"
    assert route.command_template == "claude -p --model {model}"


def test_routing_defaults_reject_empty_template() -> None:
    with pytest.raises(ValueError, match="Empty command template"):
        RoutingDefaults.from_settings(GenerationSettings(gemini_command_template="  "))
