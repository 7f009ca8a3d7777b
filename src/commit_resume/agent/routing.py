"""Routing resolution for per-stage text-generation calls."""

from __future__ import annotations

from dataclasses import dataclass

from commit_resume.config import SUPPORTED_AGENTS, SUPPORTED_PROFILES, GenerationSettings
from commit_resume.errors import ConfigurationError

STAGE_RESUME_SECTION = "resume_section"
STAGE_REPO_SUMMARY = "repo_summary"
STAGE_TECH_STACK = "tech_stack"


@dataclass(slots=True, frozen=True)
class AgentRoute:
    """Resolved agent, model and command for one stage."""

    agent: str
    profile: str
    model: str
    command_template: str


@dataclass(slots=True)
class RoutingDefaults:
    """Settings snapshot used to route each stage."""

    default_agent: str
    stage_profile_map: dict[str, str]
    command_templates: dict[str, str]
    models: dict[str, dict[str, str]]

    @classmethod
    def from_settings(cls, settings: GenerationSettings) -> RoutingDefaults:
        """Build validated defaults from generation settings."""

        default_agent = _normalize(settings.default_agent)
        _validate_supported_agent(default_agent)
        command_templates = {
            "claude": settings.claude_command_template,
            "codex": settings.codex_command_template,
            "gemini": settings.gemini_command_template,
        }
        for agent, template in command_templates.items():
            if not template.strip():
                raise ConfigurationError(f"Empty command template for agent={agent!r}")
        models = {
            "claude": {
                "fast": settings.claude_model_fast,
                "quality": settings.claude_model_quality,
            },
            "codex": {
                "fast": settings.codex_model_fast,
                "quality": settings.codex_model_quality,
            },
            "gemini": {
                "fast": settings.gemini_model_fast,
                "quality": settings.gemini_model_quality,
            },
        }
        for agent, profile_models in models.items():
            for profile, model in profile_models.items():
                if not model.strip():
                    raise ConfigurationError(
                        f"Empty model id for agent={agent!r}, profile={profile!r}",
                    )
        return cls(
            default_agent=default_agent,
            stage_profile_map={
                _normalize(stage): _normalize(profile)
                for stage, profile in settings.stage_profile_map.items()
            },
            command_templates=command_templates,
            models=models,
        )


def resolve_route(
    *,
    defaults: RoutingDefaults,
    stage: str,
    agent_override: str | None = None,
    model_override: str | None = None,
) -> AgentRoute:
    """Pick agent, profile, model and command template for ``stage``."""

    agent = _normalize(agent_override) if agent_override else defaults.default_agent
    _validate_supported_agent(agent)
    profile = defaults.stage_profile_map.get(_normalize(stage), "fast")
    _validate_supported_profile(profile)
    model = model_override.strip() if model_override else defaults.models[agent][profile]
    if not model:
        raise ConfigurationError(
            f"Resolved model is empty for agent={agent!r}, profile={profile!r}",
        )
    return AgentRoute(
        agent=agent,
        profile=profile,
        model=model.strip(),
        command_template=defaults.command_templates[agent].strip(),
    )


def _normalize(value: str) -> str:
    return value.strip().lower()


def _validate_supported_agent(agent: str) -> None:
    if agent in SUPPORTED_AGENTS:
        return
    raise ConfigurationError(f"Unsupported LLM agent: {agent!r}. Use claude, codex, or gemini.")


def _validate_supported_profile(profile: str) -> None:
    if profile not in SUPPORTED_PROFILES:
        raise ConfigurationError(
            f"Unsupported model profile: {profile!r}. Use one of {SUPPORTED_PROFILES}.",
        )
