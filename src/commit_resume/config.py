"""Runtime configuration for commit collection and resume generation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from commit_resume.errors import ConfigurationError

SUPPORTED_AGENTS = ("claude", "codex", "gemini")
SUPPORTED_PROFILES = ("fast", "quality")

_DEFAULT_CLAUDE_COMMAND = "claude -p --model {model}"
_DEFAULT_CODEX_COMMAND = "codex exec --model {model} -"
_DEFAULT_GEMINI_COMMAND = "gemini --model {model}"

_DEFAULT_STAGE_PROFILES = {
    "resume_section": "fast",
    "repo_summary": "quality",
    "tech_stack": "quality",
}


@dataclass(slots=True)
class CollectionSettings:
    """Commit collection settings."""

    clone_timeout_seconds: float = 120.0
    log_timeout_seconds: float = 60.0
    gh_timeout_seconds: float = 60.0
    repo_list_limit: int = 1000
    clone_filter: str = "blob:none"


@dataclass(slots=True)
class GenerationSettings:
    """Text-generation agent settings."""

    default_agent: str = "claude"
    claude_command_template: str = _DEFAULT_CLAUDE_COMMAND
    codex_command_template: str = _DEFAULT_CODEX_COMMAND
    gemini_command_template: str = _DEFAULT_GEMINI_COMMAND
    claude_model_fast: str = "haiku"
    claude_model_quality: str = "sonnet"
    codex_model_fast: str = "gpt-5-codex-mini"
    codex_model_quality: str = "gpt-5-codex"
    gemini_model_fast: str = "gemini-2.5-flash"
    gemini_model_quality: str = "gemini-2.5-pro"
    stage_profile_map: dict[str, str] = field(
        default_factory=lambda: dict(_DEFAULT_STAGE_PROFILES),
    )
    timeout_seconds: float = 600.0
    workdir: Path | None = None
    debug: bool = False


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    output_dir: Path = Path(".")
    concurrency_limit: int = 10
    collection: CollectionSettings = field(default_factory=CollectionSettings)
    generation: GenerationSettings = field(default_factory=GenerationSettings)

    @classmethod
    def from_env(cls, output_dir: Path | None = None) -> Settings:
        """Load settings from environment with defaults suited to interactive use."""

        workdir_raw = os.getenv("COMMIT_RESUME_LLM_WORKDIR", "").strip()
        return cls(
            output_dir=output_dir or Path(os.getenv("COMMIT_RESUME_OUTPUT_DIR", ".")),
            concurrency_limit=_env_int("COMMIT_RESUME_CONCURRENCY_LIMIT", 10),
            collection=CollectionSettings(
                clone_timeout_seconds=_env_float("COMMIT_RESUME_CLONE_TIMEOUT_SECONDS", 120.0),
                log_timeout_seconds=_env_float("COMMIT_RESUME_LOG_TIMEOUT_SECONDS", 60.0),
                gh_timeout_seconds=_env_float("COMMIT_RESUME_GH_TIMEOUT_SECONDS", 60.0),
                repo_list_limit=_env_int("COMMIT_RESUME_REPO_LIST_LIMIT", 1000),
                clone_filter=os.getenv("COMMIT_RESUME_CLONE_FILTER", "blob:none").strip(),
            ),
            generation=GenerationSettings(
                default_agent=os.getenv("COMMIT_RESUME_LLM_DEFAULT_AGENT", "claude")
                .strip()
                .lower(),
                claude_command_template=os.getenv(
                    "COMMIT_RESUME_LLM_CLAUDE_COMMAND_TEMPLATE",
                    _DEFAULT_CLAUDE_COMMAND,
                ),
                codex_command_template=os.getenv(
                    "COMMIT_RESUME_LLM_CODEX_COMMAND_TEMPLATE",
                    _DEFAULT_CODEX_COMMAND,
                ),
                gemini_command_template=os.getenv(
                    "COMMIT_RESUME_LLM_GEMINI_COMMAND_TEMPLATE",
                    _DEFAULT_GEMINI_COMMAND,
                ),
                claude_model_fast=os.getenv("COMMIT_RESUME_LLM_CLAUDE_MODEL_FAST", "haiku"),
                claude_model_quality=os.getenv("COMMIT_RESUME_LLM_CLAUDE_MODEL_QUALITY", "sonnet"),
                codex_model_fast=os.getenv(
                    "COMMIT_RESUME_LLM_CODEX_MODEL_FAST",
                    "gpt-5-codex-mini",
                ),
                codex_model_quality=os.getenv(
                    "COMMIT_RESUME_LLM_CODEX_MODEL_QUALITY",
                    "gpt-5-codex",
                ),
                gemini_model_fast=os.getenv(
                    "COMMIT_RESUME_LLM_GEMINI_MODEL_FAST",
                    "gemini-2.5-flash",
                ),
                gemini_model_quality=os.getenv(
                    "COMMIT_RESUME_LLM_GEMINI_MODEL_QUALITY",
                    "gemini-2.5-pro",
                ),
                stage_profile_map=_collect_stage_profiles(),
                timeout_seconds=_env_float("COMMIT_RESUME_LLM_TIMEOUT_SECONDS", 600.0),
                workdir=Path(workdir_raw) if workdir_raw else None,
                debug=_env_bool("COMMIT_RESUME_LLM_DEBUG", default=False),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the pipelines cannot run with."""

        if self.concurrency_limit < 1:
            raise ConfigurationError("COMMIT_RESUME_CONCURRENCY_LIMIT must be >= 1.")
        if self.collection.clone_timeout_seconds <= 0:
            raise ConfigurationError("COMMIT_RESUME_CLONE_TIMEOUT_SECONDS must be > 0.")
        if self.collection.log_timeout_seconds <= 0:
            raise ConfigurationError("COMMIT_RESUME_LOG_TIMEOUT_SECONDS must be > 0.")
        if self.collection.gh_timeout_seconds <= 0:
            raise ConfigurationError("COMMIT_RESUME_GH_TIMEOUT_SECONDS must be > 0.")
        if self.collection.repo_list_limit < 1:
            raise ConfigurationError("COMMIT_RESUME_REPO_LIST_LIMIT must be >= 1.")
        if self.generation.timeout_seconds <= 0:
            raise ConfigurationError("COMMIT_RESUME_LLM_TIMEOUT_SECONDS must be > 0.")
        if self.generation.default_agent not in SUPPORTED_AGENTS:
            raise ConfigurationError(
                "COMMIT_RESUME_LLM_DEFAULT_AGENT must be one of "
                f"{', '.join(SUPPORTED_AGENTS)}; got {self.generation.default_agent!r}.",
            )
        for stage, profile in self.generation.stage_profile_map.items():
            if profile not in SUPPORTED_PROFILES:
                raise ConfigurationError(
                    f"Unsupported model profile for stage {stage!r}: {profile!r}",
                )

    @property
    def agent_workdir(self) -> Path:
        """Working directory handed to the text-generation agent."""

        return self.generation.workdir or self.output_dir


def _collect_stage_profiles() -> dict[str, str]:
    profiles = dict(_DEFAULT_STAGE_PROFILES)
    raw = os.getenv("COMMIT_RESUME_LLM_STAGE_PROFILES", "").strip()
    if not raw:
        return profiles

    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        if "=" not in token:
            raise ConfigurationError(
                "Invalid COMMIT_RESUME_LLM_STAGE_PROFILES entry: "
                f"{token!r}. Expected format '<stage>=<profile>'.",
            )
        stage, profile = token.split("=", 1)
        profiles[stage.strip().lower()] = profile.strip().lower()
    return profiles


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ConfigurationError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as error:
        raise ConfigurationError(f"Invalid numeric value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigurationError(f"Invalid boolean value for {name}: {value!r}")
