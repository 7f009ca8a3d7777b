from __future__ import annotations

import asyncio
import shlex
import sys
from pathlib import Path

import allure
import pytest

from commit_resume.agent.cli_backend import (
    AgentRunError,
    CliAgentBackend,
    build_run_args,
    clean_agent_output,
)
from commit_resume.agent.routing import STAGE_REPO_SUMMARY, STAGE_RESUME_SECTION, RoutingDefaults
from commit_resume.config import GenerationSettings
from commit_resume.errors import PrerequisiteError
from commit_resume.models import FailureClass

pytestmark = [
    allure.epic("Agent Runtime"),
    allure.feature("CLI Agent Backend"),
]

_PYTHON = shlex.quote(sys.executable)
_ARG_STRLEN_LIMIT = 128 * 1024


def _backend(template: str, tmp_path: Path, *, timeout: float = 30.0) -> CliAgentBackend:
    settings = GenerationSettings(claude_command_template=template)
    return CliAgentBackend(
        routing_defaults=RoutingDefaults.from_settings(settings),
        cwd=tmp_path,
        timeout_seconds=timeout,
    )


def test_build_run_args_quotes_placeholder_values() -> None:
    argv, send_stdin = build_run_args(
        command_template="claude -p {prompt} --model {model} --file {prompt_file}",
        model="sonnet",
        prompt='hello "world" | rm -rf',
        prompt_file=Path("/tmp/my prompt.txt"),
    )

    assert argv == [
        "claude",
        "-p",
        'hello "world" | rm -rf',
        "--model",
        "sonnet",
        "--file",
        "/tmp/my prompt.txt",
    ]
    assert send_stdin is False


def test_build_run_args_without_prompt_placeholder_uses_stdin() -> None:
    argv, send_stdin = build_run_args(
        command_template="codex exec --model {model}",
        model="gpt-5-codex",
        prompt="ignored",
        prompt_file=Path("p.txt"),
    )

    assert argv == ["codex", "exec", "--model", "gpt-5-codex"]
    assert send_stdin is True


def test_build_run_args_rejects_unknown_placeholder() -> None:
    with pytest.raises(AgentRunError, match="placeholder") as error:
        build_run_args(
            command_template="claude {task_manifest}",
            model="m",
            prompt="p",
            prompt_file=Path("p.txt"),
        )
    assert error.value.failure_class == FailureClass.BACKEND_NON_RETRYABLE


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("```markdown\n- [api] x\n```", "- [api] x"),
        ("```md\n## a\n```\n", "## a"),
        ("```\nplain\n```", "plain"),
        ("  no fence  \n", "no fence"),
    ],
)
def test_clean_agent_output_strips_code_fences(raw: str, expected: str) -> None:
    assert clean_agent_output(raw) == expected


def test_generate_runs_echo_agent(tmp_path: Path, echo_agent_env: str) -> None:
    backend = _backend(echo_agent_env, tmp_path)

    text = asyncio.run(
        backend.generate(
            "## 2025년 1월 활동 내역\n\n### api\n- feat: login\n",
            stage=STAGE_RESUME_SECTION,
        ),
    )

    assert text == "- [api] feat: login"


def test_generate_sends_prompt_on_stdin(tmp_path: Path, echo_agent_env: str) -> None:
    template = f"{_PYTHON} -m commit_resume.agent.echo_agent"
    backend = _backend(template, tmp_path)

    text = asyncio.run(backend.generate("first line\nsecond", stage=STAGE_REPO_SUMMARY))

    assert text == "## echo repo_summary\n\nfirst line"


def test_generate_pipes_prompts_over_the_argument_limit(
    tmp_path: Path,
    echo_agent_env: str,
) -> None:
    template = f"{_PYTHON} -m commit_resume.agent.echo_agent"
    backend = _backend(template, tmp_path)
    prompt = "### api\n" + "- feat: add login flow to the api gateway\n" * 6000

    assert len(prompt.encode("utf-8")) > _ARG_STRLEN_LIMIT
    text = asyncio.run(backend.generate(prompt, stage=STAGE_REPO_SUMMARY))

    assert text == "## echo repo_summary\n\n### api"


@pytest.mark.skipif(sys.platform != "linux", reason="single-argument size limit is Linux-specific")
def test_generate_oversized_prompt_argument_is_not_retryable(tmp_path: Path) -> None:
    backend = _backend(f"{_PYTHON} -c pass {{prompt}}", tmp_path)

    with pytest.raises(AgentRunError, match="too long") as error:
        asyncio.run(backend.generate("x" * (2 * _ARG_STRLEN_LIMIT), stage=STAGE_RESUME_SECTION))
    assert error.value.failure_class == FailureClass.BACKEND_NON_RETRYABLE


def test_generate_empty_output_is_an_error(tmp_path: Path, echo_agent_env: str) -> None:
    backend = _backend(f"{echo_agent_env} --empty", tmp_path)

    with pytest.raises(AgentRunError) as error:
        asyncio.run(backend.generate("prompt", stage=STAGE_RESUME_SECTION))
    assert error.value.failure_class == FailureClass.EMPTY_OUTPUT


def test_generate_non_zero_exit_is_classified(tmp_path: Path, echo_agent_env: str) -> None:
    backend = _backend(f"{echo_agent_env} --fail-stage repo_summary", tmp_path)

    with pytest.raises(AgentRunError, match="simulated failure") as error:
        asyncio.run(backend.generate("prompt", stage=STAGE_REPO_SUMMARY))
    assert error.value.failure_class == FailureClass.BACKEND_NON_RETRYABLE
    assert "claude_backend_non_retryable" in str(error.value)


def test_generate_times_out(tmp_path: Path) -> None:
    template = f"{_PYTHON} -c 'import time; time.sleep(30)' {{prompt_file}}"
    backend = _backend(template, tmp_path, timeout=0.3)

    with pytest.raises(AgentRunError, match="timed out") as error:
        asyncio.run(backend.generate("prompt", stage=STAGE_RESUME_SECTION))
    assert error.value.failure_class == FailureClass.TIMEOUT


def test_generate_reports_missing_executable(tmp_path: Path) -> None:
    backend = _backend(f"{tmp_path / 'missing-claude'} -p {{prompt}}", tmp_path)

    with pytest.raises(AgentRunError) as error:
        asyncio.run(backend.generate("prompt", stage=STAGE_RESUME_SECTION))
    assert error.value.failure_class == FailureClass.COMMAND_NOT_FOUND


def test_ensure_available_raises_prerequisite_error(tmp_path: Path) -> None:
    backend = _backend(f"{tmp_path / 'missing-claude'} -p {{prompt}}", tmp_path)

    with pytest.raises(PrerequisiteError, match="claude CLI executable not found") as error:
        backend.ensure_available(STAGE_RESUME_SECTION)
    assert "COMMIT_RESUME_LLM_CLAUDE_COMMAND_TEMPLATE" in error.value.hints[0]


def test_ensure_available_resolves_through_locator(tmp_path: Path) -> None:
    seen: list[str] = []

    def fake_locate(name: str) -> str | None:
        seen.append(name)
        return f"/opt/agents/{name}"

    backend = CliAgentBackend(
        routing_defaults=RoutingDefaults.from_settings(GenerationSettings()),
        cwd=tmp_path,
        timeout_seconds=5,
        resolve_executable=fake_locate,
    )

    assert backend.ensure_available(STAGE_RESUME_SECTION) == "/opt/agents/claude"
    assert backend.ensure_available(STAGE_REPO_SUMMARY) == "/opt/agents/claude"
    assert seen == ["claude"]
