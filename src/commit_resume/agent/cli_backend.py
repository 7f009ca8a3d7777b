"""Subprocess-based text generation through CLI agents (claude, codex, gemini)."""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import re
import shlex
import time
from collections.abc import Callable
from pathlib import Path
from tempfile import TemporaryDirectory

from commit_resume.agent.failure_classifier import classify_backend_failure
from commit_resume.agent.locate import locate_agent_executable
from commit_resume.agent.routing import AgentRoute, RoutingDefaults, resolve_route
from commit_resume.config import Settings
from commit_resume.errors import ConfigurationError, PrerequisiteError
from commit_resume.models import FailureClass
from commit_resume.subprocesses import terminate_process

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:markdown|md)?\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\n?```$")


class AgentRunError(RuntimeError):
    """One text-generation call failed."""

    def __init__(self, message: str, *, failure_class: FailureClass) -> None:
        super().__init__(message)
        self.failure_class = failure_class


class CliAgentBackend:
    """Render the routed command template and run the agent once per prompt."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        routing_defaults: RoutingDefaults,
        cwd: Path,
        timeout_seconds: float,
        agent_override: str | None = None,
        resolve_executable: Callable[[str], str | None] = locate_agent_executable,
        debug: bool = False,
    ) -> None:
        self.routing_defaults = routing_defaults
        self.cwd = cwd
        self.timeout_seconds = timeout_seconds
        self.agent_override = agent_override
        self.debug = debug
        self._resolve_executable = resolve_executable
        self._resolved: dict[str, str | None] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        agent_override: str | None = None,
    ) -> CliAgentBackend:
        return cls(
            routing_defaults=RoutingDefaults.from_settings(settings.generation),
            cwd=settings.agent_workdir,
            timeout_seconds=settings.generation.timeout_seconds,
            agent_override=agent_override,
            debug=settings.generation.debug,
        )

    def route_for(self, stage: str) -> AgentRoute:
        return resolve_route(
            defaults=self.routing_defaults,
            stage=stage,
            agent_override=self.agent_override,
        )

    def ensure_available(self, stage: str) -> str:
        """Return the resolved executable for ``stage`` or raise ``PrerequisiteError``."""

        route = self.route_for(stage)
        head = _command_head(route.command_template)
        executable = self._executable_for(head)
        if executable is None:
            raise PrerequisiteError(
                f"{route.agent} CLI executable not found: {head}",
                hints=(
                    "Install the agent CLI or point "
                    f"COMMIT_RESUME_LLM_{route.agent.upper()}_COMMAND_TEMPLATE at it.",
                ),
            )
        return executable

    async def generate(self, prompt: str, *, stage: str) -> str:
        route = self.route_for(stage)
        with TemporaryDirectory(prefix="commit-resume-agent-") as temp_dir:
            prompt_file = Path(temp_dir) / "prompt.txt"
            prompt_file.write_text(prompt, "utf-8")
            argv, send_stdin = build_run_args(
                command_template=route.command_template,
                model=route.model,
                prompt=prompt,
                prompt_file=prompt_file,
            )
            executable = self._executable_for(argv[0])
            if executable is None:
                raise AgentRunError(
                    f"CLI backend command not found: {argv[0]}",
                    failure_class=FailureClass.COMMAND_NOT_FOUND,
                )
            argv[0] = executable
            return await self._run(
                argv,
                route=route,
                stage=stage,
                stdin=prompt if send_stdin else None,
            )

    async def _run(
        self,
        argv: list[str],
        *,
        route: AgentRoute,
        stage: str,
        stdin: str | None,
    ) -> str:
        env = os.environ.copy()
        env["COMMIT_RESUME_LLM_AGENT"] = route.agent
        env["COMMIT_RESUME_LLM_MODEL"] = route.model
        env["COMMIT_RESUME_LLM_STAGE"] = stage

        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=self.cwd,
                env=env,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as error:
            if error.errno == errno.E2BIG:
                raise AgentRunError(
                    "CLI backend arguments are too long; pass the prompt on stdin "
                    "or through {prompt_file} instead of {prompt}.",
                    failure_class=FailureClass.BACKEND_NON_RETRYABLE,
                ) from error
            raise AgentRunError(
                f"CLI backend failed to start: {error}",
                failure_class=FailureClass.COMMAND_NOT_FOUND,
            ) from error

        payload = stdin.encode("utf-8") if stdin is not None else None
        try:
            stdout_raw, stderr_raw = await asyncio.wait_for(
                process.communicate(payload),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as error:
            await terminate_process(process)
            raise AgentRunError(
                f"{route.agent} timed out after {self.timeout_seconds:g}s",
                failure_class=FailureClass.TIMEOUT,
            ) from error
        except asyncio.CancelledError:
            await terminate_process(process)
            raise

        elapsed = time.monotonic() - started
        stdout = stdout_raw.decode("utf-8", errors="replace")
        stderr = stderr_raw.decode("utf-8", errors="replace")
        if self.debug:
            logger.info("Agent %s stage=%s stdout: %.500s", route.agent, stage, stdout)

        if process.returncode != 0:
            classified = classify_backend_failure(agent=route.agent, stdout=stdout, stderr=stderr)
            raise AgentRunError(
                f"[{classified.reason_code}] exit code {process.returncode}: "
                f"{_preview(stderr or stdout)}",
                failure_class=classified.failure_class,
            )

        text = clean_agent_output(stdout)
        if not text:
            raise AgentRunError(
                f"{route.agent} returned an empty response",
                failure_class=FailureClass.EMPTY_OUTPUT,
            )
        logger.info(
            "Agent call completed: agent=%s model=%s stage=%s elapsed=%.1fs",
            route.agent,
            route.model,
            stage,
            elapsed,
        )
        return text

    def _executable_for(self, head: str) -> str | None:
        if head not in self._resolved:
            self._resolved[head] = self._resolve_executable(head)
        return self._resolved[head]


def build_run_args(
    *,
    command_template: str,
    model: str,
    prompt: str,
    prompt_file: Path,
) -> tuple[list[str], bool]:
    """Render ``command_template`` into argv; the flag tells whether to pipe the prompt."""

    stripped = command_template.strip()
    if not stripped:
        raise AgentRunError(
            "CLI backend command template is empty.",
            failure_class=FailureClass.BACKEND_NON_RETRYABLE,
        )
    try:
        rendered = stripped.format(
            model=shlex.quote(model),
            prompt=shlex.quote(prompt),
            prompt_file=shlex.quote(str(prompt_file)),
        )
    except (KeyError, IndexError) as error:
        raise AgentRunError(
            f"Unsupported command template placeholder: {error}",
            failure_class=FailureClass.BACKEND_NON_RETRYABLE,
        ) from error

    argv = shlex.split(rendered)
    if not argv:
        raise AgentRunError(
            "CLI backend command template rendered empty command.",
            failure_class=FailureClass.BACKEND_NON_RETRYABLE,
        )
    send_stdin = "{prompt}" not in stripped and "{prompt_file}" not in stripped
    return argv, send_stdin


def clean_agent_output(text: str) -> str:
    """Strip surrounding whitespace and a Markdown code fence around the reply."""

    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned)
    cleaned = _TRAILING_FENCE.sub("", cleaned)
    return cleaned.strip()


def _command_head(command_template: str) -> str:
    argv = shlex.split(command_template.strip())
    if not argv:
        raise ConfigurationError("CLI backend command template is empty.")
    return argv[0]


def _preview(value: str, *, limit: int = 240) -> str:
    compact = value.strip().replace("\n", " ")
    if len(compact) <= limit:
        return compact
    return compact[:limit] + "..."

