"""Shared test fixtures."""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"

ECHO_AGENT_COMMAND_TEMPLATE = (
    f"{shlex.quote(sys.executable)} -m commit_resume.agent.echo_agent --prompt-file {{prompt_file}}"
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch) -> None:
    """Drop COMMIT_RESUME_* variables inherited from the developer shell."""

    for name in list(os.environ):
        if name.startswith("COMMIT_RESUME_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def echo_agent_env(monkeypatch) -> str:
    """Make the echo agent importable by agent subprocesses; returns its command template."""

    existing = os.environ.get("PYTHONPATH")
    monkeypatch.setenv(
        "PYTHONPATH",
        os.pathsep.join([str(SRC_DIR), existing]) if existing else str(SRC_DIR),
    )
    return ECHO_AGENT_COMMAND_TEMPLATE


@pytest.fixture()
def echo_agent(monkeypatch, echo_agent_env: str) -> str:
    """Route every agent through the local echo agent; returns the command template."""

    for agent in ("CLAUDE", "CODEX", "GEMINI"):
        monkeypatch.setenv(
            f"COMMIT_RESUME_LLM_{agent}_COMMAND_TEMPLATE",
            echo_agent_env,
        )
    return echo_agent_env
