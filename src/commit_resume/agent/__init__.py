"""Text-generation agents driven through their command-line interfaces."""

from commit_resume.agent.base import TextGenerator
from commit_resume.agent.cli_backend import AgentRunError, CliAgentBackend

__all__ = [
    "AgentRunError",
    "CliAgentBackend",
    "TextGenerator",
]
