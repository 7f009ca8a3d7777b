"""Errors shared across collection and generation stages."""

from __future__ import annotations


class PrerequisiteError(RuntimeError):
    """External tool is missing or not authenticated; the run cannot start."""

    def __init__(self, message: str, *, hints: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.hints = hints


class ConfigurationError(ValueError):
    """Settings or agent routing are invalid; the run cannot start."""
