"""Text-generation interface consumed by the resume pipelines."""

from __future__ import annotations

from typing import Protocol


class TextGenerator(Protocol):
    """Protocol implemented by text-generation backends."""

    async def generate(self, prompt: str, *, stage: str) -> str:
        """Return generated text for ``prompt``; raise on empty or failed output."""
