"""Local deterministic agent for CLI backend integration tests.

Reads the prompt (``--prompt-file`` or stdin).  For the ``resume_section``
stage every ``- message`` line under a ``### repo`` heading becomes
``- [repo] message``; any other stage gets a ``## echo <stage>`` block that
repeats the first prompt line.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

SECTION_STAGE = "resume_section"


def render_reply(prompt: str, stage: str) -> str:
    """Build the reply text for ``prompt`` at ``stage``."""

    if stage == SECTION_STAGE:
        lines: list[str] = []
        repo: str | None = None
        for raw in prompt.splitlines():
            line = raw.strip()
            if line.startswith("### "):
                repo = line[4:].strip()
            elif line.startswith("## "):
                repo = None
            elif repo and line.startswith("- "):
                lines.append(f"- [{repo}] {line[2:].strip()}")
        if lines:
            return "\n".join(lines)

    first_line = next((line.strip() for line in prompt.splitlines() if line.strip()), "")
    return f"## echo {stage}\n\n{first_line}"


def main(argv: list[str] | None = None) -> int:
    """Print a deterministic reply; exit 3 for stages listed in ``--fail-stage``."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--prompt-file", required=False)
    parser.add_argument("--fail-stage", action="append", default=[])
    parser.add_argument("--empty", action="store_true")
    args, _ = parser.parse_known_args(argv)

    stage = os.getenv("COMMIT_RESUME_LLM_STAGE", "unknown")
    if stage in args.fail_stage:
        sys.stderr.write(f"echo agent: simulated failure at {stage}\n")
        return 3
    if args.empty:
        return 0

    prompt = Path(args.prompt_file).read_text("utf-8") if args.prompt_file else sys.stdin.read()
    sys.stdout.write(render_reply(prompt, stage) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
