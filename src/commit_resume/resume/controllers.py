"""CLI controller for resume generation."""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import dataclass
from pathlib import Path

from commit_resume.agent.cli_backend import CliAgentBackend
from commit_resume.agent.routing import STAGE_REPO_SUMMARY, STAGE_RESUME_SECTION, STAGE_TECH_STACK
from commit_resume.collect.ledger import file_timestamp, parse_ledger
from commit_resume.config import Settings
from commit_resume.resume.grouping import group_entries_by_year_month
from commit_resume.resume.pipeline import (
    ResumePipelineError,
    build_final_resume,
    generate_sections,
)
from commit_resume.resume.workdir import ResumeParts, load_sections
from commit_resume.streaming import stream_progress

logger = logging.getLogger(__name__)

RESUME_FILE_PREFIX = "resume-"


@dataclass(slots=True)
class GenerateCommand:
    """Input for resume generation from a commit ledger."""

    ledger_path: Path
    output_dir: Path | None = None
    agent_override: str | None = None


@dataclass(slots=True)
class RegenerateCommand:
    """Input for rebuilding the final resume from saved month sections."""

    parts_dir: Path
    output_dir: Path | None = None
    agent_override: str | None = None


@dataclass(slots=True)
class ResumeOutcome:
    """Result of one generation run."""

    success: bool
    resume_path: Path | None = None
    parts_dir: Path | None = None


class ResumeCliController:
    """CLI controller for the generation stages."""

    def generate(self, command: GenerateCommand) -> Generator[str, None, ResumeOutcome]:
        """Generate month sections, project summaries and the final resume."""

        settings = Settings.from_env(output_dir=command.output_dir)
        settings.validate()
        backend = _prepared_backend(settings, command.agent_override)
        route = backend.route_for(STAGE_RESUME_SECTION)
        yield f"✔ {route.agent} CLI: {backend.ensure_available(STAGE_RESUME_SECTION)}"

        entries = parse_ledger(command.ledger_path)
        yield f"✔ {len(entries)} commits in {command.ledger_path.name}"
        grouping = group_entries_by_year_month(entries)
        if grouping.skipped:
            yield f"⚠ Skipped {grouping.skipped} commits without a YYYY-MM date"
        yield f"✔ {len(grouping)} year-month groups"

        timestamp = file_timestamp()
        parts = ResumeParts.create(settings.output_dir, timestamp)
        yield f"Intermediate files: {parts.root}"

        async def _work(emit) -> str:
            sections = await generate_sections(
                backend,
                grouping,
                parts,
                limit=settings.concurrency_limit,
                emit=emit,
            )
            emit("Generating final resume...")
            return await build_final_resume(
                backend,
                sections,
                parts,
                limit=settings.concurrency_limit,
                emit=emit,
            )

        return (yield from _finish(settings.output_dir, timestamp, parts.root, _work))

    def regenerate(self, command: RegenerateCommand) -> Generator[str, None, ResumeOutcome]:
        """Rebuild the final resume from the month sections of an earlier run."""

        settings = Settings.from_env(output_dir=command.output_dir)
        settings.validate()
        backend = _prepared_backend(settings, command.agent_override)

        sections = load_sections(command.parts_dir)
        if not sections:
            yield f"✘ No YYYY-MM.md section files in {command.parts_dir}"
            return ResumeOutcome(success=False, parts_dir=command.parts_dir)
        yield f"✔ {len(sections)} month sections in {command.parts_dir.name}"

        parts = ResumeParts(root=command.parts_dir)

        async def _work(emit) -> str:
            return await build_final_resume(
                backend,
                sections,
                parts,
                limit=settings.concurrency_limit,
                emit=emit,
            )

        return (yield from _finish(settings.output_dir, file_timestamp(), parts.root, _work))


def _prepared_backend(settings: Settings, agent_override: str | None) -> CliAgentBackend:
    backend = CliAgentBackend.from_settings(settings, agent_override=agent_override)
    for stage in (STAGE_RESUME_SECTION, STAGE_REPO_SUMMARY, STAGE_TECH_STACK):
        backend.ensure_available(stage)
    return backend


def _finish(
    output_dir: Path,
    timestamp: str,
    parts_dir: Path,
    work,
) -> Generator[str, None, ResumeOutcome]:
    try:
        resume_text = yield from stream_progress(work)
    except ResumePipelineError as error:
        logger.warning("Resume generation stopped at %s: %s", error.stage, error)
        yield f"✘ {error}"
        yield f"Partial results are kept in {parts_dir}"
        return ResumeOutcome(success=False, parts_dir=parts_dir)

    output_dir.mkdir(parents=True, exist_ok=True)
    resume_path = output_dir / f"{RESUME_FILE_PREFIX}{timestamp}.md"
    resume_path.write_text(resume_text, "utf-8")
    yield f"✔ Resume: {resume_path}"
    return ResumeOutcome(success=True, resume_path=resume_path, parts_dir=parts_dir)
