"""Resume generation stages: month sections, repository summaries, final document."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence

from commit_resume.agent.base import TextGenerator
from commit_resume.agent.routing import STAGE_REPO_SUMMARY, STAGE_RESUME_SECTION, STAGE_TECH_STACK
from commit_resume.concurrency import CompletionEvent, ProgressTracker, run_with_concurrency
from commit_resume.models import LedgerEntry, RepoActivity, RepoSummary, Section
from commit_resume.resume.grouping import YearMonthGrouping, group_sections_by_repo
from commit_resume.resume.prompts import (
    build_repo_summary_prompt,
    build_section_prompt,
    build_tech_stack_prompt,
)
from commit_resume.resume.workdir import ResumeParts

logger = logging.getLogger(__name__)

PROJECTS_HEADING = "# 프로젝트 경험"

Emit = Callable[[str], None]


class ResumePipelineError(RuntimeError):
    """A stage produced no usable result; the run cannot continue."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage


async def generate_sections(
    generator: TextGenerator,
    grouping: YearMonthGrouping,
    parts: ResumeParts,
    *,
    limit: int,
    emit: Emit = lambda _: None,
) -> list[Section]:
    """Generate one resume section per month; return survivors newest first."""

    months = list(grouping.groups.items())

    def _unit(year_month: str, entries: list[LedgerEntry]):
        async def _run() -> Section:
            text = await generator.generate(
                build_section_prompt(year_month, entries),
                stage=STAGE_RESUME_SECTION,
            )
            content = text.strip()
            if not content:
                raise ValueError("empty response")
            return parts.write_section(year_month, content)

        return _run

    outcomes = await _run_stage(
        [_unit(year_month, entries) for year_month, entries in months],
        keys=[year_month for year_month, _ in months],
        label="generating sections",
        limit=limit,
        emit=emit,
    )
    sections = sorted(
        (outcome for outcome in outcomes if outcome is not None),
        key=lambda section: section.year_month,
        reverse=True,
    )
    if not sections:
        raise ResumePipelineError("sections", "No resume section could be generated.")
    return sections


async def generate_repo_summaries(
    generator: TextGenerator,
    repo_map: Mapping[str, Sequence[RepoActivity]],
    parts: ResumeParts,
    *,
    limit: int,
    emit: Emit = lambda _: None,
) -> list[RepoSummary]:
    """Generate one project-experience entry per repository, in ``repo_map`` order."""

    repos = list(repo_map.items())

    def _unit(repo_name: str, activities: Sequence[RepoActivity]):
        async def _run() -> RepoSummary:
            text = await generator.generate(
                build_repo_summary_prompt(repo_name, activities),
                stage=STAGE_REPO_SUMMARY,
            )
            content = text.strip()
            if not content:
                raise ValueError("empty response")
            return parts.write_repo_summary(repo_name, content)

        return _run

    outcomes = await _run_stage(
        [_unit(repo_name, activities) for repo_name, activities in repos],
        keys=[repo_name for repo_name, _ in repos],
        label="summarizing repositories",
        limit=limit,
        emit=emit,
    )
    summaries = [outcome for outcome in outcomes if outcome is not None]
    if not summaries:
        raise ResumePipelineError("summaries", "No repository summary could be generated.")
    return summaries


async def generate_tech_stack(
    generator: TextGenerator,
    summaries_text: str,
    parts: ResumeParts,
    *,
    emit: Emit = lambda _: None,
) -> str | None:
    """Return the tech-stack section, or ``None`` if it could not be generated."""

    try:
        text = await generator.generate(
            build_tech_stack_prompt(summaries_text),
            stage=STAGE_TECH_STACK,
        )
        content = text.strip()
        if not content:
            raise ValueError("empty response")
    except Exception as error:  # noqa: BLE001
        logger.warning("Tech stack generation failed: %s", error)
        emit(f"⚠ tech stack failed, using project experience only: {error}")
        return None

    parts.write_tech_stack(content)
    emit("✔ tech stack saved")
    return content


def assemble_resume(summaries: Sequence[RepoSummary], tech_stack: str | None) -> str:
    """Join the optional tech stack and the project summaries into one document."""

    body = f"{PROJECTS_HEADING}\n\n" + "\n\n".join(summary.content for summary in summaries)
    if tech_stack:
        return f"{tech_stack}\n\n{body}"
    return body


async def build_final_resume(
    generator: TextGenerator,
    sections: Sequence[Section],
    parts: ResumeParts,
    *,
    limit: int,
    emit: Emit = lambda _: None,
) -> str:
    """Regroup sections by repository, summarize each, and assemble the resume."""

    repo_map = group_sections_by_repo(sections)
    if not repo_map:
        raise ResumePipelineError(
            "repositories",
            "No repository activity could be extracted from the sections.",
        )
    emit(f"Found {len(repo_map)} repositories, generating project summaries...")

    summaries = await generate_repo_summaries(
        generator,
        repo_map,
        parts,
        limit=limit,
        emit=emit,
    )
    emit("Generating tech stack section...")
    tech_stack = await generate_tech_stack(
        generator,
        "\n\n".join(summary.content for summary in summaries),
        parts,
        emit=emit,
    )
    return assemble_resume(summaries, tech_stack)


async def _run_stage(
    units: list,
    *,
    keys: list[str],
    label: str,
    limit: int,
    emit: Emit,
) -> list:
    """Run ``units`` through the runner; failed slots come back as ``None``."""

    tracker = ProgressTracker(total=len(units), label=label)

    def _on_complete(event: CompletionEvent) -> None:
        tracker.record(ok=event.outcome.ok)
        key = keys[event.index]
        if event.outcome.ok:
            emit(f"✔ {key} done")
        else:
            logger.warning("%s failed for %s: %s", label, key, event.outcome.error)
            emit(f"✘ {key} failed: {event.outcome.error}")
        emit(tracker.status_line())

    emit(tracker.status_line())
    outcomes = await run_with_concurrency(units, limit, on_complete=_on_complete)
    emit(f"{label}: {tracker.summary_line()}")
    return [outcome.value if outcome.ok else None for outcome in outcomes]
