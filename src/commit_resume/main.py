"""CLI entrypoint for commit-resume."""

import logging
import os
from collections.abc import Generator, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

import rich_click as click

from commit_resume import __version__
from commit_resume.collect.controllers import (
    CollectCliController,
    CollectCommand,
    CollectOutcome,
)
from commit_resume.collect.ledger import list_ledger_files
from commit_resume.config import SUPPORTED_AGENTS
from commit_resume.errors import ConfigurationError, PrerequisiteError
from commit_resume.resume.controllers import (
    GenerateCommand,
    RegenerateCommand,
    ResumeCliController,
    ResumeOutcome,
)
from commit_resume.resume.workdir import list_parts_dirs

T = TypeVar("T")

click.rich_click.USE_MARKDOWN = True
COLLECT_CONTROLLER = CollectCliController()
RESUME_CONTROLLER = ResumeCliController()

_OUTPUT_DIR_OPTION = click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for ledgers, intermediate parts and resumes. "
    "Defaults to COMMIT_RESUME_OUTPUT_DIR or the current directory.",
)
_AGENT_OPTION = click.option(
    "--agent",
    "agent_override",
    type=click.Choice(SUPPORTED_AGENTS, case_sensitive=False),
    default=None,
    help="Agent CLI for every stage. Defaults to COMMIT_RESUME_LLM_DEFAULT_AGENT.",
)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="commit-resume")
@click.pass_context
def commit_resume(ctx: click.Context) -> None:
    """Collect your GitHub commits and turn them into resume content.

    Run without a sub-command for the interactive menu.
    """

    _configure_logging()
    if ctx.invoked_subcommand is None:
        _run_menu(ctx)


@commit_resume.command("collect")
@click.option("--owner", default=None, help="User or organization whose repositories to scan.")
@click.option(
    "--author",
    "aliases",
    multiple=True,
    help="Extra author handle or email (old accounts). Can be repeated.",
)
@_OUTPUT_DIR_OPTION
def collect(owner: str | None, aliases: tuple[str, ...], output_dir: Path | None) -> None:
    """Collect your commits from every repository of an owner into a ledger."""

    _collect(owner=owner, aliases=aliases, output_dir=output_dir)


@commit_resume.command("generate")
@click.option(
    "--ledger",
    "ledger_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Commit ledger (commits-*.md). Prompted for when omitted.",
)
@_AGENT_OPTION
@_OUTPUT_DIR_OPTION
def generate(
    ledger_path: Path | None,
    agent_override: str | None,
    output_dir: Path | None,
) -> None:
    """Generate a resume from a commit ledger."""

    ledger_path = ledger_path or _choose_ledger(output_dir)
    _generate(ledger_path=ledger_path, agent_override=agent_override, output_dir=output_dir)


@commit_resume.command("run")
@click.option("--owner", default=None, help="User or organization whose repositories to scan.")
@click.option(
    "--author",
    "aliases",
    multiple=True,
    help="Extra author handle or email (old accounts). Can be repeated.",
)
@_AGENT_OPTION
@_OUTPUT_DIR_OPTION
def run(
    owner: str | None,
    aliases: tuple[str, ...],
    agent_override: str | None,
    output_dir: Path | None,
) -> None:
    """Collect commits, then generate a resume from the new ledger."""

    outcome = _collect(owner=owner, aliases=aliases, output_dir=output_dir)
    if outcome.ledger_path is None:
        raise click.ClickException("Nothing collected; resume generation skipped.")
    click.echo("")
    _generate(
        ledger_path=outcome.ledger_path,
        agent_override=agent_override,
        output_dir=output_dir,
    )


@commit_resume.command("regenerate")
@click.option(
    "--parts-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Intermediate directory (.temp-resume-parts-*). Prompted for when omitted.",
)
@_AGENT_OPTION
@_OUTPUT_DIR_OPTION
def regenerate(
    parts_dir: Path | None,
    agent_override: str | None,
    output_dir: Path | None,
) -> None:
    """Rebuild the final resume from the month sections of an earlier run."""

    parts_dir = parts_dir or _choose_parts_dir(output_dir)
    with _prerequisites():
        outcome = _emit_lines(
            RESUME_CONTROLLER.regenerate(
                RegenerateCommand(
                    parts_dir=parts_dir,
                    output_dir=output_dir,
                    agent_override=agent_override,
                ),
            ),
        )
    _check_resume(outcome)


def _collect(
    *,
    owner: str | None,
    aliases: tuple[str, ...],
    output_dir: Path | None,
) -> CollectOutcome:
    with _prerequisites():
        session = COLLECT_CONTROLLER.open_session(output_dir)
    suffix = f" ({session.email})" if session.email else ""
    click.echo(f"✔ GitHub user: {session.login}{suffix}")

    if owner is None:
        labels = [f"{session.login} (personal repositories)", *session.organizations]
        owner = session.owners[_choose("Select an owner", labels)]
        if not aliases:
            aliases = _prompt_aliases()

    with _prerequisites():
        return _emit_lines(
            COLLECT_CONTROLLER.collect(
                CollectCommand(
                    owner=owner,
                    username=session.login,
                    email=session.email,
                    aliases=aliases,
                    output_dir=output_dir,
                ),
            ),
        )


def _generate(
    *,
    ledger_path: Path,
    agent_override: str | None,
    output_dir: Path | None,
) -> None:
    with _prerequisites():
        outcome = _emit_lines(
            RESUME_CONTROLLER.generate(
                GenerateCommand(
                    ledger_path=ledger_path,
                    output_dir=output_dir,
                    agent_override=agent_override,
                ),
            ),
        )
    _check_resume(outcome)


def _run_menu(ctx: click.Context) -> None:
    actions = (
        ("Collect commits", collect),
        ("Generate resume from a ledger", generate),
        ("Collect commits, then generate resume", run),
        ("Regenerate resume from intermediate files", regenerate),
    )
    index = _choose("What do you want to do?", [label for label, _ in actions])
    ctx.invoke(actions[index][1])


def _choose(title: str, labels: Sequence[str]) -> int:
    """Print a numbered list and return the zero-based index of the choice."""

    click.echo(title)
    for number, label in enumerate(labels, start=1):
        click.echo(f"  {number}. {label}")
    choice = click.prompt("Choice", type=click.IntRange(1, len(labels)), default=1)
    return choice - 1


def _prompt_aliases() -> tuple[str, ...]:
    click.echo("e.g. old-username, old@email.com")
    raw = click.prompt(
        "Extra author emails/handles (Enter to skip)",
        default="",
        show_default=False,
    )
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _choose_ledger(output_dir: Path | None) -> Path:
    ledgers = list_ledger_files(_resolve_dir(output_dir))
    if not ledgers:
        raise click.ClickException(
            "No commits-*.md ledger found. Run `commit-resume collect` first.",
        )
    if len(ledgers) == 1:
        return ledgers[0]
    return ledgers[_choose("Select a commit ledger", [path.name for path in ledgers])]


def _choose_parts_dir(output_dir: Path | None) -> Path:
    parts_dirs = list_parts_dirs(_resolve_dir(output_dir))
    if not parts_dirs:
        raise click.ClickException("No .temp-resume-parts-* directory found.")
    return parts_dirs[_choose("Select an intermediate directory", [p.name for p in parts_dirs])]


def _resolve_dir(output_dir: Path | None) -> Path:
    return output_dir or Path(os.getenv("COMMIT_RESUME_OUTPUT_DIR", "."))


def _check_resume(outcome: ResumeOutcome) -> None:
    if outcome.success:
        return
    if outcome.parts_dir is not None:
        raise click.ClickException(
            f"Resume generation failed; partial results are kept in {outcome.parts_dir}",
        )
    raise click.ClickException("Resume generation failed.")


@contextmanager
def _prerequisites() -> Iterator[None]:
    """Turn missing-tool and configuration errors into a clean exit code 1."""

    try:
        yield
    except PrerequisiteError as error:
        message = "\n".join([str(error), *(f"  {hint}" for hint in error.hints)])
        raise click.ClickException(message) from error
    except ConfigurationError as error:
        raise click.ClickException(f"Configuration error: {error}") from error


def _emit_lines(lines: Generator[str, None, T]) -> T:
    while True:
        try:
            line = next(lines)
        except StopIteration as stop:
            return stop.value
        click.echo(line)


def _configure_logging() -> None:
    level_name = os.getenv("COMMIT_RESUME_LOG_LEVEL", "WARNING").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":  # pragma: no cover
    commit_resume()
