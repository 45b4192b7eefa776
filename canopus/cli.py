import asyncio
import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path

import click
import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from canopus.codeowners import CodeOwnersContext
from canopus.config import load_config
from canopus.diagnostics import NoIssues, ValidationOutcome
from canopus.exceptions import CanopusError
from canopus.github import GithubConsistencyChecker, OfflineConsistencyChecker
from canopus.repairing import first_issue_per_line, repair_codeowners
from canopus.status import ExitCodes
from canopus.utils.environment import init_env
from canopus.utils.paths import GitAwarePathWalker
from canopus.validation import CodeOwnersValidator

# Enable Sentry
if os.getenv("SENTRY_DSN"):
    match os.environ.get("SENTRY_EVENT_LEVEL", "CRITICAL").upper():
        case "CRITICAL":
            sentry_event_level = logging.CRITICAL
        case "ERROR":
            sentry_event_level = logging.ERROR
        case _:
            raise ValueError(
                "Invalid value for SENTRY_EVENT_LEVEL. Must be CRITICAL or ERROR."
            )

    sentry_sdk.init(
        os.environ["SENTRY_DSN"],
        integrations=[
            LoggingIntegration(event_level=sentry_event_level),
        ],
    )


def log_level(function: Callable) -> Callable:
    function = click.option(
        "--log-level",
        help="log-level of the command. Defaults to INFO.",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    )(function)
    return function


def project_path(function: Callable) -> Callable:
    function = click.option(
        "-p",
        "--path",
        "path",
        required=True,
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        help="Root directory of the project holding the CODEOWNERS file.",
    )(function)
    return function


def dry_run(function: Callable) -> Callable:
    help_msg = (
        "If set, it will only print the lines that would be repaired, "
        "without changing the CODEOWNERS file."
    )

    function = click.option("--dry-run", is_flag=True, default=False, help=help_msg)(
        function
    )
    return function


def remove_lines(function: Callable) -> Callable:
    help_msg = "Remove flagged lines instead of commenting them out."

    function = click.option(
        "--remove-lines", is_flag=True, default=False, help=help_msg
    )(function)
    return function


async def run_validation(
    project_root: Path,
) -> tuple[CodeOwnersContext, ValidationOutcome]:
    context = CodeOwnersContext.from_project(project_root)
    config = load_config(project_root)
    path_walker = GitAwarePathWalker(project_root)

    if config.offline_checks_only:
        validator = CodeOwnersValidator(OfflineConsistencyChecker(), path_walker)
        return context, await validator.validate_project(context, config)

    async with GithubConsistencyChecker() as consistency_checker:
        validator = CodeOwnersValidator(consistency_checker, path_walker)
        outcome = await validator.validate_project(context, config)
    return context, outcome


def evaluate(project_root: Path) -> tuple[CodeOwnersContext, ValidationOutcome]:
    try:
        return asyncio.run(run_validation(project_root))
    except (CanopusError, OSError) as e:
        logging.debug("validation aborted", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCodes.ERROR)


@click.group()
@log_level
def canopus(log_level: str | None) -> None:
    """Validate and repair CODEOWNERS files."""
    init_env(log_level=log_level)


@canopus.command()
@project_path
def validate(path: Path) -> None:
    """Validate the CODEOWNERS configuration of a project."""
    _, outcome = evaluate(path)

    if isinstance(outcome, NoIssues):
        click.echo("No issues found")
        sys.exit(ExitCodes.SUCCESS)

    for issue in outcome.issues:
        click.echo(str(issue))
    click.echo("Some issues found")
    sys.exit(ExitCodes.ISSUES_DETECTED)


@canopus.command()
@project_path
@dry_run
@remove_lines
def repair(path: Path, dry_run: bool, remove_lines: bool) -> None:
    """Repair the CODEOWNERS configuration of a project."""
    context, outcome = evaluate(path)

    issues = first_issue_per_line(outcome.issues)
    if not issues:
        click.echo("Nothing to repair")
        return

    if dry_run:
        click.echo("Dry-run repairing...")
        for issue in issues:
            click.echo(f"L{issue.line + 1} will be repaired ({issue.message})")
        click.echo()
        click.echo("More issues can exist for every line above")
        return

    click.echo("Repairing CodeOwners...")
    try:
        repair_codeowners(
            context, [issue.line for issue in issues], remove_lines=remove_lines
        )
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCodes.ERROR)
    click.echo("CODEOWNERS repaired")
