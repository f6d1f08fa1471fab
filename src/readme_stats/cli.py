"""Command-line entry points."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.logging import RichHandler

from . import __version__, config
from .orchestrator import run
from .timestamp import prepend_timestamp


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.command()
@click.argument("user", envvar="GITHUB_USERNAME")
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    help="GitHub token (or set GITHUB_TOKEN env var).",
)
@click.option(
    "--readme",
    "readme_path",
    default=config.DEFAULT_README,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="README file to overwrite.",
)
@click.option(
    "--exclude-repo",
    "exclude_repos",
    multiple=True,
    envvar="EXCLUDE_REPOS",
    help="Repository name to leave out (repeatable, or comma separated).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["readme", "table", "json"]),
    default="readme",
    show_default=True,
    help="Write the README, or preview as a table or JSON.",
)
@click.option("--output", "output_file", default=None, help="Write output to a different file.")
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Repositories fetched in parallel.",
)
@click.option(
    "--fail-on-error",
    is_flag=True,
    default=False,
    help="Exit with status 1 when generation fails (default: log and exit 0).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
@click.version_option(version=__version__)
def main(
    user: str,
    token: str | None,
    readme_path: str,
    exclude_repos: tuple[str, ...],
    output_format: str,
    output_file: str | None,
    concurrency: int,
    fail_on_error: bool,
    verbose: bool,
) -> None:
    """Regenerate USER's profile README with language and recent activity stats."""
    _configure_logging(verbose)

    ok = asyncio.run(run(
        user=user,
        token=token or None,
        readme_path=readme_path,
        exclude_repos=config.parse_exclude_list(exclude_repos),
        output_format=output_format,
        output_file=output_file,
        concurrency=concurrency,
    ))
    if not ok and fail_on_error:
        sys.exit(1)


@click.command()
@click.option(
    "--readme",
    "readme_path",
    default=config.DEFAULT_README,
    show_default=True,
    type=click.Path(exists=True, dir_okay=False),
    help="README file to prepend the timestamp to.",
)
@click.version_option(version=__version__)
def timestamp(readme_path: str) -> None:
    """Prepend an "Updated" line to the README."""
    _configure_logging(False)
    prepend_timestamp(readme_path)
    click.echo(f"✅ {readme_path} was updated!")
