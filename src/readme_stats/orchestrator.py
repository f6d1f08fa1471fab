"""Wires the GitHub client, aggregator and renderer together."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from rich.console import Console

from . import config
from .aggregator import aggregate_profile_report
from .github.client import GitHubClient
from .renderer import render_json, render_readme, render_report, write_readme

logger = logging.getLogger(__name__)


async def run(
    user: str,
    token: str | None,
    readme_path: str = config.DEFAULT_README,
    exclude_repos: Iterable[str] | None = None,
    output_format: str = "readme",
    output_file: str | None = None,
    concurrency: int = 1,
) -> bool:
    """Generate the stats and emit them in the requested format.

    Errors escaping the pipeline are logged here and reported through the
    return value; the caller picks the exit status.
    """
    try:
        async with GitHubClient(token=token) as client:
            report = await aggregate_profile_report(
                client,
                user,
                exclude_repos=exclude_repos,
                concurrency=concurrency,
            )

        if output_format == "json":
            render_json(report, output_file=output_file)
        elif output_format == "table":
            render_report(report, output_file=output_file)
        else:
            write_readme(render_readme(report), output_file or readme_path)
    except Exception:
        logger.exception("Failed to generate README stats for %s", user)
        return False

    if output_format == "readme":
        Console().print(f"✅ {output_file or readme_path} was updated!")
    return True
