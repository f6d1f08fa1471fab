"""Renders a ProfileReport as a README text block, rich tables or JSON."""

from __future__ import annotations

import io
import json
import logging
import math
from dataclasses import asdict
from itertools import zip_longest

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import config
from .models import LanguageStats, ProfileReport, RecentUpdate

logger = logging.getLogger(__name__)

LANGUAGE_COLUMN_WIDTH = config.LANGUAGE_NAME_WIDTH + 1 + config.BAR_WIDTH + 1 + 7
HEADER_LINE = (
    f"{'Languages':<{LANGUAGE_COLUMN_WIDTH}}{config.COLUMN_GUTTER}"
    f"Recent Updates (last {config.RECENT_WINDOW_WEEKS} weeks)"
)


def _format_number(n: int) -> str:
    return f"{n:,}"


def _make_bar(percentage: float, width: int = config.BAR_WIDTH) -> str:
    # halves round up: 2.5% of 20 segments is one block, not zero
    filled = max(0, min(width, math.floor(percentage / 100 * width + 0.5)))
    return "█" * filled + "░" * (width - filled)


def _fit(text: str, width: int) -> str:
    return f"{text[:width]:<{width}}"


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {output_file}")


def format_language_row(lang: LanguageStats) -> str:
    name = _fit(lang.language, config.LANGUAGE_NAME_WIDTH)
    return f"{name} {_make_bar(lang.percentage)} {lang.percentage:6.2f}%"


def format_update_row(update: RecentUpdate) -> str:
    name = _fit(update.name, config.REPO_NAME_WIDTH)
    date = update.updated_at.date().isoformat()
    return (
        f"{name} Date: {date} "
        f"Lines of Code: +{update.additions} · -{update.deletions}"
    )


def render_stats_block(report: ProfileReport) -> str:
    """Two fixed-width columns: languages on the left, recent updates on the right."""
    left = [format_language_row(lang) for lang in report.languages]
    right = [format_update_row(update) for update in report.recent_updates]

    lines = [HEADER_LINE]
    for lang_row, update_row in zip_longest(left, right, fillvalue=""):
        if not update_row:
            lines.append(lang_row)
            continue
        lines.append(f"{lang_row:<{LANGUAGE_COLUMN_WIDTH}}{config.COLUMN_GUTTER}{update_row}")
    return "\n".join(line.rstrip() for line in lines)


def render_readme(report: ProfileReport) -> str:
    return f"```text\n{render_stats_block(report)}\n```\n"


def write_readme(content: str, path: str = config.DEFAULT_README) -> None:
    """Replace the whole README with content."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.info("Wrote %s", path)


def render_report(report: ProfileReport, output_file: str | None = None) -> None:
    """Render a ProfileReport to the terminal using rich."""
    if output_file:
        string_io = io.StringIO()
        console = Console(file=string_io, force_terminal=False, width=120)
    else:
        console = Console()

    console.print(Panel(
        Text(
            f"readme-stats: {report.user}\n"
            f"Generated: {report.generated_at:%Y-%m-%d %H:%M %Z}",
            justify="center",
        ),
        style="bold cyan",
    ))
    console.print()

    if report.failed_repos:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] Incomplete stats for "
            f"{len(report.failed_repos)} repo(s): {', '.join(report.failed_repos)}"
        )
        console.print()

    console.print("[bold]Summary[/bold]")
    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("label", style="dim")
    summary.add_column("value", style="bold")
    summary.add_row("Repositories", _format_number(report.total_repos))
    summary.add_row("Languages", _format_number(len(report.languages)))
    summary.add_row("Total Bytes", _format_number(report.total_bytes))
    summary.add_row("Recently Updated", _format_number(len(report.recent_updates)))
    console.print(summary)
    console.print()

    if report.languages:
        console.print("[bold]Language Distribution[/bold]")
        lang_table = Table(show_header=True, header_style="bold")
        lang_table.add_column("Language")
        lang_table.add_column("Bar")
        lang_table.add_column("Percentage", justify="right")
        lang_table.add_column("Bytes", justify="right")

        for lang in report.languages:
            lang_table.add_row(
                lang.language,
                _make_bar(lang.percentage),
                f"{lang.percentage:.2f}%",
                _format_number(lang.bytes),
            )
        console.print(lang_table)
        console.print()

    if report.recent_updates:
        console.print(f"[bold]Recent Updates (last {config.RECENT_WINDOW_WEEKS} weeks)[/bold]")
        update_table = Table(show_header=True, header_style="bold")
        update_table.add_column("Repo")
        update_table.add_column("Date")
        update_table.add_column("Additions", justify="right", style="green")
        update_table.add_column("Deletions", justify="right", style="red")

        for update in report.recent_updates:
            update_table.add_row(
                update.name,
                update.updated_at.date().isoformat(),
                f"+{_format_number(update.additions)}",
                f"-{_format_number(update.deletions)}",
            )
        console.print(update_table)
        console.print()

    if output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_json(report: ProfileReport, output_file: str | None = None) -> None:
    """Render a ProfileReport as JSON."""
    content = json.dumps(asdict(report), indent=2, ensure_ascii=False, default=str)
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content)
