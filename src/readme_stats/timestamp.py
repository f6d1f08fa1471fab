"""Prepends an "Updated" line to the README."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from . import config

logger = logging.getLogger(__name__)


def format_timestamp(now: datetime) -> str:
    """en-US locale layout, e.g. "10/19/2026, 3:04:05 PM"."""
    hour = now.hour % 12 or 12
    meridiem = "AM" if now.hour < 12 else "PM"
    return f"{now.month}/{now.day}/{now.year}, {hour}:{now:%M:%S} {meridiem}"


def prepend_timestamp(path: str | Path = config.DEFAULT_README, now: datetime | None = None) -> str:
    """Rewrite the file with an "Updated" line in front of its current content."""
    path = Path(path)
    content = path.read_text(encoding="utf-8")
    stamp = format_timestamp(now or datetime.now())
    updated = f"\n🔄 **Updated:** {stamp}\n\n{content}\n"
    path.write_text(updated, encoding="utf-8")
    logger.debug("Prepended timestamp %s to %s", stamp, path)
    return updated
