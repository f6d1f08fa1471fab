"""Static configuration for profile-readme-stats."""

from __future__ import annotations

import re

API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0

# "list repos" is requested as a single page
REPOS_PER_PAGE = 100

RECENT_WINDOW_WEEKS = 6

STATS_MAX_ATTEMPTS = 2
STATS_RETRY_DELAY = 5.0
STATS_PENDING_STATUS = 202

DEFAULT_README = "README.md"

BAR_WIDTH = 20
LANGUAGE_NAME_WIDTH = 12
REPO_NAME_WIDTH = 20
COLUMN_GUTTER = "    "

_SPLIT_RE = re.compile(r"[,\s]+")


def parse_exclude_list(values: tuple[str, ...] | list[str] | str | None) -> frozenset[str]:
    """Flatten repo names given as repeated options or comma/space separated strings."""
    if not values:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    names: set[str] = set()
    for value in values:
        names.update(part for part in _SPLIT_RE.split(value) if part)
    return frozenset(names)
