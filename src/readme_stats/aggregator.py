"""Collects language and recent-activity statistics for one user's repositories."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from . import config
from .exceptions import GitHubError, StatsNotReadyError
from .github.client import GitHubClient
from .models import (
    CodeFrequencyPoint,
    LanguageStats,
    ProfileAccumulator,
    ProfileReport,
    RecentUpdate,
    Repository,
)

logger = logging.getLogger(__name__)


@dataclass
class _RepoResult:
    languages: dict[str, int]
    update: RecentUpdate | None
    failed: bool


def filter_repositories(
    repos: Iterable[Repository], excluded: Iterable[str]
) -> list[Repository]:
    excluded = frozenset(excluded)
    return [r for r in repos if r.name not in excluded]


async def list_repositories(client: GitHubClient, user: str) -> list[Repository]:
    """List the user's repositories, or an empty list if GitHub can't be reached."""
    try:
        data = await client.list_repos(user)
    except GitHubError as e:
        logger.error("Failed to list repositories for %s: %s", user, e)
        return []

    repos = []
    for item in data:
        try:
            repos.append(Repository.from_api(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed repository entry: %s", e)
    return repos


async def fetch_languages(client: GitHubClient, repo: Repository) -> dict[str, int] | None:
    """Return the repository's language breakdown, or None when it is unavailable."""
    try:
        return await client.get_languages(repo.languages_url)
    except GitHubError as e:
        logger.warning("No language data for %s: %s", repo.name, e)
        return None


def window_start(now: datetime, weeks: int = config.RECENT_WINDOW_WEEKS) -> datetime:
    return now - timedelta(days=weeks * 7)


def summarize_activity(
    repo: Repository,
    points: Iterable[CodeFrequencyPoint],
    now: datetime,
    weeks: int = config.RECENT_WINDOW_WEEKS,
) -> RecentUpdate | None:
    """Sum additions and deletions of the weeks inside the trailing window.

    Returns None when nothing changed in the window.
    """
    start = window_start(now, weeks)
    additions = deletions = 0
    latest: datetime | None = None
    for point in points:
        week_start = point.week_start
        if week_start < start:
            continue
        additions += point.additions
        deletions += abs(point.deletions)
        if latest is None or week_start > latest:
            latest = week_start

    if additions == 0 and deletions == 0:
        return None
    return RecentUpdate(
        name=repo.name,
        updated_at=repo.pushed_at or latest or now,
        additions=additions,
        deletions=deletions,
    )


async def fetch_recent_update(
    client: GitHubClient, repo: Repository, now: datetime
) -> tuple[RecentUpdate | None, bool]:
    """Return (update, ok). Any fetch failure counts as "no recent activity"."""
    try:
        points = await client.get_code_frequency(repo.full_name)
    except StatsNotReadyError as e:
        logger.warning(
            "Code frequency for %s not ready after %d attempt(s), skipping",
            repo.name,
            e.attempts,
        )
        return None, False
    except GitHubError as e:
        logger.warning("No code frequency for %s: %s", repo.name, e)
        return None, False
    try:
        update = summarize_activity(repo, points, now)
    except (OverflowError, OSError, ValueError) as e:
        logger.warning("Malformed code frequency for %s: %s", repo.name, e)
        return None, False
    return update, True


async def _collect_repo(
    client: GitHubClient,
    repo: Repository,
    now: datetime,
    semaphore: asyncio.Semaphore,
) -> _RepoResult:
    async with semaphore:
        logger.debug("Collecting stats for %s", repo.full_name)
        languages = await fetch_languages(client, repo)
        update, activity_ok = await fetch_recent_update(client, repo, now)
    return _RepoResult(
        languages=languages or {},
        update=update,
        failed=languages is None or not activity_ok,
    )


def build_report(
    user: str,
    accumulator: ProfileAccumulator,
    total_repos: int,
    generated_at: datetime,
) -> ProfileReport:
    """Turn the running totals into a sorted report."""
    total_bytes = sum(accumulator.languages.values())
    # sorted() is stable, so languages with equal counts keep insertion order
    ranked = sorted(accumulator.languages.items(), key=lambda kv: kv[1], reverse=True)
    languages = [
        LanguageStats(
            language=name,
            bytes=size,
            percentage=round(size / total_bytes * 100, 2) if total_bytes else 0.0,
        )
        for name, size in ranked
    ]
    updates = sorted(accumulator.recent_updates, key=lambda u: u.updated_at, reverse=True)
    return ProfileReport(
        user=user,
        generated_at=generated_at,
        total_repos=total_repos,
        total_bytes=total_bytes,
        languages=languages,
        recent_updates=updates,
        failed_repos=list(accumulator.failed_repos),
    )


async def aggregate_profile_report(
    client: GitHubClient,
    user: str,
    exclude_repos: Iterable[str] | None = None,
    now: datetime | None = None,
    concurrency: int = 1,
) -> ProfileReport:
    """Run the full pass: list, filter, collect per repository, rank.

    With concurrency > 1 repositories are fetched in parallel; results are
    still merged in listing order.
    """
    now = now or datetime.now(timezone.utc)
    repos = await list_repositories(client, user)
    repos = filter_repositories(repos, exclude_repos or ())
    logger.info("Collecting stats for %d repositories of %s", len(repos), user)

    semaphore = asyncio.Semaphore(max(1, concurrency))
    if concurrency > 1:
        # a failing repository cancels its siblings before the client closes
        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(_collect_repo(client, repo, now, semaphore))
                for repo in repos
            ]
        results = [task.result() for task in tasks]
    else:
        results = [await _collect_repo(client, repo, now, semaphore) for repo in repos]

    accumulator = ProfileAccumulator()
    for repo, result in zip(repos, results):
        accumulator.add_languages(result.languages)
        if result.update is not None:
            accumulator.add_update(result.update)
        if result.failed:
            accumulator.mark_failed(repo.name)

    return build_report(user, accumulator, total_repos=len(repos), generated_at=now)
