"""Tests for the aggregator module."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from readme_stats.aggregator import (
    aggregate_profile_report,
    build_report,
    fetch_languages,
    fetch_recent_update,
    filter_repositories,
    list_repositories,
    summarize_activity,
)
from readme_stats.exceptions import (
    GitHubAPIError,
    GitHubTransportError,
    MalformedPayloadError,
    StatsNotReadyError,
    UnexpectedContentTypeError,
)
from readme_stats.github.client import GitHubClient
from readme_stats.models import CodeFrequencyPoint, ProfileAccumulator, Repository

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _week(days_ago: float, additions: int, deletions: int) -> CodeFrequencyPoint:
    ts = int((NOW - timedelta(days=days_ago)).timestamp())
    return CodeFrequencyPoint(week=ts, additions=additions, deletions=deletions)


def _repo(name: str, pushed_at: datetime | None = None) -> Repository:
    return Repository(
        name=name,
        full_name=f"octo/{name}",
        languages_url=f"https://api.github.com/repos/octo/{name}/languages",
        pushed_at=pushed_at,
    )


@pytest.fixture
def mock_client():
    client = AsyncMock(spec=GitHubClient)
    client.list_repos.return_value = [
        {
            "name": "repo1",
            "full_name": "octo/repo1",
            "languages_url": "https://api.github.com/repos/octo/repo1/languages",
            "pushed_at": "2026-10-10T08:00:00Z",
        },
        {
            "name": "repo2",
            "full_name": "octo/repo2",
            "languages_url": "https://api.github.com/repos/octo/repo2/languages",
            "pushed_at": "2026-10-15T08:00:00Z",
        },
    ]
    client.get_languages.return_value = {"Python": 5000, "JavaScript": 3000}
    client.get_code_frequency.return_value = [
        _week(100, 500, -200),
        _week(14, 40, -10),
        _week(7, 60, -5),
    ]
    return client


# --- Exclusion filter ---


def test_filter_repositories_drops_excluded_and_keeps_order():
    repos = [_repo(n) for n in ["a", "b", "c", "d", "e"]]
    result = filter_repositories(repos, {"b", "d", "missing"})
    assert [r.name for r in result] == ["a", "c", "e"]


def test_filter_repositories_empty_exclusion():
    repos = [_repo("a"), _repo("b")]
    assert filter_repositories(repos, ()) == repos


# --- Repository lister ---


@pytest.mark.asyncio
async def test_list_repositories_parses_entries(mock_client):
    repos = await list_repositories(mock_client, "octo")
    mock_client.list_repos.assert_awaited_once_with("octo")
    assert [r.name for r in repos] == ["repo1", "repo2"]
    assert repos[0].pushed_at == datetime(2026, 10, 10, 8, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_list_repositories_degrades_to_empty_on_api_error(caplog):
    client = AsyncMock(spec=GitHubClient)
    client.list_repos.side_effect = GitHubAPIError(401, "Bad credentials")
    assert await list_repositories(client, "octo") == []
    assert "Failed to list repositories" in caplog.text


@pytest.mark.asyncio
async def test_list_repositories_degrades_on_transport_error():
    client = AsyncMock(spec=GitHubClient)
    client.list_repos.side_effect = GitHubTransportError("connection refused")
    assert await list_repositories(client, "octo") == []


# --- Language aggregator ---


@pytest.mark.asyncio
async def test_fetch_languages_returns_none_on_non_json(caplog):
    client = AsyncMock(spec=GitHubClient)
    client.get_languages.side_effect = UnexpectedContentTypeError("text/html")
    with caplog.at_level(logging.WARNING):
        assert await fetch_languages(client, _repo("a")) is None
    assert "No language data for a" in caplog.text


@pytest.mark.asyncio
async def test_language_failure_still_counts_activity(mock_client):
    async def languages(url):
        if "repo1" in url:
            raise GitHubAPIError(404, "Not Found", url)
        return {"Go": 100}

    mock_client.get_languages.side_effect = languages
    report = await aggregate_profile_report(mock_client, "octo", now=NOW)

    assert [lang.language for lang in report.languages] == ["Go"]
    assert {u.name for u in report.recent_updates} == {"repo1", "repo2"}
    assert report.failed_repos == ["repo1"]


# --- Activity aggregator ---


def test_summarize_activity_window_boundary():
    repo = _repo("a", pushed_at=NOW)
    included = summarize_activity(repo, [_week(42, 10, -3)], NOW)
    assert included is not None
    assert (included.additions, included.deletions) == (10, 3)

    assert summarize_activity(repo, [_week(43, 10, -3)], NOW) is None


def test_summarize_activity_sums_only_recent_weeks():
    repo = _repo("a", pushed_at=NOW)
    update = summarize_activity(
        repo,
        [_week(60, 1000, -1000), _week(21, 7, -2), _week(0, 3, -4)],
        NOW,
    )
    assert update.additions == 10
    assert update.deletions == 6
    assert update.updated_at == NOW


def test_summarize_activity_zero_sums_produce_nothing():
    repo = _repo("quiet", pushed_at=NOW)
    assert summarize_activity(repo, [_week(7, 0, 0), _week(14, 0, 0)], NOW) is None


def test_summarize_activity_normalizes_negative_deletions():
    point = CodeFrequencyPoint.from_api([int(NOW.timestamp()), 0, -25])
    update = summarize_activity(_repo("a", pushed_at=NOW), [point], NOW)
    assert update.deletions == 25


def test_summarize_activity_without_pushed_at_uses_latest_week():
    update = summarize_activity(_repo("a"), [_week(14, 1, 0), _week(7, 1, 0)], NOW)
    assert update.updated_at == _week(7, 0, 0).week_start


@pytest.mark.asyncio
async def test_fetch_recent_update_not_ready_is_no_activity(caplog):
    client = AsyncMock(spec=GitHubClient)
    client.get_code_frequency.side_effect = StatsNotReadyError(
        "/repos/octo/a/stats/code_frequency", 2
    )
    with caplog.at_level(logging.WARNING):
        update, ok = await fetch_recent_update(client, _repo("a"), NOW)
    assert update is None
    assert ok is False
    assert "not ready after 2 attempt(s)" in caplog.text


@pytest.mark.asyncio
async def test_fetch_recent_update_malformed_is_no_activity():
    client = AsyncMock(spec=GitHubClient)
    client.get_code_frequency.side_effect = MalformedPayloadError("empty response")
    update, ok = await fetch_recent_update(client, _repo("a"), NOW)
    assert update is None
    assert ok is False


# --- Full pass ---


@pytest.mark.asyncio
async def test_aggregate_profile_report(mock_client):
    report = await aggregate_profile_report(mock_client, "octo", now=NOW)

    assert report.user == "octo"
    assert report.total_repos == 2
    assert report.total_bytes == 16000
    assert report.languages[0].language == "Python"
    assert report.languages[0].bytes == 10000
    assert report.languages[0].percentage == 62.5
    assert report.languages[1].percentage == 37.5
    # repo2 was pushed most recently
    assert [u.name for u in report.recent_updates] == ["repo2", "repo1"]
    assert report.recent_updates[0].additions == 100
    assert report.recent_updates[0].deletions == 15
    assert report.failed_repos == []


@pytest.mark.asyncio
async def test_aggregate_handles_empty_listing():
    client = AsyncMock(spec=GitHubClient)
    client.list_repos.return_value = []
    report = await aggregate_profile_report(client, "nobody", now=NOW)
    assert report.total_repos == 0
    assert report.languages == []
    assert report.recent_updates == []
    client.get_languages.assert_not_called()


@pytest.mark.asyncio
async def test_aggregate_exclude_repos(mock_client):
    report = await aggregate_profile_report(
        mock_client, "octo", exclude_repos={"repo2"}, now=NOW
    )
    assert report.total_repos == 1
    assert [u.name for u in report.recent_updates] == ["repo1"]
    mock_client.get_code_frequency.assert_awaited_once_with("octo/repo1")


@pytest.mark.asyncio
async def test_aggregate_quiet_repo_omitted_from_updates(mock_client):
    async def frequency(full_name):
        if full_name == "octo/repo1":
            return [_week(7, 0, 0)]
        return [_week(7, 5, -1)]

    mock_client.get_code_frequency.side_effect = frequency
    report = await aggregate_profile_report(mock_client, "octo", now=NOW)
    assert [u.name for u in report.recent_updates] == ["repo2"]
    # still contributes languages
    assert report.languages[0].bytes == 10000


@pytest.mark.asyncio
async def test_aggregate_concurrent_matches_sequential(mock_client):
    sequential = await aggregate_profile_report(mock_client, "octo", now=NOW)
    parallel = await aggregate_profile_report(mock_client, "octo", now=NOW, concurrency=4)
    assert parallel == sequential


# --- Report building ---


def test_build_report_ranks_languages_stably():
    acc = ProfileAccumulator()
    acc.add_languages({"Rust": 100, "Go": 300})
    acc.add_languages({"TS": 100})
    report = build_report("octo", acc, total_repos=2, generated_at=NOW)

    assert [(l.language, l.percentage) for l in report.languages] == [
        ("Go", 60.0),
        ("Rust", 20.0),
        ("TS", 20.0),
    ]


def test_accumulator_is_additive():
    acc = ProfileAccumulator()
    acc.add_languages({"Python": 10})
    acc.add_languages({"Python": 5, "C": 1})
    assert acc.languages == {"Python": 15, "C": 1}


@pytest.mark.parametrize(
    "languages",
    [
        {"A": 1, "B": 1, "C": 1},
        {"Python": 12345, "Shell": 17, "HTML": 999, "CSS": 3},
        {"Go": 300, "Rust": 100, "TS": 100},
        {"X": 7, "Y": 11, "Z": 13, "W": 17, "V": 19, "U": 23},
    ],
)
def test_percentages_sum_to_100_within_rounding(languages):
    acc = ProfileAccumulator()
    acc.add_languages(languages)
    report = build_report("octo", acc, total_repos=1, generated_at=NOW)
    total = sum(float(f"{l.percentage:.2f}") for l in report.languages)
    assert abs(total - 100.0) <= 0.01 * len(languages) + 1e-9


def test_build_report_no_bytes():
    report = build_report("octo", ProfileAccumulator(), total_repos=0, generated_at=NOW)
    assert report.languages == []
    assert report.total_bytes == 0


@pytest.mark.asyncio
async def test_out_of_range_week_degrades_only_that_repo(mock_client, caplog):
    async def frequency(full_name):
        if full_name == "octo/repo1":
            return [CodeFrequencyPoint(week=10**20, additions=5, deletions=1)]
        return [_week(7, 5, -1)]

    mock_client.get_code_frequency.side_effect = frequency
    with caplog.at_level(logging.WARNING):
        report = await aggregate_profile_report(mock_client, "octo", now=NOW)

    assert [u.name for u in report.recent_updates] == ["repo2"]
    assert report.failed_repos == ["repo1"]
    assert "Malformed code frequency for repo1" in caplog.text


def test_code_frequency_point_rejects_out_of_range_week():
    with pytest.raises(ValueError):
        CodeFrequencyPoint.from_api([10**20, 1, -1])


@pytest.mark.asyncio
async def test_concurrent_failure_cancels_siblings(mock_client):
    cancelled = asyncio.Event()

    async def languages(url):
        if "repo1" in url:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise
        raise RuntimeError("unexpected")

    mock_client.get_languages.side_effect = languages
    with pytest.raises(ExceptionGroup) as exc_info:
        await aggregate_profile_report(mock_client, "octo", now=NOW, concurrency=2)

    assert exc_info.group_contains(RuntimeError)
    assert cancelled.is_set()
