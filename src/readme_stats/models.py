"""Data models for profile-readme-stats."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by GitHub ("2024-06-01T12:00:00Z")."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Repository:
    name: str
    full_name: str
    languages_url: str | None = None
    pushed_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Repository:
        name = data["name"]
        return cls(
            name=name,
            full_name=data.get("full_name") or name,
            languages_url=data.get("languages_url"),
            pushed_at=parse_timestamp(data.get("pushed_at")),
        )


@dataclass
class CodeFrequencyPoint:
    """One week of the code frequency series; deletions are stored as a positive count."""

    week: int
    additions: int
    deletions: int

    @classmethod
    def from_api(cls, item: list[int]) -> CodeFrequencyPoint:
        week, additions, deletions = item
        point = cls(week=int(week), additions=int(additions), deletions=abs(int(deletions)))
        try:
            point.week_start
        except (OverflowError, OSError) as e:
            raise ValueError(f"week timestamp {week} out of range") from e
        return point

    @property
    def week_start(self) -> datetime:
        return datetime.fromtimestamp(self.week, tz=timezone.utc)


@dataclass
class RecentUpdate:
    name: str
    updated_at: datetime
    additions: int
    deletions: int


@dataclass
class LanguageStats:
    language: str
    bytes: int
    percentage: float


@dataclass
class ProfileAccumulator:
    """Running totals for one pass over the repository list."""

    languages: dict[str, int] = field(default_factory=dict)
    recent_updates: list[RecentUpdate] = field(default_factory=list)
    failed_repos: list[str] = field(default_factory=list)

    def add_languages(self, breakdown: dict[str, int]) -> None:
        for language, size in breakdown.items():
            self.languages[language] = self.languages.get(language, 0) + size

    def add_update(self, update: RecentUpdate) -> None:
        self.recent_updates.append(update)

    def mark_failed(self, name: str) -> None:
        if name not in self.failed_repos:
            self.failed_repos.append(name)


@dataclass
class ProfileReport:
    user: str
    generated_at: datetime
    total_repos: int
    total_bytes: int = 0
    languages: list[LanguageStats] = field(default_factory=list)
    recent_updates: list[RecentUpdate] = field(default_factory=list)
    failed_repos: list[str] = field(default_factory=list)
