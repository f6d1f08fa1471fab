"""Exceptions raised by the GitHub client."""

from __future__ import annotations


class GitHubError(Exception):
    """Base exception for every failure talking to GitHub."""


class GitHubAPIError(GitHubError):
    """Raised when GitHub answers with a non-success status."""

    def __init__(self, status_code: int, message: str, url: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.url = url
        super().__init__(f"HTTP {status_code}: {message}")


class GitHubTransportError(GitHubError):
    """Raised when the request never got a response."""


class StatsNotReadyError(GitHubError):
    """Raised when statistics are still being computed after the last attempt."""

    def __init__(self, url: str, attempts: int) -> None:
        self.url = url
        self.attempts = attempts
        super().__init__(f"{url} still computing after {attempts} attempt(s)")


class MalformedPayloadError(GitHubError):
    """Raised when a response body is absent, empty or has the wrong shape."""


class UnexpectedContentTypeError(GitHubError):
    """Raised when a response is not JSON."""

    def __init__(self, content_type: str, url: str | None = None) -> None:
        self.content_type = content_type
        self.url = url
        super().__init__(f"unexpected content type {content_type!r}")
