"""Async GitHub REST client covering the three read-only endpoints we need."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .. import config
from ..exceptions import (
    GitHubAPIError,
    GitHubTransportError,
    MalformedPayloadError,
    StatsNotReadyError,
    UnexpectedContentTypeError,
)
from ..models import CodeFrequencyPoint
from ..retry import RetryPolicy, SleepFn, request_with_retry
from .rate_limit import RateLimitMonitor

logger = logging.getLogger(__name__)


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class GitHubClient:
    """Thin wrapper around httpx.AsyncClient.

    Every method raises a GitHubError subclass on failure; deciding whether a
    failure degrades or aborts is left to the caller.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = config.API_URL,
        timeout: float = config.DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy | None = None,
        sleep: SleepFn = asyncio.sleep,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": config.API_VERSION,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._rate_limit = RateLimitMonitor()
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        await self._rate_limit.wait_if_needed()
        try:
            response = await self._client.get(url, params=params)
        except httpx.RequestError as e:
            raise GitHubTransportError(f"GET {url} failed: {e}") from e
        self._rate_limit.update(response)
        logger.debug("GET %s -> %s", url, response.status_code)
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, url: str) -> None:
        if response.is_success:
            return
        try:
            message = response.json().get("message", response.reason_phrase)
        except (ValueError, AttributeError):
            message = response.reason_phrase
        raise GitHubAPIError(response.status_code, message, url)

    @staticmethod
    def _json(response: httpx.Response, url: str) -> Any:
        content_type = response.headers.get("Content-Type", "")
        if not _is_json(content_type):
            raise UnexpectedContentTypeError(content_type, url)
        try:
            return response.json()
        except ValueError as e:
            raise MalformedPayloadError(f"{url}: invalid JSON ({e})") from e

    async def list_repos(self, user: str) -> list[dict[str, Any]]:
        """Return the first page (up to 100) of repositories owned by user."""
        url = f"/users/{user}/repos"
        response = await self._get(url, params={"per_page": config.REPOS_PER_PAGE})
        self._raise_for_status(response, url)
        data = self._json(response, url)
        if not isinstance(data, list):
            raise MalformedPayloadError(f"{url}: expected a list of repositories")
        return data

    async def get_languages(self, languages_url: str | None) -> dict[str, int]:
        """Fetch a language -> bytes breakdown. Single attempt, no retry."""
        if not languages_url:
            raise MalformedPayloadError("repository has no languages_url")
        response = await self._get(languages_url)
        self._raise_for_status(response, languages_url)
        data = self._json(response, languages_url)
        if not isinstance(data, dict):
            raise MalformedPayloadError(f"{languages_url}: expected an object")
        try:
            return {str(language): int(size) for language, size in data.items()}
        except (TypeError, ValueError) as e:
            raise MalformedPayloadError(f"{languages_url}: malformed byte count ({e})") from e

    async def get_code_frequency(self, full_name: str) -> list[CodeFrequencyPoint]:
        """Fetch the weekly additions/deletions series for a repository.

        GitHub answers 202 while it computes the series; the retry policy
        decides how long to keep asking.
        """
        url = f"/repos/{full_name}/stats/code_frequency"
        response, attempts = await request_with_retry(
            lambda: self._get(url),
            self.retry_policy,
            sleep=self._sleep,
            label=url,
        )
        if self.retry_policy.is_retryable(response.status_code):
            raise StatsNotReadyError(url, attempts)
        self._raise_for_status(response, url)
        if response.status_code == 204 or not response.content:
            raise MalformedPayloadError(f"{url}: empty response")
        data = self._json(response, url)
        if not isinstance(data, list) or not data:
            raise MalformedPayloadError(f"{url}: expected a non-empty list of weeks")
        try:
            return [CodeFrequencyPoint.from_api(item) for item in data]
        except (TypeError, ValueError) as e:
            raise MalformedPayloadError(f"{url}: malformed week entry ({e})") from e
