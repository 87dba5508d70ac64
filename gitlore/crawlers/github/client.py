"""Async GitHub REST client returning typed fetch contracts."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

import httpx

from gitlore.config.settings import settings
from gitlore.crawlers.github.contracts import (
    CommitActivityContract,
    CommitListContract,
    ContributorContract,
    FetchResult,
    FetchState,
    LanguageContract,
    RepoListContract,
)

logger = logging.getLogger(__name__)

REDACTED = "***REDACTED***"
SENSITIVE_KEYS = ("authorization", "token", "api_key", "apikey", "secret", "password", "session", "cookie")
PAYLOAD_KEYS = ("body", "content", "payload", "raw")
STATUS_STILL_COMPUTING = 202

_BEARER_PATTERN = re.compile(r"(?i)\bbearer\s+[^\s,;\"']+")
_ASSIGNMENT_PATTERN = re.compile(
    r"(?i)\b(access_token|token|api_key|apikey|secret|password)(\s*[=:]\s*)([^\s&,;\"']+)"
)
_GITHUB_TOKEN_PATTERN = re.compile(r"\b(gh[pousr]_[A-Za-z0-9_]{8,}|github_pat_[A-Za-z0-9_]{8,})")


def sanitize_for_log(value: Any, *, key: str | None = None) -> Any:
    """Mask credentials and raw payloads before they reach log records."""
    normalized_key = (key or "").lower()
    if normalized_key and normalized_key != "error" and any(part in normalized_key for part in SENSITIVE_KEYS):
        return REDACTED

    if isinstance(value, Mapping):
        return {item_key: sanitize_for_log(item, key=str(item_key)) for item_key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize_for_log(item) for item in value]
    if isinstance(value, str):
        if normalized_key in PAYLOAD_KEYS:
            return f"<redacted payload len={len(value)}>"
        masked = _BEARER_PATTERN.sub("Bearer " + REDACTED, value)
        masked = _ASSIGNMENT_PATTERN.sub(lambda match: f"{match.group(1)}{match.group(2)}{REDACTED}", masked)
        return _GITHUB_TOKEN_PATTERN.sub(REDACTED, masked)
    return value


def sanitize_log_extra(**fields: Any) -> dict[str, Any]:
    """Build a sanitized ``extra=`` mapping for structured log calls."""
    return {name: sanitize_for_log(value, key=name) for name, value in fields.items()}


class GitHubClient:
    """Thin wrapper over ``httpx.AsyncClient`` shared by all enrichment workers.

    Per-record calls never raise for HTTP or transport problems; they return
    a ``FAILED`` contract instead so callers can isolate the failure.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        token = token if token is not None else settings.GITHUB_TOKEN
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": settings.USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.GITHUB_API_URL,
            headers=headers,
            timeout=timeout_seconds or settings.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_repositories(self, *, page: int, per_page: int | None = None) -> RepoListContract:
        params = {
            "per_page": per_page or settings.REPO_LIST_PER_PAGE,
            "page": page,
            "sort": "updated",
            "affiliation": settings.REPO_LIST_AFFILIATION,
        }
        return await self._request("/user/repos", params=params)

    async def list_commits(self, full_name: str, *, per_page: int = 1) -> CommitListContract:
        return await self._request(f"/repos/{full_name}/commits", params={"per_page": per_page})

    async def get_commit_activity(self, full_name: str) -> CommitActivityContract:
        return await self._request(f"/repos/{full_name}/stats/commit_activity", allow_pending=True)

    async def get_languages(self, full_name: str) -> LanguageContract:
        return await self._request(f"/repos/{full_name}/languages")

    async def list_contributors(self, full_name: str, *, per_page: int | None = None) -> ContributorContract:
        return await self._request(
            f"/repos/{full_name}/contributors",
            params={"per_page": per_page or settings.CONTRIBUTORS_CAP},
        )

    async def _request(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        allow_pending: bool = False,
    ) -> FetchResult[Any]:
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as exc:
            return self._failed(path, params, error=f"timeout: {exc.__class__.__name__}")
        except httpx.HTTPError as exc:
            return self._failed(path, params, error=f"{exc.__class__.__name__}: {exc}")

        status = response.status_code
        if allow_pending and status == STATUS_STILL_COMPUTING:
            return FetchResult(state=FetchState.PENDING, status_code=status)

        if status < 200 or status >= 300:
            return self._failed(path, params, error=f"HTTP {status}", status_code=status)

        if status == 204 or not response.content:
            return FetchResult(state=FetchState.EMPTY, status_code=status)

        try:
            data = response.json()
        except ValueError as exc:
            return self._failed(path, params, error=f"invalid JSON: {exc}", status_code=status)

        if not data:
            return FetchResult(state=FetchState.EMPTY, data=data, status_code=status)
        return FetchResult(state=FetchState.OK, data=data, status_code=status)

    @staticmethod
    def _failed(
        path: str,
        params: dict[str, Any] | None,
        *,
        error: str,
        status_code: int | None = None,
    ) -> FetchResult[Any]:
        sanitized_error = sanitize_for_log(error, key="error")
        logger.warning(
            "GitHub request failed",
            extra=sanitize_log_extra(path=path, params=params or {}, status_code=status_code, error=sanitized_error),
        )
        return FetchResult(state=FetchState.FAILED, status_code=status_code, error=sanitized_error)
