"""Per-record field enrichers and the enrichment job that runs them in order."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from pydantic import ValidationError

from gitlore.config.settings import settings
from gitlore.crawlers.github.client import sanitize_for_log, sanitize_log_extra
from gitlore.crawlers.github.commit_activity import ActivityOutcome, CommitActivityFetcher, CommitActivityResult
from gitlore.crawlers.github.contracts import FetchResult, FetchState
from gitlore.models.github_payloads import CommitListItem, Contributor
from gitlore.models.repo_record import RepoRecord
from gitlore.utils.helpers import truncate_string

logger = logging.getLogger(__name__)

FIELD_LAST_COMMIT = "last_commit"
FIELD_COMMIT_ACTIVITY = "commit_activity"
FIELD_LANGUAGES = "languages"
FIELD_CONTRIBUTORS = "contributors"


class StepStopped(Exception):
    """Raised by a step that gave up part-way because the stop signal fired."""


@dataclass(slots=True)
class LastCommit:
    committed_at: str
    message: str


@dataclass(slots=True)
class ContributorPage:
    """Top contributors plus a count.

    ``count`` is ``len(contributors)``; when the page is full it equals the
    cap and only means "at least this many". The true total would need
    pagination and is not fetched.
    """

    contributors: list[Contributor]
    count: int
    cap: int = 0

    @property
    def possibly_more(self) -> bool:
        return self.cap > 0 and self.count >= self.cap


@dataclass(slots=True)
class EnrichmentOutcome:
    """What happened to one record's four enrichment calls."""

    full_name: str
    succeeded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failure_reasons: list[str] = field(default_factory=list)
    stats_pending: bool = False

    @property
    def failed(self) -> bool:
        return bool(self.failure_reasons)


class RepoEnricher:
    """Runs the four field enrichers for a record and writes the results into it.

    Each enricher is isolated: a failure is logged, leaves that field at its
    zero value, and the next enricher still runs.
    """

    def __init__(
        self,
        client: Any,
        *,
        activity_fetcher: CommitActivityFetcher | None = None,
        message_max_chars: int | None = None,
        contributors_cap: int | None = None,
    ) -> None:
        self._client = client
        self._activity = activity_fetcher or CommitActivityFetcher(client)
        self._message_max_chars = settings.COMMIT_MESSAGE_MAX_CHARS if message_max_chars is None else message_max_chars
        self._contributors_cap = settings.CONTRIBUTORS_CAP if contributors_cap is None else contributors_cap

    async def enrich(self, record: RepoRecord, *, stop_event: asyncio.Event | None = None) -> EnrichmentOutcome:
        """Run last commit, commit activity, languages and contributors in that order.

        When ``stop_event`` is set between calls, the remaining calls are
        skipped and their fields keep their zero values.
        """
        outcome = EnrichmentOutcome(full_name=record.full_name)
        steps = (
            (FIELD_LAST_COMMIT, self._apply_last_commit),
            (FIELD_COMMIT_ACTIVITY, partial(self._apply_commit_activity, stop_event=stop_event)),
            (FIELD_LANGUAGES, self._apply_languages),
            (FIELD_CONTRIBUTORS, self._apply_contributors),
        )
        for field_name, step in steps:
            if stop_event is not None and stop_event.is_set():
                outcome.skipped.append(field_name)
                continue
            try:
                error = await step(record)
            except StepStopped:
                outcome.skipped.append(field_name)
                continue
            except Exception as exc:
                error = f"{exc.__class__.__name__}: {exc}"

            if error is None:
                outcome.succeeded.append(field_name)
                continue

            reason = sanitize_for_log(f"{field_name}: {error}", key="error")
            outcome.failure_reasons.append(reason)
            logger.warning(
                "Enrichment step failed",
                extra=sanitize_log_extra(repo=record.full_name, field=field_name, error=reason),
            )

        outcome.stats_pending = record.stats_cache_pending
        return outcome

    async def fetch_last_commit(self, full_name: str) -> FetchResult[LastCommit]:
        response = await self._client.list_commits(full_name, per_page=1)
        if response.is_failed:
            return FetchResult(state=FetchState.FAILED, status_code=response.status_code, error=response.error)
        if response.is_empty or not response.data:
            return FetchResult(state=FetchState.EMPTY, status_code=response.status_code)

        try:
            latest = CommitListItem.model_validate(response.data[0])
        except (ValidationError, KeyError, TypeError) as exc:
            return FetchResult(state=FetchState.FAILED, status_code=response.status_code, error=f"invalid commit payload: {exc}")

        committed_at = latest.commit.author.date if latest.commit.author else ""
        message = truncate_string(latest.commit.message, self._message_max_chars)
        return FetchResult(state=FetchState.OK, data=LastCommit(committed_at=committed_at, message=message))

    async def fetch_commit_activity(
        self, full_name: str, *, stop_event: asyncio.Event | None = None
    ) -> CommitActivityResult:
        return await self._activity.fetch(full_name, stop_event=stop_event)

    async def fetch_languages(self, full_name: str) -> FetchResult[dict[str, int]]:
        response = await self._client.get_languages(full_name)
        if response.is_failed:
            return FetchResult(state=FetchState.FAILED, status_code=response.status_code, error=response.error)
        if response.is_empty or not response.data:
            return FetchResult(state=FetchState.EMPTY, status_code=response.status_code)

        if not isinstance(response.data, dict):
            return FetchResult(state=FetchState.FAILED, status_code=response.status_code, error="languages payload is not an object")
        try:
            breakdown = {str(language): int(size) for language, size in response.data.items()}
        except (TypeError, ValueError) as exc:
            return FetchResult(state=FetchState.FAILED, status_code=response.status_code, error=f"invalid languages payload: {exc}")
        return FetchResult(state=FetchState.OK, data=breakdown)

    async def fetch_contributors(self, full_name: str) -> FetchResult[ContributorPage]:
        response = await self._client.list_contributors(full_name, per_page=self._contributors_cap)
        if response.is_failed:
            return FetchResult(state=FetchState.FAILED, status_code=response.status_code, error=response.error)
        if response.is_empty or not response.data:
            return FetchResult(state=FetchState.EMPTY, data=ContributorPage(contributors=[], count=0, cap=self._contributors_cap))

        if not isinstance(response.data, list):
            return FetchResult(state=FetchState.FAILED, status_code=response.status_code, error="contributors payload is not a list")
        try:
            contributors = [Contributor.model_validate(item) for item in response.data[: self._contributors_cap]]
        except ValidationError as exc:
            return FetchResult(state=FetchState.FAILED, status_code=response.status_code, error=f"invalid contributors payload: {exc}")

        return FetchResult(state=FetchState.OK, data=ContributorPage(contributors=contributors, count=len(contributors), cap=self._contributors_cap))

    async def _apply_last_commit(self, record: RepoRecord) -> str | None:
        result = await self.fetch_last_commit(record.full_name)
        if result.is_failed:
            return result.error or "last commit fetch failed"
        if result.is_ok and result.data is not None:
            record.last_commit_at = result.data.committed_at
            record.last_commit_message = result.data.message
        return None

    async def _apply_commit_activity(self, record: RepoRecord, *, stop_event: asyncio.Event | None = None) -> str | None:
        result = await self.fetch_commit_activity(record.full_name, stop_event=stop_event)
        if result.outcome == ActivityOutcome.STOPPED:
            raise StepStopped(record.full_name)
        if result.outcome == ActivityOutcome.FAILED:
            return result.error or "commit activity fetch failed"

        record.stats_cache_pending = result.pending
        record.weekly_stats_52w = list(result.weeks)
        record.weekly_commits_52w = result.weekly_totals
        record.total_commits = result.total_commits
        return None

    async def _apply_languages(self, record: RepoRecord) -> str | None:
        result = await self.fetch_languages(record.full_name)
        if result.is_failed:
            return result.error or "languages fetch failed"
        if result.is_ok and result.data:
            record.language_breakdown = result.data
        return None

    async def _apply_contributors(self, record: RepoRecord) -> str | None:
        result = await self.fetch_contributors(record.full_name)
        if result.is_failed:
            return result.error or "contributors fetch failed"
        if result.data is not None:
            record.top_contributors = list(result.data.contributors)
            record.contributor_count = result.data.count
        return None
