"""Commit-activity fetch with a fixed backoff table for 202 "still computing" answers.

GitHub computes repository statistics lazily. The first request for
``stats/commit_activity`` on a cold repository answers ``202 Accepted`` with
no body while a background job fills the cache. The fetcher re-requests
after each entry of a fixed backoff table; once the table is exhausted the
record is marked pending instead of failed.

    REQUESTING -> READY      -> SUCCESS
               -> FAILED     -> FAILED
               -> COMPUTING  -> sleep(table[i]) -> REQUESTING
                             -> GIVE_UP_PENDING   (table exhausted)
                             -> STOPPED           (stop signal set)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Sequence

from pydantic import ValidationError

from gitlore.config.settings import settings
from gitlore.crawlers.github.client import sanitize_log_extra
from gitlore.crawlers.github.contracts import FetchResult, FetchState
from gitlore.models.github_payloads import WeeklyStat

logger = logging.getLogger(__name__)


class ActivityState(str, Enum):
    """States observed for a single request cycle."""

    REQUESTING = "requesting"
    READY = "ready"
    COMPUTING = "computing"
    FAILED = "failed"


class ActivityOutcome(str, Enum):
    """Terminal states of the fetch."""

    SUCCESS = "success"
    GIVE_UP_PENDING = "give_up_pending"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(slots=True)
class CommitActivityResult:
    outcome: ActivityOutcome
    weeks: list[WeeklyStat] = field(default_factory=list)
    attempts: int = 0
    error: str | None = None

    @property
    def pending(self) -> bool:
        return self.outcome == ActivityOutcome.GIVE_UP_PENDING

    @property
    def weekly_totals(self) -> list[int]:
        return [week.total for week in self.weeks]

    @property
    def total_commits(self) -> int:
        return sum(week.total for week in self.weeks)


class CommitActivityFetcher:
    """Drives the commit-activity state machine for one repository at a time.

    ``sleeper`` suspends only the calling worker; tests inject a recorder.
    """

    def __init__(
        self,
        client: Any,
        *,
        backoff_seconds: Sequence[float] | None = None,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._backoff = tuple(backoff_seconds if backoff_seconds is not None else settings.STATS_BACKOFF_SECONDS)
        self._sleep = sleeper

    @property
    def max_attempts(self) -> int:
        return len(self._backoff) + 1

    async def fetch(self, full_name: str, *, stop_event: asyncio.Event | None = None) -> CommitActivityResult:
        """Request until READY, FAILED, the table runs out, or ``stop_event`` is set.

        A stopped fetch is not pending: the table was never exhausted.
        """
        attempts = 0
        while True:
            response = await self._client.get_commit_activity(full_name)
            attempts += 1
            state = self._classify(response)

            if state == ActivityState.READY:
                return self._ready(full_name, response, attempts)

            if state == ActivityState.FAILED:
                return CommitActivityResult(
                    outcome=ActivityOutcome.FAILED,
                    attempts=attempts,
                    error=response.error or f"HTTP {response.status_code}",
                )

            # COMPUTING
            backoff_index = attempts - 1
            if backoff_index >= len(self._backoff):
                logger.info(
                    "Commit activity still computing after backoff table, marking pending",
                    extra=sanitize_log_extra(repo=full_name, attempts=attempts),
                )
                return CommitActivityResult(outcome=ActivityOutcome.GIVE_UP_PENDING, attempts=attempts)

            if self._stopped(stop_event):
                return self._stop(full_name, attempts)

            delay = self._backoff[backoff_index]
            logger.debug(
                "Commit activity still computing, retrying",
                extra=sanitize_log_extra(repo=full_name, attempt=attempts, delay_seconds=delay),
            )
            await self._sleep(delay)

            if self._stopped(stop_event):
                return self._stop(full_name, attempts)

    @staticmethod
    def _stopped(stop_event: asyncio.Event | None) -> bool:
        return stop_event is not None and stop_event.is_set()

    @staticmethod
    def _stop(full_name: str, attempts: int) -> CommitActivityResult:
        logger.info(
            "Commit activity retry abandoned on stop signal",
            extra=sanitize_log_extra(repo=full_name, attempts=attempts),
        )
        return CommitActivityResult(outcome=ActivityOutcome.STOPPED, attempts=attempts)

    @staticmethod
    def _classify(response: FetchResult[Any]) -> ActivityState:
        if response.state == FetchState.PENDING:
            return ActivityState.COMPUTING
        if response.state in (FetchState.OK, FetchState.EMPTY):
            return ActivityState.READY
        return ActivityState.FAILED

    @staticmethod
    def _ready(full_name: str, response: FetchResult[Any], attempts: int) -> CommitActivityResult:
        payload = response.data or []
        try:
            if not isinstance(payload, list):
                raise TypeError(f"expected a list of weeks, got {type(payload).__name__}")
            weeks = [WeeklyStat.model_validate(item) for item in payload]
        except (ValidationError, TypeError) as exc:
            logger.warning(
                "Commit activity payload could not be parsed",
                extra=sanitize_log_extra(repo=full_name, error=str(exc)),
            )
            return CommitActivityResult(outcome=ActivityOutcome.FAILED, attempts=attempts, error=str(exc))

        return CommitActivityResult(outcome=ActivityOutcome.SUCCESS, weeks=weeks, attempts=attempts)
