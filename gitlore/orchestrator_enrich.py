"""Enrichment orchestrator: base listing, bounded worker pool, barrier, summary."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from gitlore.config.settings import settings
from gitlore.crawlers.github.client import GitHubClient, sanitize_log_extra
from gitlore.crawlers.github.enrichers import EnrichmentOutcome, RepoEnricher
from gitlore.exceptions import MissingCredentialError, RepositoryListingError
from gitlore.models.repo_record import RepoRecord
from gitlore.models.summary import Summary
from gitlore.services.aggregator import build_summary
from gitlore.services.output_sink import WrittenDocuments, write_documents

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EnrichmentRunStats:
    """Counters collected while the worker pool runs."""

    total: int = 0
    completed: int = 0
    records_with_failures: int = 0
    failed_fields: int = 0
    stats_pending: int = 0
    cancelled: bool = False
    failure_reasons: list[dict[str, Any]] = field(default_factory=list)

    @property
    def not_started(self) -> int:
        return self.total - self.completed


@dataclass(slots=True)
class PipelineResult:
    records: list[RepoRecord]
    summary: Summary
    enrichment: EnrichmentRunStats
    documents: WrittenDocuments | None = None


async def fetch_base_records(client: Any, *, per_page: int | None = None) -> list[RepoRecord]:
    """Fetch every accessible repository, page by page until an empty page.

    Raises:
        RepositoryListingError: any page fails; there is nothing to enrich
    """
    records: list[RepoRecord] = []
    page = 1
    while True:
        response = await client.list_repositories(page=page, per_page=per_page)
        if response.is_failed:
            raise RepositoryListingError(
                f"github api error listing repositories (page {page}): {response.error}",
                status_code=response.status_code,
            )
        if response.is_empty or not response.data:
            break
        if not isinstance(response.data, list):
            raise RepositoryListingError(f"unexpected repository page payload (page {page})")

        records.extend(RepoRecord.from_payload(payload) for payload in response.data if isinstance(payload, dict))
        page += 1
    return records


class EnrichmentCoordinator:
    """Fixed-size pool of workers pulling record indices from a shared queue.

    Each index is dequeued exactly once, so every record is written by a
    single worker. ``run`` returns only after all workers have exited.
    """

    def __init__(
        self,
        enricher: Any,
        *,
        workers: int | None = None,
        pacing_delay_seconds: float | None = None,
        progress_log_every: int | None = None,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._enricher = enricher
        self._workers = settings.ENRICH_WORKERS if workers is None else int(workers)
        if self._workers < 1:
            raise ValueError(f"workers must be at least 1, got {self._workers}")
        self._pacing_delay = settings.PACING_DELAY_SECONDS if pacing_delay_seconds is None else pacing_delay_seconds
        self._progress_every = max(int(settings.PROGRESS_LOG_EVERY if progress_log_every is None else progress_log_every), 1)
        self._sleep = sleeper
        self._completed = 0

    @property
    def workers(self) -> int:
        return self._workers

    @property
    def completed(self) -> int:
        return self._completed

    async def run(
        self,
        records: Sequence[RepoRecord],
        *,
        stop_event: asyncio.Event | None = None,
        deadline_seconds: float | None = None,
    ) -> EnrichmentRunStats:
        stats = EnrichmentRunStats(total=len(records))
        self._completed = 0
        if not records:
            return stats

        progress_lock = asyncio.Lock()
        stop = stop_event or asyncio.Event()
        queue: asyncio.Queue[int] = asyncio.Queue()
        for index in range(len(records)):
            queue.put_nowait(index)

        watchdog: asyncio.Task[None] | None = None
        if deadline_seconds is not None:
            watchdog = asyncio.create_task(self._expire(stop, deadline_seconds))

        pool_size = min(self._workers, len(records))
        try:
            await asyncio.gather(
                *(
                    self._worker(worker_id, records, queue, stop, stats, progress_lock)
                    for worker_id in range(pool_size)
                )
            )
        finally:
            if watchdog is not None:
                watchdog.cancel()

        stats.completed = self._completed
        stats.cancelled = stop.is_set() and stats.completed < stats.total
        if stats.cancelled:
            logger.warning(
                "Enrichment stopped before all records were processed",
                extra=sanitize_log_extra(completed=stats.completed, total=stats.total),
            )
        return stats

    async def _worker(
        self,
        worker_id: int,
        records: Sequence[RepoRecord],
        queue: asyncio.Queue[int],
        stop: asyncio.Event,
        stats: EnrichmentRunStats,
        progress_lock: asyncio.Lock,
    ) -> None:
        while not stop.is_set():
            try:
                index = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            outcome: EnrichmentOutcome = await self._enricher.enrich(records[index], stop_event=stop)
            await self._record_progress(outcome, stats, progress_lock, total=len(records))

            # Blunt throttle against upstream rate limits
            if self._pacing_delay > 0 and not stop.is_set():
                await self._sleep(self._pacing_delay)

        logger.debug("Worker exiting on stop signal", extra={"worker_id": worker_id})

    async def _record_progress(
        self,
        outcome: EnrichmentOutcome,
        stats: EnrichmentRunStats,
        progress_lock: asyncio.Lock,
        *,
        total: int,
    ) -> None:
        async with progress_lock:
            self._completed += 1
            completed = self._completed
            if outcome.failure_reasons:
                stats.records_with_failures += 1
                stats.failed_fields += len(outcome.failure_reasons)
                stats.failure_reasons.append({"repo": outcome.full_name, "reasons": list(outcome.failure_reasons)})
            if outcome.stats_pending:
                stats.stats_pending += 1

        if completed % self._progress_every == 0 or completed == total:
            logger.info(f"Progress: {completed}/{total} repositories enriched")

    @staticmethod
    async def _expire(stop: asyncio.Event, deadline_seconds: float) -> None:
        await asyncio.sleep(deadline_seconds)
        logger.warning("Enrichment deadline reached, no new records will be dispatched")
        stop.set()


class EnrichmentOrchestrator:
    """Runs one full enrichment pass and hands both documents to the output sink."""

    def __init__(
        self,
        *,
        token: str | None = None,
        github_client_factory: Callable[[], Any] | None = None,
        workers: int | None = None,
        deadline_seconds: float | None = None,
        output_dir: str | Path | None = None,
        enricher_factory: Callable[[Any], Any] = RepoEnricher,
        sink: Callable[..., WrittenDocuments] | None = write_documents,
        coordinator_options: dict[str, Any] | None = None,
    ) -> None:
        self._token = settings.GITHUB_TOKEN if token is None else token
        self._github_client_factory = github_client_factory
        self._workers = workers
        self._deadline_seconds = settings.RUN_DEADLINE_SECONDS if deadline_seconds is None else deadline_seconds
        self._output_dir = output_dir
        self._enricher_factory = enricher_factory
        self._sink = sink
        self._coordinator_options = coordinator_options or {}

    async def run(self, *, stop_event: asyncio.Event | None = None) -> PipelineResult:
        """
        Execute listing, enrichment, aggregation and output

        Raises:
            MissingCredentialError: no GitHub token configured
            RepositoryListingError: the base repository list could not be fetched
        """
        token = (self._token or "").strip()
        if not token:
            raise MissingCredentialError()

        factory = self._github_client_factory or (lambda: GitHubClient(token=token))

        logger.info("Fetching accessible repositories")
        async with factory() as client:
            records = await fetch_base_records(client)
            logger.info(f"Found {len(records)} repositories")

            coordinator = EnrichmentCoordinator(
                self._enricher_factory(client),
                workers=self._workers,
                **self._coordinator_options,
            )
            logger.info(
                "Enriching repositories",
                extra=sanitize_log_extra(records=len(records), workers=coordinator.workers),
            )
            enrichment = await coordinator.run(
                records,
                stop_event=stop_event,
                deadline_seconds=self._deadline_seconds,
            )

        # Barrier passed: every job has finished writing its record
        logger.info("Building summary")
        summary = build_summary(records)

        documents = None
        if self._sink is not None:
            documents = self._sink(records, summary, self._output_dir)

        logger.info(
            "Enrichment run completed",
            extra=sanitize_log_extra(
                records=len(records),
                records_with_failures=enrichment.records_with_failures,
                stats_pending=summary.enrichment.repos_stats_pending,
                cancelled=enrichment.cancelled,
            ),
        )
        return PipelineResult(records=records, summary=summary, enrichment=enrichment, documents=documents)
