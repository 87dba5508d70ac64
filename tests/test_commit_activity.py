from __future__ import annotations

import asyncio

import pytest

from gitlore.crawlers.github.commit_activity import ActivityOutcome, CommitActivityFetcher

from conftest import FakeGitHubAPI, SleepRecorder, weekly_payload

ACTIVITY_PATH = "/repos/owner/repo/stats/commit_activity"
BACKOFF_TABLE = [0.7, 1.2, 2.0, 3.0]


@pytest.mark.asyncio
async def test_always_computing_gives_up_pending_after_backoff_table(
    fake_api: FakeGitHubAPI, sleeps: SleepRecorder
) -> None:
    fake_api.route(ACTIVITY_PATH, (202, None))
    client = fake_api.client()
    fetcher = CommitActivityFetcher(client, backoff_seconds=BACKOFF_TABLE, sleeper=sleeps)

    result = await fetcher.fetch("owner/repo")
    await client.aclose()

    assert result.outcome == ActivityOutcome.GIVE_UP_PENDING
    assert result.pending is True
    assert result.weeks == []
    assert result.total_commits == 0
    assert result.attempts == 5
    assert sleeps.delays == BACKOFF_TABLE
    assert fake_api.calls_to(ACTIVITY_PATH) == 5


@pytest.mark.asyncio
async def test_ready_on_second_attempt_returns_weeks(fake_api: FakeGitHubAPI, sleeps: SleepRecorder) -> None:
    fake_api.route(ACTIVITY_PATH, (202, None), (200, weekly_payload(per_week=lambda i: 2)))
    client = fake_api.client()
    fetcher = CommitActivityFetcher(client, backoff_seconds=BACKOFF_TABLE, sleeper=sleeps)

    result = await fetcher.fetch("owner/repo")
    await client.aclose()

    assert result.outcome == ActivityOutcome.SUCCESS
    assert result.pending is False
    assert len(result.weeks) == 52
    assert result.weekly_totals == [2] * 52
    assert result.total_commits == 104
    assert result.attempts == 2
    assert sleeps.delays == [0.7]


@pytest.mark.asyncio
async def test_ready_on_last_attempt_is_not_pending(fake_api: FakeGitHubAPI, sleeps: SleepRecorder) -> None:
    fake_api.route(
        ACTIVITY_PATH,
        (202, None),
        (202, None),
        (202, None),
        (202, None),
        (200, weekly_payload()),
    )
    client = fake_api.client()
    fetcher = CommitActivityFetcher(client, backoff_seconds=BACKOFF_TABLE, sleeper=sleeps)

    result = await fetcher.fetch("owner/repo")
    await client.aclose()

    assert result.outcome == ActivityOutcome.SUCCESS
    assert result.pending is False
    assert len(result.weeks) == 52
    assert sleeps.delays == BACKOFF_TABLE


@pytest.mark.asyncio
async def test_error_status_fails_without_retry(fake_api: FakeGitHubAPI, sleeps: SleepRecorder) -> None:
    fake_api.route(ACTIVITY_PATH, (202, None), (500, {"message": "boom"}), (200, weekly_payload()))
    client = fake_api.client()
    fetcher = CommitActivityFetcher(client, backoff_seconds=BACKOFF_TABLE, sleeper=sleeps)

    result = await fetcher.fetch("owner/repo")
    await client.aclose()

    assert result.outcome == ActivityOutcome.FAILED
    assert result.pending is False
    assert result.weeks == []
    assert result.error == "HTTP 500"
    assert result.attempts == 2
    assert sleeps.delays == [0.7]


@pytest.mark.asyncio
async def test_empty_activity_is_success_without_weeks(fake_api: FakeGitHubAPI, sleeps: SleepRecorder) -> None:
    fake_api.route(ACTIVITY_PATH, (204, None))
    client = fake_api.client()
    fetcher = CommitActivityFetcher(client, backoff_seconds=BACKOFF_TABLE, sleeper=sleeps)

    result = await fetcher.fetch("owner/repo")
    await client.aclose()

    assert result.outcome == ActivityOutcome.SUCCESS
    assert result.weeks == []
    assert sleeps.delays == []


@pytest.mark.asyncio
async def test_malformed_weeks_are_a_parse_failure(fake_api: FakeGitHubAPI, sleeps: SleepRecorder) -> None:
    fake_api.route(ACTIVITY_PATH, (200, {"total": "not-a-list"}))
    client = fake_api.client()
    fetcher = CommitActivityFetcher(client, backoff_seconds=BACKOFF_TABLE, sleeper=sleeps)

    result = await fetcher.fetch("owner/repo")
    await client.aclose()

    assert result.outcome == ActivityOutcome.FAILED
    assert result.pending is False
    assert result.weeks == []


def test_default_backoff_table_has_four_fixed_entries() -> None:
    fetcher = CommitActivityFetcher(client=None)

    assert fetcher.max_attempts == 5


@pytest.mark.asyncio
async def test_stop_signal_during_backoff_ends_retry_without_pending(fake_api: FakeGitHubAPI) -> None:
    fake_api.route(ACTIVITY_PATH, (202, None))
    client = fake_api.client()
    stop = asyncio.Event()
    delays: list[float] = []

    async def stop_while_sleeping(delay: float) -> None:
        delays.append(delay)
        stop.set()

    fetcher = CommitActivityFetcher(client, backoff_seconds=BACKOFF_TABLE, sleeper=stop_while_sleeping)

    result = await fetcher.fetch("owner/repo", stop_event=stop)
    await client.aclose()

    assert result.outcome == ActivityOutcome.STOPPED
    assert result.pending is False
    assert result.attempts == 1
    assert delays == [0.7]
    assert fake_api.calls_to(ACTIVITY_PATH) == 1


@pytest.mark.asyncio
async def test_stop_signal_set_before_backoff_skips_the_sleep(fake_api: FakeGitHubAPI, sleeps: SleepRecorder) -> None:
    fake_api.route(ACTIVITY_PATH, (202, None))
    client = fake_api.client()
    stop = asyncio.Event()
    stop.set()
    fetcher = CommitActivityFetcher(client, backoff_seconds=BACKOFF_TABLE, sleeper=sleeps)

    result = await fetcher.fetch("owner/repo", stop_event=stop)
    await client.aclose()

    assert result.outcome == ActivityOutcome.STOPPED
    assert sleeps.delays == []
    assert fake_api.calls_to(ACTIVITY_PATH) == 1
