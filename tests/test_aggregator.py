from __future__ import annotations

import random
from datetime import UTC, datetime

from gitlore.models.github_payloads import Contributor
from gitlore.models.repo_record import RepoRecord
from gitlore.services.aggregator import build_summary

from conftest import repo_payload

GENERATED_AT = datetime(2024, 6, 1, tzinfo=UTC)


def _records() -> list[RepoRecord]:
    alpha = RepoRecord.from_payload(
        repo_payload(
            "acme/alpha",
            language="Go",
            topics=["cli", "tools"],
            size=1024,
            stargazers_count=10,
            forks_count=2,
            watchers_count=10,
            owner={"login": "acme", "type": "Organization"},
            created_at="2019-03-01T00:00:00Z",
            updated_at="2024-04-01T00:00:00Z",
            pushed_at="2024-04-02T00:00:00Z",
        )
    )
    alpha.last_commit_at = "2024-04-02T00:00:00Z"
    alpha.weekly_commits_52w = [1] * 52
    alpha.total_commits = 52
    alpha.language_breakdown = {"Go": 100}
    alpha.top_contributors = [Contributor(login="a", contributions=5)]

    beta = RepoRecord.from_payload(
        repo_payload(
            "me/beta",
            language="Python",
            private=True,
            fork=True,
            archived=True,
            size=0,
            stargazers_count=1,
            license=None,
            created_at="2021-01-01T00:00:00+02:00",
            updated_at="2024-05-01T00:00:00Z",
            pushed_at="not-a-date",
        )
    )
    beta.stats_cache_pending = True

    gamma = RepoRecord.from_payload(
        repo_payload(
            "me/gamma",
            language=None,
            topics=[],
            license={"key": None, "name": "Other"},
            created_at="",
            updated_at="2023-01-15T08:30:00Z",
            pushed_at="2023-01-15T08:00:00Z",
        )
    )
    gamma.last_commit_at = "2023-01-15T08:00:00Z"
    gamma.weekly_commits_52w = [0] * 52
    gamma.total_commits = 7

    return [alpha, beta, gamma]


def test_counts_and_totals() -> None:
    records = _records()
    summary = build_summary(records, generated_at=GENERATED_AT)

    assert summary.generated_at == "2024-06-01T00:00:00Z"
    assert summary.repo_counts.total == 3
    assert summary.repo_counts.public == 2
    assert summary.repo_counts.private == 1
    assert summary.repo_counts.archived == 1
    assert summary.repo_counts.forks == 1
    assert summary.repo_counts.org_owned_or_member == 1
    assert summary.repo_counts.user_owned == 2
    assert summary.size.total_kb == 1024 + 0 + 2048
    assert summary.size.human == "3.0 MB"
    assert summary.engagement.total_stars == 10 + 1 + 3
    assert summary.engagement.total_commits == sum(record.total_commits for record in records)


def test_frequency_maps() -> None:
    records = _records()
    summary = build_summary(records, generated_at=GENERATED_AT)

    assert summary.languages == {"Go": 1, "Python": 1}
    for language, count in summary.languages.items():
        assert count == sum(1 for record in records if record.language == language)
    assert summary.topics == {"cli": 2, "tools": 1}
    assert summary.licenses == {"MIT License": 1}


def test_activity_extremes_skip_malformed_timestamps() -> None:
    summary = build_summary(_records(), generated_at=GENERATED_AT)

    assert summary.activity.most_recent_update == "2024-05-01T00:00:00Z"
    assert summary.activity.oldest_update == "2023-01-15T08:30:00Z"
    assert summary.activity.most_recent_push == "2024-04-02T00:00:00Z"
    assert summary.activity.oldest_created == "2019-03-01T00:00:00Z"


def test_coverage_counters() -> None:
    summary = build_summary(_records(), generated_at=GENERATED_AT)

    assert summary.enrichment.repos_with_last_commit == 2
    assert summary.enrichment.repos_with_stats_52w == 2
    assert summary.enrichment.repos_with_languages == 1
    assert summary.enrichment.repos_with_contributors == 1
    assert summary.enrichment.repos_stats_pending == 1


def test_summary_is_independent_of_record_order() -> None:
    records = _records()
    expected = build_summary(records, generated_at=GENERATED_AT).to_dict()

    shuffler = random.Random(7)
    for _ in range(5):
        shuffled = list(records)
        shuffler.shuffle(shuffled)
        assert build_summary(shuffled, generated_at=GENERATED_AT).to_dict() == expected


def test_empty_record_list_yields_zero_summary() -> None:
    summary = build_summary([], generated_at=GENERATED_AT)

    assert summary.repo_counts.total == 0
    assert summary.size.human == "0 B"
    assert summary.activity.most_recent_update == ""
    assert summary.languages == {}
