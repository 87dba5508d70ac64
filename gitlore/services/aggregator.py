"""Fold enriched records into the run Summary.

Runs once, after every enrichment job has finished, on a single thread.
Every accumulation is commutative, so the result does not depend on the
order in which workers filled the records or on how many workers ran.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional, Sequence

from gitlore.models.repo_record import RepoRecord
from gitlore.models.summary import Summary
from gitlore.utils.helpers import format_timestamp, human_size_from_kb, parse_timestamp

OWNER_TYPE_ORGANIZATION = "Organization"


class _Extremes:
    """Running min/max over parseable timestamps."""

    def __init__(self) -> None:
        self.newest: Optional[datetime] = None
        self.oldest: Optional[datetime] = None

    def add(self, raw: str) -> None:
        value = parse_timestamp(raw)
        if value is None:
            return
        if self.newest is None or value > self.newest:
            self.newest = value
        if self.oldest is None or value < self.oldest:
            self.oldest = value


def build_summary(records: Sequence[RepoRecord], generated_at: Optional[datetime] = None) -> Summary:
    """
    Aggregate a fully enriched record list

    Args:
        records: Records as they stand at barrier time
        generated_at: Timestamp stamped on the summary, now (UTC) by default

    Returns:
        Summary with counts, totals, frequency maps, activity extremes and
        enrichment coverage counters
    """
    summary = Summary(generated_at=format_timestamp(generated_at or datetime.now(UTC)))
    counts = summary.repo_counts
    coverage = summary.enrichment

    updated = _Extremes()
    pushed = _Extremes()
    created = _Extremes()

    for record in records:
        counts.total += 1
        if record.private:
            counts.private += 1
        else:
            counts.public += 1
        if record.archived:
            counts.archived += 1
        if record.fork:
            counts.forks += 1
        if record.owner_type == OWNER_TYPE_ORGANIZATION:
            counts.org_owned_or_member += 1
        else:
            counts.user_owned += 1

        summary.size.total_kb += record.size_kb
        summary.engagement.total_stars += record.stars
        summary.engagement.total_forks += record.forks
        summary.engagement.total_watchers += record.watchers
        summary.engagement.total_commits += record.total_commits

        if record.language:
            summary.languages[record.language] = summary.languages.get(record.language, 0) + 1
        for topic in record.topics:
            summary.topics[topic] = summary.topics.get(topic, 0) + 1
        if record.license:
            summary.licenses[record.license] = summary.licenses.get(record.license, 0) + 1

        # Malformed timestamps are skipped, not fatal
        updated.add(record.updated_at)
        pushed.add(record.pushed_at)
        created.add(record.created_at)

        if record.last_commit_at:
            coverage.repos_with_last_commit += 1
        if record.weekly_commits_52w:
            coverage.repos_with_stats_52w += 1
        if record.language_breakdown:
            coverage.repos_with_languages += 1
        if record.top_contributors:
            coverage.repos_with_contributors += 1
        if record.stats_cache_pending:
            coverage.repos_stats_pending += 1

    summary.size.human = human_size_from_kb(summary.size.total_kb)
    if updated.newest is not None:
        summary.activity.most_recent_update = format_timestamp(updated.newest)
        summary.activity.oldest_update = format_timestamp(updated.oldest)
    if pushed.newest is not None:
        summary.activity.most_recent_push = format_timestamp(pushed.newest)
    if created.oldest is not None:
        summary.activity.oldest_created = format_timestamp(created.oldest)

    return summary
