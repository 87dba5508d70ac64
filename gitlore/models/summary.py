"""Aggregate summary written to repos_summary.json"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class RepoCounts:
    total: int = 0
    public: int = 0
    private: int = 0
    archived: int = 0
    forks: int = 0
    org_owned_or_member: int = 0
    user_owned: int = 0


@dataclass
class SizeTotals:
    total_kb: int = 0
    human: str = ""


@dataclass
class Engagement:
    total_stars: int = 0
    total_forks: int = 0
    total_watchers: int = 0
    total_commits: int = 0


@dataclass
class Activity:
    """Timestamp extremes across the record set, RFC 3339 in UTC ("" when none parsed)."""

    most_recent_update: str = ""
    most_recent_push: str = ""
    oldest_created: str = ""
    oldest_update: str = ""


@dataclass
class EnrichmentCoverage:
    """How many records obtained each enrichment field."""

    repos_with_last_commit: int = 0
    repos_with_stats_52w: int = 0
    repos_with_languages: int = 0
    repos_with_contributors: int = 0
    repos_stats_pending: int = 0


@dataclass
class Summary:
    generated_at: str = ""
    repo_counts: RepoCounts = field(default_factory=RepoCounts)
    size: SizeTotals = field(default_factory=SizeTotals)
    engagement: Engagement = field(default_factory=Engagement)
    languages: dict[str, int] = field(default_factory=dict)
    topics: dict[str, int] = field(default_factory=dict)
    licenses: dict[str, int] = field(default_factory=dict)
    activity: Activity = field(default_factory=Activity)
    enrichment: EnrichmentCoverage = field(default_factory=EnrichmentCoverage)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("languages", "topics", "licenses"):
            data[key] = dict(sorted(data[key].items()))
        return data
