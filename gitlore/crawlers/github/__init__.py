"""GitHub enrichment crawler primitives."""

from gitlore.crawlers.github.client import GitHubClient
from gitlore.crawlers.github.commit_activity import (
    ActivityOutcome,
    ActivityState,
    CommitActivityFetcher,
    CommitActivityResult,
)
from gitlore.crawlers.github.contracts import FetchResult, FetchState
from gitlore.crawlers.github.enrichers import EnrichmentOutcome, RepoEnricher

__all__ = [
    "GitHubClient",
    "ActivityOutcome",
    "ActivityState",
    "CommitActivityFetcher",
    "CommitActivityResult",
    "FetchResult",
    "FetchState",
    "EnrichmentOutcome",
    "RepoEnricher",
]
