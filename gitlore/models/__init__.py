"""Record and summary models"""

from gitlore.models.github_payloads import CommitListItem, Contributor, WeeklyStat
from gitlore.models.repo_record import RepoRecord
from gitlore.models.summary import (
    Activity,
    Engagement,
    EnrichmentCoverage,
    RepoCounts,
    SizeTotals,
    Summary,
)

__all__ = [
    "CommitListItem",
    "Contributor",
    "WeeklyStat",
    "RepoRecord",
    "Activity",
    "Engagement",
    "EnrichmentCoverage",
    "RepoCounts",
    "SizeTotals",
    "Summary",
]
