"""Enriched repository record written to repos_index_enriched.json"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from gitlore.models.github_payloads import Contributor, WeeklyStat
from gitlore.utils.helpers import human_size_from_kb


@dataclass
class RepoRecord:
    """
    One repository with its base attributes and enrichment fields

    Enrichment fields start at their zero value and are written by exactly
    one enrichment job. A field that stays at its zero value means the
    corresponding call failed or found nothing.
    """

    name: str
    full_name: str
    description: str = ""
    private: bool = False
    fork: bool = False
    archived: bool = False
    disabled: bool = False
    language: str = ""
    topics: list[str] = field(default_factory=list)
    homepage: str = ""
    default_branch: str = ""

    size_kb: int = 0
    size_readable: str = "0 B"

    stars: int = 0
    forks: int = 0
    watchers: int = 0
    open_issues: int = 0

    created_at: str = ""
    updated_at: str = ""
    pushed_at: str = ""

    html_url: str = ""

    owner_login: str = ""
    owner_type: str = ""

    license: str = ""

    has_issues: bool = False
    has_projects: bool = False
    has_wiki: bool = False
    has_pages: bool = False
    has_downloads: bool = False

    # Enrichment data
    last_commit_at: str = ""
    last_commit_message: str = ""
    weekly_commits_52w: list[int] = field(default_factory=list)
    weekly_stats_52w: list[WeeklyStat] = field(default_factory=list)
    language_breakdown: Optional[dict[str, int]] = None
    top_contributors: list[Contributor] = field(default_factory=list)
    contributor_count: int = 0
    total_commits: int = 0
    stats_cache_pending: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "RepoRecord":
        """Build a record from a ``/user/repos`` entry."""
        owner = payload.get("owner") or {}
        license_info = payload.get("license") or {}
        size_kb = int(payload.get("size") or 0)
        topics = payload.get("topics") if isinstance(payload.get("topics"), list) else []

        return cls(
            name=str(payload.get("name") or ""),
            full_name=str(payload.get("full_name") or ""),
            description=payload.get("description") or "",
            private=bool(payload.get("private")),
            fork=bool(payload.get("fork")),
            archived=bool(payload.get("archived")),
            disabled=bool(payload.get("disabled")),
            language=payload.get("language") or "",
            topics=[str(topic) for topic in topics],
            homepage=payload.get("homepage") or "",
            default_branch=payload.get("default_branch") or "",
            size_kb=size_kb,
            size_readable=human_size_from_kb(size_kb),
            stars=int(payload.get("stargazers_count") or 0),
            forks=int(payload.get("forks_count") or 0),
            watchers=int(payload.get("watchers_count") or 0),
            open_issues=int(payload.get("open_issues_count") or 0),
            created_at=payload.get("created_at") or "",
            updated_at=payload.get("updated_at") or "",
            pushed_at=payload.get("pushed_at") or "",
            html_url=payload.get("html_url") or "",
            owner_login=owner.get("login") or "",
            owner_type=owner.get("type") or "",
            # Only licenses GitHub could identify carry a key
            license=(license_info.get("name") or "") if license_info.get("key") else "",
            has_issues=bool(payload.get("has_issues")),
            has_projects=bool(payload.get("has_projects")),
            has_wiki=bool(payload.get("has_wiki")),
            has_pages=bool(payload.get("has_pages")),
            has_downloads=bool(payload.get("has_downloads")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the index document."""
        data = {name: getattr(self, name) for name in self.__dataclass_fields__}
        data["topics"] = list(self.topics)
        data["weekly_commits_52w"] = list(self.weekly_commits_52w)
        data["weekly_stats_52w"] = [stat.model_dump(by_alias=True) for stat in self.weekly_stats_52w]
        data["top_contributors"] = [contributor.model_dump() for contributor in self.top_contributors]
        if self.language_breakdown is not None:
            data["language_breakdown"] = dict(self.language_breakdown)
        return data

    def __repr__(self):
        return f"<RepoRecord {self.full_name} ({self.stars} stars)>"
