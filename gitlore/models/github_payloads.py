"""Validated shapes of the per-record GitHub payloads used for enrichment."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CommitAuthor(BaseModel):
    date: str = ""


class CommitDetail(BaseModel):
    author: Optional[CommitAuthor] = None
    message: str = ""


class CommitListItem(BaseModel):
    """One entry of ``GET /repos/{owner}/{repo}/commits``."""

    sha: str = ""
    commit: CommitDetail = Field(default_factory=CommitDetail)


class WeeklyStat(BaseModel):
    """One week of ``stats/commit_activity``: total commits plus the per-day breakdown."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    week: int = Field(default=0, alias="w")
    days: list[int] = Field(default_factory=list)


class Contributor(BaseModel):
    login: str = ""
    contributions: int = 0
