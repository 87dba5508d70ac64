"""Fatal errors that abort an enrichment run.

Per-record enrichment failures never raise; they are reported through
``FetchResult`` contracts and leave the affected field empty.
"""

from __future__ import annotations


class EnricherError(Exception):
    """Base class for run-level errors."""


class MissingCredentialError(EnricherError):
    """Raised when no GitHub token is configured."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "GITHUB_TOKEN is missing. Put it in .env as: GITHUB_TOKEN=ghp_... (no quotes) or export it in your shell."
        )


class RepositoryListingError(EnricherError):
    """Raised when the base repository list cannot be fetched."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
