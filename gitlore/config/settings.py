"""Application settings and configuration"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "gitlore-enricher"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # GitHub API
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"
    USER_AGENT: str = "gitlore-enricher"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # Base repository listing
    REPO_LIST_PER_PAGE: int = 100
    REPO_LIST_AFFILIATION: str = "owner,collaborator,organization_member"

    # Enrichment pool
    ENRICH_WORKERS: int = 6  # Kept low to be gentle on rate limits
    PACING_DELAY_SECONDS: float = 0.1
    PROGRESS_LOG_EVERY: int = 5
    RUN_DEADLINE_SECONDS: Optional[float] = None

    # Commit activity (202 "still computing") backoff table, in seconds
    STATS_BACKOFF_SECONDS: List[float] = [0.7, 1.2, 2.0, 3.0]

    # Field enrichers
    COMMIT_MESSAGE_MAX_CHARS: int = 100
    CONTRIBUTORS_CAP: int = 10

    # Output documents
    OUTPUT_DIR: str = ".."
    INDEX_FILENAME: str = "repos_index_enriched.json"
    SUMMARY_FILENAME: str = "repos_summary.json"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()
