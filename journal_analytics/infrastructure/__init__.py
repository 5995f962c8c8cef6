"""Infrastructure layer for Journal Analytics.

Contains:
- config: Data paths and analysis configuration
- repositories: Snapshot access
"""

from journal_analytics.infrastructure.config import (
    DataPaths,
    AnalysisConfig,
    DEFAULT_PATHS,
    DEFAULT_CONFIG,
)
from journal_analytics.infrastructure.repositories import (
    Repository,
    RepositoryError,
    JournalRepository,
)

__all__ = [
    # Config
    "DataPaths",
    "AnalysisConfig",
    "DEFAULT_PATHS",
    "DEFAULT_CONFIG",
    # Repositories
    "Repository",
    "RepositoryError",
    "JournalRepository",
]
