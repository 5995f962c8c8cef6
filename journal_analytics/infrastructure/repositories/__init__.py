"""Repositories for journal snapshot access."""

from journal_analytics.infrastructure.repositories.base import Repository, RepositoryError
from journal_analytics.infrastructure.repositories.journal_repo import JournalRepository

__all__ = [
    "Repository",
    "RepositoryError",
    "JournalRepository",
]
