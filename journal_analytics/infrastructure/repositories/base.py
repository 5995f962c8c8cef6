"""Base Repository: Abstract interface for snapshot access.

Repositories hide where journal data lives (Parquet, CSV) from the
services, cache what they load, and report failures as RepositoryError.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class Repository(ABC, Generic[T]):
    """Abstract base class for repositories."""

    @abstractmethod
    def get_all(self) -> T:
        """Retrieve all data from the repository.

        Raises:
            RepositoryError: If data cannot be loaded
        """

    @abstractmethod
    def clear_cache(self) -> None:
        """Clear any cached data."""


class RepositoryError(Exception):
    """Raised when snapshot data is missing or unreadable."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message + (f" (path: {path})" if path else ""))
