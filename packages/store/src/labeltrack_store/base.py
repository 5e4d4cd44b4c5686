"""Abstract store interface.

The CLI depends on BaseStore, not on a concrete backend, so the log can live
in a plain directory or in a git repository shared between machines.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from labeltrack_store.models import IssueDatabase, LogDocument


class StorageError(Exception):
    """Raised when the backing storage cannot be read, refreshed or published."""


class BaseStore(ABC):
    """Pluggable persistence for the label log and the issue database.

    A run calls sync() once, loads, mutates and saves the documents, and
    finishes with publish(). Loading never raises for a missing or malformed
    document: it returns an empty one.
    """

    def sync(self) -> None:
        """Bring the local copy of the storage up to date. Default is a no-op."""

    @abstractmethod
    def load_log(self) -> LogDocument:
        """Return the persisted log, or an empty document."""

    @abstractmethod
    def save_log(self, log: LogDocument) -> None:
        """Persist the log locally."""

    @abstractmethod
    def load_issues(self) -> IssueDatabase:
        """Return the persisted issue database, or an empty one."""

    @abstractmethod
    def save_issues(self, db: IssueDatabase) -> None:
        """Persist the issue database locally."""

    def publish(self, message: str) -> None:
        """Share locally saved changes. Default is a no-op."""

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
