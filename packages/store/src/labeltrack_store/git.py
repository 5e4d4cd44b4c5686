"""GitStore — the JSON documents kept in a separate git repository.

Each tracker run pulls the storage repository, rewrites log.json and
allIssues.json, and pushes a commit. Any machine with push access can run
the tracker and the history stays in one place.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from labeltrack_store.base import StorageError
from labeltrack_store.json_file import ISSUES_FILENAME, LOG_FILENAME, JSONFileStore

logger = logging.getLogger(__name__)


class GitStore(JSONFileStore):
    """A JSONFileStore whose directory is a clone of ``remote``."""

    def __init__(self, remote: str, directory: str | Path = "storage"):
        super().__init__(directory)
        self.remote = remote

    def sync(self) -> None:
        """Clone the storage repository, or pull if it is already cloned."""
        if (self.directory / ".git").exists():
            logger.debug("Pulling storage repository in %s", self.directory)
            self._git("pull")
        else:
            logger.debug("Cloning %s into %s", self.remote, self.directory)
            self._run(["git", "clone", self.remote, str(self.directory)], "clone")

    def publish(self, message: str) -> None:
        """Commit the data files and push. Does nothing if they are unchanged."""
        files = [name for name in (LOG_FILENAME, ISSUES_FILENAME) if (self.directory / name).exists()]
        if not files:
            return
        self._git("add", *files)
        if not self._has_staged_changes():
            logger.debug("Storage repository is clean, nothing to push.")
            return
        self._git("commit", "-m", message)
        self._git("push")

    def _has_staged_changes(self) -> bool:
        """True when the index differs from HEAD. Untracked files do not count."""
        cmd = ["git", "-C", str(self.directory), "diff", "--cached", "--quiet"]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise StorageError("git is not installed or not on PATH") from e
        if result.returncode not in (0, 1):
            raise StorageError(f"git diff failed: {(result.stderr or result.stdout).strip()}")
        return result.returncode == 1

    def _git(self, *args: str) -> str:
        return self._run(["git", "-C", str(self.directory), *args], args[0])

    @staticmethod
    def _run(cmd: list[str], action: str) -> str:
        try:
            result = subprocess.run(cmd, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise StorageError("git is not installed or not on PATH") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip()
            raise StorageError(f"git {action} failed: {detail}") from e
        return result.stdout
