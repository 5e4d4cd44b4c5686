"""JSONFileStore — the log and issue database as JSON files in a directory.

Layout:
  <directory>/log.json        — LogDocument
  <directory>/allIssues.json  — IssueDatabase
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from labeltrack_store.base import BaseStore
from labeltrack_store.models import IssueDatabase, LogDocument

logger = logging.getLogger(__name__)

LOG_FILENAME = "log.json"
ISSUES_FILENAME = "allIssues.json"


class JSONFileStore(BaseStore):
    """Reads and writes the documents as indented JSON files."""

    def __init__(self, directory: str | Path = "storage"):
        self.directory = Path(directory)

    @property
    def log_path(self) -> Path:
        return self.directory / LOG_FILENAME

    @property
    def issues_path(self) -> Path:
        return self.directory / ISSUES_FILENAME

    def load_log(self) -> LogDocument:
        return LogDocument.from_dict(self._read(self.log_path))

    def save_log(self, log: LogDocument) -> None:
        self._write(self.log_path, log.to_dict())

    def load_issues(self) -> IssueDatabase:
        return IssueDatabase.from_dict(self._read(self.issues_path))

    def save_issues(self, db: IssueDatabase) -> None:
        self._write(self.issues_path, db.to_dict())

    def _read(self, path: Path) -> dict:
        """Return the parsed file, or {} if it is missing or not valid JSON."""
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring malformed %s: %s", path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, path: Path, data: dict) -> None:
        """Write ``data`` through a temp file so a failed write leaves ``path`` intact."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(data, indent=2) + "\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
