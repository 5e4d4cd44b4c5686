"""Throughput statistics computed from the issue database and label history.

An issue counts towards throughput once it is closed, provided it was on the
board at some point, i.e. carried one of ``developmentLabels``. Counts are
bucketed per UTC day, and split by size label when the issue has one.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone

from labeltrack_store.models import IssueDatabase, IssueLabelRecord, IssueSummary, LogDocument

logger = logging.getLogger(__name__)


def normalize_to_beginning_of_day(timestamp: int) -> int:
    """Return the epoch ms of UTC midnight on the day of ``timestamp``."""
    day = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return int(day.timestamp()) * 1000


class Accumulator:
    """Sums values per category per day."""

    def __init__(self):
        self.data: dict[str, dict[int, int]] = defaultdict(dict)

    def add(self, category: str, date: int, value: int) -> None:
        day = normalize_to_beginning_of_day(date)
        category_data = self.data[category]
        category_data[day] = category_data.get(day, 0) + value


def get_all_labels_seen(label_history: IssueLabelRecord | None) -> list[str]:
    """Every label that was ever added to or removed from an issue."""
    if label_history is None:
        return []
    seen: dict[str, None] = {}
    for _, change in sorted(label_history.changes.items()):
        for label in [*change.added, *change.removed]:
            seen.setdefault(label)
    return list(seen)


def throughput(config: dict, issue: IssueSummary, label_history: IssueLabelRecord | None, accum: Accumulator) -> None:
    """Count ``issue`` on its close day if it was ever on the board."""
    labels_seen = get_all_labels_seen(label_history)
    development_labels = config.get("developmentLabels") or []
    if not issue.closed_at or not any(label in labels_seen for label in development_labels):
        return

    size_labels = [label for label in config.get("sizeLabels") or [] if label in issue.labels]
    if len(size_labels) > 1:
        logger.warning("Issue %s has multiple size labels %s", issue.number, size_labels)
    category = "throughput" + size_labels[0] if size_labels else "throughput"
    accum.add(category, issue.closed_at, 1)


def compute_stats(config: dict, db: IssueDatabase, log: LogDocument) -> dict[str, dict[int, int]]:
    accum = Accumulator()
    for number in sorted(db.issues):
        throughput(config, db.issues[number], log.issue_labels.get(number), accum)
    return dict(accum.data)
