"""Persisted data models for the label log and the issue database.

Decoupled from labeltrack_core so the store layer can be used independently.
Each model maps to the JSON wire format with ``to_dict()`` / ``from_dict()``:
camelCase keys, decimal-string issue numbers and integer epoch milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PRState(str, Enum):
    """Workflow state of a pull request."""

    NEW = "new"
    IN_TRIAGE = "in_triage"
    TRIAGED = "triaged"
    IN_REVIEW = "in_review"
    CLOSED = "closed"


def _int_or_none(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, list) else []


@dataclass
class LabelChange:
    """Labels added and removed in a single observed event."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        # Empty sides are omitted, matching what the log has always stored.
        d: dict[str, list[str]] = {}
        if self.added:
            d["added"] = list(self.added)
        if self.removed:
            d["removed"] = list(self.removed)
        return d

    @staticmethod
    def from_dict(d: Any) -> LabelChange:
        d = _as_mapping(d)
        return LabelChange(added=_as_list(d.get("added")), removed=_as_list(d.get("removed")))


@dataclass
class IssueLabelRecord:
    """Tracked-label history for one issue or pull request.

    ``changes`` is keyed by event timestamp. Replaying it in ascending key
    order against an empty set reproduces ``current``.
    """

    current: list[str] = field(default_factory=list)
    changes: dict[int, LabelChange] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "current": list(self.current),
            "changes": {str(ts): change.to_dict() for ts, change in sorted(self.changes.items())},
        }

    @staticmethod
    def from_dict(d: Any) -> IssueLabelRecord:
        d = _as_mapping(d)
        changes = {}
        for ts, change in _as_mapping(d.get("changes")).items():
            key = _int_or_none(ts)
            if key is not None:
                changes[key] = LabelChange.from_dict(change)
        return IssueLabelRecord(current=_as_list(d.get("current")), changes=changes)


@dataclass
class PullRequestRecord:
    """An open pull request as tracked in the log."""

    title: str = ""
    user: str = ""
    assignee: str | None = None
    created: int = 0
    state: PRState = PRState.NEW
    triage_completed: int | None = None
    latest_user_comment: int | None = None
    latest_assignee_comment: int | None = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "title": self.title,
            "user": self.user,
            "assignee": self.assignee,
            "created": self.created,
            "state": self.state.value,
        }
        # Derived or not-yet-observed values are left out rather than written as null.
        if self.triage_completed is not None:
            d["triageCompleted"] = self.triage_completed
        if self.latest_user_comment is not None:
            d["latestUserComment"] = self.latest_user_comment
        if self.latest_assignee_comment is not None:
            d["latestAssigneeComment"] = self.latest_assignee_comment
        return d

    @staticmethod
    def from_dict(d: Any) -> PullRequestRecord:
        d = _as_mapping(d)
        try:
            state = PRState(d.get("state", PRState.NEW.value))
        except ValueError:
            state = PRState.NEW
        return PullRequestRecord(
            title=d.get("title") or "",
            user=d.get("user") or "",
            assignee=d.get("assignee") or None,
            created=_int_or_none(d.get("created")) or 0,
            state=state,
            triage_completed=_int_or_none(d.get("triageCompleted")),
            latest_user_comment=_int_or_none(d.get("latestUserComment")),
            latest_assignee_comment=_int_or_none(d.get("latestAssigneeComment")),
        )


@dataclass
class LogDocument:
    """The persisted label log.

    ``timestamp`` is the ``since`` cursor for the next fetch and never moves
    backwards.
    """

    timestamp: int = 0
    issue_labels: dict[int, IssueLabelRecord] = field(default_factory=dict)
    pull_requests: dict[int, PullRequestRecord] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "issueLabels": {str(n): r.to_dict() for n, r in sorted(self.issue_labels.items())},
            "pullRequests": {str(n): pr.to_dict() for n, pr in sorted(self.pull_requests.items())},
        }

    @staticmethod
    def from_dict(d: Any) -> LogDocument:
        """Build a document from parsed JSON. Anything malformed loads as empty."""
        d = _as_mapping(d)
        issue_labels = {}
        for number, record in _as_mapping(d.get("issueLabels")).items():
            key = _int_or_none(number)
            if key is not None:
                issue_labels[key] = IssueLabelRecord.from_dict(record)
        pull_requests = {}
        for number, pr in _as_mapping(d.get("pullRequests")).items():
            key = _int_or_none(number)
            if key is not None:
                pull_requests[key] = PullRequestRecord.from_dict(pr)
        return LogDocument(
            timestamp=_int_or_none(d.get("timestamp")) or 0,
            issue_labels=issue_labels,
            pull_requests=pull_requests,
        )


@dataclass
class IssueSummary:
    """One row of the issue database used for throughput statistics."""

    number: int
    title: str = ""
    type: str = "issue"  # "issue" | "pull"
    labels: list[str] = field(default_factory=list)
    created: int = 0
    closed_at: int | None = None

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "title": self.title,
            "type": self.type,
            "labels": list(self.labels),
            "createdAt": self.created,
            "closedAt": self.closed_at,
        }

    @staticmethod
    def from_dict(d: Any) -> IssueSummary:
        d = _as_mapping(d)
        return IssueSummary(
            number=_int_or_none(d.get("number")) or 0,
            title=d.get("title") or "",
            type=d.get("type") or "issue",
            labels=_as_list(d.get("labels")),
            created=_int_or_none(d.get("createdAt")) or 0,
            closed_at=_int_or_none(d.get("closedAt")),
        )


@dataclass
class IssueDatabase:
    """Every issue seen by the tracker, keyed by number."""

    issues: dict[int, IssueSummary] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"issues": {str(n): issue.to_dict() for n, issue in sorted(self.issues.items())}}

    @staticmethod
    def from_dict(d: Any) -> IssueDatabase:
        issues = {}
        for number, issue in _as_mapping(_as_mapping(d).get("issues")).items():
            key = _int_or_none(number)
            if key is not None:
                summary = IssueSummary.from_dict(issue)
                summary.number = key
                issues[key] = summary
        return IssueDatabase(issues=issues)
