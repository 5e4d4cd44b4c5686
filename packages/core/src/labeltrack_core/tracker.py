"""Label change log reconciliation and pull request classification.

Everything here operates on the documents it is handed: nothing is fetched
or persisted. A run builds an IssueBatch and a CommentBatch from GitHub,
passes them to update_log(), and saves the log if it reports a change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable

from labeltrack_store.models import (
    IssueDatabase,
    IssueLabelRecord,
    IssueSummary,
    LabelChange,
    LogDocument,
    PRState,
    PullRequestRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class RawPullRequest:
    """Pull request fields as fetched, before classification."""

    title: str
    user: str
    assignee: str | None
    created: int
    state: str  # GitHub's "open" | "closed"
    labels: list[str] = field(default_factory=list)


@dataclass
class CommentEvent:
    """A comment on issue/PR ``id`` by ``user`` at ``created`` (epoch ms)."""

    id: int
    user: str
    created: int


@dataclass
class IssueBatch:
    """Issues updated since the last run."""

    timestamp: int = 0  # greatest updated_at in the batch, 0 if empty
    issue_labels: dict[int, list[str]] = field(default_factory=dict)
    pull_requests: dict[int, RawPullRequest] = field(default_factory=dict)
    issues: dict[int, IssueSummary] = field(default_factory=dict)


@dataclass
class CommentBatch:
    """Comments updated since the last run."""

    timestamp: int = 0
    comments: list[CommentEvent] = field(default_factory=list)


def _unique(labels: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(labels))


def reconcile(
    old_record: IssueLabelRecord | None,
    new_labels: Iterable[str],
    timestamp: int,
) -> tuple[IssueLabelRecord, bool]:
    """Diff the tracked labels of one issue against its previous state.

    Returns a new record (the input is never modified) and whether the label
    set changed. A change is recorded under ``timestamp``; an existing entry
    at the same timestamp is overwritten.
    """
    new_labels = _unique(new_labels)
    old_labels = old_record.current if old_record is not None else []

    removed = [label for label in old_labels if label not in new_labels]
    added = [label for label in new_labels if label not in old_labels]

    changes = dict(old_record.changes) if old_record is not None else {}
    changed = bool(added or removed)
    if changed:
        changes[timestamp] = LabelChange(added=added, removed=removed)

    # current is rewritten even when unchanged so reordered labels are picked up.
    return IssueLabelRecord(current=new_labels, changes=changes), changed


def classify(raw: RawPullRequest, triage_complete_label: str | None = None) -> PRState:
    """Work out the workflow state of a pull request from its raw fields."""
    if raw.state == "closed":
        return PRState.CLOSED

    triage_complete = bool(triage_complete_label) and triage_complete_label in raw.labels
    if raw.assignee:
        return PRState.IN_REVIEW if triage_complete else PRState.IN_TRIAGE
    return PRState.TRIAGED if triage_complete else PRState.NEW


def update_issue_labels(log: LogDocument, issue_labels: dict[int, list[str]], timestamp: int) -> bool:
    """Reconcile every issue in the batch. Issues not in the batch are left alone."""
    changed = False
    for number, labels in issue_labels.items():
        record = log.issue_labels.get(number)
        if record is None and not labels:
            # Issues are only tracked once a tracked label shows up.
            continue
        new_record, record_changed = reconcile(record, labels, timestamp)
        if record_changed:
            logger.debug("Issue #%s labels changed at %s", number, timestamp)
            changed = True
        log.issue_labels[number] = new_record
    return changed


def update_pull_requests(
    log: LogDocument,
    pull_requests: dict[int, RawPullRequest],
    triage_complete_label: str | None = None,
) -> bool:
    """Merge freshly fetched pull requests into the log.

    Closed pull requests are dropped. Open ones have their fetched fields
    overwritten; comment timestamps already in the log are kept.
    """
    changed = False
    for number, raw in pull_requests.items():
        state = classify(raw, triage_complete_label)
        existing = log.pull_requests.get(number)

        if state is PRState.CLOSED:
            if existing is not None:
                logger.debug("PR #%s closed, removing from log", number)
                del log.pull_requests[number]
                changed = True
            continue

        fields = dict(title=raw.title, user=raw.user, assignee=raw.assignee, created=raw.created, state=state)
        updated = replace(existing, **fields) if existing is not None else PullRequestRecord(**fields)
        if updated != existing:
            log.pull_requests[number] = updated
            changed = True
    return changed


def update_comment_timestamps(log: LogDocument, comments: Iterable[CommentEvent]) -> bool:
    """Advance the latest user/assignee comment times of tracked pull requests."""
    changed = False
    for comment in comments:
        pr = log.pull_requests.get(comment.id)
        if pr is None:
            continue
        if comment.user == pr.user:
            if pr.latest_user_comment is None or comment.created > pr.latest_user_comment:
                pr.latest_user_comment = comment.created
                changed = True
        elif pr.assignee and comment.user == pr.assignee:
            if pr.latest_assignee_comment is None or comment.created > pr.latest_assignee_comment:
                pr.latest_assignee_comment = comment.created
                changed = True
    return changed


def update_log(
    log: LogDocument,
    issue_batch: IssueBatch,
    comment_batch: CommentBatch | None = None,
    triage_complete_label: str | None = None,
) -> bool:
    """Apply one run's fetch results to the log.

    The log timestamp only moves forward, and its new value is the event
    timestamp for every label change in this run. Returns True if anything
    in the log changed (including the timestamp alone).
    """
    comment_batch = comment_batch or CommentBatch()

    new_timestamp = max(log.timestamp, issue_batch.timestamp, comment_batch.timestamp)
    changed = new_timestamp != log.timestamp
    log.timestamp = new_timestamp

    # Evaluated separately so every stage runs regardless of earlier results.
    labels_changed = update_issue_labels(log, issue_batch.issue_labels, log.timestamp)
    prs_changed = update_pull_requests(log, issue_batch.pull_requests, triage_complete_label)
    comments_changed = update_comment_timestamps(log, comment_batch.comments)

    return changed or labels_changed or prs_changed or comments_changed


def update_issue_database(db: IssueDatabase, issues: dict[int, IssueSummary]) -> bool:
    """Overwrite the issue database rows for every fetched issue."""
    changed = False
    for number, summary in issues.items():
        if db.issues.get(number) != summary:
            db.issues[number] = summary
            changed = True
    return changed
