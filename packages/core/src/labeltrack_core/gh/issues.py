from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from github import Github

from labeltrack_core.tracker import CommentBatch, CommentEvent, IssueBatch, RawPullRequest
from labeltrack_store.models import IssueSummary

logger = logging.getLogger(__name__)

_ISSUE_URL_RE = re.compile(r"/issues/(\d+)$")


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def to_millis(dt: datetime | None) -> int | None:
    """Convert a datetime to epoch milliseconds. Naive datetimes are taken as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def _since_kwargs(since: int | None) -> dict:
    if not since:
        return {}
    return {"since": datetime.fromtimestamp(since / 1000, tz=timezone.utc)}


def _login(user) -> str | None:
    return user.login if user is not None else None


def fetch_latest_issue_info(repo, tracked_labels: list[str], since: int | None = None) -> IssueBatch:
    """Fetch every issue and pull request updated since ``since`` (epoch ms).

    Labels are narrowed to ``tracked_labels``, keeping GitHub's order.
    """
    batch = IssueBatch()
    for issue in repo.get_issues(state="all", sort="updated", direction="asc", **_since_kwargs(since)):
        label_names = [label.name for label in issue.labels]
        batch.issue_labels[issue.number] = [name for name in label_names if name in tracked_labels]

        is_pull = issue.pull_request is not None
        created = to_millis(issue.created_at) or 0
        if is_pull:
            batch.pull_requests[issue.number] = RawPullRequest(
                title=issue.title or "",
                user=_login(issue.user) or "",
                assignee=_login(issue.assignee),
                created=created,
                state=issue.state,
                labels=label_names,
            )
        batch.issues[issue.number] = IssueSummary(
            number=issue.number,
            title=issue.title or "",
            type="pull" if is_pull else "issue",
            labels=label_names,
            created=created,
            closed_at=to_millis(issue.closed_at),
        )

        updated = to_millis(issue.updated_at) or 0
        if updated > batch.timestamp:
            batch.timestamp = updated

    logger.debug("Fetched %d issues (%d pull requests)", len(batch.issues), len(batch.pull_requests))
    return batch


def fetch_pr_comment_timestamps(repo, since: int | None = None) -> CommentBatch:
    """Fetch issue and pull request comments updated since ``since`` (epoch ms)."""
    batch = CommentBatch()
    for comment in repo.get_issues_comments(sort="updated", direction="asc", **_since_kwargs(since)):
        match = _ISSUE_URL_RE.search(comment.issue_url or "")
        if match is None:
            logger.debug("Skipping comment %s with unexpected issue_url %r", comment.id, comment.issue_url)
            continue
        batch.comments.append(
            CommentEvent(
                id=int(match.group(1)),
                user=_login(comment.user) or "",
                created=to_millis(comment.created_at) or 0,
            )
        )
        updated = to_millis(comment.updated_at) or 0
        if updated > batch.timestamp:
            batch.timestamp = updated
    return batch
