"""Tests for the GitHub issue and comment fetchers."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from labeltrack_core.gh.issues import fetch_latest_issue_info, fetch_pr_comment_timestamps, to_millis

T1 = datetime(2011, 4, 22, 13, 33, 48, tzinfo=timezone.utc)
T2 = datetime(2011, 4, 22, 13, 35, 49, tzinfo=timezone.utc)


def _label(name):
    label = MagicMock()
    label.name = name
    return label


def _user(login):
    user = MagicMock()
    user.login = login
    return user


def _issue(number, labels, updated_at, pull=False, state="open", assignee=None):
    issue = MagicMock()
    issue.number = number
    issue.title = f"Issue {number}"
    issue.labels = [_label(n) for n in labels]
    issue.created_at = T1
    issue.updated_at = updated_at
    issue.closed_at = None
    issue.state = state
    issue.user = _user("octocat")
    issue.assignee = _user(assignee) if assignee else None
    issue.pull_request = MagicMock() if pull else None
    return issue


def _comment(issue_number, login, created_at, updated_at=None):
    comment = MagicMock()
    comment.id = 1
    comment.issue_url = f"https://api.github.com/repos/octocat/Hello-World/issues/{issue_number}"
    comment.user = _user(login)
    comment.created_at = created_at
    comment.updated_at = updated_at or created_at
    return comment


def test_to_millis_treats_naive_as_utc():
    assert to_millis(datetime(1970, 1, 1, 0, 0, 1)) == 1000
    assert to_millis(T1) == 1303479228000
    assert to_millis(None) is None


class TestFetchLatestIssueInfo:
    def test_returns_tracked_labels_and_latest_timestamp(self):
        repo = MagicMock()
        repo.get_issues.return_value = [
            _issue(1347, ["bug", "Ready"], T1),
            _issue(1350, ["Development", "enhancement"], T2),
        ]

        batch = fetch_latest_issue_info(repo, ["Ready", "Development"], 100)

        assert batch.issue_labels == {1347: ["Ready"], 1350: ["Development"]}
        assert batch.timestamp == to_millis(T2)
        kwargs = repo.get_issues.call_args.kwargs
        assert kwargs["state"] == "all"
        assert kwargs["since"] == datetime.fromtimestamp(0.1, tz=timezone.utc)

    def test_since_omitted_when_unset(self):
        repo = MagicMock()
        repo.get_issues.return_value = []

        batch = fetch_latest_issue_info(repo, ["Ready"], None)

        assert "since" not in repo.get_issues.call_args.kwargs
        assert batch.timestamp == 0

    def test_pull_requests_carry_raw_fields(self):
        repo = MagicMock()
        repo.get_issues.return_value = [
            _issue(7, ["PR Triage Complete", "Ready"], T1, pull=True, assignee="dev"),
            _issue(8, [], T1),
        ]

        batch = fetch_latest_issue_info(repo, ["Ready"], None)

        assert list(batch.pull_requests) == [7]
        pr = batch.pull_requests[7]
        assert pr.user == "octocat"
        assert pr.assignee == "dev"
        assert pr.state == "open"
        assert pr.created == to_millis(T1)
        # classification needs every label, not just the tracked ones
        assert pr.labels == ["PR Triage Complete", "Ready"]
        assert batch.issues[7].type == "pull"
        assert batch.issues[8].type == "issue"


class TestFetchPrCommentTimestamps:
    def test_parses_issue_number_and_times(self):
        repo = MagicMock()
        repo.get_issues_comments.return_value = [_comment(7, "dev", T1), _comment(9, "octocat", T1, T2)]

        batch = fetch_pr_comment_timestamps(repo, None)

        assert [(c.id, c.user, c.created) for c in batch.comments] == [
            (7, "dev", to_millis(T1)),
            (9, "octocat", to_millis(T1)),
        ]
        assert batch.timestamp == to_millis(T2)

    def test_skips_unparseable_issue_url(self):
        repo = MagicMock()
        bad = _comment(7, "dev", T1)
        bad.issue_url = "https://example.com/nowhere"
        repo.get_issues_comments.return_value = [bad]

        assert fetch_pr_comment_timestamps(repo, None).comments == []
