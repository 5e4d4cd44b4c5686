"""Tests for throughput statistics."""

import pytest

from labeltrack_core.stats import (
    Accumulator,
    compute_stats,
    get_all_labels_seen,
    normalize_to_beginning_of_day,
    throughput,
)
from labeltrack_store.models import IssueDatabase, IssueLabelRecord, IssueSummary, LabelChange, LogDocument

CLOSED_AT = 1411332475895
DAY = 1411257600000


@pytest.fixture
def issue():
    return IssueSummary(number=101, type="issue", labels=[], closed_at=CLOSED_AT)


@pytest.fixture
def history():
    return IssueLabelRecord(changes={1403795923000: LabelChange(added=["Development"])})


@pytest.fixture
def config():
    return {"developmentLabels": ["Development"], "sizeLabels": ["MEDIUM"]}


def test_normalize_to_beginning_of_day():
    assert normalize_to_beginning_of_day(CLOSED_AT) == DAY


def test_accumulator_adds_data_point():
    accum = Accumulator()
    accum.add("fidgets", CLOSED_AT, 1)
    accum.add("fidgets", DAY + 5, 2)
    assert accum.data["fidgets"] == {DAY: 3}


class TestGetAllLabelsSeen:
    def test_finds_added_and_removed(self):
        history = IssueLabelRecord(
            changes={
                1403795923000: LabelChange(added=["Development"]),
                1403792921000: LabelChange(removed=["Waiting"]),
            }
        )
        assert sorted(get_all_labels_seen(history)) == ["Development", "Waiting"]

    def test_no_history(self):
        assert get_all_labels_seen(None) == []


class TestThroughput:
    def test_counts_issue_that_was_on_the_board(self, config, issue, history):
        accum = Accumulator()
        throughput(config, issue, history, accum)
        assert accum.data["throughput"] == {DAY: 1}

    def test_counts_pull_requests_too(self, config, issue, history):
        issue.type = "pull"
        accum = Accumulator()
        throughput(config, issue, history, accum)
        assert accum.data["throughput"] == {DAY: 1}

    def test_ignores_issue_never_on_the_board(self, config, issue):
        accum = Accumulator()
        throughput(config, issue, IssueLabelRecord(changes={1: LabelChange(added=["Unknown"])}), accum)
        assert "throughput" not in accum.data

    def test_ignores_open_issue(self, config, issue, history):
        issue.closed_at = None
        accum = Accumulator()
        throughput(config, issue, history, accum)
        assert "throughput" not in accum.data

    def test_splits_by_size_label(self, config, issue, history):
        issue.labels = ["MEDIUM"]
        accum = Accumulator()
        throughput(config, issue, history, accum)
        assert accum.data["throughputMEDIUM"] == {DAY: 1}

    def test_multiple_size_labels_warn_and_use_first(self, config, issue, history, caplog):
        config["sizeLabels"] = ["SMALL", "MEDIUM"]
        issue.labels = ["MEDIUM", "SMALL"]
        accum = Accumulator()
        throughput(config, issue, history, accum)
        assert accum.data["throughputSMALL"] == {DAY: 1}
        assert "multiple size labels" in caplog.text


def test_compute_stats(config, issue, history):
    db = IssueDatabase(issues={101: issue})
    log = LogDocument(issue_labels={101: history})
    assert compute_stats(config, db, log)["throughput"] == {DAY: 1}
