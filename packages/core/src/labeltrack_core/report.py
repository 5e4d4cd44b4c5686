"""Pull request report: workflow timers, sections and summary statistics.

The report is recomputed from scratch on every run. Nothing computed here is
written back to the log: the assembler works on copies of the persisted
pull request records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from labeltrack_core.config import EIGHT_DAYS
from labeltrack_store.models import IssueLabelRecord, LogDocument, PRState, PullRequestRecord

logger = logging.getLogger(__name__)


class Phase(Enum):
    TRIAGE = "Triage"
    REVIEW = "Review"


class ReportState(str, Enum):
    """Report status of a pull request. The values double as section titles."""

    OVERDUE_AWAITING_REVIEW = "Overdue, Awaiting Review"
    OVERDUE_AWAITING_TRIAGE = "Overdue, Awaiting Triage"
    AWAITING_TRIAGE = "Awaiting Triage"
    AWAITING_REVIEW = "Awaiting Review"
    OVERDUE_IN_REVIEW = "Overdue, In Review"
    OVERDUE_IN_TRIAGE = "Overdue, In Triage"
    OVERDUE_FROM_USER_IN_REVIEW = "Overdue from user, In Review"
    OVERDUE_FROM_USER_IN_TRIAGE = "Overdue from user, In Triage"
    IN_REVIEW = "In Review"
    IN_TRIAGE = "In Triage"


# (phase, overdue) -> state while waiting for someone to pick the PR up.
_AWAITING_STATES = {
    (Phase.TRIAGE, False): ReportState.AWAITING_TRIAGE,
    (Phase.TRIAGE, True): ReportState.OVERDUE_AWAITING_TRIAGE,
    (Phase.REVIEW, False): ReportState.AWAITING_REVIEW,
    (Phase.REVIEW, True): ReportState.OVERDUE_AWAITING_REVIEW,
}

# (phase, overdue, waiting on the user) -> state while someone is assigned.
_IN_PROGRESS_STATES = {
    (Phase.TRIAGE, False, False): ReportState.IN_TRIAGE,
    (Phase.TRIAGE, False, True): ReportState.IN_TRIAGE,
    (Phase.TRIAGE, True, False): ReportState.OVERDUE_IN_TRIAGE,
    (Phase.TRIAGE, True, True): ReportState.OVERDUE_FROM_USER_IN_TRIAGE,
    (Phase.REVIEW, False, False): ReportState.IN_REVIEW,
    (Phase.REVIEW, False, True): ReportState.IN_REVIEW,
    (Phase.REVIEW, True, False): ReportState.OVERDUE_IN_REVIEW,
    (Phase.REVIEW, True, True): ReportState.OVERDUE_FROM_USER_IN_REVIEW,
}

# Section display order. Old sections follow all current ones in the same order.
SECTION_SORT_ORDER = {
    ReportState.OVERDUE_AWAITING_REVIEW: 0,
    ReportState.OVERDUE_AWAITING_TRIAGE: 1,
    ReportState.AWAITING_TRIAGE: 2,
    ReportState.AWAITING_REVIEW: 3,
    ReportState.OVERDUE_IN_REVIEW: 4,
    ReportState.OVERDUE_IN_TRIAGE: 5,
    ReportState.OVERDUE_FROM_USER_IN_REVIEW: 6,
    ReportState.OVERDUE_FROM_USER_IN_TRIAGE: 7,
    ReportState.IN_REVIEW: 8,
    ReportState.IN_TRIAGE: 9,
}

OLD_PREFIX = "Old "


@dataclass
class ReportEntry:
    """A pull request record with its computed report status."""

    id: int
    pr: PullRequestRecord
    report_state: ReportState
    timer: int
    old: bool = False


@dataclass
class Section:
    report_state: ReportState
    old: bool = False
    pull_requests: list[ReportEntry] = field(default_factory=list)

    @property
    def name(self) -> str:
        return OLD_PREFIX + self.report_state.value if self.old else self.report_state.value


@dataclass
class ReportStats:
    total: int = 0
    available: int = 0
    overdue: int = 0


@dataclass
class ReportModel:
    """Everything a renderer needs to draw the report."""

    report_time: datetime
    sections: list[Section]
    config: dict
    stats: ReportStats


@dataclass
class RunContext:
    """State threaded through one report run."""

    config: dict
    log: LogDocument
    now: int  # epoch ms


def when_triage_completed(
    pr_id: int,
    issue_labels: dict[int, IssueLabelRecord] | None,
    triage_complete_label: str | None,
) -> int | None:
    """Return when ``triage_complete_label`` was most recently added to a PR.

    None if the label is not currently on the PR. If the label was added more
    than once, the latest addition wins regardless of removals in between.
    """
    if not issue_labels or not triage_complete_label:
        return None

    record = issue_labels.get(pr_id)
    if record is None or not record.changes or triage_complete_label not in record.current:
        return None

    added_at = [ts for ts, change in record.changes.items() if triage_complete_label in change.added]
    return max(added_at) if added_at else None


def merge_triage_completed(
    pull_requests: dict[int, PullRequestRecord],
    issue_labels: dict[int, IssueLabelRecord] | None,
    triage_complete_label: str | None,
) -> dict[int, PullRequestRecord]:
    """Set ``triage_completed`` on every pull request. Modifies the records in place."""
    for pr_id, pr in pull_requests.items():
        pr.triage_completed = when_triage_completed(pr_id, issue_labels, triage_complete_label)
    return pull_requests


def _waiting_state(current_time: int, time_limit: int, phase: Phase, timestamp: int) -> tuple[ReportState, int]:
    elapsed = current_time - timestamp
    overdue = elapsed > time_limit
    timer = elapsed - time_limit if overdue else time_limit - elapsed
    return _AWAITING_STATES[(phase, overdue)], timer


def _in_state(
    current_time: int,
    time_limit: int,
    phase: Phase,
    latest_user_comment: int | None,
    latest_assignee_comment: int | None,
    created: int | None,
    triage_completed: int | None,
) -> tuple[ReportState, int]:
    latest_user_comment = latest_user_comment or 0
    latest_assignee_comment = latest_assignee_comment or 0

    # The comment clock only starts once the assignee has said something.
    events = [ts for ts in (created, triage_completed) if ts]
    if latest_assignee_comment:
        events += [latest_assignee_comment, latest_user_comment]
    latest_event = max(events, default=0)

    # Equal timestamps count as the user having the last word.
    assignee_commented_last = latest_assignee_comment > latest_user_comment

    elapsed = current_time - latest_event
    overdue = elapsed > time_limit
    timer = elapsed - time_limit if overdue else time_limit - elapsed
    return _IN_PROGRESS_STATES[(phase, overdue, assignee_commented_last)], timer


def get_report_state(pr: PullRequestRecord, current_time: int, time_limit: int = EIGHT_DAYS) -> tuple[ReportState, int]:
    """Return the report state and timer (ms remaining, or ms overdue) for a PR.

    Raises ValueError for closed pull requests, which never appear in the log.
    """
    if pr.state is PRState.NEW:
        return _waiting_state(current_time, time_limit, Phase.TRIAGE, pr.created)
    if pr.state is PRState.TRIAGED:
        return _waiting_state(current_time, time_limit, Phase.REVIEW, pr.triage_completed or 0)
    if pr.state in (PRState.IN_TRIAGE, PRState.IN_REVIEW):
        phase = Phase.TRIAGE if pr.state is PRState.IN_TRIAGE else Phase.REVIEW
        return _in_state(
            current_time,
            time_limit,
            phase,
            pr.latest_user_comment,
            pr.latest_assignee_comment,
            pr.created,
            pr.triage_completed,
        )
    raise ValueError(f"No report state for a pull request in state {pr.state.value!r}")


def merge_report_state(
    pull_requests: dict[int, PullRequestRecord],
    current_time: int,
    time_limit: int = EIGHT_DAYS,
) -> list[ReportEntry]:
    """Compute the report state of every pull request."""
    entries = []
    for pr_id, pr in pull_requests.items():
        report_state, timer = get_report_state(pr, current_time, time_limit)
        entries.append(ReportEntry(id=int(pr_id), pr=pr, report_state=report_state, timer=timer))
    return entries


def mark_old_requests(entries: list[ReportEntry], first_new_request: int) -> list[ReportEntry]:
    """Flag entries numbered below ``first_new_request`` as old."""
    for entry in entries:
        if entry.id < first_new_request:
            entry.old = True
    return entries


def _section_key(section: Section) -> tuple[bool, int]:
    return section.old, SECTION_SORT_ORDER[section.report_state]


def sort_into_sections(entries: list[ReportEntry]) -> list[Section]:
    """Group entries into report sections and order them for display.

    Within a section, overdue entries are sorted by timer descending (most
    overdue first) and the rest ascending (least time left first).
    """
    sections: dict[tuple[ReportState, bool], Section] = {}
    for entry in entries:
        key = (entry.report_state, entry.old)
        if key not in sections:
            sections[key] = Section(report_state=entry.report_state, old=entry.old)
        sections[key].pull_requests.append(entry)

    for section in sections.values():
        section.pull_requests.sort(key=lambda e: e.timer, reverse="Overdue" in section.name)

    ordered = sorted(sections.values(), key=_section_key)
    keys = [_section_key(section) for section in ordered]
    if len(set(keys)) != len(keys):
        raise AssertionError(f"Section sort orders were equal: {[s.name for s in ordered]}")
    return ordered


def generate_statistics(sections: list[Section]) -> ReportStats:
    """Count open, overdue and available (in an "Awaiting" section) pull requests."""
    stats = ReportStats()
    for section in sections:
        count = len(section.pull_requests)
        stats.total += count
        if "Overdue" in section.name:
            stats.overdue += count
        if "Awaiting" in section.name:
            stats.available += count
    return stats


def generate_report(ctx: RunContext) -> ReportModel:
    """Build the full report model for the pull requests in the log."""
    config = ctx.config
    time_limit = config.get("timeLimit") or EIGHT_DAYS

    pull_requests = {pr_id: replace(pr) for pr_id, pr in ctx.log.pull_requests.items()}
    merge_triage_completed(pull_requests, ctx.log.issue_labels, config.get("triageCompleteLabel"))
    entries = merge_report_state(pull_requests, ctx.now, time_limit)
    if config.get("oldPullRequests"):
        mark_old_requests(entries, config["oldPullRequests"])
    sections = sort_into_sections(entries)
    logger.debug("Report has %d sections for %d pull requests", len(sections), len(entries))

    return ReportModel(
        report_time=datetime.fromtimestamp(ctx.now / 1000, tz=timezone.utc),
        sections=sections,
        config=config,
        stats=generate_statistics(sections),
    )


def format_timer(ms: int) -> str:
    """Render a timer magnitude, e.g. ``2d 3h``, ``5h 12m`` or ``4m``."""
    minutes = abs(ms) // 60000
    days, minutes = divmod(minutes, 24 * 60)
    hours, minutes = divmod(minutes, 60)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
