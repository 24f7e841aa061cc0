"""Tests for the pull request summary calculator."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dorametrics.errors import ContractError
from dorametrics.models import PullRequestRecord, PullRequestState
from dorametrics.pr_metrics import recent_months, summarize_pull_requests

NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def _record(
    created: datetime | None,
    merged: datetime | None = None,
    state: PullRequestState = PullRequestState.CLOSED,
    additions: int = 0,
    deletions: int = 0,
) -> PullRequestRecord:
    return PullRequestRecord(
        author="octocat",
        created_at=created,
        merged_at=merged,
        state=state,
        additions=additions,
        deletions=deletions,
    )


def test_summarize_pull_requests_empty_input_is_all_zero():
    """Verify an empty record set produces zero counts and six empty months."""
    summary = summarize_pull_requests([], NOW)

    assert summary.total == 0
    assert summary.merge_rate == 0
    assert summary.average_merge_hours == 0
    assert summary.average_size == 0
    assert all(bucket.count == 0 for bucket in summary.size_distribution)
    assert all(bucket.count == 0 for bucket in summary.merge_time_distribution)
    assert len(summary.monthly_activity) == 6


def test_summarize_pull_requests_counts_states_and_merge_rate():
    """Verify open, merged and closed-unmerged counts and the merge rate."""
    created = NOW - timedelta(days=3)
    records = [
        _record(created, state=PullRequestState.OPEN),
        _record(created, merged=created + timedelta(hours=10)),
        _record(created, merged=created + timedelta(hours=30)),
        _record(created),
    ]

    summary = summarize_pull_requests(records, NOW)

    assert summary.total == 4
    assert summary.open_count == 1
    assert summary.merged_count == 2
    assert summary.closed_unmerged_count == 1
    assert summary.merge_rate == pytest.approx(50.0)
    assert summary.average_merge_hours == pytest.approx(20.0)


def test_summarize_pull_requests_size_distribution_boundaries():
    """Verify change size buckets at 100, 500 and 1000 lines."""
    created = NOW - timedelta(days=1)
    sizes = [(50, 49), (60, 40), (400, 99), (250, 250), (999, 0), (600, 400)]
    records = [_record(created, additions=a, deletions=d) for a, d in sizes]

    summary = summarize_pull_requests(records, NOW)

    assert [(bucket.label, bucket.count) for bucket in summary.size_distribution] == [
        ("Small", 1),
        ("Medium", 2),
        ("Large", 2),
        ("X-Large", 1),
    ]
    assert summary.average_size == pytest.approx(sum(a + d for a, d in sizes) / len(sizes))


def test_summarize_pull_requests_merge_time_distribution():
    """Verify merge time buckets at one day, three days, one week and two weeks."""
    created = NOW - timedelta(days=30)
    hours = [1, 24, 71, 72, 168, 335, 336]
    records = [_record(created, merged=created + timedelta(hours=h)) for h in hours]

    summary = summarize_pull_requests(records, NOW)

    assert [bucket.count for bucket in summary.merge_time_distribution] == [1, 2, 1, 2, 1]


def test_monthly_activity_covers_six_calendar_months_oldest_first():
    """Verify monthly labels and that merges are attributed to the creation month."""
    records = [
        _record(datetime(2026, 1, 10, tzinfo=timezone.utc), merged=datetime(2026, 2, 2, tzinfo=timezone.utc)),
        _record(datetime(2026, 1, 20, tzinfo=timezone.utc)),
        _record(datetime(2026, 3, 1, tzinfo=timezone.utc), state=PullRequestState.OPEN),
        _record(datetime(2025, 8, 31, tzinfo=timezone.utc), merged=datetime(2025, 10, 1, tzinfo=timezone.utc)),
        _record(None, merged=datetime(2026, 3, 2, tzinfo=timezone.utc)),
    ]

    activity = summarize_pull_requests(records, NOW).monthly_activity

    assert [month.label for month in activity] == [
        "Oct 2025",
        "Nov 2025",
        "Dec 2025",
        "Jan 2026",
        "Feb 2026",
        "Mar 2026",
    ]
    assert (activity[3].opened, activity[3].merged) == (2, 1)
    assert (activity[4].opened, activity[4].merged) == (0, 0)
    assert (activity[5].opened, activity[5].merged) == (1, 0)
    assert sum(month.opened for month in activity) == 3


def test_monthly_activity_skips_creation_times_outside_local_range():
    """Verify a creation time that cannot be shifted into now's timezone is left out of the activity counts."""
    now = NOW.astimezone(timezone(timedelta(hours=2)))
    records = [_record(datetime.max.replace(tzinfo=timezone.utc))]

    summary = summarize_pull_requests(records, now)

    assert summary.total == 1
    assert sum(month.opened for month in summary.monthly_activity) == 0


def test_recent_months_wraps_across_year_boundary():
    """Verify month arithmetic crosses into the previous year."""
    months = recent_months(datetime(2026, 2, 1, tzinfo=timezone.utc), count=3)

    assert months == [(2025, 12), (2026, 1), (2026, 2)]


def test_summarize_pull_requests_requires_aware_now():
    """Verify the summary shares the engine's clock contract."""
    with pytest.raises(ContractError):
        summarize_pull_requests([], datetime(2026, 3, 15))
