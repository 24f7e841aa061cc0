"""Pull request summary statistics shown next to the DORA report.

Covers state counts, merge rate, average merge time, change size buckets,
merge time buckets and six months of opened/merged activity.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Dict, List, Optional, Sequence, Tuple

from .dora import validate_inputs
from .models import MonthlyActivity, PullRequestRecord, PullRequestState, PullRequestSummary
from .stats import BucketSpec, bucket_counts, mean, safe_divide

logger = logging.getLogger(__name__)

ACTIVITY_MONTHS = 6

SIZE_BUCKETS: Sequence[BucketSpec] = (
    ("Small", 0, 100),
    ("Medium", 100, 500),
    ("Large", 500, 1000),
    ("X-Large", 1000, None),
)

MERGE_TIME_BUCKETS: Sequence[BucketSpec] = (
    ("< 1 day", float("-inf"), 24),
    ("1-3 days", 24, 72),
    ("3-7 days", 72, 168),
    ("1-2 weeks", 168, 336),
    ("> 2 weeks", 336, None),
)


def _month_key(value: datetime, tz: Optional[tzinfo]) -> Optional[Tuple[int, int]]:
    try:
        local = value.astimezone(tz)
    except OverflowError:
        return None
    return local.year, local.month


def recent_months(now: datetime, count: int = ACTIVITY_MONTHS) -> List[Tuple[int, int]]:
    """Return ``(year, month)`` pairs for ``count`` calendar months ending with ``now``'s month, oldest first."""
    months: List[Tuple[int, int]] = []
    year, month = now.year, now.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year -= 1
            month = 12
    months.reverse()
    return months


def compute_monthly_activity(records: Sequence[PullRequestRecord], now: datetime) -> Tuple[MonthlyActivity, ...]:
    """Count pull requests opened per month and how many of them were merged.

    Merges are attributed to the month the pull request was created in.
    Records created outside the window are ignored.
    """
    months = recent_months(now)
    opened: Dict[Tuple[int, int], int] = {key: 0 for key in months}
    merged: Dict[Tuple[int, int], int] = {key: 0 for key in months}

    for record in records:
        if record.created_at is None:
            continue
        key = _month_key(record.created_at, now.tzinfo)
        if key not in opened:
            continue
        opened[key] += 1
        if record.is_merged:
            merged[key] += 1

    return tuple(
        MonthlyActivity(
            label=f"{datetime(year, month, 1):%b} {year}",
            opened=opened[(year, month)],
            merged=merged[(year, month)],
        )
        for year, month in months
    )


def summarize_pull_requests(records: Sequence[PullRequestRecord], now: datetime) -> PullRequestSummary:
    """Compute aggregate pull request statistics for a normalized record set.

    Raises:
        ContractError: On missing or naive ``now`` or non-list ``records``.
    """
    validate_inputs(records, now)

    total = len(records)
    merged_count = sum(1 for record in records if record.is_merged)
    merge_hours = [
        hours for hours in (record.lead_time_hours for record in records) if hours is not None
    ]
    sizes = [record.size for record in records]

    summary = PullRequestSummary(
        total=total,
        open_count=sum(1 for record in records if record.state is PullRequestState.OPEN),
        merged_count=merged_count,
        closed_unmerged_count=sum(1 for record in records if record.is_failed),
        merge_rate=100.0 * safe_divide(merged_count, total),
        average_merge_hours=mean(merge_hours),
        average_size=mean(sizes),
        size_distribution=bucket_counts(sizes, SIZE_BUCKETS),
        merge_time_distribution=bucket_counts(merge_hours, MERGE_TIME_BUCKETS),
        monthly_activity=compute_monthly_activity(records, now),
    )

    logger.debug(
        "Computed pull request summary",
        extra={"records_total": total, "merged_count": merged_count},
    )

    return summary
