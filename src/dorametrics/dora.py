"""DORA metric derivation from normalized pull request records.

A merged pull request stands in for a production deployment. This module
computes:
- Deployment frequency over 7 and 30 day windows plus a 12 week trend
- Lead time for changes (creation to merge) with a fixed-bucket histogram
- Change failure rate (closed without merge over all pull requests)
- Totals used by summary cards

Each metric is classified into a :class:`~dorametrics.models.Tier` against
fixed thresholds. The clock is always injected; nothing here reads the
current time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

from .errors import ContractError
from .models import (
    ChangeFailureRate,
    DeploymentFrequency,
    DoraReport,
    LeadTime,
    PullRequestRecord,
    Tier,
    Totals,
    TrendPoint,
)
from .stats import BucketSpec, bucket_counts, mean, safe_divide, upper_median

logger = logging.getLogger(__name__)

DAILY_WINDOW = timedelta(days=7)
MONTHLY_WINDOW = timedelta(days=30)
WEEKS_PER_MONTH = 4.3
TREND_WEEKS = 12
WEEK = timedelta(days=7)

HOURS_PER_DAY = 24.0
HOURS_PER_WEEK = 168.0
HOURS_PER_FOUR_WEEKS = 672.0
HOURS_PER_MONTH = 720.0

LEAD_TIME_BUCKETS: Sequence[BucketSpec] = (
    ("< 1 day", float("-inf"), HOURS_PER_DAY),
    ("1-7 days", HOURS_PER_DAY, HOURS_PER_WEEK),
    ("1-4 weeks", HOURS_PER_WEEK, HOURS_PER_FOUR_WEEKS),
    ("> 4 weeks", HOURS_PER_FOUR_WEEKS, None),
)


def rate_deployment_frequency(daily_rate: float, weekly_rate: float, monthly_count: int) -> Tier:
    """Classify deployment frequency; the first satisfied condition wins."""
    if daily_rate >= 1:
        return Tier.ELITE
    if weekly_rate >= 1:
        return Tier.HIGH
    if monthly_count >= 1:
        return Tier.MEDIUM
    return Tier.LOW


def rate_lead_time(mean_hours: float) -> Tier:
    """Classify mean lead time in hours. Thresholds are strict upper bounds."""
    if mean_hours < HOURS_PER_DAY:
        return Tier.ELITE
    if mean_hours < HOURS_PER_WEEK:
        return Tier.HIGH
    if mean_hours < HOURS_PER_MONTH:
        return Tier.MEDIUM
    return Tier.LOW


def rate_change_failure(percentage: float) -> Tier:
    """Classify change failure rate.

    A 0% rate is Elite even when there were no pull requests at all.
    """
    if percentage < 5:
        return Tier.ELITE
    if percentage < 10:
        return Tier.HIGH
    if percentage < 15:
        return Tier.MEDIUM
    return Tier.LOW


def format_week_label(week_start: datetime) -> str:
    """Format a bucket start as a short month/day label, for example ``"Jan 5"``."""
    return f"{week_start:%b} {week_start.day}"


def _count_merged_since(records: Sequence[PullRequestRecord], since: datetime) -> int:
    return sum(1 for record in records if record.merged_at is not None and record.merged_at >= since)


def compute_deployment_trend(records: Sequence[PullRequestRecord], now: datetime) -> Tuple[TrendPoint, ...]:
    """Count merges in the 12 consecutive weeks ending at ``now``, oldest first.

    Bucket ``i`` (``i = 11..0``) covers ``[now - 7d*(i+1), now - 7d*i)``.
    """
    merged_at = [record.merged_at for record in records if record.merged_at is not None]
    trend: List[TrendPoint] = []

    for weeks_back in range(TREND_WEEKS, 0, -1):
        week_start = now - WEEK * weeks_back
        week_end = week_start + WEEK
        count = sum(1 for merged in merged_at if week_start <= merged < week_end)
        trend.append(
            TrendPoint(label=format_week_label(week_start), count=count, week_start=week_start)
        )

    return tuple(trend)


def compute_deployment_frequency(records: Sequence[PullRequestRecord], now: datetime) -> DeploymentFrequency:
    """Compute deployment frequency rates, tier and weekly trend."""
    merged_last_week = _count_merged_since(records, now - DAILY_WINDOW)
    merged_last_month = _count_merged_since(records, now - MONTHLY_WINDOW)

    daily_rate = safe_divide(merged_last_week, DAILY_WINDOW.days)
    weekly_rate = safe_divide(merged_last_month, WEEKS_PER_MONTH)

    return DeploymentFrequency(
        daily_rate=daily_rate,
        weekly_rate=weekly_rate,
        monthly_count=merged_last_month,
        tier=rate_deployment_frequency(daily_rate, weekly_rate, merged_last_month),
        trend=compute_deployment_trend(records, now),
    )


def compute_lead_time(records: Sequence[PullRequestRecord]) -> LeadTime:
    """Compute lead time statistics over records with both creation and merge timestamps.

    With no merged pull requests the tier is Low: a zero mean reflects missing
    data, not instant delivery.
    """
    lead_times = [
        hours for hours in (record.lead_time_hours for record in records) if hours is not None
    ]
    mean_hours = mean(lead_times)

    return LeadTime(
        mean_hours=mean_hours,
        median_hours=upper_median(lead_times),
        tier=rate_lead_time(mean_hours) if lead_times else Tier.LOW,
        distribution=bucket_counts(lead_times, LEAD_TIME_BUCKETS),
    )


def compute_change_failure_rate(records: Sequence[PullRequestRecord]) -> ChangeFailureRate:
    """Compute the share of all pull requests that were closed without merging."""
    failed = sum(1 for record in records if record.is_failed)
    percentage = 100.0 * safe_divide(failed, len(records))

    return ChangeFailureRate(
        percentage=percentage,
        tier=rate_change_failure(percentage),
        failed_count=failed,
        total_count=len(records),
    )


def compute_totals(records: Sequence[PullRequestRecord]) -> Totals:
    return Totals(
        total_prs_considered=len(records),
        average_commits_per_pr=mean([record.commit_count for record in records]),
        total_deployments=sum(1 for record in records if record.is_merged),
    )


def validate_inputs(records: Sequence[PullRequestRecord], now: datetime) -> None:
    """Fail fast on programmer errors in engine calls.

    Raises:
        ContractError: If ``records`` is not a list/tuple or ``now`` is not a
            timezone-aware ``datetime``.
    """
    if now is None:
        raise ContractError("An explicit 'now' instant is required.")
    if not isinstance(now, datetime):
        raise ContractError(f"'now' must be a datetime, got {type(now).__name__}.")
    if now.tzinfo is None or now.utcoffset() is None:
        raise ContractError("'now' must be timezone-aware.")
    if not isinstance(records, (list, tuple)):
        raise ContractError(
            f"Expected a list of PullRequestRecord values, got {type(records).__name__}."
        )


def compute_report(records: Sequence[PullRequestRecord], now: datetime) -> DoraReport:
    """Compute the full DORA report for a normalized record set.

    The result depends only on ``records`` and ``now``: calling this twice with
    the same inputs yields equal reports. Empty input produces a zero-valued
    report rather than an error.

    Args:
        records: Normalized pull requests, all authored by the same user.
        now: Timezone-aware instant that anchors every time window.

    Returns:
        An immutable :class:`DoraReport`.

    Raises:
        ContractError: On missing or naive ``now`` or non-list ``records``.
    """
    validate_inputs(records, now)

    report = DoraReport(
        deployment_frequency=compute_deployment_frequency(records, now),
        lead_time=compute_lead_time(records),
        change_failure_rate=compute_change_failure_rate(records),
        totals=compute_totals(records),
    )

    logger.debug(
        "Computed DORA report",
        extra={
            "records_total": report.totals.total_prs_considered,
            "deployment_tier": report.deployment_frequency.tier.value,
            "lead_time_tier": report.lead_time.tier.value,
            "change_failure_tier": report.change_failure_rate.tier.value,
        },
    )

    return report
