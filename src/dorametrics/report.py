"""Formatting helpers for DORA metric reports.

This module provides utilities for:
- Formatting hour-based durations as ``min``/``hrs``/``days`` strings.
- Building a human-readable multi-section text report.
- Serializing reports as a JSON document for charting layers.
"""

from __future__ import annotations

import json
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .models import DistributionBucket, DoraReport, PullRequestSummary


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_hours(hours: float) -> str:
    """Format a duration in hours for display.

    Returns:
        ``"N min"`` below one hour, ``"N hrs"`` below one day, otherwise a
        rounded ``"N day"``/``"N days"`` string.
    """
    if hours < 1:
        return f"{_round_half_up(hours * 60)} min"
    if hours < 24:
        return f"{_round_half_up(hours)} hrs"

    days = _round_half_up(hours / 24)
    return f"{days} day{'s' if days > 1 else ''}"


def _bucket_lines(buckets: Tuple[DistributionBucket, ...]) -> List[str]:
    return [f"     {bucket.label}: {bucket.count}" for bucket in buckets]


def render_text(username: str, dora_report: DoraReport, pr_summary: Optional[PullRequestSummary] = None) -> str:
    """Generate a human-readable DORA report for a user.

    The report includes tiered sections for deployment frequency, lead time
    and change failure rate, followed by totals and an optional pull request
    summary. When no pull requests were considered a short notice replaces the
    metric sections.

    Args:
        username: GitHub login the report was computed for.
        dora_report: Computed DORA metrics.
        pr_summary: Optional pull request summary to append.

    Returns:
        Formatted multi-line text report.
    """
    lines = [f"User: {username}", "DORA Metrics Report", ""]

    if dora_report.totals.total_prs_considered == 0:
        lines.append("No pull requests found. Merge pull requests to see DORA metrics.")
        return "\n".join(lines)

    deployment = dora_report.deployment_frequency
    lead_time = dora_report.lead_time
    failure = dora_report.change_failure_rate
    totals = dora_report.totals

    lines.extend(
        [
            f"1) Deployment Frequency [{deployment.tier.value}]",
            f"   Per day (last 7 days): {deployment.daily_rate:.1f}",
            f"   Per week (last 30 days): {deployment.weekly_rate:.1f}",
            f"   Last 30 days: {deployment.monthly_count}",
            "   Weekly trend:",
        ]
    )
    lines.extend(f"     {point.label}: {point.count}" for point in deployment.trend)

    lines.extend(
        [
            "",
            f"2) Lead Time for Changes [{lead_time.tier.value}]",
            f"   Average: {format_hours(lead_time.mean_hours)}",
            f"   Median: {format_hours(lead_time.median_hours)}",
            "   Distribution:",
        ]
    )
    lines.extend(_bucket_lines(lead_time.distribution))

    lines.extend(
        [
            "",
            f"3) Change Failure Rate [{failure.tier.value}]",
            f"   Failed changes: {failure.percentage:.1f}% ({failure.failed_count} of {failure.total_count})",
            "",
            "Totals",
            f"   Pull requests: {totals.total_prs_considered}",
            f"   Deployments (merged): {totals.total_deployments}",
            f"   Average commits per PR: {totals.average_commits_per_pr:.1f}",
        ]
    )

    if pr_summary is not None:
        lines.extend(
            [
                "",
                "Pull Request Summary",
                f"   Open: {pr_summary.open_count}",
                f"   Merged: {pr_summary.merged_count}",
                f"   Closed without merge: {pr_summary.closed_unmerged_count}",
                f"   Merge rate: {pr_summary.merge_rate:.1f}%",
                f"   Average merge time: {format_hours(pr_summary.average_merge_hours)}",
                f"   Average size: {pr_summary.average_size:.0f} lines",
                "   Size distribution:",
            ]
        )
        lines.extend(_bucket_lines(pr_summary.size_distribution))
        lines.append("   Merge time distribution:")
        lines.extend(_bucket_lines(pr_summary.merge_time_distribution))
        lines.append("   Monthly activity (opened/merged):")
        lines.extend(
            f"     {month.label}: {month.opened}/{month.merged}"
            for month in pr_summary.monthly_activity
        )

    return "\n".join(lines)


def build_document(
    username: str,
    dora_report: DoraReport,
    pr_summary: Optional[PullRequestSummary],
    generated_at: datetime,
) -> Dict[str, Any]:
    """Assemble the plain structure written by :func:`render_json`."""
    return {
        "username": username,
        "generated_at": generated_at.isoformat(),
        "dora": dora_report.to_dict(),
        "pull_requests": pr_summary.to_dict() if pr_summary is not None else None,
    }


def render_json(
    username: str,
    dora_report: DoraReport,
    pr_summary: Optional[PullRequestSummary],
    generated_at: datetime,
) -> str:
    """Serialize a report as an indented JSON document."""
    return json.dumps(build_document(username, dora_report, pr_summary, generated_at), indent=2)
