"""Domain models for GitHub DORA metric computation.

These dataclasses intentionally model only the subset of API payload fields that
are required for metric computation. Every model is frozen and uses tuples for
sequences so that a computed report is an immutable value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Tier(str, Enum):
    """DORA performance tier."""

    ELITE = "Elite"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        """Ordinal rank where a higher value is a better tier."""
        return _TIER_RANKS[self]


_TIER_RANKS = {Tier.ELITE: 4, Tier.HIGH: 3, Tier.MEDIUM: 2, Tier.LOW: 1}


class PullRequestState(str, Enum):
    """Pull request lifecycle state as reported by GitHub."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class Repository:
    """Represents a source repository returned by the GitHub API."""

    name: str
    full_name: str


@dataclass(frozen=True, slots=True)
class PullRequestRecord:
    """Normalized pull request authored by the queried user."""

    author: str
    created_at: Optional[datetime]
    merged_at: Optional[datetime]
    state: PullRequestState
    additions: int = 0
    deletions: int = 0
    commit_count: int = 0
    repo_name: str = ""
    number: Optional[int] = None

    @property
    def is_merged(self) -> bool:
        return self.merged_at is not None

    @property
    def is_failed(self) -> bool:
        """A change that was closed without ever being merged."""
        return self.state is PullRequestState.CLOSED and self.merged_at is None

    @property
    def size(self) -> int:
        return self.additions + self.deletions

    @property
    def lead_time_hours(self) -> Optional[float]:
        """Hours from creation to merge, or ``None`` when either timestamp is missing."""
        if self.created_at is None or self.merged_at is None:
            return None
        return (self.merged_at - self.created_at).total_seconds() / 3600.0


@dataclass(frozen=True, slots=True)
class TrendPoint:
    """Merge count for one weekly bucket ``[week_start, week_start + 7d)``."""

    label: str
    count: int
    week_start: datetime


@dataclass(frozen=True, slots=True)
class DistributionBucket:
    """Count of samples that fall into one labelled histogram bucket."""

    label: str
    count: int


@dataclass(frozen=True, slots=True)
class DeploymentFrequency:
    daily_rate: float
    weekly_rate: float
    monthly_count: int
    tier: Tier
    trend: Tuple[TrendPoint, ...]


@dataclass(frozen=True, slots=True)
class LeadTime:
    mean_hours: float
    median_hours: float
    tier: Tier
    distribution: Tuple[DistributionBucket, ...]


@dataclass(frozen=True, slots=True)
class ChangeFailureRate:
    percentage: float
    tier: Tier
    failed_count: int = 0
    total_count: int = 0


@dataclass(frozen=True, slots=True)
class Totals:
    total_prs_considered: int
    average_commits_per_pr: float
    total_deployments: int = 0


@dataclass(frozen=True, slots=True)
class DoraReport:
    """Full DORA metrics report for one user at one instant."""

    deployment_frequency: DeploymentFrequency
    lead_time: LeadTime
    change_failure_rate: ChangeFailureRate
    totals: Totals

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain structure suitable for JSON encoding or charting."""
        deployment = self.deployment_frequency
        lead_time = self.lead_time
        failure = self.change_failure_rate
        return {
            "deployment_frequency": {
                "daily_rate": deployment.daily_rate,
                "weekly_rate": deployment.weekly_rate,
                "monthly_count": deployment.monthly_count,
                "tier": deployment.tier.value,
                "trend": [
                    {
                        "label": point.label,
                        "count": point.count,
                        "week_start": point.week_start.isoformat(),
                    }
                    for point in deployment.trend
                ],
            },
            "lead_time": {
                "mean_hours": lead_time.mean_hours,
                "median_hours": lead_time.median_hours,
                "tier": lead_time.tier.value,
                "distribution": [_bucket_dict(bucket) for bucket in lead_time.distribution],
            },
            "change_failure_rate": {
                "percentage": failure.percentage,
                "tier": failure.tier.value,
                "failed_count": failure.failed_count,
                "total_count": failure.total_count,
            },
            "totals": {
                "total_prs_considered": self.totals.total_prs_considered,
                "average_commits_per_pr": self.totals.average_commits_per_pr,
                "total_deployments": self.totals.total_deployments,
            },
        }


@dataclass(frozen=True, slots=True)
class MonthlyActivity:
    """Pull requests opened in a calendar month and how many of those merged."""

    label: str
    opened: int
    merged: int


@dataclass(frozen=True, slots=True)
class PullRequestSummary:
    """Aggregate pull request statistics shown alongside the DORA report."""

    total: int
    open_count: int
    merged_count: int
    closed_unmerged_count: int
    merge_rate: float
    average_merge_hours: float
    average_size: float
    size_distribution: Tuple[DistributionBucket, ...]
    merge_time_distribution: Tuple[DistributionBucket, ...]
    monthly_activity: Tuple[MonthlyActivity, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "open_count": self.open_count,
            "merged_count": self.merged_count,
            "closed_unmerged_count": self.closed_unmerged_count,
            "merge_rate": self.merge_rate,
            "average_merge_hours": self.average_merge_hours,
            "average_size": self.average_size,
            "size_distribution": [_bucket_dict(bucket) for bucket in self.size_distribution],
            "merge_time_distribution": [
                _bucket_dict(bucket) for bucket in self.merge_time_distribution
            ],
            "monthly_activity": [
                {"label": month.label, "opened": month.opened, "merged": month.merged}
                for month in self.monthly_activity
            ],
        }


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of fetching one repository: raw records on success, a reason when skipped."""

    repo_name: str
    records: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    skipped_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.skipped_reason is None

    @classmethod
    def success(cls, repo_name: str, records: Tuple[Dict[str, Any], ...]) -> "FetchResult":
        return cls(repo_name=repo_name, records=tuple(records))

    @classmethod
    def skipped(cls, repo_name: str, reason: str) -> "FetchResult":
        return cls(repo_name=repo_name, skipped_reason=reason)


def _bucket_dict(bucket: DistributionBucket) -> Dict[str, Any]:
    return {"label": bucket.label, "count": bucket.count}
