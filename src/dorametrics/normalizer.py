"""Normalization of raw GitHub pull request payloads.

Raw payloads come from list and detail endpoints and may be partial: the list
endpoint omits ``additions``, ``deletions`` and ``commits``, and enrichment
requests can fail. Malformed or missing fields are coerced to their defaults
instead of raising, so one bad payload never prevents a report.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from .errors import ContractError
from .models import PullRequestRecord, PullRequestState

logger = logging.getLogger(__name__)

MAX_COUNT = 2**53 - 1


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into a timezone-aware UTC datetime.

    Accepts ``Z`` suffixes, explicit offsets and ``datetime`` instances. Naive
    values are assumed to be UTC. Returns ``None`` for anything unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        normalized = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
    else:
        return None

    try:
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None


def coerce_count(value: Any) -> int:
    """Coerce a line or commit count to a non-negative ``int``, defaulting to ``0``.

    Counts above ``MAX_COUNT`` are treated as malformed so that sums and means
    over a record set stay within exact float range.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if 0 <= value <= MAX_COUNT else 0
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value) if 0 <= value <= MAX_COUNT else 0
    return 0


def author_login(item: Mapping[str, Any]) -> Optional[str]:
    user = item.get("user")
    if not isinstance(user, Mapping):
        return None
    login = user.get("login")
    return login if isinstance(login, str) else None


def _repo_name(item: Mapping[str, Any]) -> str:
    repo_name = item.get("repo_name")
    if isinstance(repo_name, str):
        return repo_name

    base = item.get("base")
    repo = base.get("repo") if isinstance(base, Mapping) else None
    name = repo.get("name") if isinstance(repo, Mapping) else None
    return name if isinstance(name, str) else ""


def _state(value: Any) -> PullRequestState:
    if isinstance(value, str) and value.strip().lower() == PullRequestState.CLOSED.value:
        return PullRequestState.CLOSED
    return PullRequestState.OPEN


def normalize_pull_request(item: Mapping[str, Any]) -> PullRequestRecord:
    """Reshape one raw pull request payload into a :class:`PullRequestRecord`.

    No author filtering is applied; a missing login becomes an empty string.
    """
    number = item.get("number")
    return PullRequestRecord(
        author=author_login(item) or "",
        created_at=parse_timestamp(item.get("created_at")),
        merged_at=parse_timestamp(item.get("merged_at")),
        state=_state(item.get("state")),
        additions=coerce_count(item.get("additions")),
        deletions=coerce_count(item.get("deletions")),
        commit_count=coerce_count(item.get("commits")),
        repo_name=_repo_name(item),
        number=number if isinstance(number, int) and not isinstance(number, bool) else None,
    )


def normalize_pull_requests(raw: Sequence[Any], username: str) -> List[PullRequestRecord]:
    """Filter raw pull requests to those authored by ``username`` and normalize them.

    Business logic:
    - Only payloads whose ``user.login`` equals ``username`` exactly are kept.
    - Non-mapping items are skipped.
    - Unparseable timestamps become ``None``; non-numeric or negative counts become ``0``.
    - Input order is preserved; duplicates are not removed.

    Raises:
        ContractError: If ``raw`` is not a list/tuple or ``username`` is not a
            non-empty string.
    """
    if not isinstance(raw, (list, tuple)):
        raise ContractError(
            f"Expected a list of raw pull request payloads, got {type(raw).__name__}."
        )
    if not isinstance(username, str) or not username:
        raise ContractError("A non-empty username is required to filter pull requests.")

    records: List[PullRequestRecord] = []
    skipped_malformed = 0
    skipped_other_authors = 0

    for item in raw:
        if not isinstance(item, Mapping):
            skipped_malformed += 1
            logger.debug(
                "Skipping non-mapping pull request payload",
                extra={"payload_type": type(item).__name__},
            )
            continue

        if author_login(item) != username:
            skipped_other_authors += 1
            continue

        records.append(normalize_pull_request(item))

    logger.info(
        "Normalized pull request records",
        extra={
            "username": username,
            "raw_total": len(raw),
            "records": len(records),
            "skipped_malformed": skipped_malformed,
            "skipped_other_authors": skipped_other_authors,
        },
    )

    return records
