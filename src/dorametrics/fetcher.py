"""Bounded-concurrency collection of pull request payloads across repositories.

Each repository is fetched independently. A failing repository becomes a
skipped :class:`~dorametrics.models.FetchResult` instead of aborting the run,
and a failing detail request falls back to the list payload.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Sequence

import requests

from .errors import DoraMetricsError
from .github_client import GitHubClient
from .models import FetchResult, Repository
from .normalizer import author_login

logger = logging.getLogger(__name__)


def fetch_repository_pull_requests(
    client: GitHubClient,
    repository: Repository,
    username: str,
    detail_limit: int = 50,
) -> List[Dict[str, Any]]:
    """Fetch the user's pull requests for one repository.

    Business logic:
    - List all pull requests (open and closed) for the repository.
    - Keep those authored by ``username``.
    - Replace up to ``detail_limit`` of them with their detail payload, which
      carries ``additions``, ``deletions`` and ``commits``.
    - Tag every payload with ``repo_name``.

    Raises:
        DoraMetricsError: If the pull request listing itself fails.
    """
    listed = client.list_pull_requests(repository.full_name, state="all")
    authored = [
        item for item in listed if isinstance(item, Mapping) and author_login(item) == username
    ]

    records: List[Dict[str, Any]] = []
    detail_failures = 0

    for index, item in enumerate(authored):
        payload = item
        number = item.get("number")
        if index < detail_limit and isinstance(number, int):
            try:
                payload = client.get_pull_request(repository.full_name, number)
            except (DoraMetricsError, requests.RequestException) as exc:
                detail_failures += 1
                logger.debug(
                    "Falling back to list payload after detail request failed",
                    extra={"repo": repository.full_name, "pr_number": number, "error": str(exc)},
                )
        records.append({**payload, "repo_name": repository.name})

    logger.info(
        "Fetched repository pull requests",
        extra={
            "repo": repository.full_name,
            "prs_listed": len(listed),
            "prs_authored": len(authored),
            "detail_failures": detail_failures,
        },
    )

    return records


def _fetch_one(
    client: GitHubClient,
    repository: Repository,
    username: str,
    detail_limit: int,
) -> FetchResult:
    try:
        records = fetch_repository_pull_requests(client, repository, username, detail_limit)
    except (DoraMetricsError, requests.RequestException) as exc:
        logger.warning(
            "Skipping repository after fetch failure",
            extra={"repo": repository.full_name, "error": str(exc)},
        )
        return FetchResult.skipped(repository.name, str(exc))

    return FetchResult.success(repository.name, tuple(records))


def fetch_all(
    client: GitHubClient,
    repositories: Sequence[Repository],
    username: str,
    max_workers: int = 8,
    detail_limit: int = 50,
) -> List[FetchResult]:
    """Fetch pull requests for every repository with at most ``max_workers`` in flight.

    Results are returned in the same order as ``repositories``. Per-repository
    failures are reported as skipped results and never raised.
    """
    if not repositories:
        return []

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(repositories)))) as executor:
        results = list(
            executor.map(
                lambda repository: _fetch_one(client, repository, username, detail_limit),
                repositories,
            )
        )

    skipped = [result.repo_name for result in results if not result.ok]
    logger.info(
        "Fetched pull requests across repositories",
        extra={"repos_total": len(results), "repos_skipped": len(skipped)},
    )

    return results


def collect_records(results: Sequence[FetchResult]) -> List[Dict[str, Any]]:
    """Flatten the raw payloads of successful fetch results."""
    records: List[Dict[str, Any]] = []
    for result in results:
        if result.ok:
            records.extend(result.records)
    return records
