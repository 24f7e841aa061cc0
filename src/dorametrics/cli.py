"""Command-line argument parsing for the GitHub DORA metrics generator."""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from typing import Optional, Sequence

from .config import DEFAULT_API_URL, OUTPUT_FORMATS


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Args:
        value: Raw command-line argument value.

    Returns:
        The validated positive integer.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def _instant(value: str) -> datetime:
    """Parse an ISO-8601 instant; values without an offset are taken as UTC."""
    text = value.strip()
    normalized = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an ISO-8601 date or timestamp") from exc

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for DORA report generation.

    Returns:
        Parsed CLI arguments.
    """
    parser = argparse.ArgumentParser(
        prog="github-dora-metrics",
        description=(
            "Compute DORA metrics (deployment frequency, lead time for changes, "
            "change failure rate) from a GitHub user's pull requests."
        ),
    )

    parser.add_argument(
        "--username",
        default=None,
        help="GitHub login to report on (default: the owner of the token).",
    )
    parser.add_argument(
        "--max-repos",
        type=_positive_int,
        default=20,
        help="Maximum number of most recently updated repositories to scan (default: 20).",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=8,
        help="Maximum number of repositories fetched concurrently (default: 8).",
    )
    parser.add_argument(
        "--detail-limit",
        type=_positive_int,
        default=50,
        help="Maximum pull requests per repository enriched with size and commit details (default: 50).",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="text",
        help="Report output format (default: text).",
    )
    parser.add_argument(
        "--as-of",
        type=_instant,
        default=None,
        help="Compute the report as of this ISO-8601 instant instead of now.",
    )
    parser.add_argument(
        "--api-url",
        default=DEFAULT_API_URL,
        help=f"GitHub REST API base URL (default: {DEFAULT_API_URL}).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )

    return parser.parse_args(argv)
