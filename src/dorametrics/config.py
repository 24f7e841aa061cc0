"""Configuration parsing and validation for the GitHub DORA metrics generator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .errors import AuthenticationError, ConfigurationError

DEFAULT_API_URL = "https://api.github.com"
OUTPUT_FORMATS = ("text", "json")
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the report generator."""

    token: str
    username: Optional[str] = None
    max_repos: int = 20
    max_workers: int = 8
    detail_limit: int = 50
    output_format: str = "text"
    api_url: str = DEFAULT_API_URL
    now: Optional[datetime] = None


def _require_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"Invalid value for '{name}': expected an integer greater than 0.")


def load_config(
    username: Optional[str] = None,
    max_repos: int = 20,
    max_workers: int = 8,
    detail_limit: int = 50,
    output_format: str = "text",
    api_url: str = DEFAULT_API_URL,
    now: Optional[datetime] = None,
) -> Config:
    """Build and validate application configuration.

    Args:
        username: GitHub login to report on; ``None`` means the token's owner.
        max_repos: Maximum number of repositories to scan.
        max_workers: Maximum number of repositories fetched concurrently.
        detail_limit: Maximum pull requests per repository enriched with details.
        output_format: ``"text"`` or ``"json"``.
        api_url: GitHub REST API base URL.
        now: Fixed, timezone-aware report instant; ``None`` means the current time.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If a numeric setting is not positive, the output
            format is unknown or ``now`` is naive.
        AuthenticationError: If neither ``GITHUB_TOKEN`` nor ``GH_TOKEN`` is set.
    """
    _require_positive("max_repos", max_repos)
    _require_positive("max_workers", max_workers)
    _require_positive("detail_limit", detail_limit)

    if output_format not in OUTPUT_FORMATS:
        raise ConfigurationError(
            f"Invalid value for 'output_format': expected one of {', '.join(OUTPUT_FORMATS)}."
        )

    if now is not None and now.tzinfo is None:
        raise ConfigurationError("Invalid value for 'now': expected a timezone-aware datetime.")

    normalized_username = username.strip() if username else None

    token = ""
    for env_var in TOKEN_ENV_VARS:
        token = os.getenv(env_var, "").strip()
        if token:
            break

    if not token:
        raise AuthenticationError(
            "Missing required GitHub token. "
            "Set the 'GITHUB_TOKEN' (or 'GH_TOKEN') environment variable before running."
        )

    return Config(
        token=token,
        username=normalized_username or None,
        max_repos=max_repos,
        max_workers=max_workers,
        detail_limit=detail_limit,
        output_format=output_format,
        api_url=api_url.rstrip("/"),
        now=now,
    )
