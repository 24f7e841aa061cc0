"""Application entry point for the GitHub DORA metrics generator."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Sequence

from .cli import parse_args
from .config import load_config
from .dora import compute_report
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    ContractError,
    DataValidationError,
)
from .fetcher import collect_records, fetch_all
from .github_client import GitHubClient
from .normalizer import normalize_pull_requests
from .pr_metrics import summarize_pull_requests
from .report import render_json, render_text

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4
EXIT_DATA = 5


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def orchestrate_report_generation(argv: Optional[Sequence[str]] = None) -> int:
    """Run the end-to-end report pipeline and return a process exit code.

    Pipeline: parse args, load config, list repositories, fetch pull requests
    with bounded concurrency, normalize, compute the DORA report and pull
    request summary, then print the rendered report to stdout.
    """
    try:
        args = parse_args(argv)
        _configure_logging(args.verbose)

        config = load_config(
            username=args.username,
            max_repos=args.max_repos,
            max_workers=args.workers,
            detail_limit=args.detail_limit,
            output_format=args.output_format,
            api_url=args.api_url,
            now=args.as_of,
        )
        now = config.now or datetime.now(timezone.utc)

        client = GitHubClient(config=config)
        username = config.username or client.get_authenticated_user()

        repositories = client.list_repositories(limit=config.max_repos)
        print(
            f"Fetching pull requests for '{username}' across {len(repositories)} repositories...",
            file=sys.stderr,
        )

        results = fetch_all(
            client,
            repositories,
            username,
            max_workers=config.max_workers,
            detail_limit=config.detail_limit,
        )
        skipped = [result for result in results if not result.ok]
        if skipped:
            print(f"Skipped {len(skipped)} repositories that could not be fetched.", file=sys.stderr)

        records = normalize_pull_requests(collect_records(results), username)
        dora_report = compute_report(records, now)
        pr_summary = summarize_pull_requests(records, now)

        if config.output_format == "json":
            print(render_json(username, dora_report, pr_summary, generated_at=now))
        else:
            print(render_text(username, dora_report, pr_summary))

        return EXIT_OK
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        logger.error("Authentication error: %s", exc)
        return EXIT_AUTHENTICATION
    except ApiError as exc:
        logger.error("GitHub API error: %s", exc)
        return EXIT_API
    except (DataValidationError, ContractError) as exc:
        logger.error("Data error: %s", exc)
        return EXIT_DATA
    except Exception:
        logger.exception("Unexpected error while generating the DORA report")
        return EXIT_UNEXPECTED


def main() -> None:
    """Console script entry point."""
    raise SystemExit(orchestrate_report_generation())


if __name__ == "__main__":
    main()
