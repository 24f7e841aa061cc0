"""Tests for application orchestration in the main module."""

import json
import sys
from argparse import Namespace
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock, patch

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dorametrics.config import Config
from dorametrics.errors import ApiError, AuthenticationError, ConfigurationError, ContractError
from dorametrics.main import orchestrate_report_generation
from dorametrics.models import FetchResult, Repository

NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def _args(**overrides) -> Namespace:
    values = dict(
        username=None,
        max_repos=20,
        workers=8,
        detail_limit=50,
        output_format="text",
        as_of=NOW,
        api_url="https://api.github.com",
        verbose=False,
    )
    values.update(overrides)
    return Namespace(**values)


def _config(**overrides) -> Config:
    values = dict(token="secret", now=NOW)
    values.update(overrides)
    return Config(**values)


def _merged_pr(number: int) -> dict:
    return {
        "number": number,
        "user": {"login": "octocat"},
        "created_at": "2026-03-14T00:00:00Z",
        "merged_at": "2026-03-14T02:00:00Z",
        "state": "closed",
        "commits": 2,
    }


def _github_client() -> Mock:
    client = Mock()
    client.get_authenticated_user.return_value = "octocat"
    client.list_repositories.return_value = [Repository(name="repo", full_name="octocat/repo")]
    return client


def test_orchestrate_report_generation_success(capsys):
    """Verify orchestration returns 0 and wires components correctly on success."""
    client = _github_client()
    results = [FetchResult.success("repo", (_merged_pr(1), _merged_pr(2)))]

    with patch("dorametrics.main.parse_args", return_value=_args()) as parse_args_mock, patch(
        "dorametrics.main.load_config", return_value=_config()
    ) as load_config_mock, patch(
        "dorametrics.main.GitHubClient", return_value=client
    ) as client_ctor_mock, patch(
        "dorametrics.main.fetch_all", return_value=results
    ) as fetch_all_mock:
        exit_code = orchestrate_report_generation([])

    assert exit_code == 0
    parse_args_mock.assert_called_once_with([])
    load_config_mock.assert_called_once_with(
        username=None,
        max_repos=20,
        max_workers=8,
        detail_limit=50,
        output_format="text",
        api_url="https://api.github.com",
        now=NOW,
    )
    client_ctor_mock.assert_called_once()
    client.list_repositories.assert_called_once_with(limit=20)
    fetch_all_mock.assert_called_once_with(
        client,
        client.list_repositories.return_value,
        "octocat",
        max_workers=8,
        detail_limit=50,
    )

    captured = capsys.readouterr()
    assert "User: octocat" in captured.out
    assert "Pull requests: 2" in captured.out
    assert "Fetching pull requests for 'octocat' across 1 repositories..." in captured.err


def test_orchestrate_report_generation_uses_explicit_username(capsys):
    """Verify a configured username skips the authenticated-user lookup."""
    client = _github_client()

    with patch("dorametrics.main.parse_args", return_value=_args(username="octocat")), patch(
        "dorametrics.main.load_config", return_value=_config(username="octocat")
    ), patch("dorametrics.main.GitHubClient", return_value=client), patch(
        "dorametrics.main.fetch_all", return_value=[]
    ):
        exit_code = orchestrate_report_generation([])

    assert exit_code == 0
    client.get_authenticated_user.assert_not_called()
    assert "No pull requests found" in capsys.readouterr().out


def test_orchestrate_report_generation_json_output(capsys):
    """Verify JSON output is a single parseable document on stdout."""
    client = _github_client()
    results = [
        FetchResult.success("repo", (_merged_pr(1),)),
        FetchResult.skipped("broken", "HTTP 500"),
    ]

    with patch("dorametrics.main.parse_args", return_value=_args(output_format="json")), patch(
        "dorametrics.main.load_config", return_value=_config(output_format="json")
    ), patch("dorametrics.main.GitHubClient", return_value=client), patch(
        "dorametrics.main.fetch_all", return_value=results
    ):
        exit_code = orchestrate_report_generation([])

    assert exit_code == 0
    captured = capsys.readouterr()
    document = json.loads(captured.out)
    assert document["username"] == "octocat"
    assert document["dora"]["totals"]["total_prs_considered"] == 1
    assert "Skipped 1 repositories" in captured.err


def test_orchestrate_report_generation_configuration_error_returns_config_exit_code():
    """Verify configuration failures return the configuration exit code."""
    with patch("dorametrics.main.parse_args", return_value=_args()), patch(
        "dorametrics.main.load_config", side_effect=ConfigurationError("bad value")
    ):
        exit_code = orchestrate_report_generation([])

    assert exit_code == 2


def test_orchestrate_report_generation_missing_token_returns_auth_error():
    """Verify missing token/authentication failures return the authentication exit code."""
    with patch("dorametrics.main.parse_args", return_value=_args()), patch(
        "dorametrics.main.load_config",
        side_effect=AuthenticationError("Missing required GitHub token."),
    ):
        exit_code = orchestrate_report_generation([])

    assert exit_code == 3


def test_orchestrate_report_generation_api_error_returns_api_exit_code():
    """Verify GitHub API failures return the API error exit code."""
    client = _github_client()
    client.list_repositories.side_effect = ApiError("GitHub API request failed")

    with patch("dorametrics.main.parse_args", return_value=_args()), patch(
        "dorametrics.main.load_config", return_value=_config()
    ), patch("dorametrics.main.GitHubClient", return_value=client):
        exit_code = orchestrate_report_generation([])

    assert exit_code == 4


def test_orchestrate_report_generation_contract_error_returns_data_exit_code():
    """Verify engine contract violations return the data error exit code."""
    client = _github_client()

    with patch("dorametrics.main.parse_args", return_value=_args()), patch(
        "dorametrics.main.load_config", return_value=_config()
    ), patch("dorametrics.main.GitHubClient", return_value=client), patch(
        "dorametrics.main.fetch_all", return_value=[]
    ), patch("dorametrics.main.compute_report", side_effect=ContractError("naive now")):
        exit_code = orchestrate_report_generation([])

    assert exit_code == 5


def test_orchestrate_report_generation_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("dorametrics.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = orchestrate_report_generation([])

    assert exit_code == 1
