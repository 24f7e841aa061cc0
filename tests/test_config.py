"""Tests for configuration loading and validation."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dorametrics.config import load_config
from dorametrics.errors import AuthenticationError, ConfigurationError


@pytest.fixture(autouse=True)
def _clear_token_env(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)


def test_load_config_reads_token_and_keeps_values(monkeypatch):
    """Verify a valid configuration is built from arguments and GITHUB_TOKEN."""
    monkeypatch.setenv("GITHUB_TOKEN", "  gh-token  ")
    now = datetime(2026, 3, 15, tzinfo=timezone.utc)

    config = load_config(
        username=" octocat ",
        max_repos=5,
        max_workers=2,
        detail_limit=10,
        output_format="json",
        api_url="https://github.example.com/api/v3/",
        now=now,
    )

    assert config.token == "gh-token"
    assert config.username == "octocat"
    assert config.max_repos == 5
    assert config.max_workers == 2
    assert config.detail_limit == 10
    assert config.output_format == "json"
    assert config.api_url == "https://github.example.com/api/v3"
    assert config.now == now


def test_load_config_falls_back_to_gh_token(monkeypatch):
    """Verify GH_TOKEN is used when GITHUB_TOKEN is not set."""
    monkeypatch.setenv("GH_TOKEN", "fallback")

    config = load_config()

    assert config.token == "fallback"
    assert config.username is None


def test_load_config_missing_token_raises_authentication_error():
    """Verify a missing token raises AuthenticationError."""
    with pytest.raises(AuthenticationError):
        load_config()


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_repos": 0},
        {"max_workers": -1},
        {"detail_limit": 0},
        {"output_format": "xml"},
        {"now": datetime(2026, 3, 15)},
    ],
)
def test_load_config_invalid_values_raise_configuration_error(monkeypatch, overrides):
    """Verify invalid settings raise ConfigurationError before the token is checked."""
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")

    with pytest.raises(ConfigurationError):
        load_config(**overrides)
