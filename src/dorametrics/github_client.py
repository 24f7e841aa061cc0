"""GitHub REST API client for pull request data retrieval."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError, AuthenticationError, DataValidationError
from .models import Repository


class GitHubClient:
    """Small client for the GitHub repository and pull request REST APIs.

    Pull request payloads are returned as raw dictionaries; reshaping them is
    the normalizer's job.
    """

    _API_VERSION = "2022-11-28"
    _PAGE_SIZE = 100
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including the bearer token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._base_url = config.api_url.rstrip("/")

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {config.token}",
                "X-GitHub-Api-Version": self._API_VERSION,
            }
        )

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the API root."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a GET request with retry logic for 429/5xx responses.

        Raises:
            AuthenticationError: If GitHub rejects the token (HTTP 401).
            ApiError: If the request repeatedly fails, returns another
                HTTP >= 400, or does not return valid JSON.
        """
        url = self._build_url(path)
        query = dict(params or {})

        last_error: Optional[Exception] = None

        for attempt in range(1, self._MAX_RETRIES + 1):
            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._MAX_RETRIES:
                    raise ApiError(f"GitHub request failed after retries: GET {url}") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                time.sleep(self._extract_backoff_seconds(response, attempt))
                continue

            if status_code == 401:
                raise AuthenticationError(f"GitHub rejected the provided token: GET {url}")

            if status_code >= 400:
                raise ApiError(
                    "GitHub API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                return response.json()
            except ValueError as exc:
                raise ApiError(f"GitHub API returned invalid JSON: GET {url}") from exc

        raise ApiError(f"GitHub request failed after retries: GET {url}") from last_error

    def _get_list(self, path: str, params: Dict[str, Any], limit: Optional[int]) -> List[Dict[str, Any]]:
        """Collect items from a page-number paginated list endpoint.

        Stops at the first short page or once ``limit`` items were collected.

        Raises:
            DataValidationError: If a page is not a JSON array.
        """
        items: List[Dict[str, Any]] = []
        page = 1

        while True:
            payload = self._get_json(path, params={**params, "per_page": self._PAGE_SIZE, "page": page})
            if not isinstance(payload, list):
                raise DataValidationError(
                    f"GitHub API returned unexpected payload shape for list endpoint: {path}"
                )

            items.extend(item for item in payload if isinstance(item, dict))

            if limit is not None and len(items) >= limit:
                return items[:limit]

            if len(payload) < self._PAGE_SIZE:
                return items

            page += 1

    def get_authenticated_user(self) -> str:
        """Return the login of the user that owns the token.

        Raises:
            ApiError: If the response carries no login.
        """
        payload = self._get_json("user")
        login = payload.get("login") if isinstance(payload, dict) else None
        if not isinstance(login, str) or not login:
            raise ApiError("GitHub API response for the authenticated user is missing 'login'.")
        return login

    def list_repositories(self, limit: Optional[int] = None) -> List[Repository]:
        """List repositories owned by the authenticated user, most recently updated first."""
        items = self._get_list("user/repos", params={"type": "owner", "sort": "updated"}, limit=limit)
        repositories: List[Repository] = []

        for item in items:
            name = item.get("name")
            full_name = item.get("full_name")
            if name and full_name:
                repositories.append(Repository(name=str(name), full_name=str(full_name)))

        return repositories

    def list_pull_requests(
        self,
        full_name: str,
        state: str = "all",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """List raw pull request payloads for a repository."""
        return self._get_list(f"repos/{full_name}/pulls", params={"state": state}, limit=limit)

    def get_pull_request(self, full_name: str, number: int) -> Dict[str, Any]:
        """Fetch the detail payload of a pull request, which includes line and commit counts.

        Raises:
            DataValidationError: If the payload is not a JSON object.
        """
        payload = self._get_json(f"repos/{full_name}/pulls/{number}")
        if not isinstance(payload, dict):
            raise DataValidationError(
                f"GitHub API returned unexpected payload shape for pull request {full_name}#{number}"
            )
        return payload
