"""GitHub API wrapper and auth helpers."""

from __future__ import annotations

import base64
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from dotenv import load_dotenv

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_JSON_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_DIFF_MEDIA_TYPE = "application/vnd.github.diff"
GITHUB_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF_SECONDS = 0.5
IDEMPOTENT_METHODS = frozenset({"GET"})


class GitHubAuthError(RuntimeError):
    """Raised when required GitHub authentication is missing."""


class GitHubInputError(ValueError):
    """Raised when repository or PR input values are invalid."""


class GitHubApiError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, *, status_code: int, endpoint: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class GitHubRateLimitError(GitHubApiError):
    """Raised when GitHub API rate limiting prevents request completion."""


@dataclass(frozen=True, slots=True)
class PullRequestMeta:
    """Pull request metadata needed to label published reports."""

    number: int
    html_url: str
    updated_at: str
    repository_full_name: str
    repository_name: str
    repository_html_url: str


def _ensure_mapping(value: object, *, context: str) -> dict[str, Any]:
    """Ensure a response fragment is a JSON object."""
    if not isinstance(value, dict):
        raise GitHubApiError(
            f"Expected JSON object for {context}.",
            status_code=500,
            endpoint=context,
        )
    return value


def _require_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str:
    """Read a required string field from payload."""
    value = payload.get(key)
    if not isinstance(value, str):
        raise GitHubApiError(
            f"Expected string field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_int(payload: dict[str, Any], *, key: str, endpoint: str) -> int:
    """Read a required integer field from payload."""
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise GitHubApiError(
            f"Expected integer field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_object(payload: dict[str, Any], *, key: str, endpoint: str) -> dict[str, Any]:
    """Read a required object field from payload."""
    value = payload.get(key)
    if not isinstance(value, dict):
        raise GitHubApiError(
            f"Expected object field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _request_json(client: httpx.Client, endpoint: str) -> dict[str, Any]:
    """Perform a JSON request against GitHub API."""
    response = _request_with_retries(client, endpoint, accept_header=GITHUB_JSON_MEDIA_TYPE)
    try:
        payload = response.json()
    except ValueError as error:
        raise GitHubApiError(
            f"Expected JSON body in GitHub response for '{endpoint}'.",
            status_code=response.status_code,
            endpoint=endpoint,
        ) from error
    return _ensure_mapping(payload, context=endpoint)


def _request_text(client: httpx.Client, endpoint: str, *, accept_header: str) -> str:
    """Perform a text request with explicit Accept header."""
    response = _request_with_retries(client, endpoint, accept_header=accept_header)
    return response.text


def _is_retryable_status(status_code: int) -> bool:
    """Return whether a status code is retryable under policy."""
    return status_code == 429 or 500 <= status_code < 600


def _parse_retry_after_seconds(response: httpx.Response) -> float | None:
    """Parse Retry-After header as seconds if present and valid."""
    retry_after = response.headers.get("Retry-After")
    if retry_after is None:
        return None
    try:
        parsed_value = float(retry_after)
    except ValueError:
        return None
    if parsed_value < 0:
        return None
    return parsed_value


def _compute_retry_delay_seconds(response: httpx.Response, *, attempt_number: int) -> float:
    """Compute retry delay from Retry-After header or exponential backoff."""
    retry_after_seconds = _parse_retry_after_seconds(response)
    if retry_after_seconds is not None:
        return retry_after_seconds
    return DEFAULT_RETRY_BACKOFF_SECONDS * (2 ** (attempt_number - 1))


def _sleep_for_retry(seconds: float) -> None:
    """Sleep helper for retry delays (wrapped for deterministic tests)."""
    time.sleep(seconds)


def _raise_http_error(response: httpx.Response, endpoint: str) -> None:
    """Raise a typed error for a non-success GitHub API response."""
    message = f"GitHub API request failed with status {response.status_code} for '{endpoint}'."
    if response.status_code == 429:
        raise GitHubRateLimitError(
            message,
            status_code=response.status_code,
            endpoint=endpoint,
        )
    raise GitHubApiError(
        message,
        status_code=response.status_code,
        endpoint=endpoint,
    )


def _request_with_retries(
    client: httpx.Client,
    endpoint: str,
    *,
    method: str = "GET",
    accept_header: str | None = None,
    json_body: dict[str, Any] | None = None,
    max_attempts: int = GITHUB_MAX_RETRIES,
) -> httpx.Response:
    """Perform a request with retry handling for 429/5xx responses.

    Only GET requests are retried; a write may have been applied before the
    server answered with an error.
    """
    headers: dict[str, str] = {}
    if accept_header:
        headers["Accept"] = accept_header

    request_headers = headers or None
    for attempt_number in range(1, max_attempts + 1):
        response = client.request(method, endpoint, headers=request_headers, json=json_body)
        if response.status_code < 400:
            return response

        should_retry = (
            method in IDEMPOTENT_METHODS
            and _is_retryable_status(response.status_code)
            and attempt_number < max_attempts
        )
        if not should_retry:
            _raise_http_error(response, endpoint)

        delay_seconds = _compute_retry_delay_seconds(response, attempt_number=attempt_number)
        _sleep_for_retry(delay_seconds)

    raise RuntimeError("Unexpected retry loop exit without a response.")


def fetch_pull_request_metadata(
    *,
    client: httpx.Client,
    repo_full_name: str,
    pr_number: int,
) -> PullRequestMeta:
    """Fetch pull request metadata from GitHub."""
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_pr_number = validate_pr_number(pr_number)
    endpoint = f"/repos/{owner}/{repo}/pulls/{normalized_pr_number}"

    payload = _request_json(client, endpoint)
    base_payload = _require_object(payload, key="base", endpoint=endpoint)
    repo_payload = _require_object(base_payload, key="repo", endpoint=endpoint)

    return PullRequestMeta(
        number=_require_int(payload, key="number", endpoint=endpoint),
        html_url=_require_str(payload, key="html_url", endpoint=endpoint),
        updated_at=_require_str(payload, key="updated_at", endpoint=endpoint),
        repository_full_name=_require_str(repo_payload, key="full_name", endpoint=endpoint),
        repository_name=_require_str(repo_payload, key="name", endpoint=endpoint),
        repository_html_url=_require_str(repo_payload, key="html_url", endpoint=endpoint),
    )


def fetch_pull_request_diff(
    *,
    client: httpx.Client,
    repo_full_name: str,
    pr_number: int,
) -> str:
    """Fetch full raw diff for a pull request."""
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_pr_number = validate_pr_number(pr_number)
    endpoint = f"/repos/{owner}/{repo}/pulls/{normalized_pr_number}"
    return _request_text(client, endpoint, accept_header=GITHUB_DIFF_MEDIA_TYPE)


def create_repository_file(
    *,
    client: httpx.Client,
    repo_full_name: str,
    path: str,
    message: str,
    content: str,
) -> None:
    """Create one file in a repository through the contents API."""
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_path = path.lstrip("/")
    if not normalized_path:
        raise GitHubInputError("Invalid file path ''. Expected a non-empty repository path.")

    endpoint = f"/repos/{owner}/{repo}/contents/{quote(normalized_path, safe='/')}"
    encoded_content = base64.b64encode(content.encode("utf-8")).decode("ascii")
    _request_with_retries(
        client,
        endpoint,
        method="PUT",
        accept_header=GITHUB_JSON_MEDIA_TYPE,
        json_body={"message": message, "content": encoded_content},
    )


def parse_repo_full_name(repo_full_name: str) -> tuple[str, str]:
    """Parse and validate repository input in owner/repo format."""
    owner, separator, repo = repo_full_name.strip().partition("/")
    if not separator or not owner or not repo or "/" in repo:
        raise GitHubInputError(
            f"Invalid repo '{repo_full_name}'. Expected format is owner/repo."
        )
    return owner, repo


def validate_pr_number(pr_number: int) -> int:
    """Validate and normalize pull request number input."""
    if pr_number <= 0:
        raise GitHubInputError(f"Invalid PR number '{pr_number}'. Expected a positive integer.")
    return pr_number


def get_github_token() -> str:
    """Read GitHub token from environment and fail fast if missing."""
    token, _source = get_github_token_with_source()
    return token


def get_github_token_with_source() -> tuple[str, str]:
    """Read GitHub token and return token value with environment source key."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    github_token = os.getenv("GITHUB_TOKEN")
    if github_token:
        return github_token, "GITHUB_TOKEN"

    gh_token = os.getenv("GH_TOKEN")
    if gh_token:
        return gh_token, "GH_TOKEN"

    message = "Missing GitHub token. Set GITHUB_TOKEN (preferred) or GH_TOKEN."
    raise GitHubAuthError(message)


def fetch_authenticated_user_login(*, client: httpx.Client) -> str:
    """Fetch authenticated GitHub user login for token validation."""
    endpoint = "/user"
    payload = _request_json(client, endpoint)
    return _require_str(payload, key="login", endpoint=endpoint)


def build_github_client(
    timeout_seconds: int = 20,
    *,
    trust_env: bool = True,
) -> httpx.Client:
    """Build an authenticated GitHub HTTP client."""
    token = get_github_token()
    headers = {
        "Accept": GITHUB_JSON_MEDIA_TYPE,
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    return httpx.Client(
        base_url=GITHUB_API_BASE_URL,
        headers=headers,
        timeout=timeout_seconds,
        trust_env=trust_env,
    )
