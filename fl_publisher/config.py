"""Publication settings resolved from arguments, environment, and .env."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from fl_publisher.github_client import GitHubInputError, parse_repo_full_name

DEFAULT_TOP_K = 5
TOP_K_ENV_VAR = "FLACOCO_TOP_K"
RESULTS_REPOSITORY_ENV_VAR = "FLACOCO_RESULTS_REPOSITORY"


class ConfigError(ValueError):
    """Raised when publication settings are missing or invalid."""


@dataclass(frozen=True, slots=True)
class PublishConfig:
    """Settings shared by both report pipelines."""

    top_k: int
    results_repository: str


def _resolve_top_k(top_k: int | None) -> int:
    if top_k is None:
        raw_value = os.getenv(TOP_K_ENV_VAR)
        if raw_value is None:
            return DEFAULT_TOP_K
        try:
            top_k = int(raw_value)
        except ValueError as error:
            raise ConfigError(f"{TOP_K_ENV_VAR} must be an integer, got '{raw_value}'.") from error

    if top_k < 1:
        raise ConfigError(f"Invalid top-k '{top_k}'. Expected a positive integer.")
    return top_k


def _resolve_results_repository(results_repository: str | None) -> str:
    resolved = results_repository or os.getenv(RESULTS_REPOSITORY_ENV_VAR)
    if not resolved:
        raise ConfigError(
            f"Missing results repository. Pass --results-repo or set {RESULTS_REPOSITORY_ENV_VAR}."
        )
    try:
        parse_repo_full_name(resolved)
    except GitHubInputError as error:
        raise ConfigError(str(error)) from error
    return resolved.strip()


def load_publish_config(
    *,
    top_k: int | None = None,
    results_repository: str | None = None,
) -> PublishConfig:
    """Resolve publication settings; explicit values win over the environment."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    return PublishConfig(
        top_k=_resolve_top_k(top_k),
        results_repository=_resolve_results_repository(results_repository),
    )
