"""Shared pytest fixtures and test-run configuration."""

from __future__ import annotations

import os

import pytest
from fl_publisher.github_client import PullRequestMeta


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom pytest options for integration test execution."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked as integration (external dependencies).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly enabled."""
    run_integration = config.getoption("--run-integration")
    env_enabled = os.getenv("RUN_INTEGRATION_TESTS") == "1"
    if run_integration or env_enabled:
        return

    skip_marker = pytest.mark.skip(
        reason=(
            "Integration tests are disabled by default. "
            "Use --run-integration or set RUN_INTEGRATION_TESTS=1."
        )
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture
def metadata() -> PullRequestMeta:
    """Pull request metadata shared by report tests."""
    return PullRequestMeta(
        number=42,
        html_url="https://github.com/acme/rocket/pull/42",
        updated_at="2026-10-17T09:30:00Z",
        repository_full_name="acme/rocket",
        repository_name="rocket",
        repository_html_url="https://github.com/acme/rocket",
    )
