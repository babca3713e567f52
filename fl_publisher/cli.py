"""Typer CLI for publishing fault-localization suggestions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import httpx
import typer
from pydantic import ValidationError

from fl_publisher.config import ConfigError, load_publish_config
from fl_publisher.github_client import (
    GitHubApiError,
    GitHubAuthError,
    GitHubInputError,
    build_github_client,
    fetch_authenticated_user_login,
    fetch_pull_request_diff,
    fetch_pull_request_metadata,
    get_github_token_with_source,
    parse_repo_full_name,
    validate_pr_number,
)
from fl_publisher.logging_config import setup_logging
from fl_publisher.publisher import run_publication
from fl_publisher.schema import PushState, load_fault_localization_result

app = typer.Typer(help="Publish fault-localization suggestions for GitHub pull requests.")


@app.command("publish")
def publish_command(
    repo: Annotated[str, typer.Option(help="Analyzed repository in owner/repo format.")],
    pr: Annotated[int, typer.Option(help="Pull request number.")],
    results: Annotated[
        Path,
        typer.Option(help="Fault-localization result JSON file.", exists=True, dir_okay=False),
    ],
    top_k: Annotated[
        int | None, typer.Option(help="Maximum suspicious lines per report.")
    ] = None,
    results_repo: Annotated[
        str | None, typer.Option(help="Repository in owner/repo format receiving the reports.")
    ] = None,
    timeout_seconds: Annotated[
        int, typer.Option(help="GitHub API timeout in seconds.")
    ] = 20,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print the outcome as JSON.")
    ] = False,
    verbose: Annotated[bool, typer.Option(help="Log debug details.")] = False,
) -> None:
    """Publish diff-scoped and global suspicious-line reports for a PR."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    try:
        parse_repo_full_name(repo)
        validate_pr_number(pr)
        config = load_publish_config(top_k=top_k, results_repository=results_repo)
        fault_localization = load_fault_localization_result(results)
    except (GitHubInputError, ConfigError) as error:
        typer.echo(f"Invalid input: {error}")
        raise typer.Exit(code=1) from error
    except (ValidationError, ValueError) as error:
        typer.echo(f"Invalid fault-localization result '{results}': {error}")
        raise typer.Exit(code=1) from error

    try:
        with build_github_client(timeout_seconds=timeout_seconds, trust_env=trust_env) as client:
            outcome = run_publication(
                client=client,
                repo_full_name=repo,
                pr_number=pr,
                suspiciousness=fault_localization.suspiciousness_map(),
                config=config,
            )
    except GitHubAuthError as error:
        typer.echo(f"GitHub authentication failed: {error}")
        raise typer.Exit(code=1) from error

    if json_output:
        typer.echo(outcome.model_dump_json())
        return

    typer.echo(f"outcome={outcome.state}")
    if outcome.state is PushState.NOT_PUSHED:
        typer.echo(f"reason={outcome.skip_reason}")


@app.command("auth-check")
def auth_check_command(
    repo: Annotated[
        str | None,
        typer.Option(help="Optional repository in owner/repo format for permission check."),
    ] = None,
    pr: Annotated[
        int | None,
        typer.Option(help="Optional pull request number used with --repo for permission check."),
    ] = None,
    timeout_seconds: Annotated[
        int, typer.Option(help="GitHub API timeout in seconds for the validation call.")
    ] = 20,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
) -> None:
    """Validate GitHub token setup and optional PR read access."""
    if (repo is None) != (pr is None):
        raise typer.BadParameter("Provide both --repo and --pr together, or neither.")

    try:
        _token, token_source = get_github_token_with_source()
    except GitHubAuthError as error:
        typer.echo(f"GitHub auth check failed: {error}")
        raise typer.Exit(code=1) from error

    typer.echo(f"Token detected in {token_source}.")

    try:
        with build_github_client(timeout_seconds=timeout_seconds, trust_env=trust_env) as client:
            login = fetch_authenticated_user_login(client=client)
            typer.echo(f"Authenticated as GitHub user '{login}'.")

            if repo is not None and pr is not None:
                fetch_pull_request_metadata(client=client, repo_full_name=repo, pr_number=pr)
                fetch_pull_request_diff(client=client, repo_full_name=repo, pr_number=pr)
                typer.echo(f"Repository/PR access check passed for {repo}#{pr}.")
    except GitHubInputError as error:
        typer.echo(f"GitHub auth check failed: {error}")
        raise typer.Exit(code=1) from error
    except GitHubApiError as error:
        typer.echo(
            "GitHub auth check failed: "
            f"status={error.status_code} endpoint={error.endpoint}."
        )
        raise typer.Exit(code=1) from error
    except httpx.HTTPError as error:
        typer.echo(f"GitHub auth check failed: network error ({error}).")
        raise typer.Exit(code=1) from error

    typer.echo("GitHub token setup is valid.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
