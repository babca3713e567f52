"""Publication of diff-scoped and global suspicious-line reports."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

import httpx

from fl_publisher.config import PublishConfig
from fl_publisher.diff_index import DiffIndex, parse_diff_index
from fl_publisher.github_client import (
    GitHubApiError,
    GitHubInputError,
    PullRequestMeta,
    create_repository_file,
    fetch_pull_request_diff,
    fetch_pull_request_metadata,
)
from fl_publisher.matcher import match_suspicious_lines, select_top_suspicious
from fl_publisher.output import (
    build_report_document,
    diff_report_message,
    diff_report_path,
    global_report_message,
    global_report_path,
    report_timestamp,
)
from fl_publisher.schema import PublicationOutcome, ReportDocument, SuspiciousnessMap

logger = logging.getLogger(__name__)

# When true, a failed write of the diff report still yields PUSHED.
PUBLISH_FAILURE_COUNTS_AS_PUSHED = True

GITHUB_ERRORS = (GitHubApiError, GitHubInputError, httpx.HTTPError)


class ContentPublisher(Protocol):
    """Destination that stores report documents as repository files."""

    def create_file(
        self,
        *,
        repo_full_name: str,
        path: str,
        message: str,
        content: str,
    ) -> None:
        """Create one file, raising on failure.

        Any exception raised here is logged by the caller and never ends the run.
        """


class GitHubContentPublisher:
    """Commit report documents through the GitHub contents API."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def create_file(
        self,
        *,
        repo_full_name: str,
        path: str,
        message: str,
        content: str,
    ) -> None:
        create_repository_file(
            client=self._client,
            repo_full_name=repo_full_name,
            path=path,
            message=message,
            content=content,
        )


def no_match_reason(total_lines: int) -> str:
    return f"Flacoco has found {total_lines} suspicious lines, but none were matched to the diff"


def retrieval_failure_reason(error: Exception) -> str:
    return f"There was an error while publishing fault localization results: {error}"


def _publish_document(
    document: ReportDocument,
    *,
    publisher: ContentPublisher,
    results_repository: str,
) -> bool:
    """Write one document, logging instead of raising on failure."""
    try:
        publisher.create_file(
            repo_full_name=results_repository,
            path=document.path,
            message=document.message,
            content=document.body,
        )
    except GITHUB_ERRORS as error:
        logger.error(
            "Localization information not saved on %s at %s: %s",
            results_repository,
            document.path,
            error,
        )
    except Exception:
        logger.exception(
            "Localization information not saved on %s at %s",
            results_repository,
            document.path,
        )
    else:
        logger.info("Published %s to %s", document.path, results_repository)
        return True

    logger.error("%s\n%s", document.message, document.body)
    return False


def publish_reports(
    *,
    suspiciousness: SuspiciousnessMap,
    diff_index: DiffIndex,
    metadata: PullRequestMeta,
    config: PublishConfig,
    publisher: ContentPublisher,
    now: datetime | None = None,
    publish_failure_counts_as_pushed: bool = PUBLISH_FAILURE_COUNTS_AS_PUSHED,
) -> PublicationOutcome:
    """Publish the diff-scoped and global reports for one pull request.

    Only the diff-scoped report decides the returned outcome. The global report
    is written whenever there is at least one suspicious line and its result is
    only visible in the logs.
    """
    timestamp = report_timestamp(now)
    total_lines = len(suspiciousness)

    matched = match_suspicious_lines(suspiciousness, diff_index, config.top_k)
    if matched:
        document = build_report_document(
            matched,
            metadata=metadata,
            path=diff_report_path(metadata.repository_full_name, metadata.number, timestamp),
            message=diff_report_message(metadata.repository_name, metadata.number),
        )
        published = _publish_document(
            document,
            publisher=publisher,
            results_repository=config.results_repository,
        )
        if published or publish_failure_counts_as_pushed:
            outcome = PublicationOutcome.pushed()
        else:
            outcome = PublicationOutcome.not_pushed(
                f"Failed to save the diff report {document.path} on {config.results_repository}"
            )
    else:
        reason = no_match_reason(total_lines)
        logger.warning(reason)
        outcome = PublicationOutcome.not_pushed(reason)

    if total_lines > 0:
        document = build_report_document(
            select_top_suspicious(suspiciousness, config.top_k),
            metadata=metadata,
            path=global_report_path(metadata.repository_full_name, metadata.number, timestamp),
            message=global_report_message(metadata.repository_name, metadata.number),
        )
        _publish_document(
            document,
            publisher=publisher,
            results_repository=config.results_repository,
        )

    return outcome


def run_publication(
    *,
    client: httpx.Client,
    repo_full_name: str,
    pr_number: int,
    suspiciousness: SuspiciousnessMap,
    config: PublishConfig,
    publisher: ContentPublisher | None = None,
    now: datetime | None = None,
) -> PublicationOutcome:
    """Fetch the pull request diff, then publish both reports."""
    try:
        metadata = fetch_pull_request_metadata(
            client=client,
            repo_full_name=repo_full_name,
            pr_number=pr_number,
        )
        raw_diff = fetch_pull_request_diff(
            client=client,
            repo_full_name=repo_full_name,
            pr_number=pr_number,
        )
    except GITHUB_ERRORS as error:
        logger.error("Could not retrieve %s#%s: %s", repo_full_name, pr_number, error)
        return PublicationOutcome.not_pushed(retrieval_failure_reason(error))

    return publish_reports(
        suspiciousness=suspiciousness,
        diff_index=parse_diff_index(raw_diff),
        metadata=metadata,
        config=config,
        publisher=publisher or GitHubContentPublisher(client),
        now=now,
    )
