"""Markdown rendering of suspicious-line reports."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from fl_publisher.github_client import PullRequestMeta
from fl_publisher.matcher import MatchedLine
from fl_publisher.schema import ReportDocument

SECTION_SEPARATOR = "***"
EMPTY_FAILING_TESTS_PLACEHOLDER = "{}"
DIFF_REPORT_PREFIX = "diff_"
REPORT_EXTENSION = ".md"


def format_score(score: float) -> str:
    """Render a 0-1 score as a two-decimal percentage."""
    return f"{score * 100:,.2f}%"


def format_failing_tests(failing_tests: Sequence[str]) -> str:
    """Render failing tests as a bullet list, or the legacy placeholder."""
    if not failing_tests:
        return EMPTY_FAILING_TESTS_PLACEHOLDER
    return "".join(f"- `{test_name}`\n" for test_name in failing_tests)


def format_entry(
    file_path: str,
    line_number: int,
    score: float,
    failing_tests: Sequence[str],
) -> str:
    """Render one suspicious line with its collapsible failing-test list."""
    return (
        f"The line {line_number} of the file {file_path} has been identified with a "
        f"suspiciousness value of {format_score(score)}.\n\n"
        "<details>\n"
        "     <summary>Failing tests that cover this line</summary>\n\n"
        f"{format_failing_tests(failing_tests)}"
        "</details>"
    )


def format_matched_line(matched: MatchedLine) -> str:
    """Render one matched line as a report entry."""
    return format_entry(
        matched.file_path,
        matched.location.line_number,
        matched.suspiciousness.score,
        matched.suspiciousness.failing_tests,
    )


def format_document(
    fragments: Iterable[str],
    project_full_name: str,
    project_url: str,
    pr_number: int,
    pr_url: str,
    updated_at: str,
) -> str:
    """Join entry fragments in order and append the project/PR footer."""
    parts = [f"{fragment}\n\n{SECTION_SEPARATOR}\n\n" for fragment in fragments]
    parts.append(f"Project: [{project_full_name}]({project_url})\n")
    parts.append(f"\nPull Request [#{pr_number}]({pr_url}) updated at: {updated_at}")
    return "".join(parts)


def report_timestamp(now: datetime | None = None) -> str:
    """Return a UTC ISO-8601 timestamp with millisecond precision."""
    moment = (now or datetime.now(tz=UTC)).astimezone(UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def diff_report_path(repo_full_name: str, pr_number: int, timestamp: str) -> str:
    """Results-repo path of the diff-scoped report."""
    return f"{repo_full_name}/{pr_number}/{DIFF_REPORT_PREFIX}{timestamp}{REPORT_EXTENSION}"


def global_report_path(repo_full_name: str, pr_number: int, timestamp: str) -> str:
    """Results-repo path of the global report."""
    return f"{repo_full_name}/{pr_number}/{timestamp}{REPORT_EXTENSION}"


def diff_report_message(repo_name: str, pr_number: int) -> str:
    """Commit message for the diff-scoped report."""
    return f"Add the suspicious lines contained in the diff for {repo_name} PR #{pr_number}"


def global_report_message(repo_name: str, pr_number: int) -> str:
    """Commit message for the global report."""
    return f"Add the suspicious lines for {repo_name} PR #{pr_number}"


def build_report_document(
    matched_lines: Sequence[MatchedLine],
    *,
    metadata: PullRequestMeta,
    path: str,
    message: str,
) -> ReportDocument:
    """Render matched lines into a report document for one pull request."""
    body = format_document(
        (format_matched_line(matched) for matched in matched_lines),
        project_full_name=metadata.repository_full_name,
        project_url=metadata.repository_html_url,
        pr_number=metadata.number,
        pr_url=metadata.html_url,
        updated_at=metadata.updated_at,
    )
    return ReportDocument(path=path, message=message, body=body)
