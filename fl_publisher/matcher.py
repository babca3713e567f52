"""Match ranked suspicious lines against the files of a pull request diff."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from fl_publisher.diff_index import DiffIndex
from fl_publisher.schema import SuspiciousLocation, Suspiciousness, SuspiciousnessMap

CLASS_NAME_SEPARATOR = "."
PATH_SEPARATOR = "/"


@dataclass(frozen=True, slots=True)
class MatchedLine:
    """Suspicious line selected for a report, with the file path to show."""

    file_path: str
    location: SuspiciousLocation
    suspiciousness: Suspiciousness


def partial_path_for_class(class_name: str) -> str:
    """Turn a qualified class name into the path fragment it lives under."""
    return class_name.replace(CLASS_NAME_SEPARATOR, PATH_SEPARATOR)


def path_matches(diff_path: str, partial_path: str) -> bool:
    """Return whether a diff file path belongs to a class path fragment.

    Class names carry no extension and may not share the diff's source root, so
    this is plain containment. Nested layouts sharing a suffix can mis-match.
    """
    return partial_path in diff_path


def find_matching_file(partial_path: str, diff_paths: Iterable[str]) -> str | None:
    """Return the first diff path matching the fragment, in diff order."""
    for diff_path in diff_paths:
        if path_matches(diff_path, partial_path):
            return diff_path
    return None


def match_suspicious_lines(
    suspiciousness: SuspiciousnessMap,
    diff_index: DiffIndex,
    top_k: int,
) -> list[MatchedLine]:
    """Select up to top_k suspicious lines that fall inside the diff.

    Map order is the ranking. A location is tried against its first matching
    file only; when that file's hunks do not cover the line the location is
    dropped.
    """
    matched: list[MatchedLine] = []
    if top_k <= 0 or not diff_index:
        return matched

    for location, value in suspiciousness.items():
        file_path = find_matching_file(partial_path_for_class(location.class_name), diff_index)
        if file_path is not None and location.line_number in diff_index[file_path]:
            matched.append(
                MatchedLine(file_path=file_path, location=location, suspiciousness=value)
            )
            if len(matched) >= top_k:
                break

    return matched


def select_top_suspicious(suspiciousness: SuspiciousnessMap, top_k: int) -> list[MatchedLine]:
    """Select the first top_k suspicious lines, ignoring the diff."""
    selected: list[MatchedLine] = []
    for location, value in suspiciousness.items():
        if len(selected) >= top_k:
            break
        selected.append(
            MatchedLine(
                file_path=partial_path_for_class(location.class_name),
                location=location,
                suspiciousness=value,
            )
        )
    return selected
