"""Unified diff parsing into per-file line to position lookups."""

from __future__ import annotations

import re

HUNK_HEADER_PATTERN = re.compile(
    r"^@@ -(?P<base_start>\d+)(?:,(?P<base_count>\d+))? "
    r"\+(?P<head_start>\d+)(?:,(?P<head_count>\d+))? @@"
)
DEV_NULL_PATH = "/dev/null"

DiffIndex = dict[str, dict[int, int]]


def _strip_path_prefix(path_token: str, prefix: str) -> str:
    """Drop the a/ or b/ prefix git puts in front of file headers."""
    path_token = path_token.split("\t", 1)[0].strip()
    if path_token.startswith(prefix):
        return path_token[len(prefix) :]
    return path_token


def _hunk_count(value: str | None) -> int:
    """Line count of a hunk side; an omitted count means one line."""
    return int(value) if value is not None else 1


def parse_diff_index(raw_diff: str) -> DiffIndex:
    """Map each diff file to {head line number: position in the diff}.

    Positions follow GitHub review-comment semantics: the first hunk header of a
    file sits at position 0 and every following line of that file, later hunk
    headers included, advances the position by one. Only context and added
    lines carry a head-side line number, so only they are recorded.

    Hunk line counts decide where a hunk ends, so plain `diff -u` output
    without `diff --git` separators is split into files as well.
    """
    index: DiffIndex = {}
    current_lines: dict[int, int] | None = None
    old_path: str | None = None
    position = -1
    head_line = 0
    base_remaining = 0
    head_remaining = 0

    for line in raw_diff.splitlines():
        if line.startswith("diff --git "):
            current_lines = None
            old_path = None
            position = -1
            base_remaining = head_remaining = 0
            continue

        header_match = HUNK_HEADER_PATTERN.match(line)
        if header_match is not None and current_lines is not None:
            position += 1
            head_line = int(header_match.group("head_start"))
            base_remaining = _hunk_count(header_match.group("base_count"))
            head_remaining = _hunk_count(header_match.group("head_count"))
            continue

        if base_remaining > 0 or head_remaining > 0:
            position += 1
            if line.startswith("+"):
                current_lines[head_line] = position
                head_line += 1
                head_remaining -= 1
            elif line.startswith("-"):
                base_remaining -= 1
            elif line.startswith("\\"):
                continue
            else:
                # Context line; some tools strip the single space of empty ones.
                current_lines[head_line] = position
                head_line += 1
                base_remaining -= 1
                head_remaining -= 1
            continue

        if line.startswith("--- "):
            token = line[4:]
            old_path = None if token.strip() == DEV_NULL_PATH else _strip_path_prefix(token, "a/")
            current_lines = None
            position = -1
            continue

        if line.startswith("+++ "):
            token = line[4:]
            path = old_path if token.strip() == DEV_NULL_PATH else _strip_path_prefix(token, "b/")
            if path is not None:
                current_lines = index.setdefault(path, {})
            continue

        if line.startswith("\\") and current_lines is not None and position >= 0:
            position += 1

    return index
