"""Unit tests for unified diff position indexing."""

from __future__ import annotations

import pytest
from fl_publisher.diff_index import parse_diff_index

MODIFIED_FILE_DIFF = "\n".join(
    [
        "diff --git a/src/a/b/C.java b/src/a/b/C.java",
        "index 1111111..2222222 100644",
        "--- a/src/a/b/C.java",
        "+++ b/src/a/b/C.java",
        "@@ -8,3 +8,4 @@ public class C {",
        "     int x;",
        "-    int y;",
        "+    int y = 1;",
        "+    int z;",
        "     int w;",
        "@@ -30,2 +31,2 @@",
        "-old",
        "+new",
        " ctx",
    ]
)

DELETED_FILE_DIFF = "\n".join(
    [
        "diff --git a/src/Old.java b/src/Old.java",
        "deleted file mode 100644",
        "index 3333333..0000000",
        "--- a/src/Old.java",
        "+++ /dev/null",
        "@@ -1,2 +0,0 @@",
        "-a",
        "-b",
    ]
)

ADDED_FILE_DIFF = "\n".join(
    [
        "diff --git a/src/New.java b/src/New.java",
        "new file mode 100644",
        "index 0000000..4444444",
        "--- /dev/null",
        "+++ b/src/New.java",
        "@@ -0,0 +1,3 @@",
        "+one",
        "+two",
        "+three",
        "\\ No newline at end of file",
    ]
)


@pytest.mark.unit
def test_parse_diff_index_maps_head_lines_to_positions() -> None:
    index = parse_diff_index(MODIFIED_FILE_DIFF)

    assert index == {"src/a/b/C.java": {8: 1, 9: 3, 10: 4, 11: 5, 31: 8, 32: 9}}


@pytest.mark.unit
def test_parse_diff_index_keeps_file_order_and_resets_positions() -> None:
    index = parse_diff_index("\n".join([ADDED_FILE_DIFF, MODIFIED_FILE_DIFF]))

    assert list(index) == ["src/New.java", "src/a/b/C.java"]
    assert index["src/New.java"] == {1: 1, 2: 2, 3: 3}
    assert index["src/a/b/C.java"][8] == 1


@pytest.mark.unit
def test_parse_diff_index_records_deleted_file_without_lines() -> None:
    index = parse_diff_index("\n".join([DELETED_FILE_DIFF, ADDED_FILE_DIFF]))

    assert index["src/Old.java"] == {}
    assert index["src/New.java"] == {1: 1, 2: 2, 3: 3}


@pytest.mark.unit
def test_parse_diff_index_ignores_removed_lines_that_look_like_headers() -> None:
    diff = "\n".join(
        [
            "diff --git a/notes.md b/notes.md",
            "--- a/notes.md",
            "+++ b/notes.md",
            "@@ -1,2 +1,1 @@",
            "--- a/ruler",
            " kept",
        ]
    )

    assert parse_diff_index(diff) == {"notes.md": {1: 2}}


@pytest.mark.unit
def test_parse_diff_index_splits_plain_unified_diff_into_files() -> None:
    diff = "\n".join(
        [
            "--- a/one.txt",
            "+++ b/one.txt",
            "@@ -1,1 +1,1 @@",
            "-x",
            "+y",
            "--- a/two.txt",
            "+++ b/two.txt",
            "@@ -5,1 +5,2 @@",
            " keep",
            "+added",
        ]
    )

    assert parse_diff_index(diff) == {"one.txt": {1: 2}, "two.txt": {5: 1, 6: 2}}


@pytest.mark.unit
def test_parse_diff_index_counts_no_newline_marker_inside_hunk() -> None:
    diff = "\n".join(
        [
            "diff --git a/a.txt b/a.txt",
            "--- a/a.txt",
            "+++ b/a.txt",
            "@@ -1 +1 @@",
            "-old",
            "\\ No newline at end of file",
            "+new",
        ]
    )

    assert parse_diff_index(diff) == {"a.txt": {1: 3}}


@pytest.mark.unit
def test_parse_diff_index_skips_binary_files() -> None:
    diff = "\n".join(
        [
            "diff --git a/assets/logo.png b/assets/logo.png",
            "index 5555555..6666666 100644",
            "Binary files a/assets/logo.png and b/assets/logo.png differ",
        ]
    )

    assert parse_diff_index(diff) == {}


@pytest.mark.unit
def test_parse_diff_index_returns_empty_for_empty_diff() -> None:
    assert parse_diff_index("") == {}
    assert parse_diff_index("\n\n") == {}
