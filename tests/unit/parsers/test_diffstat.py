"""Tests for git diff parsing and changed-path rankings."""

from codehygiene.core.result import DiffStats
from codehygiene.parsers.diffstat import (
    NO_EXTENSION,
    ROOT_DIRECTORY,
    parse_name_list,
    parse_numstat,
    top_directories,
    top_extensions,
)


def test_numstat_counts_binary_files_without_lines():
    stats = parse_numstat("12\t3\tfoo.ts\n-\t-\timg.png\n")

    assert stats == DiffStats(files_changed=2, lines_added=12, lines_deleted=3)


def test_numstat_handles_renames_and_noise():
    text = (
        "warning: something unrelated\n"
        "5\t0\tsrc/{old => new}.ts\n"
        "\n"
        "1\t1\tREADME.md\n"
    )

    stats = parse_numstat(text)

    assert stats.files_changed == 2
    assert stats.lines_added == 6
    assert stats.lines_deleted == 1


def test_numstat_empty():
    assert parse_numstat("") == DiffStats()


def test_name_list_strips_blank_lines():
    assert parse_name_list("a.ts\n\n  b/c.ts \n") == ["a.ts", "b/c.ts"]


def test_top_extensions_ranked_with_stable_ties():
    paths = ["a.ts", "b.ts", "c.js", "Makefile", "d/.gitignore", "e.test.ts"]

    ranked = top_extensions(paths, limit=3)

    assert [(e.extension, e.count) for e in ranked] == [
        ("ts", 3),
        (NO_EXTENSION, 2),
        ("js", 1),
    ]


def test_top_directories_groups_root_files():
    paths = ["src/a.ts", "src/b/c.ts", "docs/x.md", "README.md", "LICENSE"]

    ranked = top_directories(paths)

    assert [(d.directory, d.count) for d in ranked] == [
        (ROOT_DIRECTORY, 2),
        ("src", 2),
        ("docs", 1),
    ]


def test_rankings_respect_limit():
    paths = [f"dir{i}/file.ext{i}" for i in range(8)]

    assert len(top_extensions(paths, limit=5)) == 5
    assert len(top_directories(paths, limit=2)) == 2


def test_parse_nul_terminated_name_list():
    assert parse_name_list("src/é.ts\0 padded.ts\0") == [
        "src/é.ts", " padded.ts",
    ]
