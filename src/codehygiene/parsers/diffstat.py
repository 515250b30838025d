"""Parsers for git diff output: line counts and changed-path rankings."""

from __future__ import annotations

import posixpath
from collections import Counter

from codehygiene.core.result import DiffStats, DirectoryStats, ExtensionStats

NO_EXTENSION = "(no extension)"
ROOT_DIRECTORY = "(root)"

# Marker git prints instead of a line count for binary files
_BINARY = "-"


def parse_name_list(text: str) -> list[str]:
    """Split `git diff --name-only` output into paths.

    With -z the records are NUL-terminated and taken verbatim, so
    unusual names are not C-quoted; otherwise one path per line.
    """
    if "\0" in text:
        return [path for path in text.split("\0") if path]
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_numstat(text: str) -> DiffStats:
    """Sum `git diff --numstat` records.

    Each record is `added<TAB>deleted<TAB>path`. A binary file shows
    `-` for both counts: it still counts as a changed file but adds
    no lines. Lines that do not look like a record are ignored.

    >>> parse_numstat("12\\t3\\tfoo.ts\\n-\\t-\\timg.png\\n")
    DiffStats(files_changed=2, lines_added=12, lines_deleted=3)
    """
    files = added = deleted = 0
    for line in text.splitlines():
        fields = line.split("\t", 2)
        if len(fields) < 3 or not fields[2]:
            continue

        added_field, deleted_field = fields[0].strip(), fields[1].strip()
        if added_field == _BINARY:
            files += 1
            continue
        if not (added_field.isdigit() and deleted_field.isdigit()):
            continue

        files += 1
        added += int(added_field)
        deleted += int(deleted_field)

    return DiffStats(
        files_changed=files, lines_added=added, lines_deleted=deleted
    )


def _ranked(counts: Counter, limit: int) -> list[tuple[str, int]]:
    # Highest count first; name breaks ties so output is stable
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]


def top_extensions(paths: list[str], limit: int = 5) -> list[ExtensionStats]:
    """Most frequent file extensions among paths (without the dot)."""
    counts = Counter()
    for path in paths:
        extension = posixpath.splitext(posixpath.basename(path))[1]
        counts[extension[1:] or NO_EXTENSION] += 1

    return [
        ExtensionStats(extension=name, count=count)
        for name, count in _ranked(counts, limit)
    ]


def top_directories(paths: list[str], limit: int = 5) -> list[DirectoryStats]:
    """Most frequent top-level directories among paths."""
    counts = Counter()
    for path in paths:
        head, sep, _ = path.strip("/").partition("/")
        counts[head if sep else ROOT_DIRECTORY] += 1

    return [
        DirectoryStats(directory=name, count=count)
        for name, count in _ranked(counts, limit)
    ]
