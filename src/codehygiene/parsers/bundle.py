"""Blob size listings and the per-folder size comparison."""

from __future__ import annotations

import re

from codehygiene.core.result import BundleFolderComparison, FileSizeComparison

# "<mode> <type> <object> <size>\t<path>"; submodules print "-" as size
_LS_TREE = re.compile(r"\d+ \w+ \w+\s+(\d+)\t(.+)", re.DOTALL)


def parse_ls_tree(text: str) -> dict[str, int]:
    """Map path to blob size from `git ls-tree -r -l` output.

    Accepts NUL-terminated records (-z) or one record per line.
    """
    records = text.split("\0") if "\0" in text else text.splitlines()
    sizes = {}
    for record in records:
        match = _LS_TREE.fullmatch(record)
        if match:
            sizes[match.group(2)] = int(match.group(1))
    return sizes


def _in_folder(path: str, prefix: str) -> bool:
    return not prefix or path.startswith(prefix)


def compare_folder_sizes(
    folder: str,
    main_sizes: dict[str, int],
    preview_sizes: dict[str, int],
) -> BundleFolderComparison:
    """Compare blob sizes below folder between two trees.

    A path only in preview_sizes is added, only in main_sizes is
    removed, in both with different sizes modified, else unchanged.
    Totals include every path; the file list omits unchanged ones.
    Listed paths are relative to folder, largest change first.
    """
    folder = folder.strip("/")
    prefix = f"{folder}/" if folder else ""

    paths = {p for p in main_sizes if _in_folder(p, prefix)}
    paths |= {p for p in preview_sizes if _in_folder(p, prefix)}

    main_total = preview_total = 0
    files = []
    for path in sorted(paths):
        in_main, in_preview = path in main_sizes, path in preview_sizes
        main_size = main_sizes.get(path, 0)
        preview_size = preview_sizes.get(path, 0)
        main_total += main_size
        preview_total += preview_size

        if not in_main:
            status = "added"
        elif not in_preview:
            status = "removed"
        elif main_size != preview_size:
            status = "modified"
        else:
            continue

        files.append(FileSizeComparison(
            path=path[len(prefix):],
            main_size=main_size,
            preview_size=preview_size,
            diff=preview_size - main_size,
            status=status,
        ))

    files.sort(key=lambda f: (-abs(f.diff), f.path))
    return BundleFolderComparison(
        folder=folder,
        main_total_bytes=main_total,
        preview_total_bytes=preview_total,
        total_diff_bytes=preview_total - main_total,
        files_changed=len(files),
        files=files,
    )
