"""Recursive file discovery helpers."""

from __future__ import annotations

import os


def get_dir_all_file_paths(dirname: str, prefix: str, suffix: str) -> list[str]:
    """Return every file below ``dirname`` whose path matches ``prefix`` and ``suffix``.

    Entries are visited in name order, descending into sub-directories as they
    are met. An empty ``prefix`` or ``suffix`` matches everything. Errors while
    reading a directory propagate as ``OSError``.
    """
    dirname = dirname.removesuffix(os.sep) if dirname != os.sep else dirname
    with os.scandir(dirname) as iterator:
        entries = sorted(iterator, key=lambda entry: entry.name)

    paths: list[str] = []
    for entry in entries:
        path = os.path.join(dirname, entry.name)
        if entry.is_dir(follow_symlinks=False):
            paths.extend(get_dir_all_file_paths(path, prefix, suffix))
            continue
        if suffix and not path.endswith(suffix):
            continue
        if prefix and not path.startswith(prefix):
            continue
        paths.append(path)
    return paths