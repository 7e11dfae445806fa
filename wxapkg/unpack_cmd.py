"""The unpack command: find packages of a mini program, decrypt and extract them."""

from __future__ import annotations

import os
from collections import Counter

from wxapkg.console import console
from wxapkg.decrypt import decrypt_file, parse_wxid
from wxapkg.extract import unpack
from wxapkg.files import get_dir_all_file_paths

APP_FILE = "__APP__.wxapkg"
PACKAGE_SUFFIX = ".wxapkg"
_DS_STORE = ".DS_Store"


def _say(text: str, style: str) -> None:
    console.print(text, style=style, markup=False, highlight=False)


def _is_file(path: str) -> bool:
    return os.path.exists(path)


def scan_files(root: str | os.PathLike) -> list[str]:
    """Return the package files under ``root``.

    All ``.wxapkg`` files below it are taken; failing that, the app package of
    each sub-directory. Raises ``FileNotFoundError`` when none is found and
    ``OSError`` when ``root`` cannot be read.
    """
    root = os.fspath(root)
    try:
        paths = get_dir_all_file_paths(root, "", PACKAGE_SUFFIX)
    except OSError:
        paths = []
    if paths:
        return paths

    result = []
    for name in sorted(os.listdir(root)):
        if name == _DS_STORE or not os.path.isdir(os.path.join(root, name)):
            continue
        candidate = os.path.join(root, name, APP_FILE)
        if _is_file(candidate):
            result.append(candidate)
    if not result:
        raise FileNotFoundError(f"no '{PACKAGE_SUFFIX}' file found in '{root}'")
    return result


def find_package_files(sub_dir: str | os.PathLike) -> list[str]:
    """Return the packages of one version directory; an empty list when there are none."""
    sub_dir = os.fspath(sub_dir)
    direct = os.path.join(sub_dir, APP_FILE)
    if _is_file(direct):
        return [direct]

    try:
        found = get_dir_all_file_paths(sub_dir, "", PACKAGE_SUFFIX)
    except OSError:
        found = []
    if found:
        return found

    try:
        names = sorted(os.listdir(sub_dir))
    except OSError:
        return []
    files = []
    for name in names:
        deeper = os.path.join(sub_dir, name)
        if not os.path.isdir(deeper):
            continue
        candidate = os.path.join(deeper, APP_FILE)
        if _is_file(candidate):
            files.append(candidate)
    return files


def _print_statistics(stats: Counter) -> None:
    _say("[+] extension statistics:", "cyan")
    for ext, count in sorted(stats.items(), key=lambda item: (-item[1], item[0])):
        _say(f"  - {ext:<5} {count:5d}", "cyan")


def run_unpack(
    root: str | os.PathLike,
    output: str | os.PathLike = "unpack",
    threads: int = 30,
    beautify: bool = True,
) -> int:
    """Decrypt and extract the mini program at ``root`` into ``output``.

    ``root`` is either a version directory holding the app package, or the
    mini program directory holding version directories. Returns the number of
    files written. Raises ``ValueError`` when no app id is found in the path
    and ``OSError`` when ``root`` cannot be read.
    """
    root = os.fspath(root)
    output = os.fspath(output)
    stats: Counter = Counter()

    app_path = os.path.join(root, APP_FILE)
    if _is_file(app_path):
        _say(f"[+] Found {APP_FILE} directly in specified path", "cyan")
        parent = os.path.basename(os.path.dirname(os.path.normpath(root)))
        wxid = parse_wxid(parent)
        data = decrypt_file(wxid, app_path)
        count = unpack(data, output, threads, beautify, stats)
        _say(f"[+] Unpacked {count} files from '{app_path}'", "yellow")
        _say(f"[+] All {count} files saved to '{output}'", "cyan")
        return count

    wxid = parse_wxid(root)
    names = sorted(os.listdir(root))
    _say(f"[+] unpack root '{root}' with {threads} threads", "cyan")

    total = 0
    for name in names:
        if name == _DS_STORE:
            continue
        sub_output = os.path.join(output, name)
        for file in find_package_files(os.path.join(root, name)):
            try:
                data = decrypt_file(wxid, file)
                count = unpack(data, sub_output, threads, beautify, stats)
            except (OSError, ValueError) as error:
                _say(f"\r[!] {error}", "red")
                continue
            total += count
            rel = os.path.relpath(file, os.path.dirname(os.path.normpath(root)))
            _say(f"\r[+] unpacked {count:5d} files from '{rel}'", "yellow")

    _say(f"[+] all {total} files saved to '{output}'", "cyan")
    _print_statistics(stats)
    return total