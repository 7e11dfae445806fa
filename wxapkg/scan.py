"""The scan command: list installed mini programs and unpack the one chosen."""

from __future__ import annotations

import os
import re
import sys

from wxapkg.console import console
from wxapkg.decrypt import decrypt_file
from wxapkg.extract import unpack
from wxapkg.scan_tui import ScanTui
from wxapkg.unpack_cmd import APP_FILE
from wxapkg.wxid import WxidInfo, WxidQuery

DETAIL_FILE = "detail.json"

_APP_ID = re.compile(r"(wx[0-9a-f]{16})")
_QUERY_ERRORS = (OSError, ValueError, RuntimeError, LookupError, TypeError)


def default_root(platform: str | None = None) -> str:
    """Return the directory where the client keeps mini programs on ``platform``."""
    if (sys.platform if platform is None else platform) == "darwin":
        parts = ("Library", "Containers", "com.tencent.xinWeChat", "Data", ".wxapplet", "packages")
    else:
        parts = ("Documents", "WeChat Files", "Applet")
    return os.path.join(os.path.expanduser("~"), *parts)


def _version_dirs(directory: str) -> list[str]:
    return [
        os.path.join(directory, name)
        for name in sorted(os.listdir(directory))
        if name != ".DS_Store" and os.path.isdir(os.path.join(directory, name))
    ]


def find_mini_program_dirs(root: str | os.PathLike, platform: str | None = None) -> list[str]:
    """Return the names of the entries of ``root`` that may be mini programs.

    On macOS only directories with a version directory holding an app package
    are kept. Raises ``OSError`` when ``root`` cannot be read.
    """
    root = os.fspath(root)
    names = sorted(os.listdir(root))
    if (sys.platform if platform is None else platform) != "darwin":
        return names
    kept = []
    for name in names:
        path = os.path.join(root, name)
        if name == ".DS_Store" or not os.path.isdir(path):
            continue
        try:
            if any(os.path.exists(os.path.join(sub, APP_FILE)) for sub in _version_dirs(path)):
                kept.append(name)
        except OSError:
            continue
    return kept


def collect_wxid_infos(root: str | os.PathLike, query, platform: str | None = None) -> list[WxidInfo]:
    """Look up every mini program directory below ``root`` with ``query``.

    A failed lookup yields an entry whose ``error`` holds the reason.
    """
    root = os.fspath(root)
    infos = []
    for name in find_mini_program_dirs(root, platform):
        match = _APP_ID.search(name)
        if name == ".DS_Store" or match is None or not os.path.isdir(os.path.join(root, name)):
            continue
        try:
            info = query.query(match.group(1))
        except _QUERY_ERRORS as error:
            info = WxidInfo(error=str(error))
        info.location = os.path.join(root, name)
        info.wxid = match.group(1)
        infos.append(info)
    return infos


def find_app_package(app_dir: str | os.PathLike) -> str:
    """Return the app package in the first version directory holding one.

    Raises ``FileNotFoundError`` when there is none.
    """
    app_dir = os.fspath(app_dir)
    for sub in _version_dirs(app_dir):
        candidate = os.path.join(sub, APP_FILE)
        if os.path.exists(candidate):
            return candidate
    raise FileNotFoundError(f"Could not find {APP_FILE} in any subdirectory of {app_dir}")


def run_scan(
    root: str | os.PathLike | None = None,
    beautify: bool = True,
    query: WxidQuery | None = None,
) -> int | None:
    """List the mini programs under ``root``, let the user pick one and unpack it.

    Returns the number of files written, or ``None`` when nothing was chosen.
    """
    root = default_root() if root is None else os.fspath(root)
    selected = ScanTui(collect_wxid_infos(root, query or WxidQuery())).run()
    if selected is None:
        return None

    output = selected.wxid
    package = find_app_package(selected.location)
    console.print(f"Found wxapkg file: {package}", style="cyan", markup=False)
    count = unpack(decrypt_file(selected.wxid, package), output, 30, beautify)
    console.print(f"Unpacked {count} files to {output}", style="yellow", markup=False)

    detail_path = os.path.join(output, DETAIL_FILE)
    try:
        descriptor = os.open(detail_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
            handle.write(selected.to_json())
    except OSError:
        pass
    console.print(f"Saved detail info to {detail_path}", style="cyan", markup=False)
    return count