"""Extraction of the files held in a decrypted package."""

from __future__ import annotations

import os
import threading
from collections.abc import Iterable, MutableMapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from wxapkg.archive import Entry, FormatError, parse_macos, parse_standard
from wxapkg.beautify import pretty_html, pretty_javascript, pretty_json
from wxapkg.console import console

_BEAUTIFIERS = {".json": pretty_json, ".html": pretty_html, ".js": pretty_javascript}
_stats_lock = threading.Lock()


@dataclass
class ExtractResult:
    """How many files were written, and the problems met on the way."""

    count: int = 0
    errors: list[str] = field(default_factory=list)


def _say(text: str, style: str, end: str = "\n") -> None:
    console.print(text, style=style, markup=False, end=end)


def file_beautify(name: str, data: bytes, stats: MutableMapping[str, int] | None = None) -> bytes:
    """Pretty-print ``data`` by the extension of ``name``, counting it in ``stats``.

    Unknown kinds, and data a formatter fails on, are returned unchanged.
    """
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    dot = base.rfind(".")
    ext = base[dot:] if dot >= 0 else ""
    if stats is not None:
        with _stats_lock:
            stats[ext] = stats.get(ext, 0) + 1
    formatter = _BEAUTIFIERS.get(ext)
    if formatter is None:
        return data
    try:
        return formatter(data)
    except Exception:
        return data


def extract_files(
    entries: Iterable[Entry],
    data: bytes,
    unpack_root: str | os.PathLike,
    threads: int = 30,
    beautify: bool = True,
    stats: MutableMapping[str, int] | None = None,
) -> ExtractResult:
    """Write every entry's bytes below ``unpack_root`` with ``threads`` workers.

    Entries outside ``data`` are skipped with a warning. Raises ``ValueError``
    when ``threads`` is less than one.
    """
    if threads < 1:
        raise ValueError(f"thread number must be at least 1, got {threads}")
    root = os.fspath(unpack_root)
    entries = list(entries)
    length = len(data)
    valid = []
    for entry in entries:
        if entry.offset < length and entry.offset + entry.size <= length:
            valid.append(entry)
        else:
            _say(
                f"Warning: File {entry.name} has invalid bounds "
                f"(offset={entry.offset}, size={entry.size}, data_len={length})",
                "red",
            )

    result = ExtractResult()
    lock = threading.Lock()

    def work(entry: Entry) -> None:
        path = os.path.normpath(os.path.join(root, entry.name.lstrip("/" + os.sep)))
        directory = os.path.dirname(path)
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as error:
            with lock:
                result.errors.append(f"Failed to create directory {directory}: {error}")
            return
        body = data[entry.offset : entry.offset + entry.size]
        if beautify:
            body = file_beautify(path, body, stats)
        try:
            descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(descriptor, "wb") as handle:
                handle.write(body)
        except OSError as error:
            with lock:
                result.errors.append(f"Failed to write file {path}: {error}")
            return
        with lock:
            result.count += 1
            _say(f"\runpack {result.count}/{len(entries)}", "green", end="")

    with ThreadPoolExecutor(max_workers=threads) as pool:
        list(pool.map(work, valid))

    if result.errors:
        _say(f"\nEncountered {len(result.errors)} errors during unpacking:", "yellow")
        for message in result.errors[:5]:
            _say(f"  - {message}", "yellow")
        if len(result.errors) > 5:
            _say(f"  - ... and {len(result.errors) - 5} more errors", "yellow")
    return result


def unpack(
    data: bytes,
    unpack_root: str | os.PathLike,
    threads: int = 30,
    beautify: bool = True,
    stats: MutableMapping[str, int] | None = None,
) -> int:
    """Extract the package in ``data`` below ``unpack_root`` and return the file count.

    Raises ``ValueError`` for missing or tiny data and ``FormatError`` when
    neither the standard nor the alternative layout is recognised.
    """
    if not data or len(data) < 10:
        raise ValueError("invalid decrypted data (nil or too small)")
    if len(data) >= 20:
        _say(f"First 20 bytes: {data[:20].hex(' ')}", "cyan")

    attempts = (
        ("standard wxapkg format parsing", "Standard", lambda: (0, parse_standard(data))),
        ("macOS alternative formats", "macOS", lambda: parse_macos(data)),
    )
    for label, name, parse in attempts:
        _say(f"Trying {label}...", "cyan")
        try:
            start, entries = parse()
        except FormatError as error:
            _say(f"{name} format failed: {error}", "yellow")
            continue
        _say(f"Found {name} format at offset {start} with {len(entries)} files", "green")
        for index, entry in enumerate(entries[:3]):
            _say(f"File {index}: name={entry.name}, offset={entry.offset}, size={entry.size}", "cyan")
        os.makedirs(unpack_root, exist_ok=True)
        return extract_files(entries, data[start:], unpack_root, threads, beautify, stats).count

    raise FormatError("could not identify a valid wxapkg structure in the file")