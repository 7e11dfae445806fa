"""Reading and writing of the package index."""

from __future__ import annotations

import struct
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

FIRST_MARK = 0xBE
LAST_MARK = 0xED

_MAX_FILES = 10000
_MAX_NAME_STANDARD = 10 << 20
_MAX_NAME_MACOS = 1000
_MACOS_SCAN = 20
_MACOS_HEADER = 6
_VALID_EXTENSIONS = (".js", ".json", ".html", ".css", ".wxml", ".wxss")


class FormatError(ValueError):
    """The data does not hold a package in the expected layout."""


@dataclass
class Entry:
    """One file in a package: its name, and where its bytes lie."""

    name: str
    offset: int
    size: int


class _Reader:
    def __init__(self, data: bytes, pos: int = 0) -> None:
        self._data = data
        self.pos = pos

    def read(self, length: int, what: str) -> bytes:
        chunk = self._data[self.pos : self.pos + length]
        if len(chunk) != length:
            raise FormatError(
                f"failed to read {what} (read {max(len(chunk), 0)}/{length} bytes)"
            )
        self.pos += length
        return chunk

    def u8(self, what: str) -> int:
        return self.read(1, what)[0]

    def u32(self, what: str) -> int:
        return struct.unpack(">I", self.read(4, what))[0]


def _decode_name(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def parse_standard(data: bytes) -> list[Entry]:
    """Parse the index of a package that starts with the BE/ED header.

    Raises ``FormatError`` on wrong markers, a suspicious file count or name
    length, or truncated data.
    """
    reader = _Reader(data)
    first_mark = reader.u8("first mark")
    reader.u32("info1")
    reader.u32("indexInfoLength")
    reader.u32("bodyInfoLength")
    last_mark = reader.u8("lastMark")
    if first_mark != FIRST_MARK or last_mark != LAST_MARK:
        raise FormatError(
            f"invalid wxapkg markers: 0x{first_mark:02x}, 0x{last_mark:02x} (expected 0xBE, 0xED)"
        )

    file_count = reader.u32("fileCount")
    if file_count == 0 or file_count > _MAX_FILES:
        raise FormatError(f"suspicious file count: {file_count} (too large or zero)")

    entries: list[Entry] = []
    for index in range(file_count):
        name_len = reader.u32(f"name length for file {index}")
        if name_len == 0 or name_len > _MAX_NAME_STANDARD:
            raise FormatError(f"invalid name length for file {index}: {name_len} (too large or zero)")
        name = _decode_name(reader.read(name_len, f"name for file {index}"))
        offset = reader.u32(f"offset for file {index}")
        size = reader.u32(f"size for file {index}")
        entries.append(Entry(name, offset, size))
    return entries


def is_valid_filename(name: str) -> bool:
    """Tell whether ``name`` looks like a path inside a package."""
    if not name:
        return False
    if any(ext in name for ext in _VALID_EXTENSIONS):
        return True
    return "/" in name or "\\" in name


def _parse_macos_at(data: bytes) -> list[Entry] | None:
    reader = _Reader(data, _MACOS_HEADER)
    try:
        file_count = reader.u32("fileCount")
    except FormatError:
        return None
    if file_count == 0 or file_count > _MAX_FILES:
        return None

    entries: list[Entry] = []
    try:
        for index in range(file_count):
            name_len = reader.u32("name length")
            if name_len == 0 or name_len > _MAX_NAME_MACOS:
                return None
            name = _decode_name(reader.read(name_len, "name"))
            if not is_valid_filename(name):
                return None
            offset = reader.u32("offset")
            size = reader.u32("size")
            if offset >= len(data) or offset + size > len(data):
                return None
            entries.append(Entry(name, offset, size))
    except FormatError:
        return None
    return entries


def parse_macos(data: bytes) -> tuple[int, list[Entry]]:
    """Look for an index in the alternative layout within the first bytes of ``data``.

    Returns the start offset found and the entries, whose offsets are relative
    to that start. Raises ``FormatError`` when nothing usable is found.
    """
    if len(data) < _MACOS_SCAN:
        raise FormatError("file too small for alternative format")
    for start in range(_MACOS_SCAN):
        if start + _MACOS_HEADER >= len(data):
            break
        entries = _parse_macos_at(data[start:])
        if entries is not None:
            return start, entries
    raise FormatError("no valid macOS wxapkg format found")


def build_package(files: Mapping[str, bytes] | Iterable[tuple[str, bytes]]) -> bytes:
    """Build a package with the BE/ED header holding ``files`` in the given order."""
    items = list(files.items()) if isinstance(files, Mapping) else list(files)
    encoded = [(name.encode("utf-8"), bytes(body)) for name, body in items]

    index_length = 4 + sum(12 + len(name) for name, _ in encoded)
    body_length = sum(len(body) for _, body in encoded)
    header_length = 14

    index = bytearray(struct.pack(">I", len(encoded)))
    offset = header_length + index_length
    for name, body in encoded:
        index += struct.pack(">I", len(name)) + name + struct.pack(">II", offset, len(body))
        offset += len(body)

    header = struct.pack(">BIIIB", FIRST_MARK, 0, index_length, body_length, LAST_MARK)
    return header + bytes(index) + b"".join(body for _, body in encoded)