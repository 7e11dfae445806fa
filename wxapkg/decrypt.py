"""Decryption of mini program packages and app id discovery."""

from __future__ import annotations

import hashlib
import os
import re
import sys
from functools import lru_cache

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from wxapkg.console import console

FIRST_MARK = 0xBE
LAST_MARK = 0xED
ENCRYPTED_MAGIC = b"V1MMWX"

_SALT = b"saltiest"
_IV = b"the iv: 16 bytes"
_ITERATIONS = 1000
_KEY_LENGTH = 32
_HEADER_LENGTH = len(ENCRYPTED_MAGIC)
_BLOCK_LENGTH = 1024
_DEFAULT_XOR_KEY = 0x66
_MIN_FILE_SIZE = 50

_APP_ID = re.compile(r"(wx[0-9a-f]{16})")


@lru_cache(maxsize=64)
def _derive_key(wxid: str) -> bytes:
    return hashlib.pbkdf2_hmac("sha1", wxid.encode("utf-8"), _SALT, _ITERATIONS, _KEY_LENGTH)


def _xor_key(wxid: str) -> int:
    raw = wxid.encode("utf-8")
    return raw[-2] if len(raw) >= 2 else _DEFAULT_XOR_KEY


def _cipher(wxid: str) -> Cipher:
    return Cipher(algorithms.AES(_derive_key(wxid)), modes.CBC(_IV))


def standard_decrypt(wxid: str, data: bytes) -> bytes:
    """Decrypt a package in the usual encrypted layout.

    Data too short to hold the header and the encrypted block is returned
    unchanged.
    """
    if len(data) < _HEADER_LENGTH + _BLOCK_LENGTH:
        return data
    decryptor = _cipher(wxid).decryptor()
    head_end = _HEADER_LENGTH + _BLOCK_LENGTH
    head = decryptor.update(data[_HEADER_LENGTH:head_end]) + decryptor.finalize()
    key = _xor_key(wxid)
    tail = bytes(byte ^ key for byte in data[head_end:])
    return head[: _BLOCK_LENGTH - 1] + tail


def encrypt_package(wxid: str, data: bytes) -> bytes:
    """Encrypt ``data`` into the layout that :func:`standard_decrypt` reads.

    Raises ``ValueError`` when ``data`` is shorter than 1023 bytes.
    """
    plain_head = _BLOCK_LENGTH - 1
    if len(data) < plain_head:
        raise ValueError(f"package data must be at least {plain_head} bytes, got {len(data)}")
    encryptor = _cipher(wxid).encryptor()
    head = encryptor.update(data[:plain_head] + b"\x01") + encryptor.finalize()
    key = _xor_key(wxid)
    tail = bytes(byte ^ key for byte in data[plain_head:])
    return ENCRYPTED_MAGIC + head + tail


def _has_markers(data: bytes, start: int = 0, last: int = 1) -> bool:
    return (
        len(data) > start + last
        and data[start] == FIRST_MARK
        and data[start + last] == LAST_MARK
    )


def decrypt_data(wxid: str, data: bytes) -> bytes:
    """Return the plain package held in ``data``, decrypting it when needed.

    Raises ``ValueError`` when the data is too small to be a package. When no
    known layout is recognised the data is returned as it is.
    """
    if len(data) < _MIN_FILE_SIZE:
        raise ValueError(f"file is too small to be a valid wxapkg file ({len(data)} bytes)")

    if _has_markers(data):
        console.print("File appears to already be in wxapkg format (BE ED markers found)", style="cyan")
        return data

    origin = standard_decrypt(wxid, data)
    if _has_markers(origin):
        console.print("Standard decryption succeeded, found BE ED markers", style="cyan")
        return origin

    console.print("Standard decryption didn't produce valid markers, trying other layouts", style="cyan")
    if _has_markers(data, 0, 5):
        console.print("File appears to be in BE...ED format (not encrypted)", style="cyan")
        return data

    for offset in range(1, 7):
        if _has_markers(data, offset, 5):
            console.print(f"Found BE...ED markers at offset {offset}", style="cyan")
            return data[offset:]

    console.print("Warning: couldn't find valid BE...ED markers in the file", style="yellow")
    return data


def decrypt_file(wxid: str, path: str | os.PathLike) -> bytes:
    """Read the package at ``path`` and return its plain contents."""
    console.print(f"Decrypting file: {os.fspath(path)} with wxid: {wxid}", style="cyan", markup=False)
    with open(path, "rb") as handle:
        data = handle.read()
    console.print(f"File size: {len(data)} bytes", style="cyan")
    return decrypt_data(wxid, data)


def _base(path: str) -> str:
    return os.path.basename(os.path.normpath(path)) if path else "."


def _parent(path: str) -> str:
    if not path:
        return "."
    return os.path.dirname(os.path.normpath(path)) or "."


def parse_wxid(root: str, platform: str | None = None) -> str:
    """Find the mini program app id in ``root``, its parent or, on macOS, anywhere in it.

    Raises ``ValueError`` when no app id is found.
    """
    platform = sys.platform if platform is None else platform
    for candidate in (_base(root), _base(_parent(root))):
        match = _APP_ID.search(candidate)
        if match:
            return match.group(1)
    if platform == "darwin":
        match = _APP_ID.search(root)
        if match:
            return match.group(1)
    raise ValueError("the path is not a mini program path (wxid not found)")