"""Lookup of mini program details by app id, with an on-disk cache."""

from __future__ import annotations

import json
import os
import random
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

CACHE_PATH = "wxid.json"
ENDPOINT_ENV = "WXAPKG_INFO_ENDPOINT"

_JSON_FIELDS = ("nickname", "username", "description", "avatar", "uses_count", "principal_name")
_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/114.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64; rv:114.0) Gecko/20100101 Firefox/114.0",
)


@dataclass
class WxidInfo:
    """Details of one mini program; ``wxid``, ``location`` and ``error`` are local only."""

    nickname: str = ""
    username: str = ""
    description: str = ""
    avatar: str = ""
    uses_count: str = ""
    principal_name: str = ""
    wxid: str = ""
    location: str = ""
    error: str = ""

    def _as_dict(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in _JSON_FIELDS}

    def to_json(self) -> str:
        """Return the published fields as indented JSON."""
        return json.dumps(self._as_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping) -> WxidInfo:
        """Build an instance from a JSON object; missing or null fields stay empty."""
        if not isinstance(data, Mapping):
            raise TypeError(f"expected a JSON object, not {type(data).__name__}")
        values = {name: data[name] for name in _JSON_FIELDS if data.get(name) is not None}
        for name, value in values.items():
            if not isinstance(value, str):
                raise TypeError(f"field {name!r} must be a string, not {type(value).__name__}")
        return cls(**values)


class WxidQuery:
    """Queries mini program details, caching answers in a JSON file."""

    def __init__(self, cache_path: str | os.PathLike = CACHE_PATH, endpoint: str | None = None) -> None:
        self.cache_path = Path(cache_path)
        self.endpoint = endpoint if endpoint is not None else os.environ.get(ENDPOINT_ENV)
        self.cache: dict[str, WxidInfo] = {}
        self.load_cache()

    def load_cache(self) -> None:
        """Read the cache file; a missing or malformed file leaves the cache as it is."""
        try:
            raw = json.loads(self.cache_path.read_bytes())
            self.cache = {wxid: WxidInfo.from_dict(item) for wxid, item in raw.items()}
        except (OSError, ValueError, TypeError, AttributeError):
            return

    def save_cache(self) -> None:
        """Write the cache file; failures to write are ignored."""
        payload = {wxid: info._as_dict() for wxid, info in sorted(self.cache.items())}
        try:
            descriptor = os.open(self.cache_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(payload, indent=2, ensure_ascii=False))
        except OSError:
            pass

    def query(self, wxid: str) -> WxidInfo:
        """Return the details for ``wxid`` from the cache or the endpoint.

        Raises ``LookupError`` without an endpoint, ``RuntimeError`` when the
        service reports a failure, ``OSError``/``ValueError`` on transport or
        decoding problems.
        """
        if wxid in self.cache:
            return replace(self.cache[wxid])
        if not self.endpoint:
            raise LookupError(f"no information endpoint configured (set {ENDPOINT_ENV})")
        request = urllib.request.Request(
            self.endpoint,
            data=json.dumps({"appid": wxid}).encode("utf-8"),
            method="POST",
            headers={
                "User-Agent": random.choice(_USER_AGENTS),
                "Content-Type": "application/json;charset=utf-8",
            },
        )
        with urllib.request.urlopen(request, timeout=30) as response:
            payload = json.loads(response.read())
        if not isinstance(payload, dict):
            raise ValueError("unexpected response from information endpoint")
        if payload.get("code", 0) != 0:
            raise RuntimeError(str(payload.get("errors") or ""))
        info = WxidInfo.from_dict(payload.get("data") or {})
        self.cache[wxid] = info
        self.save_cache()
        return replace(info)