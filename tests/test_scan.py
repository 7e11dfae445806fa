import io
import json
import os
import sys

import pytest

from wxapkg.archive import build_package
from wxapkg.scan import (
    DETAIL_FILE,
    collect_wxid_infos,
    default_root,
    find_app_package,
    find_mini_program_dirs,
    run_scan,
)
from wxapkg.unpack_cmd import APP_FILE
from wxapkg.wxid import WxidQuery

KNOWN = "wx0123456789abcdef"
UNKNOWN = "wxfedcba9876543210"


def _query(tmp_path, entries):
    cache = tmp_path / "cache.json"
    cache.write_text(json.dumps(entries), encoding="utf-8")
    return WxidQuery(cache_path=cache, endpoint="")


def test_default_root_macos():
    expected = os.path.join(
        os.path.expanduser("~"),
        "Library", "Containers", "com.tencent.xinWeChat", "Data", ".wxapplet", "packages",
    )
    assert default_root("darwin") == expected


def test_default_root_other_platforms():
    expected = os.path.join(os.path.expanduser("~"), "Documents", "WeChat Files", "Applet")
    assert default_root("win32") == expected


def test_find_dirs_lists_everything_off_macos(tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "a.txt").write_text("x")
    (tmp_path / ".DS_Store").write_text("x")
    assert find_mini_program_dirs(tmp_path, "linux") == sorted([".DS_Store", "a.txt", "b"])


def test_find_dirs_on_macos_keeps_only_programs(tmp_path):
    good = tmp_path / "wxaaaaaaaaaaaaaaaa" / "1"
    good.mkdir(parents=True)
    (good / APP_FILE).write_bytes(b"data")
    (tmp_path / "wxbbbbbbbbbbbbbbbb" / "1").mkdir(parents=True)
    (tmp_path / ".DS_Store").write_text("x")
    assert find_mini_program_dirs(tmp_path, "darwin") == ["wxaaaaaaaaaaaaaaaa"]


def test_find_dirs_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        find_mini_program_dirs(tmp_path / "missing", "linux")


def test_collect_wxid_infos(tmp_path):
    root = tmp_path / "root"
    (root / KNOWN).mkdir(parents=True)
    (root / UNKNOWN).mkdir()
    (root / "notes").mkdir()
    (root / "wx1111111111111111.txt").write_text("x")
    query = _query(tmp_path, {KNOWN: {"nickname": "Demo", "principal_name": "Dev"}})

    infos = collect_wxid_infos(root, query, "linux")

    assert [info.wxid for info in infos] == [KNOWN, UNKNOWN]
    assert infos[0].nickname == "Demo"
    assert infos[0].error == ""
    assert infos[0].location == os.path.join(str(root), KNOWN)
    assert "no information endpoint" in infos[1].error
    assert infos[1].location == os.path.join(str(root), UNKNOWN)


def test_find_app_package(tmp_path):
    (tmp_path / "2").mkdir()
    version = tmp_path / "5"
    version.mkdir()
    (version / APP_FILE).write_bytes(b"data")
    assert find_app_package(tmp_path) == os.path.join(str(tmp_path), "5", APP_FILE)


def test_find_app_package_missing(tmp_path):
    (tmp_path / "1").mkdir()
    (tmp_path / ".DS_Store").write_text("x")
    with pytest.raises(FileNotFoundError):
        find_app_package(tmp_path)


def _make_root(tmp_path):
    version = tmp_path / "root" / KNOWN / "7"
    version.mkdir(parents=True)
    package = build_package({"/app.json": b'{"a": 1}', "/pages/index.js": b"var a = 1;"})
    (version / APP_FILE).write_bytes(package)
    return tmp_path / "root"


def test_run_scan_unpacks_selection(tmp_path, monkeypatch):
    root = _make_root(tmp_path)
    query = _query(tmp_path, {KNOWN: {"nickname": "Demo"}})
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))

    count = run_scan(root, False, query)

    assert count == 2
    assert (work / KNOWN / "app.json").read_bytes() == b'{"a": 1}'
    assert (work / KNOWN / "pages" / "index.js").read_bytes() == b"var a = 1;"
    detail = json.loads((work / KNOWN / DETAIL_FILE).read_text(encoding="utf-8"))
    assert detail["nickname"] == "Demo"


def test_run_scan_quit_does_nothing(tmp_path, monkeypatch):
    root = _make_root(tmp_path)
    query = _query(tmp_path, {KNOWN: {"nickname": "Demo"}})
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr(sys, "stdin", io.StringIO("q\n"))

    assert run_scan(root, False, query) is None
    assert list(work.iterdir()) == []


def test_run_scan_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        run_scan(tmp_path / "missing", False, _query(tmp_path, {}))