import pytest

from wxapkg.archive import build_package
from wxapkg.unpack_cmd import APP_FILE, find_package_files, run_unpack, scan_files

WXID = "wx0123456789abcdef"
FILES = {
    "/app-service.txt": b"service body that makes the package long enough",
    "/pages/home.wxss": b".home{margin:0}",
}


def _write_package(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_package(FILES))
    return path


def test_find_package_files_direct(tmp_path):
    app = _write_package(tmp_path / APP_FILE)
    assert find_package_files(tmp_path) == [str(app)]


def test_find_package_files_nested(tmp_path):
    first = _write_package(tmp_path / "a" / "one.wxapkg")
    second = _write_package(tmp_path / "b" / "c" / "two.wxapkg")
    (tmp_path / "b" / "notes.txt").write_text("x")
    assert find_package_files(tmp_path) == [str(first), str(second)]


def test_find_package_files_empty_and_missing(tmp_path):
    assert find_package_files(tmp_path) == []
    assert find_package_files(tmp_path / "missing") == []


def test_scan_files_finds_packages(tmp_path):
    app = _write_package(tmp_path / "12" / APP_FILE)
    assert scan_files(tmp_path) == [str(app)]


def test_scan_files_none_found(tmp_path):
    (tmp_path / "empty").mkdir()
    with pytest.raises(FileNotFoundError):
        scan_files(tmp_path)


def test_scan_files_missing_root(tmp_path):
    with pytest.raises(OSError):
        scan_files(tmp_path / "missing")


def test_run_unpack_program_directory(tmp_path):
    root = tmp_path / WXID
    _write_package(root / "7" / APP_FILE)
    (root / ".DS_Store").write_bytes(b"ignored")
    out = tmp_path / "out"
    count = run_unpack(str(root), str(out), 2, False)
    assert count == len(FILES)
    for name, body in FILES.items():
        assert (out / "7" / name.lstrip("/")).read_bytes() == body


def test_run_unpack_version_directory(tmp_path):
    version = tmp_path / WXID / "7"
    _write_package(version / APP_FILE)
    out = tmp_path / "out"
    count = run_unpack(str(version), str(out), 1, False)
    assert count == len(FILES)
    for name, body in FILES.items():
        assert (out / name.lstrip("/")).read_bytes() == body


def test_run_unpack_skips_broken_packages(tmp_path):
    root = tmp_path / WXID
    _write_package(root / "1" / APP_FILE)
    broken = root / "2" / APP_FILE
    broken.parent.mkdir(parents=True)
    broken.write_bytes(b"\x00" * 10)
    out = tmp_path / "out"
    assert run_unpack(str(root), str(out), 1, False) == len(FILES)
    assert not (out / "2").exists()


def test_run_unpack_without_wxid(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    with pytest.raises(ValueError):
        run_unpack(str(plain), str(tmp_path / "out"), 1, False)


def test_run_unpack_missing_root(tmp_path):
    with pytest.raises(OSError):
        run_unpack(str(tmp_path / WXID), str(tmp_path / "out"), 1, False)