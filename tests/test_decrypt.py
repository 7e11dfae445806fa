import pytest

from wxapkg.archive import build_package, parse_standard
from wxapkg.decrypt import (
    decrypt_data,
    decrypt_file,
    encrypt_package,
    parse_wxid,
    standard_decrypt,
)

WXID = "wx0123456789abcdef"


def _plain_package() -> bytes:
    return build_package({"app.js": b"var a = 1;" * 200, "page/index.html": b"<p>x</p>" * 50})


def test_encrypt_starts_with_magic():
    assert encrypt_package(WXID, _plain_package())[:6] == b"V1MMWX"


def test_standard_round_trip():
    plain = _plain_package()
    assert standard_decrypt(WXID, encrypt_package(WXID, plain)) == plain


def test_round_trip_with_short_wxid_uses_default_xor_key():
    plain = _plain_package()
    assert standard_decrypt("w", encrypt_package("w", plain)) == plain


def test_wrong_wxid_does_not_decrypt():
    plain = _plain_package()
    result = standard_decrypt("wxffffffffffffffff", encrypt_package(WXID, plain))
    assert result[:1023] != plain[:1023]


def test_standard_decrypt_short_data_unchanged():
    data = b"\x01" * 1029
    assert standard_decrypt(WXID, data) == data


def test_encrypt_rejects_short_data():
    with pytest.raises(ValueError):
        encrypt_package(WXID, b"\x00" * 1022)


def test_decrypt_data_decrypts_package():
    plain = _plain_package()
    result = decrypt_data(WXID, encrypt_package(WXID, plain))
    assert result == plain
    assert [e.name for e in parse_standard(result)] == ["app.js", "page/index.html"]


def test_decrypt_data_too_small():
    with pytest.raises(ValueError):
        decrypt_data(WXID, b"\xbe\xed" + b"\x00" * 10)


def test_decrypt_data_plain_package_unchanged():
    plain = _plain_package()
    assert decrypt_data(WXID, plain) == plain


def test_decrypt_data_marker_at_five():
    data = b"\xbe\x00\x00\x00\x00\xed" + b"\x00" * 60
    assert decrypt_data(WXID, data) == data


def test_decrypt_data_marker_after_offset():
    data = b"\x00\x00\xbe\x01\x02\x03\x04\xed" + b"\x00" * 60
    assert decrypt_data(WXID, data) == data[2:]


def test_decrypt_data_unrecognised_returned_as_is():
    data = b"\x11" * 80
    assert decrypt_data(WXID, data) == data


def test_decrypt_file(tmp_path):
    plain = _plain_package()
    path = tmp_path / "__APP__.wxapkg"
    path.write_bytes(encrypt_package(WXID, plain))
    assert decrypt_file(WXID, path) == plain


def test_decrypt_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        decrypt_file(WXID, tmp_path / "missing.wxapkg")


def test_parse_wxid_from_base():
    assert parse_wxid(f"/data/Applet/{WXID}", "linux") == WXID


def test_parse_wxid_from_parent():
    assert parse_wxid(f"/data/Applet/{WXID}/161", "linux") == WXID


def test_parse_wxid_trailing_separator():
    assert parse_wxid(f"/data/{WXID}/", "linux") == WXID


def test_parse_wxid_full_path_on_darwin():
    assert parse_wxid(f"/data/{WXID}/a/b", "darwin") == WXID


def test_parse_wxid_full_path_ignored_elsewhere():
    with pytest.raises(ValueError):
        parse_wxid(f"/data/{WXID}/a/b", "linux")


def test_parse_wxid_not_found():
    with pytest.raises(ValueError):
        parse_wxid("/data/nothing/here", "darwin")