import struct

import pytest

from fwinspect.ccgx import (
    Application,
    AppVersion,
    BaseVersion,
    ControllerVersion,
    SiliconId,
    parse_metadata_ccg3,
    parse_metadata_cyacd,
    parse_metadata_cyacd2,
)


def _cyacd_row(offset, boot_last_row, fw_size, magic=b"YC", length=0x100):
    buf = bytearray(length)
    buf[offset + 5 : offset + 7] = struct.pack("<H", boot_last_row)
    buf[offset + 9 : offset + 13] = struct.pack("<I", fw_size)
    buf[offset + 0x16 : offset + 0x18] = magic
    return bytes(buf)


def _cyacd2_row(fw_start, fw_size, version=1, magic=b"FI"):
    buf = bytearray(0x100)
    base = 0x80
    buf[base : base + 8] = struct.pack("<II", fw_start, fw_size)
    buf[base + 0x54 : base + 0x56] = struct.pack("<H", version)
    buf[base + 0x56 : base + 0x58] = magic
    return bytes(buf)


def test_derive_ord():
    v0_0_0 = AppVersion(Application.NOTEBOOK, 0, 0, 0)
    v1_0_1 = AppVersion(Application.NOTEBOOK, 1, 0, 1)
    v0_1_0 = AppVersion(Application.NOTEBOOK, 0, 1, 0)
    v1_1_1 = AppVersion(Application.NOTEBOOK, 1, 1, 1)
    assert v0_0_0 == AppVersion(Application.NOTEBOOK, 0, 0, 0)
    assert v0_0_0 < v1_0_1
    assert v0_1_0 < v1_0_1
    assert v1_0_1 < v1_1_1
    assert v1_1_1 > v1_0_1


def test_silicon_id_values():
    assert SiliconId(0x2100) is SiliconId.CCG5
    assert SiliconId.CCG8 == 0x3580


def test_base_version_from_bytes():
    ver = BaseVersion.from_bytes(bytes([0x0F, 0x0A, 0x00, 0x34]))
    assert ver == BaseVersion(major=3, minor=4, patch=0, build_number=2575)
    assert str(ver) == "3.4.0.A0F"
    assert ver.to_dec_string() == "3.4.0.2575"


def test_base_version_from_int_matches_bytes():
    assert BaseVersion.from_int(0x34000A0F) == BaseVersion(3, 4, 0, 2575)


def test_base_version_small_build_formatting():
    ver = BaseVersion(major=3, minor=0, patch=17, build_number=100)
    assert str(ver) == "3.0.11.064"
    assert ver.to_dec_string() == "3.0.17.100"


def test_base_version_ordering():
    assert BaseVersion(3, 4, 0, 425) < BaseVersion(3, 4, 0, 2575)
    assert BaseVersion(3, 6, 0, 1) > BaseVersion(3, 4, 0, 2575)


def test_base_version_too_short():
    with pytest.raises(ValueError):
        BaseVersion.from_bytes(b"\x00\x01")


@pytest.mark.parametrize(
    "tag,expected",
    [
        (b"bn", Application.NOTEBOOK),
        (b"dm", Application.MONITOR),
        (b"aa", Application.AA),
        (b"zz", Application.INVALID),
    ],
)
def test_app_version_application(tag, expected):
    ver = AppVersion.from_bytes(tag + bytes([0x21, 0x01]))
    assert ver.application is expected
    assert (ver.major, ver.minor, ver.circuit) == (0, 1, 0x21)


def test_app_version_formatting():
    ver = AppVersion.from_bytes(b"bn\x00\x38")
    assert ver == AppVersion(Application.NOTEBOOK, 3, 8, 0)
    assert str(ver) == "3.8.00"


def test_app_version_from_int():
    ver = AppVersion.from_int(int.from_bytes(b"bn\x21\x01", "little"))
    assert str(ver) == "0.1.21"


def test_controller_version_equality():
    a = ControllerVersion(BaseVersion(1, 2, 3, 4), AppVersion(Application.AA, 0, 0, 2))
    b = ControllerVersion(BaseVersion(1, 2, 3, 4), AppVersion(Application.AA, 0, 0, 2))
    assert a == b


def test_parse_metadata_cyacd_valid():
    row = _cyacd_row(0xC0, boot_last_row=0x13, fw_size=36352)
    assert parse_metadata_cyacd(row) == (20, 36352)


def test_parse_metadata_cyacd_bad_magic():
    row = _cyacd_row(0xC0, boot_last_row=0x13, fw_size=36352, magic=b"XX")
    assert parse_metadata_cyacd(row) is None


def test_parse_metadata_ccg3_valid():
    row = _cyacd_row(0x40, boot_last_row=47, fw_size=58624, length=0x80)
    assert parse_metadata_ccg3(row) == (48, 58624)


def test_parse_metadata_cyacd_short_buffer():
    with pytest.raises(ValueError):
        parse_metadata_cyacd(bytes(0x80))


def test_parse_metadata_cyacd2_valid():
    row = _cyacd2_row(fw_start=29 * 0x100, fw_size=42312)
    assert parse_metadata_cyacd2(row) == (29 * 0x100, 42312)


def test_parse_metadata_cyacd2_unknown_version():
    row = _cyacd2_row(fw_start=0x1000, fw_size=10, version=2)
    assert parse_metadata_cyacd2(row) is None


def test_parse_metadata_cyacd2_bad_magic():
    row = _cyacd2_row(fw_start=0x1000, fw_size=10, magic=b"YC")
    assert parse_metadata_cyacd2(row) is None