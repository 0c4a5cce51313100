import pytest

from fwinspect.ccgx import BaseVersion
from fwinspect.ccgx_hid import (
    DP_CARD_PID,
    FRAMEWORK_VID,
    HDMI_CARD_PID,
    ROW_SIZE,
    CmdId,
    CmdParam,
    HidFirmwareInfo,
    command_report,
    device_name,
    format_fw_info,
    write_row_report,
)

VER_A = bytes([0x11, 0x00, 0x02, 0x30, 0, 0, 0, 0])
VER_B = bytes([0x12, 0x00, 0x02, 0x30, 0, 0, 0, 0])


def _report(
    mode=2,
    bootloader_info=0,
    bootmode_reason=0,
    image_1_ver=VER_A,
    image_2_ver=VER_B,
    report_id=0xE0,
    signature=b"CY",
):
    buf = bytearray(0x40)
    buf[0] = report_id
    buf[2:4] = signature
    buf[4] = mode
    buf[5] = bootloader_info
    buf[6] = bootmode_reason
    buf[8:12] = b"\x01\x02\x03\x04"
    buf[12:20] = VER_A
    buf[20:28] = image_1_ver
    buf[28:36] = image_2_ver
    buf[36:40] = (0x30).to_bytes(4, "little")
    buf[40:44] = (0x200).to_bytes(4, "little")
    buf[44:50] = b"\xaa\xbb\xcc\xdd\xee\xff"
    return bytes(buf)


def test_from_bytes_decodes_fields():
    info = HidFirmwareInfo.from_bytes(_report())
    assert info.signature == b"CY"
    assert info.operating_mode == 2
    assert info.image_1_row == 0x30
    assert info.image_2_row == 0x200
    assert info.image_1_ver == VER_A
    assert info.device_uid == b"\xaa\xbb\xcc\xdd\xee\xff"


def test_from_bytes_rejects_wrong_report_id():
    with pytest.raises(ValueError):
        HidFirmwareInfo.from_bytes(_report(report_id=0xE1))


def test_from_bytes_rejects_bad_signature():
    with pytest.raises(ValueError):
        HidFirmwareInfo.from_bytes(_report(signature=b"XX"))


def test_from_bytes_rejects_short_buffer():
    with pytest.raises(ValueError):
        HidFirmwareInfo.from_bytes(_report()[:20])


def test_device_name():
    assert device_name(FRAMEWORK_VID, HDMI_CARD_PID) == "HDMI Expansion Card"
    assert device_name(FRAMEWORK_VID, DP_CARD_PID) == "DisplayPort Expansion Card"
    assert device_name(FRAMEWORK_VID, 0x0010) is None
    assert device_name(0x1234, HDMI_CARD_PID) is None


def test_command_report_wire_bytes():
    report = command_report(CmdId.FLASH, CmdParam.ENABLE)
    assert report == bytes([0xE1, 0x02, 0x50, 0x00, 0xCC, 0xCC, 0xCC, 0xCC])


def test_write_row_report_layout():
    row = bytes(range(ROW_SIZE))
    report = write_row_report(0x0201, row)
    assert len(report) == 4 + ROW_SIZE
    assert report[:2] == bytes([0xE2, 0x46])
    assert int.from_bytes(report[2:4], "little") == 0x0201
    assert report[4:] == row


def test_write_row_report_rejects_wrong_length():
    with pytest.raises(ValueError):
        write_row_report(1, bytes(ROW_SIZE - 1))


def test_write_row_report_rejects_large_row_number():
    with pytest.raises(ValueError):
        write_row_report(0x10000, bytes(ROW_SIZE))


def test_format_differing_versions_shows_both():
    info = HidFirmwareInfo.from_bytes(_report(mode=2))
    lines = format_fw_info(info, False).splitlines()
    assert len(lines) == 3
    active = str(BaseVersion.from_bytes(VER_B))
    inactive = str(BaseVersion.from_bytes(VER_A))
    assert f"({active})" in lines[0]
    assert f"({inactive})" in lines[1]
    assert lines[2].endswith("MainFw (#2)")


def test_format_backup_mode_swaps_images():
    info = HidFirmwareInfo.from_bytes(_report(mode=1))
    lines = format_fw_info(info, False).splitlines()
    assert f"({BaseVersion.from_bytes(VER_A)})" in lines[0]
    assert lines[2].endswith("BackupFw (#1)")


def test_format_same_versions_single_line():
    info = HidFirmwareInfo.from_bytes(_report(image_1_ver=VER_A, image_2_ver=VER_A))
    out = format_fw_info(info, False)
    assert len(out.splitlines()) == 1
    assert "MainFw" in out
    assert "INVALID" not in out


def test_format_same_versions_verbose_shows_both():
    info = HidFirmwareInfo.from_bytes(_report(image_1_ver=VER_A, image_2_ver=VER_A))
    assert len(format_fw_info(info, True).splitlines()) == 3


def test_format_marks_invalid_image():
    info = HidFirmwareInfo.from_bytes(_report(mode=2, bootmode_reason=0b001000))
    lines = format_fw_info(info, True).splitlines()
    assert lines[0].endswith(" - INVALID!")
    assert not lines[1].endswith(" - INVALID!")


def test_format_rejects_unknown_mode():
    info = HidFirmwareInfo.from_bytes(_report(mode=5))
    with pytest.raises(ValueError):
        format_fw_info(info, True)


def test_format_rejects_reserved_row_size():
    info = HidFirmwareInfo.from_bytes(_report(bootloader_info=0b0010_0000))
    with pytest.raises(ValueError):
        format_fw_info(info, True)