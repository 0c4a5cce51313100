"""HID protocol details of the CCG3-based HDMI and DisplayPort expansion cards.

The cards expose a vendor usage page with a handful of reports. The
firmware information report (0xE0) describes both images, and output
reports carry commands (0xE1) and firmware rows (0xE2).
"""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass

from fwinspect.ccgx import BaseVersion
from fwinspect.ccgx_device import FwMode, decode_flash_row_size

logger = logging.getLogger(__name__)

CCG_USAGE_PAGE = 0xFFEE

FRAMEWORK_VID = 0x32AC
HDMI_CARD_PID = 0x0002
DP_CARD_PID = 0x0003
ALL_CARD_PIDS = (DP_CARD_PID, HDMI_CARD_PID)

# Cards take 3 to over 5 seconds to restart; poll every 0.5 s for up to 10 s.
RESTART_TIMEOUT_US = 10_000_000
RESTART_PERIOD_US = 500_000

ROW_SIZE = 128
FW1_START = 0x0030
FW2_START = 0x0200
FW1_METADATA = 0x03FF
FW2_METADATA = 0x03FE

FW_INFO_REPORT_LEN = 0x40
SIGNATURE = b"CY"

_FW_INFO = struct.Struct("<BB2sBBBB4s8s8s8sII6s10s")

_INVALID_SUFFIX = " - INVALID!"


class CmdId(enum.IntEnum):
    """Command identifiers sent in a command report."""

    JUMP = 0x01
    FLASH = 0x02
    """Enter flashing mode."""
    CMD_0x04 = 0x04
    """Switches the boot image."""
    CMD_0x06 = 0x06
    """Mode switch."""


class CmdParam(enum.IntEnum):
    """Parameters accompanying commands."""

    JUMP_TO_ALTERNATE_IMAGE = 0x41
    BRIDGE_MODE = 0x42
    FLASH_WRITE = 0x46
    JUMP_TO_BOOTLOADER = 0x4A
    ENABLE = 0x50
    RESET = 0x52


class ReportIdCmd(enum.IntEnum):
    """HID report identifiers used by the cards."""

    E0_READ = 0xE0
    E1_CMD = 0xE1
    E2_WRITE_ROW = 0xE2
    E3 = 0xE3
    E4 = 0xE4


MAGIC_UNLOCK_REPORT = bytes([ReportIdCmd.E4, 0x42, 0x43, 0x59, 0x00, 0x00, 0x00, 0x0B])
"""Feature report that unlocks the card before other commands."""

_FW_MODE_NAMES = {
    FwMode.BOOT_LOADER: "BootLoader",
    FwMode.BACKUP_FW: "BackupFw",
    FwMode.MAIN_FW: "MainFw",
}


def _hex_list(data: bytes) -> str:
    return "[" + ", ".join(f"{b:X}" for b in data) + "]"


@dataclass(frozen=True)
class HidFirmwareInfo:
    """Decoded firmware information feature report (0xE0)."""

    report_id: int
    signature: bytes
    operating_mode: int
    bootloader_info: int
    bootmode_reason: int
    silicon_id: bytes
    bl_version: bytes
    image_1_ver: bytes
    image_2_ver: bytes
    image_1_row: int
    image_2_row: int
    device_uid: bytes

    @classmethod
    def from_bytes(cls, buf: bytes) -> HidFirmwareInfo:
        """Decode a firmware information report.

        Raises ValueError if the buffer is short, has the wrong report id,
        or lacks the "CY" signature.
        """
        data = bytes(buf)
        if len(data) < _FW_INFO.size:
            raise ValueError(
                f"Firmware info needs {_FW_INFO.size} bytes, got {len(data)}"
            )
        (
            report_id,
            _reserved_1,
            signature,
            operating_mode,
            bootloader_info,
            bootmode_reason,
            _reserved_2,
            silicon_id,
            bl_version,
            image_1_ver,
            image_2_ver,
            image_1_row,
            image_2_row,
            device_uid,
            _reserved_3,
        ) = _FW_INFO.unpack_from(data)
        if report_id != ReportIdCmd.E0_READ:
            raise ValueError(f"Unexpected report id 0x{report_id:02X}")
        if signature != SIGNATURE:
            raise ValueError(f"Invalid firmware signature {_hex_list(signature)}")
        return cls(
            report_id=report_id,
            signature=signature,
            operating_mode=operating_mode,
            bootloader_info=bootloader_info,
            bootmode_reason=bootmode_reason,
            silicon_id=silicon_id,
            bl_version=bl_version,
            image_1_ver=image_1_ver,
            image_2_ver=image_2_ver,
            image_1_row=image_1_row,
            image_2_row=image_2_row,
            device_uid=device_uid,
        )


def device_name(vid: int, pid: int) -> str | None:
    """Return the name of a CCG3 expansion card, or None if unknown."""
    if vid != FRAMEWORK_VID:
        return None
    if pid == HDMI_CARD_PID:
        return "HDMI Expansion Card"
    if pid == DP_CARD_PID:
        return "DisplayPort Expansion Card"
    return None


def command_report(cmd_id: int, cmd_param: int) -> bytes:
    """Build the output report that sends a command to a card."""
    return bytes(
        [ReportIdCmd.E1_CMD, int(cmd_id), int(cmd_param), 0x00, 0xCC, 0xCC, 0xCC, 0xCC]
    )


def write_row_report(row_no: int, row: bytes) -> bytes:
    """Build the output report that writes one firmware row to flash."""
    if len(row) != ROW_SIZE:
        raise ValueError(f"A firmware row must be {ROW_SIZE} bytes, got {len(row)}")
    if not 0 <= row_no <= 0xFFFF:
        raise ValueError(f"Row number {row_no} does not fit in 16 bits")
    header = bytes([ReportIdCmd.E2_WRITE_ROW, CmdParam.FLASH_WRITE])
    return header + row_no.to_bytes(2, "little") + bytes(row)


def format_fw_info(info: HidFirmwareInfo, verbose: bool) -> str:
    """Render the active and inactive firmware of a card as a report.

    Details are logged at info level. Returns an empty string when the
    signature is invalid; raises ValueError on a wrong report id or an
    unknown operating mode.
    """
    if info.report_id != ReportIdCmd.E0_READ:
        raise ValueError(f"Unexpected report id 0x{info.report_id:02X}")

    logger.info("  Signature:            %s", _hex_list(info.signature))
    if info.signature != SIGNATURE:
        logger.error("Firmware Signature is invalid.")
        return ""

    bl_info = info.bootloader_info
    reason = info.bootmode_reason
    logger.info("  Bootloader Info")
    logger.info("    Security Support:   %s", bl_info & 0b001 != 0)
    logger.info("    Flashing Support:   %s", bl_info & 0b010 == 0)
    app_priority_support = bl_info & 0b100 != 0
    logger.info("    App Priority:       %s", app_priority_support)
    logger.info("    Flash Row Size:     %d B", decode_flash_row_size(bl_info))
    logger.info("  Boot Mode Reason")
    logger.info("    Jump to Bootloader: %s", reason & 0b000001 != 0)
    image_1_valid = reason & 0b000100 == 0
    image_2_valid = reason & 0b001000 == 0
    logger.info("    FW 1 valid:         %s", image_1_valid)
    logger.info("    FW 2 valid:         %s", image_2_valid)
    if app_priority_support:
        logger.info("    App Priority:       %d", reason & 0b110000)
    logger.info("    UID:                %s", _hex_list(info.device_uid))
    logger.info("  Silicon ID:      %s", _hex_list(info.silicon_id))

    bl_ver = BaseVersion.from_bytes(info.bl_version)
    version_1 = BaseVersion.from_bytes(info.image_1_ver)
    version_2 = BaseVersion.from_bytes(info.image_2_ver)
    logger.info("  BL Version:      %s ", bl_ver)
    logger.info("  Image 1 start:   0x%08X", info.image_1_row)
    logger.info("  Image 2 start:   0x%08X", info.image_2_row)

    mode = FwMode(info.operating_mode)
    if mode is FwMode.BACKUP_FW:
        active, active_valid = version_1, image_1_valid
        inactive, inactive_valid = version_2, image_2_valid
    else:
        active, active_valid = version_2, image_2_valid
        inactive, inactive_valid = version_1, image_1_valid

    active_suffix = "" if active_valid else _INVALID_SUFFIX
    inactive_suffix = "" if inactive_valid else _INVALID_SUFFIX

    mode_name = _FW_MODE_NAMES[mode]
    if verbose or active != inactive:
        return "\n".join(
            [
                f"  Active Firmware:      {active.build_number:03} ({active})"
                f"{active_suffix}",
                f"  Inactive Firmware:    {inactive.build_number:03} ({inactive})"
                f"{inactive_suffix}",
                f"  Operating Mode:       {mode_name} (#{info.operating_mode})",
            ]
        )
    return (
        f"  Active Firmware:  {active.build_number:03} ({active}, {mode_name})"
        f"{active_suffix}"
    )