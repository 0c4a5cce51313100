"""Firmware modes and version sets reported by CCGx PD controllers."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from fwinspect.ccgx import ControllerVersion

_FLASH_ROW_SIZE_MASK = 0b0011_0000
_FLASH_ROW_SIZE_SHIFT = 4

# Encoded flash row size (bits 4-5 of the device mode byte) to bytes per row.
_FLASH_ROW_SIZES = {
    0: 128,
    1: 256,
    3: 64,
}
_RESERVED_ROW_SIZE_CODE = 2


class FwMode(enum.IntEnum):
    """Which firmware image a controller is currently running."""

    BOOT_LOADER = 0
    BACKUP_FW = 1
    """Backup CCGx firmware (image 1)."""
    MAIN_FW = 2
    """Main CCGx firmware (image 2)."""


def decode_flash_row_size(mode_byte: int) -> int:
    """Return the flash row size in bytes encoded in a device mode byte.

    Raises ValueError for the reserved encoding.
    """
    code = (mode_byte & _FLASH_ROW_SIZE_MASK) >> _FLASH_ROW_SIZE_SHIFT
    if code == _RESERVED_ROW_SIZE_CODE:
        raise ValueError("Reserved flash row size encoding")
    return _FLASH_ROW_SIZES[code]


@dataclass(frozen=True)
class ControllerFirmwares:
    """Versions of all firmware images on one controller, and which one runs."""

    active_fw: FwMode
    bootloader: ControllerVersion
    backup_fw: ControllerVersion
    main_fw: ControllerVersion

    def active(self) -> ControllerVersion:
        """Return the version of the firmware image that is currently running."""
        if self.active_fw is FwMode.MAIN_FW:
            return self.main_fw
        if self.active_fw is FwMode.BACKUP_FW:
            return self.backup_fw
        return self.bootloader