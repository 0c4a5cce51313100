"""Parse CCGx PD firmware binaries and extract their version metadata.

A flash binary holds two firmware images: a backup and a main image.
Metadata rows near the end of flash point to where each image starts.
Inside each image the version information sits at offset 0xE0:

| Offset | Size | Field          |
|--------|------|----------------|
| 0xE0   | 0x04 | Base version   |
| 0xE4   | 0x04 | App version    |
| 0xE8   | 0x02 | Silicon ID     |
| 0xEA   | 0x02 | Silicon family |
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from fwinspect.ccgx import (
    FW1_METADATA_ROW,
    FW1_METADATA_ROW_CCG8,
    FW2_METADATA_ROW_CCG5,
    FW2_METADATA_ROW_CCG6,
    FW2_METADATA_ROW_CCG8,
    AppVersion,
    BaseVersion,
    SiliconId,
    parse_metadata_ccg3,
    parse_metadata_cyacd,
    parse_metadata_cyacd2,
)

logger = logging.getLogger(__name__)

FW_VERSION_OFFSET = 0xE0
"""Offset of the version information within the first row of an image."""

SMALL_ROW = 0x80
LARGE_ROW = 0x100

CCG5_PD_LEN = 0x20_000
CCG6_PD_LEN = 0x20_000
CCG8_PD_LEN = 0x40_000

_VERSION_INFO = struct.Struct("<IIHH")

# Flash row size and the metadata rows of the backup and main image.
_LAYOUTS: dict[SiliconId, tuple[int, int, int]] = {
    SiliconId.CCG3: (SMALL_ROW, 0x03FF, 0x03FE),
    SiliconId.CCG5: (LARGE_ROW, FW1_METADATA_ROW, FW2_METADATA_ROW_CCG5),
    SiliconId.CCG6_ADL: (SMALL_ROW, FW1_METADATA_ROW, FW2_METADATA_ROW_CCG6),
    SiliconId.CCG6: (SMALL_ROW, FW1_METADATA_ROW, FW2_METADATA_ROW_CCG6),
    SiliconId.CCG8: (LARGE_ROW, FW1_METADATA_ROW_CCG8, FW2_METADATA_ROW_CCG8),
}


@dataclass(frozen=True)
class PdFirmware:
    """Version and location of a single PD firmware image."""

    silicon_id: int
    silicon_family: int
    base_version: BaseVersion
    app_version: AppVersion
    start_row: int
    """Row of the file at which the image starts."""
    size: int
    """Size of the image in bytes."""
    row_size: int
    """Bytes per flash row."""


@dataclass(frozen=True)
class PdFirmwareFile:
    """Both firmware images contained in a PD binary."""

    backup_fw: PdFirmware
    main_fw: PdFirmware


def _read_row_window(file_buffer: bytes, row_no: int, row_size: int) -> bytes | None:
    """Read up to 256 bytes starting at a row, or None if past the end."""
    start = row_no * row_size
    length = len(file_buffer)
    if start + LARGE_ROW <= length:
        read_len = LARGE_ROW
    elif start + SMALL_ROW <= length:
        read_len = SMALL_ROW
    else:
        # Happens when reading with parameters for a chip with larger rows.
        return None
    return bytes(file_buffer[start : start + read_len])


def _read_metadata(
    file_buffer: bytes, row_size: int, metadata_row: int, ccgx: SiliconId
) -> tuple[int, int] | None:
    buffer = _read_row_window(file_buffer, metadata_row, row_size)
    if buffer is None:
        return None
    if ccgx is SiliconId.CCG3:
        return parse_metadata_ccg3(buffer)
    if ccgx is SiliconId.CCG8:
        found = parse_metadata_cyacd2(buffer)
        if found is None:
            return None
        fw_start, fw_size = found
        return fw_start // row_size, fw_size
    return parse_metadata_cyacd(buffer)


def _read_version(
    file_buffer: bytes, row_size: int, metadata_row: int, ccgx: SiliconId
) -> PdFirmware | None:
    found = _read_metadata(file_buffer, row_size, metadata_row, ccgx)
    if found is None:
        return None
    fw_row_start, fw_size = found
    window = _read_row_window(file_buffer, fw_row_start, row_size)
    if window is None:
        return None
    logger.debug("First row of firmware: %s", window.hex())
    info = window[FW_VERSION_OFFSET:]
    if len(info) < _VERSION_INFO.size:
        raise ValueError(
            f"Firmware row at {fw_row_start} is too short to hold version information"
        )
    base, app, silicon_id, silicon_family = _VERSION_INFO.unpack_from(info)
    return PdFirmware(
        silicon_id=silicon_id,
        silicon_family=silicon_family,
        base_version=BaseVersion.from_int(base),
        app_version=AppVersion.from_int(app),
        start_row=fw_row_start,
        size=fw_size,
        row_size=row_size,
    )


def read_versions(file_buffer: bytes, ccgx: SiliconId) -> PdFirmwareFile | None:
    """Read both firmware images of a PD binary built for ``ccgx``.

    Returns None when the binary does not match the chip's layout.
    """
    chip = SiliconId(ccgx)
    row_size, fw1_metadata_row, fw2_metadata_row = _LAYOUTS[chip]
    backup_fw = _read_version(file_buffer, row_size, fw1_metadata_row, chip)
    if backup_fw is None:
        return None
    main_fw = _read_version(file_buffer, row_size, fw2_metadata_row, chip)
    if main_fw is None:
        return None
    return PdFirmwareFile(backup_fw=backup_fw, main_fw=main_fw)


def format_fw(fw: PdFirmware) -> str:
    """Render information about a PD firmware image as a report."""
    silicon_id = f"{fw.silicon_id:#06x}"
    silicon_family = f"{fw.silicon_family:#06x}"
    return "\n".join(
        [
            f"  Silicon ID: {silicon_id:>20}",
            f"  Silicon Family: {silicon_family:>16}",
            f"  Version:    {str(fw.app_version):>20}",
            f"  Base Ver:   {str(fw.base_version):>20}",
            f"  Row size:   {fw.row_size:>20} B",
            f"  Start Row:  {fw.start_row:>20}",
            f"  Rows:       {fw.size // fw.row_size:>20}",
            f"  Size:       {fw.size:>20} B",
            f"  Size:       {fw.size // 1024:>20} KB",
        ]
    )