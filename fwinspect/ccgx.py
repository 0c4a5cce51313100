"""Version and metadata types for Infineon (formerly Cypress) CCGx PD controllers."""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FW1_METADATA_ROW = 0x1FE
FW1_METADATA_ROW_CCG8 = 0x3FE
FW2_METADATA_ROW_CCG5 = 0x1FF
FW2_METADATA_ROW_CCG6 = 0x1FD
FW2_METADATA_ROW_CCG8 = 0x3FF

METADATA_OFFSET = 0xC0
CCG8_METADATA_OFFSET = 0x80
CCG3_METADATA_OFFSET = 0x40

# "CY" (Cypress) and "IF" (Infineon), read as little-endian u16
METADATA_MAGIC = int.from_bytes(b"YC", "little")
CCG8_METADATA_MAGIC = int.from_bytes(b"FI", "little")

# Packed CYACD metadata, 0x20 bytes
_CYACD_METADATA = struct.Struct("<BIH2sI3sBBHHHII")
# Packed CYACD2 metadata, 0x80 bytes
_CYACD2_METADATA = struct.Struct("<IIHHIII60sHHI32sI")


class SiliconId(enum.IntEnum):
    """Silicon family identifiers of the supported CCGx chips."""

    CCG3 = 0x1D00
    CCG5 = 0x2100
    CCG6_ADL = 0x3000
    CCG6 = 0x30A0
    CCG8 = 0x3580


class Application(enum.IntEnum):
    """Application type encoded in an application version."""

    NOTEBOOK = 0
    MONITOR = 1
    AA = 2
    INVALID = 3


def _require(data: bytes, length: int, what: str) -> None:
    if len(data) < length:
        raise ValueError(f"{what} needs {length} bytes, got {len(data)}")


@dataclass(frozen=True, order=True)
class BaseVersion:
    """SDK base version X.Y.Z.BB."""

    major: int
    minor: int
    patch: int
    build_number: int

    @classmethod
    def from_bytes(cls, data: bytes) -> BaseVersion:
        """Decode the four-byte little-endian layout."""
        _require(data, 4, "BaseVersion")
        return cls(
            major=(data[3] & 0xF0) >> 4,
            minor=data[3] & 0x0F,
            patch=data[2],
            build_number=int.from_bytes(data[0:2], "little"),
        )

    @classmethod
    def from_int(cls, value: int) -> BaseVersion:
        return cls.from_bytes((value & 0xFFFFFFFF).to_bytes(4, "little"))

    def to_dec_string(self) -> str:
        """Format with decimal components and a zero-padded build number."""
        return f"{self.major}.{self.minor}.{self.patch}.{self.build_number:03d}"

    def __str__(self) -> str:
        return f"{self.major:X}.{self.minor:X}.{self.patch:X}.{self.build_number:03X}"


_APPLICATIONS = {
    b"nb": Application.NOTEBOOK,
    b"md": Application.MONITOR,
    b"aa": Application.AA,
}


@dataclass(frozen=True, order=True)
class AppVersion:
    """Application version X.Y.Z."""

    application: Application
    major: int
    minor: int
    circuit: int

    @classmethod
    def from_bytes(cls, data: bytes) -> AppVersion:
        """Decode the four-byte little-endian layout."""
        _require(data, 4, "AppVersion")
        tag = bytes([data[1], data[0]])
        return cls(
            application=_APPLICATIONS.get(tag, Application.INVALID),
            major=(data[3] & 0xF0) >> 4,
            minor=data[3] & 0x0F,
            circuit=data[2],
        )

    @classmethod
    def from_int(cls, value: int) -> AppVersion:
        return cls.from_bytes((value & 0xFFFFFFFF).to_bytes(4, "little"))

    def __str__(self) -> str:
        return f"{self.major:X}.{self.minor:X}.{self.circuit:02X}"


@dataclass(frozen=True)
class ControllerVersion:
    """Base and application version of one firmware on a controller."""

    base: BaseVersion
    app: AppVersion


def _parse_cyacd_at(buffer: bytes, offset: int) -> tuple[int, int] | None:
    region = bytes(buffer[offset:])
    _require(region, _CYACD_METADATA.size, "CYACD metadata")
    fields = _CYACD_METADATA.unpack_from(region)
    boot_last_row, fw_size, metadata_valid = fields[2], fields[4], fields[10]
    logger.debug("Metadata: %r", fields)
    if metadata_valid != METADATA_MAGIC:
        return None
    return 1 + boot_last_row, fw_size


def parse_metadata_ccg3(buffer: bytes) -> tuple[int, int] | None:
    """Return (first firmware row, firmware size) from a CCG3 metadata row."""
    return _parse_cyacd_at(buffer, CCG3_METADATA_OFFSET)


def parse_metadata_cyacd(buffer: bytes) -> tuple[int, int] | None:
    """Return (first firmware row, firmware size) from a CCG5/CCG6 metadata row."""
    return _parse_cyacd_at(buffer, METADATA_OFFSET)


def parse_metadata_cyacd2(buffer: bytes) -> tuple[int, int] | None:
    """Return (firmware start address, firmware size) from a CCG8 metadata row."""
    region = bytes(buffer[CCG8_METADATA_OFFSET:])
    _require(region, _CYACD2_METADATA.size, "CYACD2 metadata")
    fields = _CYACD2_METADATA.unpack_from(region)
    fw_start, fw_size = fields[0], fields[1]
    metadata_version, metadata_valid = fields[8], fields[9]
    logger.debug("Metadata: %r", fields)
    if metadata_valid != CCG8_METADATA_MAGIC:
        return None
    if metadata_version != 1:
        logger.warning("Unknown CCG8 metadata version")
        return None
    return fw_start, fw_size