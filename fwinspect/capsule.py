"""Parse UEFI capsule binaries and extract their metadata.

Capsules with multiple header structures are not supported.
"""

from __future__ import annotations

import struct
import uuid
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

_HEADER = struct.Struct("<16sIII")
_PAYLOAD = struct.Struct("<BBBBIII")

HEADER_SIZE = _HEADER.size
DISPLAY_CAPSULE_SIZE = _HEADER.size + _PAYLOAD.size

CAPSULE_FLAGS_PERSIST_ACROSS_RESET = 0x00010000
CAPSULE_FLAGS_POPULATE_SYSTEM_TABLE = 0x00020000
CAPSULE_FLAGS_INITIATE_RESET = 0x00040000

IMAGE_TYPE_BITMAP = 0


def _require(data: bytes, length: int, what: str) -> None:
    if len(data) < length:
        raise ValueError(f"{what} needs {length} bytes, got {len(data)}")


@dataclass(frozen=True)
class EfiCapsuleHeader:
    """The EFI_CAPSULE_HEADER at the start of every capsule."""

    capsule_guid: uuid.UUID
    header_size: int
    flags: int
    capsule_image_size: int

    @classmethod
    def from_bytes(cls, data: bytes) -> EfiCapsuleHeader:
        _require(data, HEADER_SIZE, "Capsule header")
        guid, header_size, flags, image_size = _HEADER.unpack_from(bytes(data))
        return cls(uuid.UUID(bytes_le=guid), header_size, flags, image_size)

    def is_valid(self, data: bytes) -> bool:
        """Check whether this header plausibly describes ``data``."""
        if self.capsule_image_size != len(data):
            return False
        if self.header_size > self.capsule_image_size:
            return False
        return self.header_size >= HEADER_SIZE


@dataclass(frozen=True)
class DisplayPayload:
    """Image payload descriptor following the header of a display capsule."""

    version: int
    checksum: int
    image_type: int
    reserved: int
    mode: int
    offset_x: int
    offset_y: int


@dataclass(frozen=True)
class DisplayCapsule:
    """A capsule holding an image shown during firmware update."""

    capsule_header: EfiCapsuleHeader
    image_payload: DisplayPayload


def parse_capsule_header(data: bytes) -> EfiCapsuleHeader | None:
    """Parse the capsule header, returning None if ``data`` is not a valid capsule."""
    header = EfiCapsuleHeader.from_bytes(data)
    return header if header.is_valid(data) else None


def _format_flags(flags: int) -> list[str]:
    lines = []
    if flags & CAPSULE_FLAGS_PERSIST_ACROSS_RESET:
        lines.append(f"    Persist across reset  (0x{CAPSULE_FLAGS_PERSIST_ACROSS_RESET:x})")
    if flags & CAPSULE_FLAGS_POPULATE_SYSTEM_TABLE:
        lines.append(f"    Populate system table (0x{CAPSULE_FLAGS_POPULATE_SYSTEM_TABLE:x})")
    if flags & CAPSULE_FLAGS_INITIATE_RESET:
        lines.append(f"    Initiate reset        (0x{CAPSULE_FLAGS_INITIATE_RESET:x})")
    return lines


def format_capsule_header(header: EfiCapsuleHeader) -> str:
    """Render a capsule header as a human-readable report."""
    lines = [
        "Capsule Header",
        f"  Capsule GUID: {str(header.capsule_guid).upper()}",
        f"  Header size: {header.header_size:>19} B",
    ]
    if header.header_size > HEADER_SIZE:
        lines.append("Has extended header entries.")
    lines.append(f"  Flags:      {f'0x{header.flags:X}':>20}")
    lines.extend(_format_flags(header.flags))
    lines.append(f"  Capsule Size: {header.capsule_image_size:>18} B")
    lines.append(f"  Capsule Size: {header.capsule_image_size // 1024:>18} KB")
    return "\n".join(lines)


def parse_ux_header(data: bytes) -> DisplayCapsule:
    """Parse the header and image payload descriptor of a display capsule."""
    _require(data, DISPLAY_CAPSULE_SIZE, "Display capsule header")
    header = EfiCapsuleHeader.from_bytes(data)
    payload = DisplayPayload(*_PAYLOAD.unpack_from(bytes(data), HEADER_SIZE))
    return DisplayCapsule(header, payload)


def _image_size(header: DisplayCapsule) -> int:
    size = header.capsule_header.capsule_image_size - DISPLAY_CAPSULE_SIZE
    if size < 0:
        raise ValueError("Capsule image size is smaller than the display capsule header")
    return size


def format_ux_header(header: DisplayCapsule) -> str:
    """Render a display capsule header as a human-readable report."""
    ux = header.image_payload
    image_type = " (BMP)" if ux.image_type == IMAGE_TYPE_BITMAP else ""
    image_size = _image_size(header)
    return "\n".join(
        [
            "Windows UX Header",
            f"    Version:    {ux.version:>20}",
            f"    Checksum:   {ux.checksum:>20}",
            f"    Image Type: {ux.image_type:>20}{image_type}",
            f"    Mode:       {ux.mode:>20}",
            f"    Offset X:   {ux.offset_x:>20}",
            f"    Offset Y:   {ux.offset_y:>20}",
            f"    Calculated Size: {image_size:>15} B",
            f"    Calculated Size: {image_size // 1024:>15} KB",
        ]
    )


def dump_winux_image(
    data: bytes, header: DisplayCapsule, filename: str | PathLike[str]
) -> None:
    """Write the image data of a display capsule to ``filename``."""
    image_size = _image_size(header)
    if image_size < DISPLAY_CAPSULE_SIZE or image_size > len(data):
        raise ValueError("Image range lies outside the capsule data")
    Path(filename).write_bytes(bytes(data[DISPLAY_CAPSULE_SIZE:image_size]))