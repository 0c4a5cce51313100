"""Locate firmware components and versions inside BIOS capsule contents."""

from __future__ import annotations

from dataclasses import dataclass

from fwinspect.ccgx_binary import CCG5_PD_LEN, CCG6_PD_LEN, CCG8_PD_LEN

_RETIMER_NEEDLE = b"$_RETIMER_PARAM_"
_BVDT_NEEDLE = b"$BVDT"

# First bytes of PD binaries for each chip, with the length of the binary.
_PD_SIGNATURES = (
    (bytes([0x00, 0x20, 0x00, 0x20, 0x11, 0x00]), CCG5_PD_LEN),
    (bytes([0x00, 0x40, 0x00, 0x20, 0x11, 0x00]), CCG6_PD_LEN),
    (bytes([0x00, 0x80, 0x00, 0x20, 0xAD, 0x0C]), CCG8_PD_LEN),
)


@dataclass(frozen=True)
class BiosCapsule:
    """Platform and version identifiers found in a BIOS capsule."""

    platform: str
    version: str


def find_sequence(haystack: bytes, needle: bytes) -> int | None:
    """Return the offset of the first occurrence of ``needle``, or None."""
    index = bytes(haystack).find(bytes(needle))
    return None if index < 0 else index


def _slice(data: bytes, start: int, length: int, what: str) -> bytes:
    if start + length > len(data):
        raise ValueError(f"{what} extends past the end of the data")
    return bytes(data[start : start + length])


def find_retimer_version(data: bytes) -> int | None:
    """Return the retimer firmware version embedded in a capsule, if present."""
    found = find_sequence(data, _RETIMER_NEEDLE)
    if found is None:
        return None
    offset = found + 0x8 + len(_RETIMER_NEEDLE)
    return int.from_bytes(_slice(data, offset, 2, "Retimer version"), "little")


def find_bios_version(data: bytes) -> BiosCapsule | None:
    """Return the platform and BIOS version from the BVDT block, if present."""
    found = find_sequence(data, _BVDT_NEEDLE)
    if found is None:
        return None
    platform_offset = found + 0xA + len(_BVDT_NEEDLE) - 1
    version_offset = found + 0x10 + len(_BVDT_NEEDLE) - 1
    try:
        platform = _slice(data, platform_offset, 5, "BIOS platform").decode("utf-8")
        version = _slice(data, version_offset, 5, "BIOS version").decode("utf-8")
    except UnicodeDecodeError:
        return None
    return BiosCapsule(platform=platform, version=version)


def find_pd_in_bios_cap(data: bytes) -> bytes | None:
    """Return the first PD controller binary embedded in a BIOS capsule.

    CCG5 binaries are looked for first, then CCG6, then CCG8.
    """
    for signature, length in _PD_SIGNATURES:
        found = find_sequence(data, signature)
        if found is not None:
            return _slice(data, found, length, "PD binary")
    return None