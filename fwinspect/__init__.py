"""Parse and describe UEFI capsules and CCGx PD controller firmware."""

__version__ = "0.4.5"

__all__ = [
    "capsule",
    "capsule_content",
    "ccgx",
    "ccgx_binary",
    "ccgx_device",
    "ccgx_hid",
]