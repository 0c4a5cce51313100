# fwinspect

Read and describe firmware images without touching hardware: UEFI capsules,
BIOS capsule contents, and Infineon CCGx USB-PD controller firmware. It has
no dependencies beyond the standard library.

## Installation

    pip install fwinspect

## Modules

- `fwinspect.capsule` parses UEFI capsule headers into `EfiCapsuleHeader`
  (`parse_capsule_header`, which returns `None` when the data is not a valid
  capsule), parses Windows UX display capsules into `DisplayCapsule`
  (`parse_ux_header`), renders both as text (`format_capsule_header`,
  `format_ux_header`) and writes the embedded image to a file
  (`dump_winux_image`).
- `fwinspect.capsule_content` searches BIOS capsule contents: the BIOS
  platform and version (`find_bios_version`, returning a `BiosCapsule`), the
  retimer version (`find_retimer_version`) and an embedded PD firmware binary
  (`find_pd_in_bios_cap`, trying CCG5, then CCG6, then CCG8 signatures).
  `find_sequence` returns the offset of a byte sequence.
- `fwinspect.ccgx` holds the CCGx version types (`BaseVersion`,
  `AppVersion`, `ControllerVersion`), the `SiliconId` and `Application`
  enums, and the metadata row parsers (`parse_metadata_ccg3`,
  `parse_metadata_cyacd`, `parse_metadata_cyacd2`).
- `fwinspect.ccgx_binary` reads the backup and main firmware images out of a
  PD binary (`read_versions`, returning a `PdFirmwareFile` of two
  `PdFirmware`) and formats one image as text (`format_fw`).
- `fwinspect.ccgx_device` has the `FwMode` enum, `ControllerFirmwares` with
  its `active()` method, and `decode_flash_row_size` for device-mode bytes.
- `fwinspect.ccgx_hid` decodes the firmware information report of the
  DisplayPort and HDMI expansion cards (`HidFirmwareInfo.from_bytes`),
  formats it (`format_fw_info`), names cards by vendor and product id
  (`device_name`) and builds the byte strings of their command and
  row-write reports (`command_report`, `write_row_report`,
  `MAGIC_UNLOCK_REPORT`).

## Example

```python
from pathlib import Path

from fwinspect.capsule import parse_capsule_header, format_capsule_header
from fwinspect.ccgx import SiliconId
from fwinspect.ccgx_binary import read_versions, format_fw

data = Path("capsule.bin").read_bytes()
header = parse_capsule_header(data)
if header is not None:
    print(format_capsule_header(header))

pd = read_versions(Path("pd.bin").read_bytes(), SiliconId.CCG6)
if pd is not None:
    print(format_fw(pd.main_fw))
```

Parsers return `None` when the data does not match the expected layout, and
raise `ValueError` when the data is too short to hold the structure being read.

## What it does not do

- It does not communicate with any device. There is no USB, HID or embedded
  controller access: `fwinspect.ccgx_hid` builds report bytes and decodes
  reports you already have, but sends and receives nothing.
- It does not flash or update firmware.
- It does not verify capsule or firmware checksums.
- There is no command-line tool; it is a library only.

## Running the tests

    pip install -e ".[test]"
    pytest