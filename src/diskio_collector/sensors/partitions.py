"""Block device enumeration from /proc/partitions.

The kernel lists every whole disk followed by its partitions.  When a
disk has partitions, the partitions already account for its I/O, so
the disk itself is dropped and only its partitions are reported.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import IOUnavailableError, MalformedInputError

log = logging.getLogger(__name__)

# /proc/partitions starts with a column header and a blank separator line:
#   major minor  #blocks  name
#
#      8        0  500107608 sda
#      8        1     524288 sda1
_HEADER_LINES = 2
_FIELD_COUNT = 4
_FIELD_NAME = 3


def parse_partitions(text: str) -> list[str]:
    """Parse /proc/partitions text into the list of devices to monitor.

    Lines are walked bottom-up so that every partition is seen before the
    disk it belongs to.  Names ending in a digit (``sda1``) are always
    kept.  A whole disk (``sda``) is kept only if no partition kept so far
    starts with its name.

    Args:
        text: Full contents of /proc/partitions.

    Returns:
        Device names, most specific first.

    Raises:
        MalformedInputError: If a data line does not have four fields.
    """
    lines = text.splitlines()[_HEADER_LINES:]

    devices: list[str] = []
    partitions: list[str] = []
    for line in reversed(lines):
        fields = line.split()
        if not fields:
            continue
        if len(fields) != _FIELD_COUNT:
            raise MalformedInputError(
                f"expected {_FIELD_COUNT} fields in /proc/partitions line, "
                f"got {len(fields)}: {line!r}"
            )

        name = fields[_FIELD_NAME]
        if name[-1].isdigit():
            partitions.append(name)
            devices.append(name)
        elif any(part.startswith(name) for part in partitions):
            log.debug("Skipping %s: covered by its partitions", name)
        else:
            devices.append(name)

    return devices


def read_partitions(proc_root: str | Path = "/proc") -> list[str]:
    """Read /proc/partitions and return the devices to monitor."""
    path = Path(proc_root) / "partitions"
    try:
        text = path.read_text()
    except OSError as e:
        raise IOUnavailableError(f"cannot read {path}: {e}") from e
    return parse_partitions(text)
