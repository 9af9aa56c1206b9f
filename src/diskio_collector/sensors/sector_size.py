"""Per-device sector size from sysfs."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import MalformedInputError

log = logging.getLogger(__name__)

# Historical sector size, used by kernels that do not expose the attribute.
DEFAULT_SECTOR_SIZE = 512


def read_sector_size(
    device: str,
    sys_block_root: str | Path = "/sys/block",
    default: int = DEFAULT_SECTOR_SIZE,
) -> int:
    """Return the number of bytes in one kernel-reported sector of *device*.

    Reads ``{sys_block_root}/{device}/queue/hw_sector_size``.  Partitions
    have no entry of their own under /sys/block, so they fall back to
    *default* just like devices on kernels without the attribute.

    Raises:
        MalformedInputError: If the attribute exists but does not hold a
            positive integer.
    """
    path = Path(sys_block_root) / device / "queue" / "hw_sector_size"
    try:
        raw = path.read_text().strip()
    except OSError:
        log.debug("No sector size for %s, assuming %d bytes", device, default)
        return default

    try:
        size = int(raw)
    except ValueError:
        raise MalformedInputError(
            f"invalid sector size {raw!r} in {path}"
        ) from None
    if size <= 0:
        raise MalformedInputError(f"invalid sector size {raw!r} in {path}")
    return size
