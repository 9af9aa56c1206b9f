"""Disk I/O counters from /proc/diskstats.

Parses /proc/diskstats for the block devices listed by /proc/partitions
and converts each record into a :class:`DiskSnapshot`, with sector
counts turned into bytes using the device's sector size.
"""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from pathlib import Path
from typing import ClassVar

from ..errors import (
    IOUnavailableError,
    MalformedInputError,
    UnsupportedKernelFormatError,
)
from .partitions import read_partitions
from .sector_size import DEFAULT_SECTOR_SIZE, read_sector_size

# A /proc/diskstats record (pre-4.18 layout) has 14 fields:
#   major minor name  rd_ios rd_merges rd_sectors rd_ticks
#                      wr_ios wr_merges wr_sectors wr_ticks
#                      ios_in_progress io_ticks weighted_ticks
#
# Counter indices, counted after the device name:
#   [0] reads completed   (rd_ios)
#   [1] reads merged      (rd_merges)
#   [2] sectors read      (rd_sectors)
#   [3] read ticks        (rd_ticks, ms)
#   [4] writes completed  (wr_ios)
#   [5] writes merged     (wr_merges)
#   [6] sectors written   (wr_sectors)
#   [7] write ticks       (wr_ticks, ms)
#   [8] I/Os in progress  (not reported)
#   [9] busy time         (io_ticks, ms)
#  [10] weighted ticks    (not reported)
DISKSTATS_FIELD_COUNT = 14
_FIELD_NAME = 2

_FIELD_READS = 0
_FIELD_READ_MERGES = 1
_FIELD_READ_SECTORS = 2
_FIELD_READ_TICKS = 3
_FIELD_WRITES = 4
_FIELD_WRITE_MERGES = 5
_FIELD_WRITE_SECTORS = 6
_FIELD_WRITE_TICKS = 7
_FIELD_IO_TICKS = 9


@dataclass(frozen=True)
class DiskSnapshot:
    """Cumulative I/O counters of one device (or a sum of devices)."""

    read_count: int = 0
    write_count: int = 0
    read_bytes: int = 0
    write_bytes: int = 0
    read_time: int = 0  # ms spent reading
    write_time: int = 0  # ms spent writing
    read_merged_count: int = 0
    write_merged_count: int = 0
    busy_time: int = 0  # ms with at least one I/O in flight

    FIELDS: ClassVar[tuple[str, ...]] = (
        "read_count",
        "write_count",
        "read_bytes",
        "write_bytes",
        "read_time",
        "write_time",
        "read_merged_count",
        "write_merged_count",
        "busy_time",
    )

    def __add__(self, other: DiskSnapshot) -> DiskSnapshot:
        if not isinstance(other, DiskSnapshot):
            return NotImplemented
        return DiskSnapshot(*(a + b for a, b in zip(astuple(self), astuple(other))))

    def as_dict(self) -> dict[str, int]:
        """Return the counters as an ordered ``{field: value}`` dict."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def parse_diskstats_line(line: str) -> tuple[str, tuple[int, ...]]:
    """Parse one /proc/diskstats record.

    Args:
        line: A single line of /proc/diskstats.

    Returns:
        The device name and its 11 counters.

    Raises:
        UnsupportedKernelFormatError: If the record does not have exactly
            14 fields.
        MalformedInputError: If a counter is not a non-negative integer.
    """
    parts = line.split()
    if len(parts) != DISKSTATS_FIELD_COUNT:
        raise UnsupportedKernelFormatError(
            f"expected {DISKSTATS_FIELD_COUNT} fields in /proc/diskstats record, "
            f"got {len(parts)}: {line.strip()!r}"
        )

    counters: list[int] = []
    for raw in parts[_FIELD_NAME + 1 :]:
        # int() also accepts "+5", "-5" and "1_000"; counters are plain digits
        if not (raw.isascii() and raw.isdigit()):
            raise MalformedInputError(
                f"invalid counter value {raw!r} for device {parts[_FIELD_NAME]}"
            )
        counters.append(int(raw))

    return parts[_FIELD_NAME], tuple(counters)


def snapshot_from_counters(counters: tuple[int, ...], sector_size: int) -> DiskSnapshot:
    """Build a DiskSnapshot from the 11 raw diskstats counters."""
    return DiskSnapshot(
        read_count=counters[_FIELD_READS],
        write_count=counters[_FIELD_WRITES],
        read_bytes=counters[_FIELD_READ_SECTORS] * sector_size,
        write_bytes=counters[_FIELD_WRITE_SECTORS] * sector_size,
        read_time=counters[_FIELD_READ_TICKS],
        write_time=counters[_FIELD_WRITE_TICKS],
        read_merged_count=counters[_FIELD_READ_MERGES],
        write_merged_count=counters[_FIELD_WRITE_MERGES],
        busy_time=counters[_FIELD_IO_TICKS],
    )


class DiskstatsReader:
    """Read per-device I/O snapshots from /proc/diskstats.

    Only devices returned by :func:`read_partitions` are reported; records
    for other names (suppressed whole disks, virtual entries) are skipped.
    Each call reads every source afresh, so the device list follows the
    current kernel view.
    """

    def __init__(
        self,
        proc_root: str | Path = "/proc",
        sys_block_root: str | Path = "/sys/block",
        default_sector_size: int = DEFAULT_SECTOR_SIZE,
    ) -> None:
        self._proc_root = Path(proc_root)
        self._diskstats_path = self._proc_root / "diskstats"
        self._sys_block_root = Path(sys_block_root)
        self._default_sector_size = default_sector_size

    @property
    def diskstats_path(self) -> Path:
        """Path to the diskstats file this reader parses."""
        return self._diskstats_path

    def read_snapshots(self) -> dict[str, DiskSnapshot]:
        """Read one snapshot per recognized device.

        Returns:
            Dict mapping device names to snapshots, in /proc/diskstats order.
        """
        snapshots, _ = self.read_with_sector_sizes()
        return snapshots

    def read_with_sector_sizes(
        self,
    ) -> tuple[dict[str, DiskSnapshot], dict[str, int]]:
        """Read snapshots together with the sector size used for each device.

        The byte counters wrap when the underlying sector counters do, so
        wraparound correction needs the sector size as well.

        Returns:
            Device name to snapshot, and device name to sector size.

        Raises:
            IOUnavailableError: If /proc/partitions or /proc/diskstats
                cannot be read.
            UnsupportedKernelFormatError: If any record has the wrong
                number of fields.
            MalformedInputError: On any unparseable value.
        """
        devices = set(read_partitions(self._proc_root))

        try:
            text = self._diskstats_path.read_text()
        except OSError as e:
            raise IOUnavailableError(f"cannot read {self._diskstats_path}: {e}") from e

        snapshots: dict[str, DiskSnapshot] = {}
        sector_sizes: dict[str, int] = {}
        for line in text.splitlines():
            if not line.strip():
                continue
            name, counters = parse_diskstats_line(line)
            if name not in devices:
                continue
            sector_size = read_sector_size(
                name, self._sys_block_root, self._default_sector_size
            )
            snapshots[name] = snapshot_from_counters(counters, sector_size)
            sector_sizes[name] = sector_size

        return snapshots, sector_sizes
