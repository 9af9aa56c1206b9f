"""Block device I/O counters from /proc/diskstats with wraparound correction."""

from __future__ import annotations

from .accumulator import WrapAccumulator
from .config import CollectorConfig
from .counters import DiskIOCounters, sum_snapshots
from .errors import (
    DiskIOError,
    IOUnavailableError,
    MalformedInputError,
    UnsupportedKernelFormatError,
)
from .sensors.diskstats import DiskSnapshot, DiskstatsReader
from .sensors.mounts import DiskUsage, MountedPartition, disk_partitions, disk_usage

__all__ = [
    "CollectorConfig",
    "DiskIOCounters",
    "DiskIOError",
    "DiskSnapshot",
    "DiskUsage",
    "DiskstatsReader",
    "IOUnavailableError",
    "MalformedInputError",
    "MountedPartition",
    "UnsupportedKernelFormatError",
    "WrapAccumulator",
    "disk_partitions",
    "disk_usage",
    "sum_snapshots",
]
