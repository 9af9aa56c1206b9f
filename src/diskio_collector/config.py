"""Configuration for the disk I/O collector."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .accumulator import COUNTER_BITS
from .sensors.sector_size import DEFAULT_SECTOR_SIZE


@dataclass
class CollectorConfig:
    """Runtime configuration for the disk I/O collector."""

    # Base path of the proc filesystem (partitions, diskstats, mounts)
    proc_root: Path = Path("/proc")

    # Base path of the per-device sysfs attributes
    sys_block_root: Path = Path("/sys/block")

    # Bytes per sector when the hw_sector_size attribute is missing
    default_sector_size: int = DEFAULT_SECTOR_SIZE

    # Width in bits of the kernel's diskstats counters
    counter_bits: int = COUNTER_BITS

    # Sampling interval in seconds
    interval: float = 1.0

    # Number of samples to take (0 = unlimited)
    count: int = 0

    # Report one row per device instead of the system-wide total
    perdisk: bool = False

    # Correct counter wraparound so values never decrease
    nowrap: bool = True

    # Output directory for CSV and metadata files (None = stdout only)
    output_dir: Path | None = None

    # CSV flush interval (flush every N rows)
    flush_every: int = 60

    def __post_init__(self) -> None:
        self.proc_root = Path(self.proc_root)
        self.sys_block_root = Path(self.sys_block_root)
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)

        if self.default_sector_size <= 0:
            raise ValueError(
                f"default_sector_size must be positive, got {self.default_sector_size}"
            )
        if self.counter_bits <= 0:
            raise ValueError(f"counter_bits must be positive, got {self.counter_bits}")
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        if self.count < 0:
            raise ValueError(f"count must be >= 0, got {self.count}")
        if self.flush_every <= 0:
            raise ValueError(f"flush_every must be positive, got {self.flush_every}")

    @property
    def counter_range(self) -> int:
        """Number of distinct values a kernel counter can hold before wrapping."""
        return 1 << self.counter_bits
