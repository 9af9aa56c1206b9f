"""System-wide and per-disk I/O counters.

:class:`DiskIOCounters` is the entry point for callers: it reads the
current kernel view through :class:`DiskstatsReader` and, in nowrap mode,
passes it through a :class:`WrapAccumulator` so counters only ever grow.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .accumulator import COUNTER_BITS, WrapAccumulator
from .sensors.diskstats import DiskSnapshot, DiskstatsReader

if TYPE_CHECKING:
    from .config import CollectorConfig


def sum_snapshots(snapshots: Iterable[DiskSnapshot]) -> DiskSnapshot:
    """Return the field-wise sum of *snapshots* (all zeros when empty)."""
    total = DiskSnapshot()
    for snapshot in snapshots:
        total = total + snapshot
    return total


class DiskIOCounters:
    """Caller-owned disk I/O counter collector.

    Raw mode (``nowrap=False``) returns the kernel counters as read and
    never touches accumulator state.  Nowrap mode corrects wraparound;
    the per-disk and total calls each keep their own accumulator, so
    interleaving them does not disturb either baseline.

    A poll that raises leaves all accumulator state unchanged.
    """

    def __init__(
        self,
        reader: DiskstatsReader | None = None,
        counter_bits: int = COUNTER_BITS,
    ) -> None:
        self._reader = reader if reader is not None else DiskstatsReader()
        self._perdisk = WrapAccumulator(counter_bits)
        self._total = WrapAccumulator(counter_bits)

    @classmethod
    def from_config(cls, config: CollectorConfig) -> DiskIOCounters:
        """Build a collector for the paths and counter width in *config*."""
        reader = DiskstatsReader(
            proc_root=config.proc_root,
            sys_block_root=config.sys_block_root,
            default_sector_size=config.default_sector_size,
        )
        return cls(reader, counter_bits=config.counter_bits)

    def snapshot_per_disk(self, nowrap: bool = True) -> dict[str, DiskSnapshot]:
        """Return one snapshot per device, keyed by device name."""
        raw, sector_sizes = self._reader.read_with_sector_sizes()
        if not nowrap:
            return raw
        return self._perdisk.update(raw, sector_sizes)

    def snapshot_total(self, nowrap: bool = True) -> DiskSnapshot:
        """Return the field-wise sum of all per-device snapshots."""
        raw, sector_sizes = self._reader.read_with_sector_sizes()
        if not nowrap:
            return sum_snapshots(raw.values())
        return sum_snapshots(self._total.update(raw, sector_sizes).values())

    def reset_accumulator(self) -> None:
        """Forget wraparound history, e.g. after the device topology changed."""
        self._perdisk.reset()
        self._total.reset()
