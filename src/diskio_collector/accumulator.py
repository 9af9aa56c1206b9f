"""Wraparound correction for fixed-width kernel disk counters.

The kernel keeps the diskstats counters in fixed-width integers that wrap
to zero on overflow.  :class:`WrapAccumulator` remembers the last raw
value of every counter and turns the raw series into one that never
decreases, for as long as the same device stays in the poll.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import astuple

from .sensors.diskstats import DiskSnapshot

log = logging.getLogger(__name__)

COUNTER_BITS = 32

# Derived from sector counters; they wrap in steps of 2**bits sectors
_BYTE_FIELDS = frozenset({"read_bytes", "write_bytes"})


class WrapAccumulator:
    """Turn successive raw per-device snapshots into non-decreasing totals.

    The first poll (or the first poll after :meth:`reset`) is returned
    unchanged and becomes the baseline.  On later polls each counter of
    each device advances by its raw delta; a raw value lower than the
    previous one is taken as a single wrap and advances by
    ``new + 2**bits - old`` instead.  A counter that never wrapped
    therefore reports exactly the kernel's value.

    The byte counters are sector counters multiplied by the sector size,
    so they wrap at ``2**bits * sector_size``.  Pass each device's sector
    size to :meth:`update` to correct them; without it they are treated
    like any other counter.

    Devices are matched by name.  A device missing from a poll is
    forgotten; a device seen for the first time starts from its raw
    value.

    Instances are not thread-safe.
    """

    def __init__(self, counter_bits: int = COUNTER_BITS) -> None:
        if counter_bits <= 0:
            raise ValueError(f"counter_bits must be positive, got {counter_bits}")
        self._range = 1 << counter_bits
        self._initialized = False
        self._current: dict[str, DiskSnapshot] = {}
        self._last_raw: dict[str, DiskSnapshot] = {}

    @property
    def initialized(self) -> bool:
        """Whether a baseline poll has been recorded."""
        return self._initialized

    @property
    def current(self) -> dict[str, DiskSnapshot]:
        """Corrected snapshots returned by the most recent poll."""
        return dict(self._current)

    @property
    def last_raw(self) -> dict[str, DiskSnapshot]:
        """Raw snapshots observed by the most recent poll."""
        return dict(self._last_raw)

    def reset(self) -> None:
        """Discard all history; the next poll becomes the new baseline."""
        if self._initialized:
            log.info(
                "Resetting wraparound accumulator (%d devices)", len(self._current)
            )
        self._initialized = False
        self._current = {}
        self._last_raw = {}

    def update(
        self,
        raw: Mapping[str, DiskSnapshot],
        sector_sizes: Mapping[str, int] | None = None,
    ) -> dict[str, DiskSnapshot]:
        """Feed one poll of raw snapshots and return the corrected ones.

        Args:
            raw: Device name to raw snapshot, as read from the kernel.
            sector_sizes: Device name to the sector size its byte counters
                were computed with.  Missing devices use 1.

        Returns:
            Device name to corrected snapshot, in the order of *raw*.
        """
        raw = dict(raw)

        if not self._initialized:
            self._current = dict(raw)
            self._last_raw = dict(raw)
            self._initialized = True
            return dict(raw)

        gone = self._last_raw.keys() - raw.keys()
        if gone:
            log.debug("Devices left the poll: %s", ", ".join(sorted(gone)))

        corrected: dict[str, DiskSnapshot] = {}
        for name, new in raw.items():
            old = self._last_raw.get(name)
            if old is None:
                log.debug("New device %s, starting from its raw counters", name)
                corrected[name] = new
                continue
            sector_size = sector_sizes.get(name, 1) if sector_sizes else 1
            corrected[name] = self._correct(
                name, self._current[name], old, new, sector_size
            )

        # Commit only once every device has been corrected
        self._current = corrected
        self._last_raw = raw
        return dict(corrected)

    def _correct(
        self,
        name: str,
        current: DiskSnapshot,
        old: DiskSnapshot,
        new: DiskSnapshot,
        sector_size: int = 1,
    ) -> DiskSnapshot:
        values: list[int] = []
        for field, total, before, after in zip(
            DiskSnapshot.FIELDS, astuple(current), astuple(old), astuple(new)
        ):
            if after >= before:
                delta = after - before
            else:
                wrap = self._range
                if field in _BYTE_FIELDS:
                    wrap *= sector_size
                delta = after + wrap - before
                log.info(
                    "Counter %s of %s wrapped (%d -> %d)", field, name, before, after
                )
            values.append(total + delta)
        return DiskSnapshot(*values)
