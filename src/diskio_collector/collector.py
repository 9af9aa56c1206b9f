"""Polling loop with signal handling.

Samples disk I/O counters at a fixed interval, prints each sample and
optionally appends it to a CSV file.  Handles SIGTERM/SIGINT for
graceful shutdown.
"""

from __future__ import annotations

import signal
import sys
import time
from typing import TYPE_CHECKING, TextIO

from .counters import DiskIOCounters
from .errors import DiskIOError
from .writer import TOTAL_DEVICE, CsvWriter

if TYPE_CHECKING:
    from .config import CollectorConfig
    from .sensors.diskstats import DiskSnapshot


_shutdown_requested = False


def _signal_handler(signum: int, frame: object) -> None:
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    global _shutdown_requested
    _shutdown_requested = True


def format_snapshot(device: str, snapshot: DiskSnapshot) -> str:
    """Render one snapshot as a single ``device: field=value ...`` line."""
    values = " ".join(f"{k}={v}" for k, v in snapshot.as_dict().items())
    return f"{device}: {values}"


def take_sample(
    counters: DiskIOCounters, config: CollectorConfig
) -> dict[str, DiskSnapshot]:
    """Poll *counters* once according to the perdisk/nowrap settings."""
    if config.perdisk:
        return counters.snapshot_per_disk(nowrap=config.nowrap)
    return {TOTAL_DEVICE: counters.snapshot_total(nowrap=config.nowrap)}


def run_collector(
    config: CollectorConfig,
    counters: DiskIOCounters | None = None,
    out: TextIO | None = None,
) -> int:
    """Run the polling loop until the sample count, or a signal, stops it.

    Returns:
        Number of samples successfully taken.
    """
    global _shutdown_requested
    _shutdown_requested = False

    if counters is None:
        counters = DiskIOCounters.from_config(config)
    if out is None:
        out = sys.stdout

    previous_handlers = {
        signum: signal.signal(signum, _signal_handler)
        for signum in (signal.SIGTERM, signal.SIGINT)
    }

    mode = "nowrap" if config.nowrap else "raw"
    print(
        f"Interval: {config.interval}s, mode: {mode}, "
        f"{'per disk' if config.perdisk else 'total'}",
        file=sys.stderr,
    )

    samples = 0
    ticks = 0
    start_mono = time.monotonic()
    writer: CsvWriter | None = None
    try:
        if config.output_dir is not None:
            writer = CsvWriter(config.output_dir, config)
            writer.open()
            print(f"Collecting to {writer.csv_path}", file=sys.stderr)

        next_tick = time.monotonic()

        while not _shutdown_requested:
            if config.count > 0 and ticks >= config.count:
                break
            ticks += 1

            try:
                sample = take_sample(counters, config)
            except DiskIOError as e:
                print(f"Warning: disk I/O poll failed: {e}", file=sys.stderr)
            else:
                samples += 1
                for device, snapshot in sample.items():
                    print(format_snapshot(device, snapshot), file=out)
                out.flush()
                if writer is not None:
                    writer.write_sample(time.time(), sample)

            if config.count > 0 and ticks >= config.count:
                break

            # Sleep until next tick (compensate for read time)
            next_tick += config.interval
            sleep_time = next_tick - time.monotonic()
            if sleep_time > 0:
                time.sleep(sleep_time)
            else:
                missed = int(-sleep_time / config.interval)
                if missed > 0:
                    print(
                        f"Warning: missed {missed} tick(s), resynchronizing",
                        file=sys.stderr,
                    )
                next_tick = time.monotonic()

    finally:
        for signum, handler in previous_handlers.items():
            if handler is not None:
                signal.signal(signum, handler)

        if writer is not None:
            writer.close()

        total_elapsed = time.monotonic() - start_mono
        print(
            f"\nDone. {samples} samples in {total_elapsed:.1f}s",
            file=sys.stderr,
        )

    return samples
