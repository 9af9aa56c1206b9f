"""Buffered CSV writer for disk I/O samples with a metadata JSON sidecar.

Samples are written in long format: one row per device per tick, with
the system-wide total reported under the device name ``total``.  This
keeps the column set fixed even when devices come and go.
"""

from __future__ import annotations

import csv
import io
import json
import os
import platform
import socket
import time
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING

from .sensors.diskstats import DiskSnapshot

if TYPE_CHECKING:
    from .config import CollectorConfig

TOTAL_DEVICE = "total"

COLUMNS: list[str] = ["timestamp", "device", *DiskSnapshot.FIELDS]


def _generate_filename() -> str:
    """Generate a CSV filename from hostname and start timestamp."""
    hostname = socket.gethostname()
    ts = time.strftime("%Y%m%d_%H%M%S", time.gmtime())
    return f"diskio_{hostname}_{ts}"


def _jsonable(value: object) -> object:
    if isinstance(value, Path):
        return str(value)
    return value


class CsvWriter:
    """Buffered CSV writer with metadata JSON sidecar."""

    def __init__(self, output_dir: Path, config: CollectorConfig) -> None:
        self._config = config
        self._flush_every = config.flush_every

        output_dir.mkdir(parents=True, exist_ok=True)

        base = _generate_filename()
        self._csv_path = output_dir / f"{base}.csv"
        self._meta_path = output_dir / f"{base}.meta.json"

        self._file: io.TextIOWrapper | None = None
        self._writer: csv.DictWriter[str] | None = None
        self._row_count = 0

    @property
    def csv_path(self) -> Path:
        """Path to the CSV output file."""
        return self._csv_path

    @property
    def meta_path(self) -> Path:
        """Path to the metadata JSON file."""
        return self._meta_path

    @property
    def row_count(self) -> int:
        """Number of rows written so far."""
        return self._row_count

    def open(self) -> None:
        """Open the CSV file and write headers. Write metadata JSON."""
        self._file = open(  # noqa: SIM115
            self._csv_path, "w", newline="", buffering=1
        )
        self._writer = csv.DictWriter(self._file, fieldnames=COLUMNS)
        self._writer.writeheader()

        self._write_metadata()

    def _write_metadata(self) -> None:
        """Write metadata JSON sidecar file."""
        meta = {
            "hostname": socket.gethostname(),
            "kernel": platform.release(),
            "python_version": platform.python_version(),
            "start_time_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "csv_file": self._csv_path.name,
            "columns": COLUMNS,
            "interval_s": self._config.interval,
            "nowrap": self._config.nowrap,
            "perdisk": self._config.perdisk,
            "config": {k: _jsonable(v) for k, v in asdict(self._config).items()},
            "pid": os.getpid(),
        }
        with open(self._meta_path, "w") as f:
            json.dump(meta, f, indent=2)

    def write_sample(
        self,
        timestamp: float,
        snapshots: dict[str, DiskSnapshot],
    ) -> None:
        """Write one row per device for a single tick. Flushes periodically."""
        if self._writer is None:
            raise RuntimeError("CsvWriter not opened; call open() first")

        for device, snapshot in snapshots.items():
            row: dict[str, object] = {"timestamp": f"{timestamp:.3f}", "device": device}
            row.update(snapshot.as_dict())
            self._writer.writerow(row)
            self._row_count += 1

            if self._row_count % self._flush_every == 0:
                self.flush()

    def flush(self) -> None:
        """Flush the CSV file to disk."""
        if self._file is not None:
            self._file.flush()
            os.fsync(self._file.fileno())

    def close(self) -> None:
        """Flush and close the CSV file. Update metadata with final stats."""
        if self._file is not None:
            self.flush()
            self._file.close()
            self._file = None
            self._writer = None

        if self._meta_path.exists():
            with open(self._meta_path) as f:
                meta = json.load(f)
            meta["end_time_utc"] = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            meta["total_rows"] = self._row_count
            with open(self._meta_path, "w") as f:
                json.dump(meta, f, indent=2)

    def __enter__(self) -> CsvWriter:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
