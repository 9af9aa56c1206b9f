"""Tests for the CsvWriter module."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from diskio_collector.config import CollectorConfig
from diskio_collector.sensors.diskstats import DiskSnapshot
from diskio_collector.writer import COLUMNS, CsvWriter


def _make_config(tmp_path: Path, flush_every: int = 5) -> CollectorConfig:
    """Create a CollectorConfig writing into tmp_path."""
    return CollectorConfig(output_dir=tmp_path, flush_every=flush_every)


def _make_sample(n: int = 1) -> dict[str, DiskSnapshot]:
    """Create a two-device sample."""
    return {
        "sda1": DiskSnapshot(read_count=n, write_bytes=n * 512),
        "sdb": DiskSnapshot(read_count=n * 10),
    }


def _read_rows(path: Path) -> list[dict[str, str]]:
    with open(path, newline="") as f:
        return list(csv.DictReader(f))


class TestCsvWriterOpen:
    """Tests for CsvWriter.open() — file and metadata creation."""

    def test_open_creates_files(self, tmp_path: Path) -> None:
        writer = CsvWriter(tmp_path, _make_config(tmp_path))
        writer.open()
        try:
            assert writer.csv_path.exists()
            assert writer.meta_path.exists()
        finally:
            writer.close()

    def test_creates_output_dir(self, tmp_path: Path) -> None:
        out = tmp_path / "nested" / "out"
        writer = CsvWriter(out, _make_config(tmp_path))
        assert out.is_dir()
        assert writer.csv_path.parent == out

    def test_csv_has_header_row(self, tmp_path: Path) -> None:
        writer = CsvWriter(tmp_path, _make_config(tmp_path))
        writer.open()
        writer.close()

        with open(writer.csv_path, newline="") as f:
            header = next(csv.reader(f))
        assert header == COLUMNS
        assert header[:2] == ["timestamp", "device"]

    def test_metadata_serializes_config(self, tmp_path: Path) -> None:
        writer = CsvWriter(tmp_path, _make_config(tmp_path))
        writer.open()
        writer.close()

        with open(writer.meta_path) as f:
            meta = json.load(f)
        assert meta["config"]["proc_root"] == "/proc"
        assert meta["config"]["counter_bits"] == 32
        assert meta["nowrap"] is True
        assert meta["csv_file"] == writer.csv_path.name


class TestCsvWriterWriteSample:
    """Tests for CsvWriter.write_sample()."""

    def test_one_row_per_device(self, tmp_path: Path) -> None:
        with CsvWriter(tmp_path, _make_config(tmp_path)) as writer:
            writer.write_sample(1700000000.0, _make_sample(3))
            assert writer.row_count == 2
            csv_path = writer.csv_path

        rows = _read_rows(csv_path)
        assert [r["device"] for r in rows] == ["sda1", "sdb"]
        assert rows[0]["timestamp"] == "1700000000.000"
        assert rows[0]["read_count"] == "3"
        assert rows[0]["write_bytes"] == "1536"
        assert rows[1]["read_count"] == "30"
        assert rows[1]["busy_time"] == "0"

    def test_write_without_open_raises(self, tmp_path: Path) -> None:
        writer = CsvWriter(tmp_path, _make_config(tmp_path))
        with pytest.raises(RuntimeError, match="not opened"):
            writer.write_sample(0.0, _make_sample())

    def test_flush_every_rows(self, tmp_path: Path) -> None:
        with CsvWriter(tmp_path, _make_config(tmp_path, flush_every=2)) as writer:
            writer.write_sample(1.0, _make_sample())
            assert len(_read_rows(writer.csv_path)) == 2


class TestCsvWriterClose:
    """Tests for CsvWriter.close() — metadata finalization."""

    def test_close_updates_metadata(self, tmp_path: Path) -> None:
        writer = CsvWriter(tmp_path, _make_config(tmp_path))
        writer.open()
        writer.write_sample(1.0, _make_sample())
        writer.write_sample(2.0, _make_sample(2))
        writer.close()

        with open(writer.meta_path) as f:
            meta = json.load(f)
        assert meta["total_rows"] == 4
        assert "end_time_utc" in meta

    def test_close_idempotent(self, tmp_path: Path) -> None:
        writer = CsvWriter(tmp_path, _make_config(tmp_path))
        writer.open()
        writer.close()
        writer.close()
