"""Tests for mounted filesystem enumeration and disk usage."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from diskio_collector.errors import IOUnavailableError, MalformedInputError
from diskio_collector.sensors.mounts import (
    DiskUsage,
    MountedPartition,
    disk_partitions,
    disk_usage,
    parse_filesystems,
    parse_mounts,
)

SAMPLE_FILESYSTEMS = """\
nodev\tsysfs
nodev\tproc
nodev\ttmpfs
\text4
\tvfat
nodev\tzfs
"""

SAMPLE_MOUNTS = """\
sysfs /sys sysfs rw,nosuid,nodev,noexec,relatime 0 0
proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0
/dev/sda2 / ext4 rw,relatime,errors=remount-ro 0 0
/dev/sda1 /boot/efi vfat rw,relatime,fmask=0077 0 0
tank/home /home zfs rw,xattr,noacl 0 0
tmpfs /run tmpfs rw,nosuid,nodev,size=1616912k,mode=755 0 0
"""


@pytest.fixture()
def fake_proc(tmp_path: Path) -> Path:
    """Create a fake /proc tree with filesystems and mounts."""
    (tmp_path / "filesystems").write_text(SAMPLE_FILESYSTEMS)
    (tmp_path / "mounts").write_text(SAMPLE_MOUNTS)
    return tmp_path


class TestParseFilesystems:
    """Tests for parse_filesystems()."""

    def test_device_backed_types(self) -> None:
        assert parse_filesystems(SAMPLE_FILESYSTEMS) == ["ext4", "vfat", "zfs"]

    def test_empty(self) -> None:
        assert parse_filesystems("") == []


class TestParseMounts:
    """Tests for parse_mounts()."""

    def test_filters_pseudo_filesystems(self) -> None:
        mounts = parse_mounts(SAMPLE_MOUNTS, ["ext4", "vfat", "zfs"])
        assert [m.mountpoint for m in mounts] == ["/", "/boot/efi", "/home"]

    def test_all_keeps_everything(self) -> None:
        mounts = parse_mounts(SAMPLE_MOUNTS, [], all=True)
        assert len(mounts) == 6

    def test_fields(self) -> None:
        mounts = parse_mounts(SAMPLE_MOUNTS, ["ext4"])
        assert mounts == [
            MountedPartition(
                device="/dev/sda2",
                mountpoint="/",
                fstype="ext4",
                opts="rw,relatime,errors=remount-ro",
            )
        ]

    def test_short_line_raises(self) -> None:
        with pytest.raises(MalformedInputError):
            parse_mounts("/dev/sda1 / ext4\n", ["ext4"])


class TestDiskPartitions:
    """Tests for disk_partitions()."""

    def test_reads_proc(self, fake_proc: Path) -> None:
        mounts = disk_partitions(proc_root=fake_proc)
        assert [m.device for m in mounts] == ["/dev/sda2", "/dev/sda1", "tank/home"]

    def test_all(self, fake_proc: Path) -> None:
        assert len(disk_partitions(all=True, proc_root=fake_proc)) == 6

    def test_missing_mounts(self, fake_proc: Path) -> None:
        (fake_proc / "mounts").unlink()
        with pytest.raises(IOUnavailableError):
            disk_partitions(proc_root=fake_proc)


class _FakeStatvfs:
    f_frsize = 4096
    f_blocks = 1000
    f_bfree = 400
    f_bavail = 300


class TestDiskUsage:
    """Tests for disk_usage()."""

    def test_computes_usage(self) -> None:
        with patch("diskio_collector.sensors.mounts.os.statvfs") as statvfs:
            statvfs.return_value = _FakeStatvfs()
            usage = disk_usage("/")
        assert usage == DiskUsage(
            total=1000 * 4096,
            used=600 * 4096,
            free=300 * 4096,
            percent=pytest.approx(600 / 900 * 100),
        )

    def test_percent_not_rounded(self) -> None:
        with patch("diskio_collector.sensors.mounts.os.statvfs") as statvfs:
            statvfs.return_value = _FakeStatvfs()
            percent = disk_usage("/").percent
        assert percent == 600 / 900 * 100
        assert percent != round(percent, 1)

    def test_empty_filesystem(self) -> None:
        fake = _FakeStatvfs()
        fake.f_blocks = fake.f_bfree = fake.f_bavail = 0
        with patch("diskio_collector.sensors.mounts.os.statvfs", return_value=fake):
            assert disk_usage("/").percent == 0.0

    def test_real_path(self, tmp_path: Path) -> None:
        usage = disk_usage(tmp_path)
        assert usage.total > 0
        assert 0.0 <= usage.percent <= 100.0

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(IOUnavailableError):
            disk_usage(tmp_path / "nonexistent")

    def test_statvfs_error_chained(self) -> None:
        err = OSError(5, "Input/output error")
        with patch.object(os, "statvfs", side_effect=err):
            with pytest.raises(IOUnavailableError) as excinfo:
                disk_usage("/")
        assert excinfo.value.__cause__ is err
