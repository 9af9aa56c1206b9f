"""Mounted filesystems and their space usage.

Reads /proc/filesystems and /proc/mounts to list mounted partitions, and
wraps ``os.statvfs`` to report total, used and free space for a path.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..errors import IOUnavailableError, MalformedInputError

# /proc/mounts fields: device mountpoint fstype opts dump pass
_MOUNT_MIN_FIELDS = 4


@dataclass(frozen=True)
class MountedPartition:
    """One entry of /proc/mounts."""

    device: str  # Block device or remote filesystem
    mountpoint: str
    fstype: str
    opts: str  # Comma-separated mount options


@dataclass(frozen=True)
class DiskUsage:
    """Space usage of the filesystem holding a path, in bytes.

    ``total`` and ``used`` cover the whole filesystem, while ``free`` and
    ``percent`` reflect what is available to unprivileged users (space
    reserved for root is excluded).
    """

    total: int
    used: int
    free: int
    percent: float


def parse_filesystems(text: str) -> list[str]:
    """Return the filesystem types from /proc/filesystems backed by a device.

    Types flagged ``nodev`` are skipped, except ZFS, which is listed as
    ``nodev`` although its pools live on real disks.
    """
    fstypes: list[str] = []
    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        if parts[0] != "nodev":
            fstypes.append(parts[0])
        elif len(parts) > 1 and parts[1] == "zfs":
            fstypes.append(parts[1])
    return fstypes


def parse_mounts(
    text: str,
    fstypes: list[str],
    all: bool = False,  # noqa: A002
) -> list[MountedPartition]:
    """Parse /proc/mounts.

    Args:
        text: Contents of /proc/mounts.
        fstypes: Device-backed filesystem types (see parse_filesystems).
        all: If True, return every mount, including pseudo filesystems.

    Raises:
        MalformedInputError: If a line has fewer than four fields.
    """
    mounts: list[MountedPartition] = []
    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        if len(parts) < _MOUNT_MIN_FIELDS:
            raise MalformedInputError(f"invalid /proc/mounts line: {line!r}")

        device, mountpoint, fstype, opts = parts[:_MOUNT_MIN_FIELDS]
        if not all and (device == "none" or fstype not in fstypes):
            continue
        mounts.append(MountedPartition(device, mountpoint, fstype, opts))
    return mounts


def _read(path: Path) -> str:
    try:
        return path.read_text()
    except OSError as e:
        raise IOUnavailableError(f"cannot read {path}: {e}") from e


def disk_partitions(
    all: bool = False,  # noqa: A002
    proc_root: str | Path = "/proc",
) -> list[MountedPartition]:
    """Return mounted partitions.

    With ``all=False`` only filesystems backed by a device are returned;
    ``all=True`` also includes pseudo filesystems such as proc or tmpfs.
    """
    root = Path(proc_root)
    fstypes = parse_filesystems(_read(root / "filesystems"))
    return parse_mounts(_read(root / "mounts"), fstypes, all=all)


def disk_usage(path: str | Path) -> DiskUsage:
    """Return space usage of the filesystem containing *path*."""
    try:
        st = os.statvfs(path)
    except OSError as e:
        raise IOUnavailableError(f"cannot stat filesystem of {path}: {e}") from e

    total = st.f_blocks * st.f_frsize
    avail_to_root = st.f_bfree * st.f_frsize
    free = st.f_bavail * st.f_frsize
    used = total - avail_to_root
    total_user = used + free
    percent = used / total_user * 100.0 if total_user > 0 else 0.0
    return DiskUsage(total=total, used=used, free=free, percent=percent)
