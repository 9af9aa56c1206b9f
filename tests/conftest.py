"""Shared fixtures: a fake host with /proc and /sys/block trees."""

from __future__ import annotations

from pathlib import Path

import pytest

PARTITIONS = """\
major minor  #blocks  name

   8        0  500107608 sda
   8        1     524288 sda1
   8       16  976762584 sdb
"""


def diskstats_line(name: str, *counters: int, major: int = 8, minor: int = 0) -> str:
    """Format one 14-field /proc/diskstats record."""
    values = list(counters) + [0] * (11 - len(counters))
    return f"{major:4d} {minor:7d} {name} " + " ".join(str(v) for v in values)


class FakeHost:
    """A writable fake /proc and /sys/block pair."""

    def __init__(self, root: Path) -> None:
        self.proc = root / "proc"
        self.sys_block = root / "sys_block"
        self.proc.mkdir()
        self.sys_block.mkdir()
        (self.proc / "partitions").write_text(PARTITIONS)

    def set_diskstats(self, **reads: int) -> None:
        """Write diskstats where each device's reads and sectors read are given."""
        lines = [
            diskstats_line(name, value, 0, value) for name, value in reads.items()
        ]
        (self.proc / "diskstats").write_text("\n".join(lines) + "\n")

    def set_sector_size(self, device: str, size: int) -> None:
        queue = self.sys_block / device / "queue"
        queue.mkdir(parents=True, exist_ok=True)
        (queue / "hw_sector_size").write_text(f"{size}\n")


@pytest.fixture()
def fake_host(tmp_path: Path) -> FakeHost:
    """Fake host exposing sda1 and sdb, with no diskstats written yet."""
    return FakeHost(tmp_path)
