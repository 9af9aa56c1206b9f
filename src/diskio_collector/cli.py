"""Command-line interface for the disk I/O collector."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .accumulator import COUNTER_BITS
from .config import CollectorConfig
from .errors import DiskIOError


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for ``diskio-collector``."""
    parser = argparse.ArgumentParser(
        prog="diskio-collector",
        description="Poll block device I/O counters from /proc/diskstats",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=1.0,
        help="Sampling interval in seconds (default: 1.0)",
    )
    parser.add_argument(
        "-n",
        "--count",
        type=int,
        default=0,
        help="Number of samples, 0 for unlimited (default: 0)",
    )
    parser.add_argument(
        "--perdisk",
        action="store_true",
        help="Report each device instead of the system-wide total",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Report kernel counters as-is, without wraparound correction",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=None,
        help="Also write samples as CSV into this directory",
    )
    parser.add_argument(
        "--flush-every",
        type=int,
        default=60,
        help="Flush CSV every N rows (default: 60)",
    )
    parser.add_argument(
        "--proc-root",
        type=Path,
        default=Path("/proc"),
        help="Base path of the proc filesystem (default: /proc)",
    )
    parser.add_argument(
        "--sys-block-root",
        type=Path,
        default=Path("/sys/block"),
        help="Base path of block device attributes (default: /sys/block)",
    )
    parser.add_argument(
        "--counter-bits",
        type=int,
        default=COUNTER_BITS,
        help=f"Width of the kernel's diskstats counters (default: {COUNTER_BITS})",
    )
    parser.add_argument(
        "--mounts",
        action="store_true",
        help="List mounted device-backed filesystems and exit",
    )
    parser.add_argument(
        "--all-mounts",
        action="store_true",
        help="List all mounted filesystems, including pseudo ones, and exit",
    )
    parser.add_argument(
        "--usage",
        type=Path,
        action="append",
        default=[],
        metavar="PATH",
        help="Show space usage of the filesystem holding PATH and exit "
        "(may be repeated)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> CollectorConfig:
    """Build a CollectorConfig from parsed arguments."""
    return CollectorConfig(
        proc_root=args.proc_root,
        sys_block_root=args.sys_block_root,
        counter_bits=args.counter_bits,
        interval=args.interval,
        count=args.count,
        perdisk=args.perdisk,
        nowrap=not args.raw,
        output_dir=args.output_dir,
        flush_every=args.flush_every,
    )


def _print_mounts(config: CollectorConfig, all_mounts: bool) -> None:
    from .sensors.mounts import disk_partitions

    for part in disk_partitions(all=all_mounts, proc_root=config.proc_root):
        print(f"{part.device}\t{part.mountpoint}\t{part.fstype}\t{part.opts}")


def _print_usage(paths: list[Path]) -> None:
    from .sensors.mounts import disk_usage

    for path in paths:
        usage = disk_usage(path)
        print(
            f"{path}: total={usage.total} used={usage.used} "
            f"free={usage.free} percent={usage.percent}"
        )


def main(argv: list[str] | None = None) -> None:
    """Entry point for the disk I/O collector CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    # Import here so --help works without touching /proc
    from .collector import run_collector

    try:
        if args.mounts or args.all_mounts:
            _print_mounts(config, args.all_mounts)
        elif args.usage:
            _print_usage(args.usage)
        else:
            run_collector(config)
    except DiskIOError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
