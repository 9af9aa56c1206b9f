"""Exceptions raised while collecting disk I/O counters.

Every failure aborts the current poll.  The classes also derive from the
builtin exception a caller would expect (``ValueError`` for bad data,
``OSError`` for unreadable sources) so generic handlers keep working.
"""

from __future__ import annotations


class DiskIOError(Exception):
    """Base class for all disk I/O collection errors."""


class MalformedInputError(DiskIOError, ValueError):
    """A kernel statistics source had the wrong shape or a bad integer."""


class UnsupportedKernelFormatError(DiskIOError, ValueError):
    """A /proc/diskstats record does not have the expected 14 fields.

    This usually means the host kernel exposes a different statistics
    format than the one this collector understands.
    """


class IOUnavailableError(DiskIOError, OSError):
    """A kernel statistics file could not be read at all."""
