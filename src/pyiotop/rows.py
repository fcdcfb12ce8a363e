"""Table row helpers shared by the TUI and its tests."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from pyiotop.models import Process, ProcessesList

RATE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB"]
NO_RATE = "-"


class SortKey(Enum):
    """Sort keys for the process table."""

    READ = "read"
    WRITE = "write"
    PID = "pid"
    NAME = "name"


@dataclass(slots=True, frozen=True)
class RowChanges:
    """Row operations that bring a pid-keyed table in line with a snapshot."""

    removed: tuple[int, ...]
    updated: tuple[Process, ...]  # Snapshot order
    added: tuple[Process, ...]  # Snapshot order


def format_bytes_per_second(size: int) -> str:
    """Format a byte rate as a human-readable string."""
    value = float(size)
    unit = 0
    while value >= 2048.0 and unit < len(RATE_UNITS) - 1:
        value /= 1024.0
        unit += 1
    return f"{value:.1f} {RATE_UNITS[unit]}/s"


def row_values(proc: Process) -> tuple[str, str, str, str]:
    """Cell values for one process: pid, name, read rate, write rate."""
    if proc.io_stats is None:
        read, write = NO_RATE, NO_RATE
    else:
        read = format_bytes_per_second(proc.io_stats.read_rate)
        write = format_bytes_per_second(proc.io_stats.write_rate)
    return str(proc.pid), proc.display_name, read, write


def sort_value(proc: Process, key: SortKey) -> int | str:
    """Value to sort a process by. Unreadable counters sort below zero."""
    if key is SortKey.PID:
        return proc.pid
    if key is SortKey.NAME:
        return proc.display_name.lower()
    if proc.io_stats is None:
        return -1
    if key is SortKey.READ:
        return proc.io_stats.read_rate
    return proc.io_stats.write_rate


def diff_rows(shown_pids: Sequence[int], snapshot: ProcessesList) -> RowChanges:
    """
    Compare the pids currently in a table against a new snapshot.

    Rows whose pid is gone are removed, rows whose pid is still present are
    updated in place, and the remaining processes are appended.
    """
    shown = set(shown_pids)
    live = {proc.pid for proc in snapshot.processes}

    updated = tuple(proc for proc in snapshot.processes if proc.pid in shown)
    added = tuple(proc for proc in snapshot.processes if proc.pid not in shown)
    removed = tuple(pid for pid in shown_pids if pid not in live)

    return RowChanges(removed=removed, updated=updated, added=added)
