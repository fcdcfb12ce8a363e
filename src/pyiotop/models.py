"""Data models for pyiotop."""

from collections.abc import Iterator
from dataclasses import dataclass, field

UNKNOWN_NAME = "?"


@dataclass(slots=True, frozen=True)
class IoCounters:
    """Cumulative I/O counters of one process, plus rates for the current round."""

    total_read_bytes: int
    total_write_bytes: int
    read_rate: int = 0  # Bytes since the previous sample
    write_rate: int = 0


@dataclass(slots=True, frozen=True)
class Process:
    """
    One live process at sample time.

    The name and the I/O counters are read from separate files and fail
    independently: exactly one of ``name``/``name_error`` is set, and exactly
    one of ``io_stats``/``io_error`` is set.
    """

    pid: int
    name: str | None = None
    name_error: Exception | None = None
    io_stats: IoCounters | None = None
    io_error: Exception | None = None

    @property
    def display_name(self) -> str:
        """Name to show, or a placeholder when it could not be read."""
        return self.name if self.name is not None else UNKNOWN_NAME

    @property
    def has_io(self) -> bool:
        """Whether the I/O counters were read this round."""
        return self.io_stats is not None


@dataclass(slots=True, frozen=True)
class DiskStats:
    """System-wide aggregate over one sample round."""

    total_read: int = 0
    total_write: int = 0
    maximum_read: int = 0
    maximum_write: int = 0


@dataclass(slots=True, frozen=True)
class ProcessesList:
    """Immutable snapshot of every sampled process and the round's aggregates."""

    processes: tuple[Process, ...] = ()
    disk_stats: DiskStats = field(default_factory=DiskStats)

    @classmethod
    def empty(cls) -> "ProcessesList":
        """Snapshot with no processes and zeroed stats."""
        return cls()

    def by_pid(self) -> dict[int, Process]:
        """Index the processes by pid."""
        return {proc.pid: proc for proc in self.processes}

    def __len__(self) -> int:
        return len(self.processes)

    def __iter__(self) -> Iterator[Process]:
        return iter(self.processes)
