"""Process sampling from a procfs-style tree.

Each live process is a directory named by its pid. Two text files are read
from it: ``comm`` (the display name) and ``io`` (cumulative I/O counters as
``key: value`` lines). Either read may fail on its own, e.g. when the process
exits between enumeration and the read, or when it belongs to another user.
"""

import os
from collections.abc import Iterator
from pathlib import Path

from pyiotop.models import IoCounters, Process

NAME_FILE = "comm"
IO_FILE = "io"

READ_BYTES_PREFIX = "read_bytes: "
WRITE_BYTES_PREFIX = "write_bytes: "

U64_MAX = 2**64 - 1


class IoFormatError(ValueError):
    """The ``io`` file did not contain exactly one valid read/write counter each."""


def parse_u64(raw: str) -> int | None:
    """
    Parse an unsigned 64-bit decimal, or return None if ``raw`` is not one.

    One leading ``+`` is allowed. Other signs, underscores and whitespace are
    not, although int() would accept them.
    """
    digits = raw[1:] if raw.startswith("+") else raw
    if not (digits.isascii() and digits.isdigit()):
        return None
    value = int(digits)
    if value > U64_MAX:
        return None
    return value


def _parse_counter(key: str, raw: str) -> int:
    value = parse_u64(raw)
    if value is None:
        raise IoFormatError(f"invalid {key} value {raw!r}")
    return value


def parse_io_counters(text: str) -> IoCounters:
    """
    Parse the contents of a per-process ``io`` file.

    Lines starting with ``read_bytes: `` and ``write_bytes: `` are required
    exactly once each; every other line is ignored.

    Raises:
        IoFormatError: On a duplicate key, an unparsable value or a missing key.
    """
    read_bytes: int | None = None
    write_bytes: int | None = None

    # Only "\n" (or "\r\n") ends a line; str.splitlines() would also split on
    # "\r", form feeds and Unicode separators
    for line in text.split("\n"):
        line = line.removesuffix("\r")
        if line.startswith(READ_BYTES_PREFIX):
            if read_bytes is not None:
                raise IoFormatError("duplicate read_bytes")
            read_bytes = _parse_counter("read_bytes", line[len(READ_BYTES_PREFIX) :])
        elif line.startswith(WRITE_BYTES_PREFIX):
            if write_bytes is not None:
                raise IoFormatError("duplicate write_bytes")
            write_bytes = _parse_counter("write_bytes", line[len(WRITE_BYTES_PREFIX) :])

    if read_bytes is None:
        raise IoFormatError("missing read_bytes")
    if write_bytes is None:
        raise IoFormatError("missing write_bytes")

    return IoCounters(total_read_bytes=read_bytes, total_write_bytes=write_bytes)


def read_process_name(proc_dir: Path) -> str:
    """
    Read the process name, stripped of surrounding whitespace.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the name is not valid UTF-8.
    """
    return (proc_dir / NAME_FILE).read_bytes().decode("utf-8").strip()


def read_io_counters(proc_dir: Path) -> IoCounters:
    """Read and parse the cumulative I/O counters of a process."""
    return parse_io_counters((proc_dir / IO_FILE).read_bytes().decode("utf-8"))


def sample_process(pid: int, proc_dir: Path) -> Process:
    """
    Read both facts about one process.

    Failures are stored on the returned record instead of being raised.
    """
    name: str | None = None
    name_error: Exception | None = None
    io_stats: IoCounters | None = None
    io_error: Exception | None = None

    try:
        name = read_process_name(proc_dir)
    except (OSError, UnicodeDecodeError) as e:
        name_error = e.with_traceback(None)

    try:
        io_stats = read_io_counters(proc_dir)
    except (OSError, UnicodeDecodeError, IoFormatError) as e:
        io_error = e.with_traceback(None)

    return Process(
        pid=pid,
        name=name,
        name_error=name_error,
        io_stats=io_stats,
        io_error=io_error,
    )


def iter_pid_dirs(root: str | Path) -> Iterator[tuple[int, Path]]:
    """
    Yield ``(pid, path)`` for every process directory under ``root``.

    Entries that are not directories or whose name is not a 64-bit unsigned
    number (``self``, ``sys``, ``meminfo``...) are skipped.

    Raises:
        OSError: If ``root`` itself cannot be listed.
    """
    with os.scandir(root) as entries:
        for entry in entries:
            pid = parse_u64(entry.name)
            if pid is None:
                continue
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                # Entry vanished between listing and stat
                continue
            yield pid, Path(entry.path)


def sample_processes(root: str | Path) -> list[Process]:
    """
    Sample every process under ``root``, in enumeration order.

    Raises:
        OSError: If ``root`` itself cannot be listed.
    """
    return [sample_process(pid, path) for pid, path in iter_pid_dirs(root)]
