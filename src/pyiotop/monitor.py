"""I/O monitoring engine for pyiotop.

``refresh`` is the single entry point: it samples the procfs tree and
reconciles the result against the previous snapshot. The caller owns the
snapshot and hands it back on the next call; nothing is kept here between
calls.
"""

from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

import structlog

from pyiotop.config import DEFAULT_PROCFS_ROOT
from pyiotop.models import DiskStats, IoCounters, Process, ProcessesList
from pyiotop.procfs import sample_processes

log = structlog.get_logger()


def compute_rates(current: IoCounters, previous: IoCounters | None) -> IoCounters:
    """
    Fill in the bytes read/written since the previous sample.

    Without a usable baseline (new pid, unreadable counters last round, or
    counters that went backwards because the pid was reused) the cumulative
    totals are reported as the rate.
    """
    if (
        previous is None
        or current.total_read_bytes < previous.total_read_bytes
        or current.total_write_bytes < previous.total_write_bytes
    ):
        return replace(
            current,
            read_rate=current.total_read_bytes,
            write_rate=current.total_write_bytes,
        )

    # TODO: divide by the elapsed time once snapshots carry a timestamp
    return replace(
        current,
        read_rate=current.total_read_bytes - previous.total_read_bytes,
        write_rate=current.total_write_bytes - previous.total_write_bytes,
    )


def compute_disk_stats(processes: Iterable[Process]) -> DiskStats:
    """Aggregate rates over the processes whose counters were read this round."""
    total_read = total_write = maximum_read = maximum_write = 0
    for proc in processes:
        if proc.io_stats is None:
            continue
        read = proc.io_stats.read_rate
        write = proc.io_stats.write_rate
        total_read += read
        total_write += write
        maximum_read = max(maximum_read, read)
        maximum_write = max(maximum_write, write)

    return DiskStats(
        total_read=total_read,
        total_write=total_write,
        maximum_read=maximum_read,
        maximum_write=maximum_write,
    )


def reconcile(previous: ProcessesList, sampled: Iterable[Process]) -> ProcessesList:
    """
    Build the next snapshot from freshly sampled processes.

    Rates are computed against the entry with the same pid in ``previous``.
    If ``sampled`` repeats a pid, the first occurrence is kept.
    """
    baseline = previous.by_pid()
    seen: set[int] = set()
    processes: list[Process] = []

    for proc in sampled:
        if proc.pid in seen:
            continue
        seen.add(proc.pid)

        if proc.io_stats is not None:
            old = baseline.get(proc.pid)
            old_stats = old.io_stats if old is not None else None
            proc = replace(proc, io_stats=compute_rates(proc.io_stats, old_stats))
        processes.append(proc)

    return ProcessesList(
        processes=tuple(processes),
        disk_stats=compute_disk_stats(processes),
    )


def refresh(previous: ProcessesList, root: str | Path | None = None) -> ProcessesList:
    """
    Sample the live process table and return the next snapshot.

    Never raises: if the procfs root cannot be listed, an empty snapshot is
    returned and the next call tries again.

    Args:
        previous: Snapshot returned by the previous call, or an empty one.
        root: procfs root to sample. Defaults to psutil's procfs path.
    """
    root = root if root is not None else DEFAULT_PROCFS_ROOT
    try:
        sampled = sample_processes(root)
    except OSError as e:
        log.warning("procfs_unlistable", root=str(root), error=str(e))
        return ProcessesList.empty()

    snapshot = reconcile(previous, sampled)
    log.debug(
        "refresh_complete",
        processes=len(snapshot.processes),
        io_errors=sum(1 for proc in snapshot.processes if proc.io_error is not None),
        total_read=snapshot.disk_stats.total_read,
        total_write=snapshot.disk_stats.total_write,
    )
    return snapshot
