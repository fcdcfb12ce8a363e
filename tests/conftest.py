"""Shared test fixtures for pyiotop."""

from pathlib import Path

import pytest

from pyiotop.models import IoCounters, Process, ProcessesList

IO_TEMPLATE = """rchar: 4096
wchar: 512
syscr: 10
syscw: 3
read_bytes: {read}
write_bytes: {write}
cancelled_write_bytes: 0
"""


class FakeProcfs:
    """A procfs-style tree under a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        root.mkdir(parents=True, exist_ok=True)

    def add(
        self,
        pid: int,
        name: str | None = "proc",
        read: int | None = 0,
        write: int | None = 0,
        io_text: str | None = None,
    ) -> Path:
        """Create a process directory. ``None`` leaves the file out."""
        proc_dir = self.root / str(pid)
        proc_dir.mkdir(exist_ok=True)
        if name is not None:
            (proc_dir / "comm").write_text(f"{name}\n")
        if io_text is not None:
            (proc_dir / "io").write_text(io_text)
        elif read is not None and write is not None:
            (proc_dir / "io").write_text(IO_TEMPLATE.format(read=read, write=write))
        return proc_dir

    def set_io(self, pid: int, read: int, write: int) -> None:
        """Overwrite the counters of an existing process."""
        (self.root / str(pid) / "io").write_text(IO_TEMPLATE.format(read=read, write=write))

    def remove(self, pid: int) -> None:
        """Simulate a process exiting."""
        proc_dir = self.root / str(pid)
        for child in proc_dir.iterdir():
            child.unlink()
        proc_dir.rmdir()


@pytest.fixture
def fake_procfs(tmp_path: Path) -> FakeProcfs:
    """Create an empty fake procfs tree."""
    return FakeProcfs(tmp_path / "proc")


def make_process(
    pid: int = 100,
    name: str | None = "test",
    read: int | None = 0,
    write: int = 0,
    read_rate: int = 0,
    write_rate: int = 0,
) -> Process:
    """Create a Process for testing. ``read=None`` gives it an I/O error."""
    if read is None:
        return Process(pid=pid, name=name, io_error=PermissionError(13, "Permission denied"))
    return Process(
        pid=pid,
        name=name,
        name_error=None if name is not None else FileNotFoundError(2, "No such file"),
        io_stats=IoCounters(
            total_read_bytes=read,
            total_write_bytes=write,
            read_rate=read_rate,
            write_rate=write_rate,
        ),
    )


def make_snapshot(*processes: Process) -> ProcessesList:
    """Create a ProcessesList with zeroed stats."""
    return ProcessesList(processes=tuple(processes))
