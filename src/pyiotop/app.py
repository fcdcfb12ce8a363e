"""pyiotop - Main Textual application."""

import structlog
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from pyiotop.config import Config
from pyiotop.logging import configure
from pyiotop.models import DiskStats, ProcessesList
from pyiotop.monitor import refresh
from pyiotop.rows import SortKey, diff_rows, format_bytes_per_second, row_values, sort_value

log = structlog.get_logger()

COLUMNS = (
    ("PID", "pid", 8),
    ("Process Name", "name", 24),
    ("Read", "read", 14),
    ("Write", "write", 14),
)


class DiskStatsHeader(Static):
    """Header widget showing system-wide read/write rates."""

    DEFAULT_CSS = """
    DiskStatsHeader {
        height: auto;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize DiskStatsHeader."""
        super().__init__(*args, **kwargs)
        self._stats = DiskStats()
        self._process_count = 0

    def update_stats(self, snapshot: ProcessesList) -> None:
        """Update the statistics from a snapshot."""
        self._stats = snapshot.disk_stats
        self._process_count = len(snapshot.processes)
        self.update(self._render_stats())

    def _render_stats(self) -> str:
        stats = self._stats
        return (
            f"Total read: {format_bytes_per_second(stats.total_read)}  "
            f"(max {format_bytes_per_second(stats.maximum_read)})\n"
            f"Total write: {format_bytes_per_second(stats.total_write)}  "
            f"(max {format_bytes_per_second(stats.maximum_write)})\n"
            f"Processes: {self._process_count}"
        )


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._shown_pids: list[int] = []
        self._snapshot = ProcessesList.empty()
        self._sort_key: SortKey = SortKey.READ
        self._sort_reverse: bool = True  # Default: busiest first

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    @property
    def shown_pids(self) -> list[int]:
        """Pids currently in the table, in insertion order."""
        return list(self._shown_pids)

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        current_index = keys.index(self._sort_key)
        self._sort_key = keys[(current_index + 1) % len(keys)]
        self._sort_reverse = self._sort_key in (SortKey.READ, SortKey.WRITE)
        self._sort_table()
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"
        for label, key, width in COLUMNS:
            table.add_column(label, key=key, width=width)

    def update_processes(self, snapshot: ProcessesList) -> None:
        """
        Update the table with a new snapshot.

        Existing rows are updated cell by cell, rows of exited processes are
        removed and new processes are appended.
        """
        table = self.query_one("#process-table", DataTable)
        changes = diff_rows(self._shown_pids, snapshot)

        for pid in changes.removed:
            table.remove_row(str(pid))

        for proc in changes.updated:
            row_key = str(proc.pid)
            for (_, column_key, _), value in zip(COLUMNS, row_values(proc)):
                table.update_cell(row_key, column_key, value)

        for proc in changes.added:
            table.add_row(*row_values(proc), key=str(proc.pid))

        removed = set(changes.removed)
        kept = [pid for pid in self._shown_pids if pid not in removed]
        self._shown_pids = kept + [proc.pid for proc in changes.added]
        self._snapshot = snapshot
        self._sort_table()

    def _sort_table(self) -> None:
        """Sort rows by the current sort key using the raw snapshot values."""
        table = self.query_one("#process-table", DataTable)
        if table.row_count == 0:
            return
        by_pid = self._snapshot.by_pid()
        table.sort(
            "pid",
            key=lambda pid: sort_value(by_pid[int(pid)], self._sort_key),
            reverse=self._sort_reverse,
        )


class IoTopApp(App):
    """Main pyiotop application."""

    TITLE = "pyiotop"
    SUB_TITLE = "Process I/O Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #disk-stats {
        dock: top;
        height: auto;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("s", "sort", "Sort"),
    ]

    def __init__(self, config: Config | None = None) -> None:
        """Initialize the IoTopApp."""
        super().__init__()
        self._app_config = config or Config()
        self._snapshot = ProcessesList.empty()

    @property
    def current_snapshot(self) -> ProcessesList:
        """The most recent snapshot."""
        return self._snapshot

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield DiskStatsHeader(id="disk-stats")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Take the first sample and start the refresh timer."""
        log.info(
            "app_started",
            interval=self._app_config.sampling.interval,
            root=self._app_config.sampling.procfs_root,
        )
        self.refresh_processes()
        self.set_interval(self._app_config.sampling.interval, self.refresh_processes)

    def refresh_processes(self) -> None:
        """Sample once and push the new snapshot to the widgets."""
        self._snapshot = refresh(self._snapshot, self._app_config.sampling.procfs_root)
        self.query_one("#disk-stats", DiskStatsHeader).update_stats(self._snapshot)
        self.query_one(ProcessTable).update_processes(self._snapshot)

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        new_sort_key = self.query_one(ProcessTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_quit(self) -> None:
        """Handle quit action."""
        log.info("app_stopped")
        self.exit()


def main() -> None:
    """Entry point for pyiotop application."""
    config = Config.load()
    configure(config)
    app = IoTopApp(config)
    app.run()


if __name__ == "__main__":
    main()
