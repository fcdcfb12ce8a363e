"""Tests for pyiotop application."""

import pytest
from textual.widgets import DataTable

from pyiotop.app import DiskStatsHeader, IoTopApp, ProcessTable
from pyiotop.config import Config
from pyiotop.models import DiskStats, ProcessesList
from pyiotop.rows import SortKey

from conftest import make_process, make_snapshot


@pytest.fixture
def app_config(fake_procfs):
    """Config sampling the fake procfs tree."""
    fake_procfs.add(1, name="init", read=1000, write=0)
    fake_procfs.add(2, name="writer", read=0, write=8192)
    fake_procfs.add(3, name="locked", read=None)
    config = Config()
    config.sampling.procfs_root = str(fake_procfs.root)
    return config


@pytest.mark.asyncio
async def test_app_creation(app_config):
    """Test IoTopApp can be instantiated."""
    app = IoTopApp(app_config)
    assert app.title == "pyiotop"
    assert app.sub_title == "Process I/O Monitor"
    assert len(app.current_snapshot) == 0


@pytest.mark.asyncio
async def test_app_compose(app_config):
    """Test IoTopApp composes correctly."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#disk-stats") is not None
        assert pilot.app.query_one("#process-table") is not None


@pytest.mark.asyncio
async def test_app_first_refresh_on_mount(app_config):
    """Test the table is filled from the first sample."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        await pilot.pause()
        table = pilot.app.query_one("#process-table", DataTable)
        process_table = pilot.app.query_one(ProcessTable)

        assert table.row_count == 3
        assert sorted(process_table.shown_pids) == [1, 2, 3]
        assert table.get_row("3") == ["3", "locked", "-", "-"]
        assert app.current_snapshot.disk_stats.total_read == 1000


@pytest.mark.asyncio
async def test_app_refresh_computes_deltas(app_config, fake_procfs):
    """Test a second refresh shows bytes since the first one."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        await pilot.pause()
        fake_procfs.set_io(1, read=1000 + 4096, write=0)
        pilot.app.refresh_processes()
        await pilot.pause()

        table = pilot.app.query_one("#process-table", DataTable)
        assert table.get_row("1")[2] == "4.0 KiB/s"
        assert table.get_row("2")[3] == "0.0 B/s"


@pytest.mark.asyncio
async def test_app_removes_exited_processes(app_config, fake_procfs):
    """Test rows of exited processes are removed."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        await pilot.pause()
        fake_procfs.remove(2)
        fake_procfs.add(4, name="new", read=1, write=1)
        pilot.app.refresh_processes()
        await pilot.pause()

        process_table = pilot.app.query_one(ProcessTable)
        assert sorted(process_table.shown_pids) == [1, 3, 4]
        assert pilot.app.query_one("#process-table", DataTable).row_count == 3


@pytest.mark.asyncio
async def test_app_survives_unreadable_root(tmp_path):
    """Test the app keeps running with an empty table when procfs is missing."""
    config = Config()
    config.sampling.procfs_root = str(tmp_path / "missing")
    app = IoTopApp(config)
    async with app.run_test() as pilot:
        await pilot.pause()
        assert pilot.app.query_one("#process-table", DataTable).row_count == 0
        assert app.current_snapshot == ProcessesList.empty()


@pytest.mark.asyncio
async def test_app_quit_binding(app_config):
    """Test that 'q' binding triggers quit."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_app_sort_binding(app_config):
    """Test that 's' binding cycles sort key."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        process_table = pilot.app.query_one(ProcessTable)
        initial_sort = process_table.sort_key

        await pilot.press("s")

        assert process_table.sort_key != initial_sort


@pytest.mark.asyncio
async def test_process_table_cycle_sort(app_config):
    """Test ProcessTable sort key cycling."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        process_table = pilot.app.query_one(ProcessTable)

        assert process_table.sort_key == SortKey.READ

        process_table.cycle_sort()
        assert process_table.sort_key == SortKey.WRITE

        process_table.cycle_sort()
        assert process_table.sort_key == SortKey.PID

        process_table.cycle_sort()
        assert process_table.sort_key == SortKey.NAME

        process_table.cycle_sort()
        assert process_table.sort_key == SortKey.READ


@pytest.mark.asyncio
async def test_process_table_sorted_by_read_rate(app_config):
    """Test rows are ordered busiest reader first by default."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        await pilot.pause()
        table = pilot.app.query_one("#process-table", DataTable)

        first_row = table.get_row_at(0)
        last_row = table.get_row_at(table.row_count - 1)
        assert first_row[0] == "1"
        assert last_row[0] == "3"


@pytest.mark.asyncio
async def test_process_table_update_processes(app_config):
    """Test ProcessTable applies inserts, updates and removals."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        await pilot.pause()
        process_table = pilot.app.query_one(ProcessTable)
        table = pilot.app.query_one("#process-table", DataTable)

        process_table.update_processes(
            make_snapshot(make_process(100, name="a"), make_process(200, name="b"))
        )
        assert sorted(process_table.shown_pids) == [100, 200]

        process_table.update_processes(make_snapshot(make_process(200, name="renamed")))

        assert process_table.shown_pids == [200]
        assert table.row_count == 1
        assert table.get_row("200")[1] == "renamed"


@pytest.mark.asyncio
async def test_disk_stats_header(app_config):
    """Test the header renders totals and maxima."""
    app = IoTopApp(app_config)
    async with app.run_test() as pilot:
        header = pilot.app.query_one("#disk-stats", DiskStatsHeader)
        snapshot = ProcessesList(
            processes=(make_process(1, read=0, read_rate=4096, write_rate=2048),),
            disk_stats=DiskStats(4096, 2048, 4096, 2048),
        )

        header.update_stats(snapshot)

        text = header._render_stats()
        assert "Total read: 4.0 KiB/s" in text
        assert "Total write: 2.0 KiB/s" in text
        assert "Processes: 1" in text
