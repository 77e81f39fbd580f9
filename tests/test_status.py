import io
import logging

from rich.console import Console

from logwatch.registry import WatchRegistry
from logwatch.status import collect_status, log_status, print_status


def test_collect_status_reports_watches(fake_inotify):
    registry = WatchRegistry(fake_inotify, capacity=8)
    registry.add("/data")

    status_info = collect_status(registry, root="/data")

    assert status_info["Watches"] == "1/8"
    assert status_info["Root"] == "/data"
    assert status_info["PID"] > 0
    assert "Events Logged" not in status_info


def test_print_status_renders_table():
    buffer = io.StringIO()
    console = Console(file=buffer, width=120)
    print_status({"PID": 1, "Watches": "3/1024"}, console=console)

    output = buffer.getvalue()
    assert "LogWatch Status" in output
    assert "Watches" in output
    assert "3/1024" in output


def test_log_status(caplog):
    logger = logging.getLogger("logwatch-status-test")
    with caplog.at_level(logging.INFO, logger="logwatch-status-test"):
        log_status(logger, {"PID": 1, "Watches": "0/1024"})
    assert "Watches: 0/1024" in caplog.text
