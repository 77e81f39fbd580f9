"""
Process and watch-set status reporting.
"""

import os
import time

import psutil
from rich.console import Console
from rich.table import Table


def collect_status(registry, dispatcher=None, root=None):
    """
    Gather process information (psutil) and watch statistics.

    Args:
        registry: WatchRegistry in use.
        dispatcher: EventDispatcher, for event counters.
        root (str): Watched tree root.

    Returns:
        dict: Ordered property -> value mapping.
    """
    proc = psutil.Process(os.getpid())
    status_info = {
        "PID": proc.pid,
        "CPU %": proc.cpu_percent(interval=0.1),
        "Memory %": round(proc.memory_percent(), 2),
        "Memory RSS": proc.memory_info().rss,
        "Started At": time.strftime(
            "%Y-%m-%d %H:%M:%S", time.localtime(proc.create_time())
        ),
    }
    if root is not None:
        status_info["Root"] = root
    status_info["Watches"] = f"{len(registry)}/{registry.capacity}"
    if dispatcher is not None:
        status_info["Events Seen"] = dispatcher.events_seen
        status_info["Events Logged"] = dispatcher.events_logged
        status_info["Access Events Throttled"] = dispatcher.events_throttled
    return status_info


def print_status(status_info, console=None, title="LogWatch Status"):
    console = console or Console()
    table = Table(title=title)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="magenta")
    for key, value in status_info.items():
        table.add_row(key, str(value))
    console.print(table)


def log_status(logger, status_info):
    """Write the status as one multi-line INFO record."""
    logger.info(
        "LogWatch Status:\n" + "\n".join(f"{k}: {v}" for k, v in status_info.items())
    )
