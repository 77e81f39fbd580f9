import logging
import os
import signal

import click
from inotify_simple import INotify
from rich.console import Console

from logwatch import config
from logwatch import logger as logger_module
from logwatch import status as status_module
from logwatch.dispatcher import EventDispatcher
from logwatch.registry import WatchRegistry
from logwatch.throttle import AccessThrottleCache
from logwatch.walker import walk_tree

DIAGNOSTIC_LOG_FILENAME = "logwatch-diagnostics.log"

BANNER = "\n".join([
    "",
    "┓     ┓ ┏    ┓  ",
    "┃ ┏┓┏┓┃┃┃┏┓╋┏┣┓ ",
    "┗┛┗┛┗┫┗┻┛┗┻┗┗┛┗ ",
    "     ┛          ",
    "",
])

log = logging.getLogger("logwatch")


def print_banner(console=None):
    console = console or Console()
    console.print(BANNER, style="bold cyan", highlight=False)


def install_signal_handlers(dispatcher, signals=(signal.SIGINT, signal.SIGTERM)):
    """
    Route termination signals to a cooperative dispatcher stop.

    Returns:
        dict: The previous handlers, for restore_signal_handlers().
    """
    def handle_exit(signum, frame):
        dispatcher.stop()

    previous = {}
    for sig in signals:
        previous[sig] = signal.signal(sig, handle_exit)
    return previous


def restore_signal_handlers(previous):
    for sig, handler in previous.items():
        signal.signal(sig, handler if handler is not None else signal.SIG_DFL)


def shutdown(inotify, registry, dispatcher, show_status=False, root=None):
    """
    Release every watch and close the notification facility.

    Returns:
        int: Number of watches released.
    """
    click.echo("\nStopping log watcher...")
    status_info = None
    if show_status:
        try:
            status_info = status_module.collect_status(registry, dispatcher, root)
        except Exception as e:
            log.error(f"Error collecting status: {e}")

    released = registry.remove_all()
    log.info(f"Released {released} watches")
    dispatcher.close()
    inotify.close()

    if status_info is not None:
        status_module.log_status(log, status_info)
        status_module.print_status(status_info)
    return released


@click.command(context_settings={"help_option_names": ["--help"]})
@click.argument(
    "directory",
    default=".",
    required=False,
    type=click.Path(exists=True, file_okay=False),
)
@click.pass_context
def main(ctx, directory):
    """
    LogWatch: recursively monitor DIRECTORY (default: current directory)
    and log file and directory creation, deletion, modification and access.
    """
    try:
        cfg = config.load_config()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    log_cfg = cfg.get("logging", {})
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_dir = log_cfg.get("log_dir") or None
    logger_module.setup_logger(
        "logwatch",
        log_dir,
        DIAGNOSTIC_LOG_FILENAME if log_dir else None,
        level=level,
    )

    display_cfg = cfg.get("display", {})
    if display_cfg.get("banner", True):
        print_banner()

    try:
        inotify = INotify()
    except OSError as e:
        click.echo(f"inotify_init: {e}", err=True)
        ctx.exit(1)

    watch_cfg = cfg.get("watch", {})
    throttle_cfg = cfg.get("throttle", {})
    root = os.path.abspath(directory)

    event_log = logger_module.EventLog(
        os.path.abspath(os.path.expanduser(log_cfg.get("log_file", "logwatch.log")))
    )
    ignored_paths = [event_log.log_path]
    if log_dir:
        ignored_paths.append(os.path.abspath(os.path.join(log_dir, DIAGNOSTIC_LOG_FILENAME)))

    registry = WatchRegistry(inotify, capacity=watch_cfg.get("max_watches", 1024))
    throttle = AccessThrottleCache(
        window_ms=throttle_cfg.get("window_ms", 3000),
        capacity=throttle_cfg.get("capacity", 256),
    )
    dispatcher = EventDispatcher(
        inotify,
        registry,
        throttle,
        event_log.record,
        read_size=watch_cfg.get("read_size", 1024 * (16 + 16)),
        ignored_paths=ignored_paths,
    )

    previous_handlers = install_signal_handlers(dispatcher)
    try:
        walk_tree(root, registry)
        click.echo(
            f"LogWatch is running - monitoring '{directory}' recursively in real time...\n"
        )
        dispatcher.run()
    finally:
        restore_signal_handlers(previous_handlers)
        shutdown(
            inotify,
            registry,
            dispatcher,
            show_status=display_cfg.get("status", True),
            root=root,
        )


if __name__ == "__main__":
    main()
