import logging
import os
import sys
import time

import click

EVENT_TIME_FORMAT = "%d-%m-%Y %H:%M:%S"


def printable(text):
    """Replace characters left over from undecodable file names so any terminal can show them."""
    return os.fsencode(text).decode(sys.getfilesystemencoding(), "replace")


def setup_logger(name, log_dir=None, log_filename=None, level=logging.INFO, console=True):
    """
    Set up and return a logger with optional file and console handlers.

    Args:
        name (str): The logger name.
        log_dir (str): Directory where the log file will be stored; no file
            handler is added when empty.
        log_filename (str): Log file name.
        level (int): Logging level.
        console (bool): Whether to add a console (stderr) handler.

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear out any existing handlers.
    logger.handlers = []

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if log_dir and log_filename:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


class EventLog:
    """
    Append-only activity log.

    Every event becomes one line ``[DD-MM-YYYY HH:MM:SS] <path>: <description>``
    in the log file, mirrored to standard output. The file is opened per event,
    so a sink that is temporarily unavailable only loses that event.
    """

    def __init__(self, log_path, echo=True, clock=time.time):
        self.log_path = log_path
        self.echo = echo
        self.clock = clock
        self.errors = 0
        self._logger = logging.getLogger(__name__)

    def format_line(self, description, path):
        stamp = time.strftime(EVENT_TIME_FORMAT, time.localtime(self.clock()))
        return f"[{stamp}] {path}: {description}"

    def record(self, description, path):
        """
        Write one event.

        Returns:
            bool: False if the log file could not be opened; the line is then
            not echoed either.
        """
        line = self.format_line(description, path)
        try:
            # Undecodable file names carry surrogates; write their original bytes back.
            with open(self.log_path, "a", errors="surrogateescape") as f:
                f.write(line + "\n")
        except (OSError, UnicodeError) as e:
            self.errors += 1
            self._logger.error(f"Error writing log file {self.log_path}: {e!r}")
            return False

        if self.echo:
            click.echo(printable(line))
        return True

    __call__ = record
