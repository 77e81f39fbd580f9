"""
LogWatch: recursive real-time directory activity logger.

Watches a directory tree with inotify, extends the watch set as new
subdirectories appear, and writes a timestamped line for every file or
directory creation, deletion, modification and (throttled) access.
"""

__version__ = "0.1.0"
