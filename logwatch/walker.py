"""
Initial recursive registration of a directory tree.
"""

import logging
import os

from logwatch.registry import WatchError, WatchLimitExceeded

logger = logging.getLogger(__name__)


def _subdirectories(path: str):
    """List child directories of ``path`` sorted by name, not following symlinks."""
    children = []
    with os.scandir(path) as entries:
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    children.append(entry.path)
            except OSError as e:
                logger.warning(f"Error accessing {entry.path}: {e}")
                continue
    children.sort()
    return children


def walk_tree(root: str, registry) -> int:
    """
    Register a watch for ``root`` and every directory below it.

    The walk is depth-first pre-order, children in name order, and never
    follows symbolic links. A directory that cannot be listed is skipped
    along with its subtree; a directory that cannot be watched is left out
    of the watch set while its children are still visited.

    Args:
        root: Top of the tree to watch.
        registry: WatchRegistry receiving the watches.

    Returns:
        int: Number of directories registered.
    """
    if not os.path.isdir(root):
        logger.error(f"Not a directory: {root}")
        return 0

    added = 0
    stack = [os.path.abspath(root)]
    while stack:
        path = stack.pop()
        try:
            registry.add(path)
            added += 1
            logger.info(f"Watching: {path}")
        except WatchLimitExceeded as e:
            logger.debug(str(e))
        except WatchError as e:
            logger.warning(str(e))

        try:
            children = _subdirectories(path)
        except OSError as e:
            logger.warning(f"Error listing {path}: {e}")
            continue
        stack.extend(reversed(children))

    logger.info(f"Registered {added} watches under {os.path.abspath(root)}")
    return added
