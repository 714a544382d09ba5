"""
Logging setup for gitpane.

`-v` on the command line raises the level; worker threads are named in the
output because git calls and the directory watcher run off the UI thread.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"
# Third-party loggers that flood DEBUG output with raw events.
CHATTY_LOGGERS = ("watchfiles",)


def level_for_verbosity(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbosity: int) -> int:
    """Configures the root logger and returns the level chosen."""
    level = level_for_verbosity(verbosity)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    return level
