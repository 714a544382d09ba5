import logging

import pytest

from utils.logging_utils import configure_logging, level_for_verbosity


@pytest.mark.parametrize(
    "verbosity, expected",
    [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG), (-1, logging.WARNING)],
)
def test_level_for_verbosity(verbosity, expected):
    assert level_for_verbosity(verbosity) == expected


def test_watchfiles_stays_above_debug(monkeypatch):
    watchfiles_logger = logging.getLogger("watchfiles")
    monkeypatch.setattr(watchfiles_logger, "level", watchfiles_logger.level)

    assert configure_logging(2) == logging.DEBUG
    assert watchfiles_logger.level == logging.INFO
