"""Central logging configuration for the DingTalk alerter."""

import logging
import sys
from typing import Optional, Union

from dingtalk_alerter.config import get_settings

LOGGER_NAME = "dingtalk_alerter"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Return the package logger, attaching a stdout handler on first use.

    ``level`` defaults to ``Settings.log_level``.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    if level is None:
        level = get_settings().log_level

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
