"""Logging configuration helpers."""

import logging

LOGGER_NAME = "photo_sharing_client"
LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Route client logs to one stream handler at the given level.

    Repeated calls only adjust the level, so building several containers in
    one process does not duplicate output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.propagate = False
    return logger
