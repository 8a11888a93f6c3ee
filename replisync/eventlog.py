from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO


EVENT_LOGGER_NAME = "replisync.events"
LOG_FORMAT = "[%(asctime)s] %(message)s"
# Locale's own date and time representation.
DATE_FORMAT = "%c"

SYNC_STARTED = "SYNC STARTED"
SOURCE = "SOURCE"
REPLICA = "REPLICA"
TO_ADD = "TO ADD"
TO_UPDATE = "TO UPDATE"
TO_DELETE = "TO DELETE"
ADDED = "ADDED"
UPDATED = "UPDATED"
DELETED = "DELETED"
SYNC_FINISHED = "SYNC FINISHED"
ERROR = "ERROR"


def setup_event_logger(
    log_path: Path,
    *,
    stream: TextIO | None = None,
    name: str = EVENT_LOGGER_NAME,
) -> logging.Logger:
    """Return a logger writing every line to ``stream`` and appending it to ``log_path``.

    Handlers from an earlier call with the same ``name`` are closed and replaced.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    fh = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    fh.setFormatter(formatter)
    fh.setLevel(logging.INFO)

    ch = logging.StreamHandler(stream if stream is not None else sys.stdout)
    ch.setFormatter(formatter)
    ch.setLevel(logging.INFO)

    logger.addHandler(ch)
    logger.addHandler(fh)
    return logger


def close_event_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def log_event(
    logger: logging.Logger,
    event: str,
    detail: str | None = None,
    *,
    level: int = logging.INFO,
) -> None:
    if detail is None:
        logger.log(level, "%s", event)
    else:
        logger.log(level, "%s: %s", event, detail)


def log_error(logger: logging.Logger, detail: str) -> None:
    log_event(logger, ERROR, detail, level=logging.WARNING)
