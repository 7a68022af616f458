"""
Logging Configuration
=====================
Attaches console and file handlers to the ``blendedgridding`` logger.

Records carry a ``stage`` field, the last part of the module name
("gridder", "time_marker", "smoothing", ...), so that a gridding run reads
as a sequence of rasterize, march and blend steps.
"""
import logging
import os
import sys
from typing import Optional

PACKAGE_LOGGER = "blendedgridding"

GRIDDING_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s [%(stage)s] %(message)s"
GRIDDING_DATEFMT = "%H:%M:%S"


class StageFilter(logging.Filter):
    """Adds the ``stage`` attribute used by :data:`GRIDDING_FORMAT`."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "stage"):
            record.stage = record.name.rsplit(".", 1)[-1]
        return True


def _own_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, "_gridding_handler", False)]


def _make_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(GRIDDING_FORMAT, datefmt=GRIDDING_DATEFMT))
    handler.addFilter(StageFilter())
    handler._gridding_handler = True
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    replace: bool = False,
) -> logging.Logger:
    """
    Configure the package logger for gridding runs.

    Handlers added by an earlier call are kept and only their level is
    updated, unless ``replace`` is set. Handlers attached by the
    application are never touched.

    Args:
        level: Logging level for the logger and its handlers.
        log_file: Optional path of a log file; records are appended.
        replace: Close and remove handlers added by earlier calls first.

    Returns:
        The package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    existing = _own_handlers(logger)
    if replace:
        for handler in existing:
            logger.removeHandler(handler)
            handler.close()
        existing = []

    for handler in existing:
        handler.setLevel(level)

    consoles = [h for h in existing if not isinstance(h, logging.FileHandler)]
    if not consoles:
        logger.addHandler(_make_handler(logging.StreamHandler(sys.stdout), level))

    if log_file:
        # FileHandler stores the absolute path
        path = os.path.abspath(log_file)
        files = [h for h in existing if isinstance(h, logging.FileHandler)]
        if not any(h.baseFilename == path for h in files):
            handler = logging.FileHandler(path, mode="a", encoding="utf-8")
            logger.addHandler(_make_handler(handler, level))

    logger.debug(f"Logging configured with {len(logger.handlers)} handlers.")
    return logger
