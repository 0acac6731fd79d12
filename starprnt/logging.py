"""Logging configuration helpers."""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "WARNING", *, log_path: Path | None = None) -> None:
    """Configure root logging handlers.

    ``log_path`` adds a file handler next to the console one. Pillow and
    urllib3 stay at WARNING unless DEBUG is requested.
    """
    logging.captureWarnings(True)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    resolved = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    if resolved > logging.DEBUG:
        logging.getLogger("PIL").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)
