"""Logging setup for the station generator.

Console output is kept short (one line per probed station); the log file
gets timestamps and logger names so a long run can be audited afterwards.
Safe to call more than once: an already-configured root logger is left alone.
"""

import logging
import os
from typing import Optional

LOG_PATH = os.path.join("logs", "generate_stations.log")

CONSOLE_FORMAT = "%(levelname)-7s %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: int = logging.INFO, log_path: Optional[str] = LOG_PATH) -> None:
    """Attach console (and, when ``log_path`` is set, file) handlers to the root logger."""
    root = logging.getLogger()
    if root.handlers:
        return

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)

    if log_path:
        try:
            directory = os.path.dirname(log_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root.addHandler(handler)
        except OSError as e:
            root.warning(f"File logging disabled ({log_path}): {e}")

    root.setLevel(level)

    # One connection line per probe would bury the [OK]/[SKIP] progress
    logging.getLogger("urllib3").setLevel(logging.WARNING)
