# src/config/logging_config.py

"""Per-run timestamped logging configuration for the flight tracker.

Each scheduled run creates a dedicated log file inside ``logs/``,
named with the launch timestamp (e.g. ``logs/run_20260607_090012.log``).
All ``flight_tracker.*`` loggers route through this file handler so
the agent session, parsing, and rendering of one run land in the same
log, which is what gets uploaded as a CI artifact when a run fails.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

# Reusable format strings --------------------------------------------------

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

PROJECT_LOGGER = "flight_tracker"


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Initialise the root ``flight_tracker`` logger for the current run.

    Args:
        logs_dir: Directory for the log file; defaults to
            :attr:`Settings.LOGS_DIR`.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    logs_dir = logs_dir or Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}.log"

    # --- Root project logger -----------------------------------------------
    root_logger = logging.getLogger(PROJECT_LOGGER)
    root_logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on repeated calls (e.g. tests)
    if root_logger.handlers:
        return log_file

    # --- File handler (DEBUG+) – captures everything -----------------------
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    # --- Console handler (WARNING+) – only important messages --------------
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info(
        "Logging initialised — log file: %s", log_file
    )

    return log_file
