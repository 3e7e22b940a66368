"""
Logging bootstrap for the tracker.

Output goes to stdout and, when a log directory is configured, to one file per run.
SQL statement echo is routed through the `sqlalchemy.engine` logger, so it lands in the same handlers.
"""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from fide_tracker.core.config import TrackerSettings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
LOG_FILE_PREFIX = "fide-tracker"
SQL_LOGGER = "sqlalchemy.engine"


def log_file_name(started_at: datetime) -> str:
    return f"{LOG_FILE_PREFIX}_{started_at.strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | str = logging.INFO,
) -> Path | None:
    """
    Replace the root logger's handlers with a stdout handler and, given a log_dir, a file handler.

    Returns the path of the log file, or None when logging to stdout only.
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_path = None
    if log_dir is not None:
        log_path = Path(log_dir) / log_file_name(datetime.now(tz=UTC))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # repeated calls must not stack handlers
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    return log_path


def configure_logging(settings: TrackerSettings | None = None) -> Path | None:
    """Apply the logging part of the settings (log dir, level and SQL echo)."""
    settings = settings or get_settings()
    log_path = setup_logging(settings.log_dir, settings.log_level)
    logging.getLogger(SQL_LOGGER).setLevel(
        logging.INFO if settings.echo_sql else logging.WARNING
    )
    return log_path
