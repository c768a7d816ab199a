import logging
import sys
from pathlib import Path
from typing import Optional

from daemonpool import settings

LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'
WORKER_LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s pid=%(process)d] - %(message)s'


class MainFormatter(logging.Formatter):
    """A custom formatter that adds the pid to records from worker loggers."""

    def format(self, record):
        # Worker loggers are named 'worker.<index>' by process_utils.run_worker.
        if not record.name.startswith('worker.'):
            return super().format(record)

        # Temporarily change the format string for the superclass call.
        original_format = self._style._fmt
        self._style._fmt = WORKER_LOG_FORMAT
        formatted_message = super().format(record)
        self._style._fmt = original_format
        return formatted_message


def setup_logging(console_level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    """
    Configures the root logger for the supervisor.
    This sets up a console handler and, optionally, a file handler,
    clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param log_file: Optional path of a log file; defaults to settings.LOG_FILE_PATH.
    """
    log_file = log_file or settings.LOG_FILE_PATH

    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # --- File Handler (conditional) ---
    # The detached supervisor outlives the terminal; its logs survive here.
    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(MainFormatter(LOG_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error(f"Failed to open log file '{log_file}': {e}. Logging to file will be disabled.")
