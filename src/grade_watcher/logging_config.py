# src/grade_watcher/logging_config.py

import logging
import logging.handlers
import os
import sys

from .config import (
    LOG_DIRECTORY,
    LOG_FILE_PATH,
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    MAX_LOG_SIZE_BYTES,
    BACKUP_COUNT,
)


def setup_logging():
    """
    Configures centralized logging for the application.

    Sets up logging to:
    1. A rotating file (`logs/grade_watcher.log`) with size limits and backups.
    2. The console (stderr).

    This function configures the root logger, so any logger obtained via
    `logging.getLogger()` will inherit this configuration. It ensures that
    handlers are not added multiple times if called again.
    """
    # Ensure the log directory exists
    try:
        os.makedirs(LOG_DIRECTORY, exist_ok=True)
    except OSError as e:
        print(f"Error creating log directory '{LOG_DIRECTORY}': {e}", file=sys.stderr)

    root_logger = logging.getLogger()

    # Prevent adding handlers multiple times
    if root_logger.hasHandlers():
        print("Logger already has handlers. Skipping setup.", file=sys.stderr) # Use print for bootstrap logging issues
        return

    root_logger.setLevel(LOG_LEVEL)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # --- File Handler (Rotating) ---
    try:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=LOG_FILE_PATH,
            maxBytes=MAX_LOG_SIZE_BYTES,
            backupCount=BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setLevel(LOG_LEVEL)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except OSError as e:
        # Logging is not up yet, so report on stderr and continue with console only
        print(f"Error setting up file logging handler: {e}", file=sys.stderr)

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    initial_log = logging.getLogger(__name__)
    initial_log.info(f"Logging initialized. Level: {logging.getLevelName(LOG_LEVEL)}. Outputting to console and file: {LOG_FILE_PATH}")
    initial_log.info(f"Log rotation: Max size={MAX_LOG_SIZE_BYTES / 1024 / 1024:.1f}MB, Backups={BACKUP_COUNT}")
