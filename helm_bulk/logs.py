"""Run log setup."""

import logging
import logging.handlers
import sys
from pathlib import Path

LOGGER_NAME = "helm_bulk"
DEFAULT_LOG_FILE = "helm-bulk.log"
LOG_BACKUPS = 5

FILE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _NotFileOnly(logging.Filter):
    """Drop records marked with extra={"file_only": True}."""

    def filter(self, record):
        return not getattr(record, "file_only", False)


def setup_logging(log_file: Path = Path(DEFAULT_LOG_FILE), verbose: bool = False) -> logging.Logger:
    """
    Configure the helm_bulk logger for one run.

    The log file of the previous run, if any, is rotated to <log_file>.1
    (older archives shift up to LOG_BACKUPS) before the new run starts
    writing. Console output goes to stderr: INFO and above, or DEBUG when
    verbose (which includes helm command output).
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(log_file, backupCount=LOG_BACKUPS, encoding="utf-8", delay=True)
    if log_file.exists() and log_file.stat().st_size > 0:
        file_handler.doRollover()
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler.addFilter(_NotFileOnly())
    logger.addHandler(console_handler)

    return logger
