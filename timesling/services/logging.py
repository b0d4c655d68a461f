"""
timesling/services/logging.py

Logging for the TimeSling agent: one rotating log file plus stderr, both
attached to the ``timesling`` logger so library users who never call
``setup_logging`` stay silent.
"""

import logging
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional, Union

LOGGER_NAME = "timesling"
LOG_FILENAME = "timesling.log"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(threadName)s %(name)s: %(message)s"
MAX_BYTES = 1_000_000
BACKUP_COUNT = 3

_HANDLER_TAG = "_timesling_handler"


def _candidate_dirs(log_dir: Optional[Union[str, Path]]) -> Iterator[Path]:
    if log_dir:
        yield Path(log_dir).expanduser()
    yield Path.home() / ".timesling" / "logs"
    yield Path(tempfile.gettempdir()) / "timesling_logs"


def _open_file_handler(log_dir: Optional[Union[str, Path]]) -> Optional[RotatingFileHandler]:
    for directory in _candidate_dirs(log_dir):
        try:
            directory.mkdir(parents=True, exist_ok=True)
            return RotatingFileHandler(
                directory / LOG_FILENAME,
                maxBytes=MAX_BYTES,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            print(f"timesling: log directory {directory} unusable ({exc})", file=sys.stderr)
    return None


def setup_logging(level=logging.INFO, log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Attach the file and console handlers once; later calls only change the level.

    ``log_dir`` is tried first, then ``~/.timesling/logs`` and a directory
    under the system temp dir. Without any writable directory the agent
    logs to stderr only.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if any(getattr(handler, _HANDLER_TAG, False) for handler in logger.handlers):
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers = [logging.StreamHandler(sys.stderr)]
    file_handler = _open_file_handler(log_dir)
    if file_handler is not None:
        handlers.append(file_handler)
    for handler in handlers:
        setattr(handler, _HANDLER_TAG, True)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(
        "Logging to %s",
        file_handler.baseFilename if file_handler is not None else "stderr only",
    )
    return logger
