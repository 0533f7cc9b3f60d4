import logging
import os
import sys
from logging import Handler
from typing import Iterable

from tqdm import tqdm

LOGGER_NAME = "extension_translate"

# Client libraries that log every HTTP request at DEBUG/INFO.
NOISY_LIBRARY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "google.auth", "google.api_core")

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class TqdmLoggingHandler(Handler):
    """Emit records through ``tqdm.write`` so they print above the per-language progress bars."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=sys.stderr)
            self.flush()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def _quiet_libraries(names: Iterable[str], level: int) -> None:
    for name in names:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logger(log_level_str: str, log_file_path: str, log_to_console: bool) -> logging.Logger:
    """
    Configure the ``extension_translate`` package logger.

    Module loggers (``logging.getLogger(__name__)``) are children of this
    logger, so a single setup covers translators, backends and the client.
    Calling it again replaces the handlers instead of adding duplicates.

    Args:
        log_level_str: Level name such as 'INFO' or 'DEBUG'. Unknown names fall back to INFO.
        log_file_path: Log file; its directory is created when missing.
        log_to_console: Also log to stderr through tqdm.

    Returns:
        The configured package logger.
    """
    level = getattr(logging, log_level_str.upper(), logging.INFO)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if log_to_console:
        console_handler = TqdmLoggingHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    _quiet_libraries(NOISY_LIBRARY_LOGGERS, level)
    return logger
