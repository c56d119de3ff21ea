"""Logging setup: console, rotating downloader.log and a separate error.log."""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Union

# httpx logs every request at INFO, one line per chapter is too much
NOISY_LOGGERS = ("httpx", "httpcore")


def _file_handler(path: str, level: int, fmt: logging.Formatter) -> RotatingFileHandler:
    # 10MB per file, keep 5
    handler = RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5,
                                  encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def setup_logger(log_dir: str = "logs", level: Union[int, str] = logging.INFO) -> logging.Logger:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger("bible_scraper")
    logger.setLevel(level)

    if logger.handlers:
        return logger

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(threadName)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    logger.addHandler(_file_handler(os.path.join(log_dir, "downloader.log"), level, fmt))
    # Failed jobs and configuration problems, kept apart so they are easy to find
    logger.addHandler(_file_handler(os.path.join(log_dir, "error.log"), logging.ERROR, fmt))

    return logger
