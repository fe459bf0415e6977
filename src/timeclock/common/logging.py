"""
Process-wide logging setup.
Modules obtain their logger with `get_logger(__name__)`; the first call installs
a stdout handler on the root logger at the level named by ``LOG_LEVEL``.
"""

import logging
import os
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Chatty third-party loggers capped at WARNING.
_QUIET = ("PIL", "mysql.connector")
_initialized = False


def _init_logging() -> None:
    global _initialized
    if _initialized:
        return
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)
    for name in _QUIET:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    _initialized = True


def get_logger(name: str) -> logging.Logger:
    _init_logging()
    return logging.getLogger(name)
