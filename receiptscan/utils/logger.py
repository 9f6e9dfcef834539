"""Centralized logging setup for the receipt scanning pipeline.

All modules obtain their logger through :func:`get_logger` so that a single
call to :func:`setup_logging` formats every stage consistently.
"""

import logging
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# pdfminer (under pdfplumber) and PIL log every parsed object at DEBUG.
_NOISY_LOGGERS = ("pdfminer", "PIL")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a standard format.

    Third-party PDF and imaging libraries are capped at WARNING so that
    ``DEBUG`` shows only pipeline decisions. Calling this more than once
    leaves the existing handlers untouched.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a pipeline module (usually ``__name__``)."""
    return logging.getLogger(name)
