# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB Pulse
---------

A Python reporting library and command-line tool for small businesses that
track sales, sale line-items, products, expense categories and expenses.

Main capabilities:
- calendar-month period helpers (current month, previous month, rolling
  N-month windows),
- month bucketing of sales and expenses,
- revenue / expense / profit reducers with lenient numeric coercion,
- derived metrics (margin %, period-over-period % change) with explicit
  zero-denominator rules,
- category breakdowns, product rankings and a merged recent-activity feed,
- a dashboard view-model (current month, 6-month trend) and a report
  view-model (12-month P&L and cash flow, product performance),
- a SQLite-backed store with CSV import, and a CLI to render everything as
  console tables or CSV files.

SMB Pulse separates computation (pure aggregation functions), data access
(store + concurrent fetch), configuration (TOML) and presentation (CLI), so
the aggregation core can be reused by any other front end.

Version: 0.2.0

Usage:
    python -m smb_pulse.cli --help
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

__all__ = [
    "activity",
    "breakdowns",
    "buckets",
    "config",
    "dashboard",
    "fetching",
    "io",
    "measures",
    "periods",
    "ratios",
    "records",
    "reports",
    "store",
    "views",
]

__version__ = "0.2.0"

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.getLogger(__name__).addHandler(logging.NullHandler())


def configure_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Configure the package logger with a console handler and an optional file.

    Library modules only create module loggers; handlers are installed here,
    once, by the entry point (the CLI). Calling this function again replaces
    the handlers installed by a previous call.
    """
    logger = logging.getLogger(__name__)
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown logging level: {level!r}")
        level = resolved

    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=1_000_000,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as exc:
            print(
                f"Warning: unable to initialize log file at '{log_file}': {exc}",
                file=sys.stderr,
            )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
