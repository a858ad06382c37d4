# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging setup: stdlib loggers, rich console output."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_logging_initialized = False


def setup_logging(log_level: str = "INFO") -> None:
    """Install a rich console handler on the root logger (once per process)."""
    global _logging_initialized

    if _logging_initialized:
        return

    numeric_level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)

    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(console_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    _logging_initialized = True
