# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Logging setup for the tplnav CLI.

Log records carry the workspace being analyzed and the file currently being
processed. Both are held in context variables and injected by
:class:`AnalysisContextFilter`, so analysis code only calls ``LOGGER.debug``.
"""

import logging
from contextvars import ContextVar
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAMES = ("tplnav_common", "tplnav_core")

LOG_FORMATS = ("rich", "json")

JSON_FORMAT = (
    '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"workspace": "%(workspace)s", "file": "%(current_file)s", "message": "%(message)s"}'
)
RICH_FORMAT = "%(message)s"

workspace_var: ContextVar[str] = ContextVar("workspace", default="")
current_file_var: ContextVar[str] = ContextVar("current_file", default="")

_handlers: List[logging.Handler] = []


class AnalysisContext:
    """Set or clear the analysis context seen by :class:`AnalysisContextFilter`."""

    @staticmethod
    def set(workspace: str, current_file: str = ""):
        workspace_var.set(workspace)
        current_file_var.set(current_file)

    @staticmethod
    def set_file(current_file: str):
        current_file_var.set(current_file)

    @staticmethod
    def clear():
        workspace_var.set("")
        current_file_var.set("")


class AnalysisContextFilter(logging.Filter):
    """Adds ``workspace`` and ``current_file`` attributes to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.workspace = workspace_var.get()
        record.current_file = current_file_var.get()
        return True


def _build_handler(fmt: str) -> logging.Handler:
    if fmt == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(JSON_FORMAT))
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter(RICH_FORMAT))
    handler.addFilter(AnalysisContextFilter())
    return handler


def configure_logging(level: str = "WARNING", fmt: str = "rich", names: Optional[List[str]] = None):
    """Install one handler on the tplnav loggers, replacing any installed earlier.

    Raises ``ValueError`` for an unknown *fmt*.
    """
    if fmt not in LOG_FORMATS:
        raise ValueError(f"log format {fmt!r} is not one of {', '.join(LOG_FORMATS)}")

    handler = _build_handler(fmt)
    for name in names or LOGGER_NAMES:
        logger = logging.getLogger(name)
        for old in _handlers:
            logger.removeHandler(old)
        logger.addHandler(handler)
        logger.setLevel(level.upper())
        logger.propagate = False

    _handlers.clear()
    _handlers.append(handler)
    return handler
