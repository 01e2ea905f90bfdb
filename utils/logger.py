"""
Process-wide logging setup.
Call setup_logging() once at startup (main.py, bus.ws_relay).

Records carry the view whose refresh produced them. The coordinator sets
current_view inside each refresh task, so API client lines logged during a
reload read e.g. `[highlights] API GET /highlights -> 200`.
"""

from __future__ import annotations
import logging
import sys
import time
from contextvars import ContextVar
from typing import TextIO

NO_VIEW = "-"

current_view: ContextVar[str] = ContextVar("current_view", default=NO_VIEW)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(view)s] | t+%(elapsed_ms).1fms | %(message)s"

_STARTED_NS = time.monotonic_ns()


class ViewFilter(logging.Filter):
    """Tags records with the active view and the ms elapsed since process start."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "view"):
            record.view = current_view.get()
        record.elapsed_ms = (time.monotonic_ns() - _STARTED_NS) / 1_000_000
        return True


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> logging.Handler:
    numeric = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(ViewFilter())
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    root = logging.getLogger()
    root.setLevel(numeric)
    root.handlers.clear()
    root.addHandler(handler)
    # aiohttp/websockets are chatty at DEBUG
    for noisy in ("aiohttp.access", "websockets"):
        logging.getLogger(noisy).setLevel(max(numeric, logging.INFO))
    return handler
