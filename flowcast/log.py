"""
Logging setup for flowcast.

Modules log through ``get_logger(__name__)``; nothing is configured on
import. Applications (and the CLI) call ``setup_logging`` once, which
installs a key=value formatter on the root logger. Records carry the id of
the projection run that emitted them via a context variable, so log lines
of concurrent runs can be told apart.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

__all__ = [
    "setup_logging",
    "get_logger",
    "new_run_id",
    "set_run_id",
    "run_id_var",
]

run_id_var: ContextVar[str] = ContextVar("run_id", default="-")


class RunContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        return True


class KeyValueFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        line = (
            f"{ts} level={record.levelname} logger={record.name} "
            f"run_id={getattr(record, 'run_id', '-')} msg={record.getMessage()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", stream=None) -> None:
    """Configure the root logger with the flowcast formatter.

    Existing root handlers are replaced so repeated calls do not duplicate
    output.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(lvl)
    root.handlers = []

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(lvl)
    handler.addFilter(RunContextFilter())
    handler.setFormatter(KeyValueFormatter())
    root.addHandler(handler)


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


def set_run_id(run_id: Optional[str]) -> None:
    run_id_var.set(run_id or "-")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
