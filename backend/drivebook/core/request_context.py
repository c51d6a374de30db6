"""
Per-request id carried through a context variable.

``RequestIdMiddleware`` binds the id for the lifetime of a request; log
records and problem documents read it back from here.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
import logging
from typing import Optional

NO_REQUEST = "-"

_current: ContextVar[Optional[str]] = ContextVar("drivebook_request_id", default=None)


def bind_request_id(request_id: Optional[str]) -> Token[Optional[str]]:
    return _current.set(request_id or None)


def unbind_request_id(token: Token[Optional[str]]) -> None:
    _current.reset(token)


def current_request_id(default: Optional[str] = None) -> Optional[str]:
    return _current.get() or default


class RequestIdLogFilter(logging.Filter):
    """Give every record a ``request_id`` attribute for the log format."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = current_request_id(NO_REQUEST)
        return True


def install_request_id_filter(target: Optional[logging.Logger] = None) -> None:
    """Attach the filter to every handler of ``target`` (the root logger by default)."""
    log_filter = RequestIdLogFilter()
    for handler in (target or logging.getLogger()).handlers:
        handler.addFilter(log_filter)
