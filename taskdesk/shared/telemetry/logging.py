"""Logging configuration for the application."""

import logging
import sys

from taskdesk.core.config import get_settings
from taskdesk.shared.context import get_request_context
from taskdesk.shared.telemetry.tracing import get_trace_id

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[request_id=%(request_id)s actor=%(actor_id)s trace_id=%(trace_id)s] %(message)s"
)


class RequestContextFilter(logging.Filter):
    """Stamp records with the request id, actor and trace id (``-`` when unset)."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_request_context()
        record.request_id = ctx.request_id or "-"
        record.actor_id = ctx.actor_id or "-"
        record.trace_id = get_trace_id() or "-"
        return True


def setup_logging() -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO.
    Output goes to stdout.
    """
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
