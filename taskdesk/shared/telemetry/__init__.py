"""Observability: logging setup, request-aware loggers, and tracing."""

from taskdesk.shared.telemetry.logging import get_logger, setup_logging
from taskdesk.shared.telemetry.telemetry import TelemetryConfig, get_telemetry, set_telemetry
from taskdesk.shared.telemetry.tracing import add_span_attributes, get_trace_id, traced

__all__ = [
    "TelemetryConfig",
    "add_span_attributes",
    "get_logger",
    "get_telemetry",
    "get_trace_id",
    "set_telemetry",
    "setup_logging",
    "traced",
]
