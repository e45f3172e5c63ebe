"""Observability helpers."""

from agent_detector.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_detection,
    record_parser_failure,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_detection",
    "record_parser_failure",
]
