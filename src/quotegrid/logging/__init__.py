"""Structured event logging for quotegrid.

Provides a unified event schema, filesystem NDJSON sink, and safe
emit helpers that never raise uncaught exceptions.
"""

from quotegrid.logging.events import (
    EventLevel,
    EventType,
    QuoteEvent,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    redact_context,
    reset_sink,
    set_project_dir,
)
from quotegrid.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "QuoteEvent",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "redact_context",
    "reset_sink",
    "set_project_dir",
]
