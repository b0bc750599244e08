"""Unified event schema and module-level emit helpers.

All timestamps use UTC ISO-8601 with ``Z`` suffix.  The ``emit()``
family of functions is safe to call from any context -- failures are
swallowed and printed to stderr.
"""

from __future__ import annotations

import re
import sys
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class EventLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    # Product lists
    list_imported = "list_imported"
    list_import_failed = "list_import_failed"
    list_saved = "list_saved"
    list_loaded = "list_loaded"

    # Quotation requests
    quotation_created = "quotation_created"
    quotation_closed = "quotation_closed"
    response_submitted = "response_submitted"

    # Grid
    grid_projected = "grid_projected"
    grid_projection_clipped = "grid_projection_clipped"
    cell_committed = "cell_committed"
    commit_listener_failed = "commit_listener_failed"


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

IMPORT_UNSUPPORTED_FORMAT = "import_unsupported_format"
IMPORT_READ_FAILED = "import_read_failed"
IMPORT_NO_PRODUCTS = "import_no_products"
GRID_SUPPLIER_OVERFLOW = "grid_supplier_overflow"
GRID_ROW_OVERFLOW = "grid_row_overflow"
GRID_LISTENER_FAILED = "grid_listener_failed"


# ---------------------------------------------------------------------------
# Secret redaction
# ---------------------------------------------------------------------------

_SENSITIVE_KEY_RE = re.compile(
    r"(password|passwd|secret|token|api_key|apikey|authorization|cookie"
    r"|session|bearer|access_code)",
    re.IGNORECASE,
)

_MAX_VALUE_LEN = 256


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *context* with sensitive values redacted.

    Rules:
    - Keys matching sensitive patterns have their values replaced with
      ``"[REDACTED]"``.
    - String values longer than 256 chars are truncated.
    """
    return _redact_dict(context)


def _redact_dict(d: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in d.items():
        if _SENSITIVE_KEY_RE.search(k):
            out[k] = "[REDACTED]"
        elif isinstance(v, dict):
            out[k] = _redact_dict(v)
        elif isinstance(v, list):
            out[k] = [_redact_value(item) for item in v]
        else:
            out[k] = _redact_value(v)
    return out


def _redact_value(v: Any) -> Any:
    if isinstance(v, dict):
        return _redact_dict(v)
    if isinstance(v, str) and len(v) > _MAX_VALUE_LEN:
        return v[:_MAX_VALUE_LEN] + "...[truncated]"
    return v


# ---------------------------------------------------------------------------
# Attribution invariants
# ---------------------------------------------------------------------------

_REQUEST_EVENT_REQUIRED = {"request_id"}
_LIST_EVENT_REQUIRED = {"list_id"}

_EVENT_REQUIRED_KEYS: dict[str, set[str]] = {
    EventType.list_saved.value: _LIST_EVENT_REQUIRED,
    EventType.list_loaded.value: _LIST_EVENT_REQUIRED,
    EventType.quotation_created.value: _REQUEST_EVENT_REQUIRED | _LIST_EVENT_REQUIRED,
    EventType.quotation_closed.value: _REQUEST_EVENT_REQUIRED,
    EventType.response_submitted.value: _REQUEST_EVENT_REQUIRED,
    EventType.cell_committed.value: {"addr"},
    EventType.commit_listener_failed.value: {"addr"},
}


def _validate_attribution(event: QuoteEvent) -> QuoteEvent:
    """Check required context keys; downgrade to warning if missing."""
    required = _EVENT_REQUIRED_KEYS.get(event.event_type.value, set())
    if not required:
        return event
    missing = required - set(event.context.keys())
    if missing:
        ctx = dict(event.context)
        ctx["_missing_attribution"] = sorted(missing)
        return event.model_copy(update={"level": EventLevel.warning, "context": ctx})
    return event


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------


def _utc_now() -> str:
    """Return current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class QuoteEvent(BaseModel):
    """A single structured log event."""

    schema_version: int = 1
    ts: str = Field(default_factory=_utc_now)
    level: EventLevel
    event_type: EventType
    context: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    error_code: str | None = None


# ---------------------------------------------------------------------------
# Module-level sink reference
# ---------------------------------------------------------------------------

# Lazily initialised when ``set_project_dir`` is called.
_sink: Any = None  # EventSink | None


def set_project_dir(project_dir: Any) -> None:
    """Configure the module-level event sink for a project directory.

    This should be called early in a CLI command or server startup.  If
    it is never called, ``emit()`` silently discards events.

    Reads ``logging_fsync`` and ``logging_tail_bytes`` from the project
    config (``quotegrid.yaml``) to configure the sink.
    """
    global _sink
    from pathlib import Path

    from quotegrid.logging.sink import EventSink
    from quotegrid.project import load_project_config

    cfg = load_project_config(Path(project_dir))
    fsync = bool(cfg.get("logging_fsync", False))
    tb = cfg.get("logging_tail_bytes")
    tail_bytes = int(tb) if tb is not None else None

    _sink = EventSink(Path(project_dir), fsync=fsync, tail_bytes=tail_bytes)


def reset_sink() -> None:
    """Detach the module-level sink (events are discarded afterwards)."""
    global _sink
    _sink = None


def _get_sink() -> Any:
    """Return the module-level sink, or None."""
    return _sink


# ---------------------------------------------------------------------------
# Rate-limited stderr warnings
# ---------------------------------------------------------------------------

_last_stderr_ts: float = 0.0
_STDERR_INTERVAL_SECS = 60.0


def _stderr_warning(msg: str) -> None:
    """Print a warning to stderr, rate-limited to one per 60 seconds."""
    global _last_stderr_ts
    now = time.monotonic()
    if now - _last_stderr_ts < _STDERR_INTERVAL_SECS:
        return
    _last_stderr_ts = now
    try:
        print(f"[quotegrid] {msg}", file=sys.stderr)
    except Exception:
        pass


# ---------------------------------------------------------------------------
# Safe emit helpers
# ---------------------------------------------------------------------------


def emit(event: QuoteEvent, *, request_id: str | None = None) -> None:
    """Write an event to the global log and optionally to a per-request log.

    **Never raises.**  On failure, prints a rate-limited warning to stderr.

    Applies secret redaction and attribution validation before writing.
    """
    try:
        sink = _get_sink()
        if sink is None:
            return
        event = event.model_copy(update={"context": redact_context(event.context)})
        event = _validate_attribution(event)
        sink.write(event, request_id=request_id)
    except Exception:
        _stderr_warning(f"logging failed: {traceback.format_exc()}")


def emit_info(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    request_id: str | None = None,
) -> None:
    """Convenience: emit an info-level event."""
    emit(
        QuoteEvent(
            level=EventLevel.info,
            event_type=event_type,
            message=message,
            context=context or {},
        ),
        request_id=request_id,
    )


def emit_warning(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
    request_id: str | None = None,
) -> None:
    """Convenience: emit a warning-level event."""
    emit(
        QuoteEvent(
            level=EventLevel.warning,
            event_type=event_type,
            message=message,
            context=context or {},
            error_code=error_code,
        ),
        request_id=request_id,
    )


def emit_error(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
    request_id: str | None = None,
) -> None:
    """Convenience: emit an error-level event."""
    emit(
        QuoteEvent(
            level=EventLevel.error,
            event_type=event_type,
            message=message,
            context=context or {},
            error_code=error_code,
        ),
        request_id=request_id,
    )
