"""Structured event logging for ledgercalc.

Provides the event schema, a filesystem NDJSON sink, and safe emit
helpers that never raise uncaught exceptions.
"""

from ledgercalc.logging.events import (
    EventLevel,
    EventType,
    LedgerEvent,
    emit,
    emit_info,
    emit_warning,
    get_sink,
    set_log_dir,
    truncate_context,
)
from ledgercalc.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "LedgerEvent",
    "emit",
    "emit_info",
    "emit_warning",
    "get_sink",
    "set_log_dir",
    "truncate_context",
]
