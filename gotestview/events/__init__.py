"""Test event schema, decoding, export/import, and the event channel."""

from gotestview.events.channel import EventChannel
from gotestview.events.event import (
    ACTION_FAIL,
    ACTION_OUTPUT,
    ACTION_PASS,
    ACTION_RUN,
    ACTION_SKIP,
    ACTION_START,
    TERMINAL_ACTIONS,
    Event,
    EventDecodeError,
    decode_event,
    decode_lines,
    encode_event,
    export_events,
    export_filename,
    import_events,
)

__all__ = [
    "ACTION_FAIL",
    "ACTION_OUTPUT",
    "ACTION_PASS",
    "ACTION_RUN",
    "ACTION_SKIP",
    "ACTION_START",
    "TERMINAL_ACTIONS",
    "Event",
    "EventChannel",
    "EventDecodeError",
    "decode_event",
    "decode_lines",
    "encode_event",
    "export_events",
    "export_filename",
    "import_events",
]
