"""Event schema for `go test -json` output.

Each line of a `go test -json` stream is one JSON object describing a test
lifecycle transition or a chunk of captured output. This module decodes
those lines into immutable Event objects, encodes them back for export,
and reads/writes export files (one event per line, same format as the
live stream).
"""

from __future__ import annotations

import datetime
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

# Known actions
ACTION_RUN = "run"
ACTION_PASS = "pass"
ACTION_FAIL = "fail"
ACTION_SKIP = "skip"
ACTION_OUTPUT = "output"
ACTION_START = "start"

# Actions that end a test's execution
TERMINAL_ACTIONS = frozenset({ACTION_PASS, ACTION_FAIL, ACTION_SKIP})

NON_TERMINAL_ACTIONS = frozenset({ACTION_RUN, ACTION_START, ACTION_OUTPUT})

EXPORT_PREFIX = "gotestview-export"


class EventDecodeError(ValueError):
    """Raised when a line is not a valid test event."""


@dataclass(frozen=True)
class Event:
    """A single test event.

    `time` is kept as the raw timestamp string so that an exported stream
    reproduces the original input exactly.
    """

    action: str
    package: str = ""
    test: str = ""
    elapsed: float = 0.0
    output: str = ""
    time: str = ""

    def is_root_event(self) -> bool:
        """True for package-level events that carry no test name."""
        return self.test == ""

    def is_terminal(self) -> bool:
        return self.action in TERMINAL_ACTIONS

    def to_dict(self) -> dict[str, Any]:
        """Return the Go field layout, omitting empty optional fields."""
        data: dict[str, Any] = {
            "Time": self.time,
            "Action": self.action,
            "Package": self.package,
        }
        if self.test:
            data["Test"] = self.test
        if self.elapsed:
            data["Elapsed"] = self.elapsed
        if self.output:
            data["Output"] = self.output
        return data


def _string_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise EventDecodeError(f"field {key!r} must be a string, got {value!r}")
    return value


def decode_event(line: str | bytes) -> Event:
    """Decode one JSON line into an Event.

    Args:
        line: Raw line from the stream (trailing newline allowed). Invalid
            UTF-8 in bytes input is replaced with U+FFFD, as go test -json
            itself does for test output.

    Returns:
        The decoded Event.

    Raises:
        EventDecodeError: If the line is not a JSON object matching the
            event schema.
    """
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise EventDecodeError(str(e)) from e

    if not isinstance(data, dict):
        raise EventDecodeError(f"expected a JSON object, got {type(data).__name__}")

    action = _string_field(data, "Action")
    if not action:
        raise EventDecodeError("missing 'Action' field")

    elapsed = data.get("Elapsed", 0.0)
    if elapsed is None:
        elapsed = 0.0
    if isinstance(elapsed, bool) or not isinstance(elapsed, (int, float)):
        raise EventDecodeError(f"field 'Elapsed' must be a number, got {elapsed!r}")

    return Event(
        action=action,
        package=_string_field(data, "Package"),
        test=_string_field(data, "Test"),
        elapsed=float(elapsed),
        output=_string_field(data, "Output"),
        time=_string_field(data, "Time"),
    )


def encode_event(event: Event) -> str:
    """Encode an Event as a compact single-line JSON object."""
    return json.dumps(event.to_dict(), ensure_ascii=False, separators=(",", ":"))


def decode_lines(lines: Iterable[str | bytes], source: str = "input") -> Iterator[Event]:
    """Decode a line stream, skipping malformed lines with a warning.

    Args:
        lines: Iterable of raw lines.
        source: Name used in warning messages.

    Yields:
        Successfully decoded events, in input order.
    """
    for line in lines:
        if not line.strip():
            continue
        try:
            yield decode_event(line)
        except EventDecodeError as e:
            text = line.decode(errors="replace") if isinstance(line, bytes) else line
            print(
                f"Warning: Failed to parse JSON from {source}: {e} "
                f"(line: {text.rstrip()})",
                file=sys.stderr,
            )


def export_filename(now: datetime.datetime | None = None) -> str:
    """Build a timestamped export file name."""
    if now is None:
        now = datetime.datetime.now()
    return f"{EXPORT_PREFIX}-{now.strftime('%Y%m%d-%H%M%S')}.json"


def export_events(path: str | Path, events: Iterable[Event]) -> int:
    """Write events to a file, one JSON object per line.

    Args:
        path: Destination file.
        events: Events to write, in order.

    Returns:
        Number of events written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for event in events:
            f.write(encode_event(event))
            f.write("\n")
            count += 1
    return count


def import_events(path: str | Path) -> list[Event]:
    """Read events previously written by export_events (or go test -json).

    Raises:
        OSError: If the file cannot be opened or read.
    """
    path = Path(path)
    with open(path, "rb") as f:
        return list(decode_lines(f, source=str(path)))
