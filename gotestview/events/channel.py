"""Bounded event channel with close semantics.

Producers block on `put` when the buffer is full, so a slow consumer
applies backpressure instead of losing events. `close` marks the end of
the stream; the consumer sees it only after every buffered event.
"""

from __future__ import annotations

import queue
from typing import Iterator

from gotestview.events.event import Event

# Marker queued by close()
_CLOSED = object()


class EventChannel:
    """FIFO of events shared between one producer and one consumer."""

    def __init__(self, maxsize: int = 1000) -> None:
        self._queue: queue.Queue = queue.Queue(maxsize)
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, event: Event) -> None:
        """Append an event, blocking while the buffer is full."""
        if self._closed:
            raise ValueError("put on closed channel")
        self._queue.put(event)

    def close(self) -> None:
        """Signal that no more events will be put."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(_CLOSED)

    def get(self, timeout: float | None = None) -> Event | None:
        """Take the next event.

        Returns:
            The next event, or None once the channel is closed and drained.

        Raises:
            queue.Empty: If no event arrived within `timeout` seconds.
        """
        if self._drained:
            return None
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._drained = True
            return None
        return item

    def __iter__(self) -> Iterator[Event]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event
