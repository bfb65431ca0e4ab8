"""Ingestion threads, the render loop, and the animation ticker.

Background threads (one per event source plus the ticker) fold events
into their own History under that History's lock and then submit a
render request to the RenderLoop. The render loop runs on one thread and
is the only place view state and the HistoryManager index are touched.
"""

from __future__ import annotations

import queue
import sys
import threading
from pathlib import Path
from typing import IO, Callable

from gotestview.events.channel import EventChannel
from gotestview.events.event import Event, decode_lines, import_events
from gotestview.execution.executor import ExecutionError, GoTestExecutor
from gotestview.session.history import History, HistoryManager
from gotestview.session.rerun import RerunTarget

RenderRequest = Callable[[], None]

# How often the primary ingestion loop re-checks its done signal
_POLL_INTERVAL = 0.05


class RenderLoop:
    """Single-consumer queue of render requests."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue = queue.SimpleQueue()

    def submit(self, request: RenderRequest) -> None:
        """Queue a request; safe to call from any thread."""
        self._queue.put(request)

    def run_pending(self, timeout: float | None = 0.0) -> int:
        """Run queued requests on the calling (render) thread.

        Args:
            timeout: Seconds to wait for the first request; 0 returns
                immediately when the queue is empty, None waits forever.

        Returns:
            Number of requests run.
        """
        count = 0
        try:
            if timeout == 0:
                request = self._queue.get_nowait()
            else:
                request = self._queue.get(timeout=timeout)
        except queue.Empty:
            return 0
        while True:
            request()
            count += 1
            try:
                request = self._queue.get_nowait()
            except queue.Empty:
                return count


class Ticker:
    """Periodic, cancellable timer that submits a callback to the render loop."""

    def __init__(
        self, interval: float, render_loop: RenderLoop, callback: RenderRequest,
    ) -> None:
        self.interval = interval
        self.render_loop = render_loop
        self.callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True, name="ticker")

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout=self.interval * 2 + 1)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.render_loop.submit(self.callback)


class IngestionCoordinator:
    """Starts ingestion threads and hands their updates to the render loop.

    Args:
        manager: The HistoryManager (render-thread owned).
        render_loop: Where update requests are submitted.
        executor: Runs reruns.
        rerun_buffer: Channel size for rerun event streams.
        on_update: Render-thread callback `(history, test_name, snapshot)`
            run after every recorded event; `test_name` is "" and
            `snapshot` None for root events.
        on_finished: Render-thread callback `(history)` run once when a
            History reaches its final state.
        on_message: Render-thread callback for user-facing messages.
    """

    def __init__(
        self,
        manager: HistoryManager,
        render_loop: RenderLoop,
        executor: GoTestExecutor | None = None,
        rerun_buffer: int = 100,
        on_update: Callable[[History, str, tuple[Event, ...] | None], None] | None = None,
        on_finished: Callable[[History], None] | None = None,
        on_message: Callable[[str], None] | None = None,
    ) -> None:
        self.manager = manager
        self.render_loop = render_loop
        self.executor = executor or GoTestExecutor()
        self.rerun_buffer = rerun_buffer
        self.on_update = on_update
        self.on_finished = on_finished
        self.on_message = on_message
        self.threads: list[threading.Thread] = []

    def _spawn(self, target: Callable[..., None], *args, name: str) -> threading.Thread:
        thread = threading.Thread(target=target, args=args, daemon=True, name=name)
        self.threads.append(thread)
        thread.start()
        return thread

    def _process(self, history: History, event: Event) -> None:
        snapshot = history.record(event)
        if self.on_update is not None:
            test_name = event.test
            callback = self.on_update
            self.render_loop.submit(lambda: callback(history, test_name, snapshot))

    def _finish(self, history: History) -> None:
        history.finish()
        if self.on_finished is not None:
            callback = self.on_finished
            self.render_loop.submit(lambda: callback(history))

    def _message(self, text: str) -> None:
        if self.on_message is not None:
            callback = self.on_message
            self.render_loop.submit(lambda: callback(text))

    def start_primary(
        self, history: History, channel: EventChannel, done: threading.Event,
    ) -> threading.Thread:
        """Ingest the primary stream until `done` is set and the buffer is drained."""
        history.start()
        return self._spawn(self._ingest_primary, history, channel, done, name="ingest-primary")

    def _ingest_primary(
        self, history: History, channel: EventChannel, done: threading.Event,
    ) -> None:
        try:
            while True:
                # Read done before polling: every event put before done was
                # set is already buffered, so an empty poll afterwards means
                # the stream is drained.
                finished = done.is_set()
                try:
                    event = channel.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    if finished:
                        return
                    continue
                if event is None:
                    return
                self._process(history, event)
        finally:
            self._finish(history)

    def start_rerun(self, target: RerunTarget) -> History:
        """Create a History for `target` and run it in the background.

        Must be called on the render thread; the new History becomes the
        current one.
        """
        history = self.manager.add_history(target.history_name)
        history.start()
        channel = EventChannel(self.rerun_buffer)
        self._spawn(self._ingest_rerun, history, channel, name=f"ingest-{target.history_name}")
        self._spawn(self._execute_rerun, target, channel, name=f"run-{target.history_name}")
        return history

    def _execute_rerun(self, target: RerunTarget, channel: EventChannel) -> None:
        try:
            target.run(self.executor, channel)
        except ExecutionError as e:
            self._message(f"Rerun failed: {e}")
        finally:
            channel.close()

    def _ingest_rerun(self, history: History, channel: EventChannel) -> None:
        try:
            for event in channel:
                self._process(history, event)
        finally:
            self._finish(history)

    def join(self, timeout: float | None = None) -> None:
        for thread in list(self.threads):
            thread.join(timeout=timeout)


def read_event_stream(
    stream: IO, channel: EventChannel, done: threading.Event,
) -> None:
    """Feed a line-oriented event stream (stdin) into `channel`.

    Binary streams are preferred: their lines are decoded one at a time,
    so invalid UTF-8 only affects the line it occurs in.

    A terminal instead of a pipe means there is no input; this is
    reported once and the stream ends immediately.

    Raises:
        OSError: If reading the stream fails; `done` is still set.
    """
    try:
        if stream.isatty():
            print(
                "Error: No piped input detected. Usage: go test -json ./... | gotestview",
                file=sys.stderr,
            )
            return
        for event in decode_lines(stream, source="stdin"):
            channel.put(event)
    finally:
        done.set()


def import_into_channel(
    path: str | Path, channel: EventChannel, done: threading.Event,
) -> None:
    """Feed a previously exported file into `channel`.

    Raises:
        OSError: If the file cannot be read; `done` is still set.
    """
    try:
        for event in import_events(path):
            channel.put(event)
    finally:
        done.set()
