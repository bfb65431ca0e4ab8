"""Test run sessions (histories) and the manager that selects between them.

A History is one run: the primary input stream or one rerun. Its event
maps and result tree are only ever mutated together, under the History's
own lock, so ingestion for one History never contends with another.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from gotestview.events.event import (
    ACTION_FAIL,
    ACTION_PASS,
    ACTION_SKIP,
    Event,
)
from gotestview.results.tree import Node, PackageRef, ResultTree, TestRef

STATE_IDLE = "idle"
STATE_RUNNING = "running"
STATE_COMPLETED = "completed"
STATE_FAILED = "failed"

_STATE_SUFFIX = {
    STATE_COMPLETED: " ✓",
    STATE_FAILED: " ✗",
}


@dataclass
class Results:
    """Per-test outcome counts for a History."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    running: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped + self.running

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "running": self.running,
        }


class History:
    """One test run session."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.test_cases: dict[str, list[Event]] = {}
        self.package_events: dict[str, list[Event]] = {}
        self.events: list[Event] = []
        self.tree = ResultTree()
        self.state = STATE_IDLE
        self.lock = threading.Lock()
        self._finished = False

    @property
    def root(self) -> Node:
        return self.tree.root

    def start(self) -> None:
        """Mark the History as running."""
        with self.lock:
            if self.state == STATE_IDLE:
                self.state = STATE_RUNNING

    def is_running(self) -> bool:
        return self.state == STATE_RUNNING

    def record(self, event: Event) -> tuple[Event, ...] | None:
        """Record one event and update the tree.

        Root events are kept for package-level bookkeeping only and never
        create nodes.

        Returns:
            Snapshot of the event list for the event's test name, or None
            for a root event.
        """
        with self.lock:
            self.events.append(event)
            if event.is_root_event():
                self.package_events.setdefault(event.package, []).append(event)
                return None
            cases = self.test_cases.setdefault(event.test, [])
            cases.append(event)
            snapshot = tuple(cases)
            self.tree.update(event.test, snapshot)
            return snapshot

    def has_failed_test(self) -> bool:
        """Check for any fail action among the recorded events.

        Caller must hold the lock.
        """
        for events in self.test_cases.values():
            if any(e.action == ACTION_FAIL for e in events):
                return True
        for events in self.package_events.values():
            if any(e.action == ACTION_FAIL for e in events):
                return True
        return False

    def finish(self) -> str:
        """Move to completed or failed; only the first call has an effect.

        Returns:
            The final state.
        """
        with self.lock:
            if not self._finished:
                self._finished = True
                self.state = STATE_FAILED if self.has_failed_test() else STATE_COMPLETED
            return self.state

    def all_events(self) -> list[Event]:
        """Copy of every recorded event in arrival order."""
        with self.lock:
            return list(self.events)

    def log_events(self, node: Node | None) -> tuple[Event, ...]:
        """Events whose output makes up the log of a node."""
        if node is None:
            return ()
        ref = node.ref
        if isinstance(ref, TestRef):
            return ref.events
        if isinstance(ref, PackageRef):
            with self.lock:
                return tuple(self.package_events.get(ref.package, ()))
        return ()

    def rows(self) -> list[tuple[int, Node]]:
        with self.lock:
            return self.tree.rows()

    def toggle_expanded(self, node: Node) -> None:
        with self.lock:
            node.expanded = not node.expanded

    def results(self) -> Results:
        """Count tests by their current status."""
        counts = Results()
        with self.lock:
            for node in self.tree.node_map.values():
                if node.status is None or node.is_package:
                    continue
                if node.status.running:
                    counts.running += 1
                elif node.status.action == ACTION_PASS:
                    counts.passed += 1
                elif node.status.action == ACTION_FAIL:
                    counts.failed += 1
                elif node.status.action == ACTION_SKIP:
                    counts.skipped += 1
        return counts

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of the History (for reports)."""
        with self.lock:
            packages: dict[str, dict[str, Any]] = {}
            for key, node in self.tree.node_map.items():
                package, prefix = key
                entry = packages.setdefault(package, {"events": [], "tests": {}})
                if prefix and node.status is not None:
                    entry["tests"][prefix] = node.status
            for package, events in self.package_events.items():
                entry = packages.setdefault(package, {"events": [], "tests": {}})
                entry["events"] = list(events)
            return {"name": self.name, "state": self.state, "packages": packages}

    def label(self, spinner: str) -> str:
        """History list entry, e.g. `Initial ✓`."""
        if self.state == STATE_RUNNING:
            return f"{self.name} {spinner}"
        return f"{self.name}{_STATE_SUFFIX.get(self.state, '')}"


def ingest(history: History, event: Event) -> tuple[Event, ...] | None:
    """Fold one event into a History; see History.record."""
    return history.record(event)


class HistoryManager:
    """Ordered histories with a single current selection.

    The current index is render-thread state and is never touched by
    ingestion threads.
    """

    def __init__(self) -> None:
        self.histories: list[History] = []
        self.current_index = 0

    def add_history(self, name: str) -> History:
        """Append a new History and make it current."""
        history = History(name)
        self.histories.append(history)
        self.current_index = len(self.histories) - 1
        return history

    def current(self) -> History | None:
        if not self.histories:
            return None
        return self.histories[self.current_index]

    def select(self, index: int) -> bool:
        """Make the History at `index` current; out-of-range indexes are ignored."""
        if index < 0 or index >= len(self.histories):
            return False
        self.current_index = index
        return True

    def next(self) -> bool:
        if self.current_index < len(self.histories) - 1:
            self.current_index += 1
            return True
        return False

    def prev(self) -> bool:
        if self.current_index > 0:
            self.current_index -= 1
            return True
        return False

    def any_running(self) -> bool:
        return any(h.is_running() for h in self.histories)

    def __len__(self) -> int:
        return len(self.histories)
