"""Display status derived from a test's event list.

The icon follows the most recent status-bearing action (last event wins),
while the running flag follows the most recent run-vs-terminal action, so
output events between `run` and the final verdict never change it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from gotestview.events.event import (
    ACTION_FAIL,
    ACTION_PASS,
    ACTION_RUN,
    ACTION_SKIP,
    ACTION_START,
    TERMINAL_ACTIONS,
    Event,
)

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

PENDING_ICON = "⧗"

# Actions that change the displayed icon; everything else (output,
# pause, cont, ...) leaves it as it was.
STATUS_ACTIONS = frozenset({
    ACTION_PASS,
    ACTION_FAIL,
    ACTION_RUN,
    ACTION_SKIP,
    ACTION_START,
})

_ICONS = {
    ACTION_PASS: "✓",
    ACTION_FAIL: "✗",
    ACTION_SKIP: "⏭",
    ACTION_START: PENDING_ICON,
}

_COLORS = {
    ACTION_PASS: "green",
    ACTION_FAIL: "red",
    ACTION_RUN: "yellow",
    ACTION_SKIP: "dark_cyan",
    ACTION_START: "grey50",
}


@dataclass(frozen=True)
class TestStatus:
    """Resolved status of one test."""

    action: str | None = None
    elapsed: float = 0.0
    running: bool = False

    def icon(self, spinner: str = SPINNER_FRAMES[0]) -> str:
        """Status icon; `spinner` is the current animation frame for running tests."""
        if self.action == ACTION_RUN:
            return spinner
        return _ICONS.get(self.action, PENDING_ICON)

    @property
    def color(self) -> str:
        return _COLORS.get(self.action, "default")

    @property
    def label(self) -> str:
        """Report-friendly status name."""
        if self.action == ACTION_PASS:
            return "passed"
        if self.action == ACTION_FAIL:
            return "failed"
        if self.action == ACTION_SKIP:
            return "skipped"
        if self.action == ACTION_RUN:
            return "running"
        return "pending"


def resolve_test_status(events: Sequence[Event]) -> TestStatus:
    """Resolve the display status of a test from its ordered events.

    Args:
        events: All events recorded so far for one exact test name.

    Returns:
        TestStatus with the last status-bearing action, the most recent
        non-zero elapsed value, and the running flag.
    """
    action: str | None = None
    elapsed = 0.0
    for event in events:
        if event.elapsed > 0:
            elapsed = event.elapsed
        if event.action in STATUS_ACTIONS:
            action = event.action
    return TestStatus(action=action, elapsed=elapsed, running=is_test_running(events))


def is_test_running(events: Sequence[Event]) -> bool:
    """Check whether a test is executing, from its last run/terminal action."""
    for event in reversed(events):
        if event.action in TERMINAL_ACTIONS:
            return False
        if event.action == ACTION_RUN:
            return True
    return False


def spinner_frame(index: int) -> str:
    return SPINNER_FRAMES[index % len(SPINNER_FRAMES)]
