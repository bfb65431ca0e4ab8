"""Viewer state and user operations.

Everything here runs on the render thread: the current selection, the
search state, the spinner frame and status messages. History data is only
read through the History's lock-protected helpers and node snapshots.
"""

from __future__ import annotations

import datetime
from typing import Callable

from rich.markup import escape

from gotestview.config import ViewerConfig
from gotestview.events.event import Event, export_events, export_filename
from gotestview.ingest.coordinator import IngestionCoordinator
from gotestview.results.status import spinner_frame
from gotestview.results.tree import Node
from gotestview.search.highlight import SearchState
from gotestview.session.history import History, HistoryManager
from gotestview.session.rerun import parse_rerun_target

EMPTY_SELECTION_TEXT = "select testcase"


class Controller:
    """Render-thread state of the viewer."""

    def __init__(
        self,
        manager: HistoryManager,
        coordinator: IngestionCoordinator,
        config: ViewerConfig | None = None,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ) -> None:
        self.manager = manager
        self.coordinator = coordinator
        self.config = config or ViewerConfig()
        self.clock = clock
        self.search = SearchState()
        self.selected: Node | None = None
        self.spinner_index = 0
        self.message = ""
        self.dirty = True

    @property
    def history(self) -> History | None:
        return self.manager.current()

    @property
    def spinner(self) -> str:
        return spinner_frame(self.spinner_index)

    # Tree navigation

    def rows(self) -> list[tuple[int, Node]]:
        history = self.history
        if history is None:
            return []
        return history.rows()

    def select(self, node: Node | None) -> None:
        """Select a node (None selects the tree root)."""
        self.selected = node
        if self.search.active:
            self.search.search(self.log_plain(), self.search.query)
        self.dirty = True

    def move_selection(self, delta: int) -> None:
        rows = self.rows()
        if not rows:
            self.select(None)
            return
        nodes = [node for _, node in rows]
        # The tree root sits just above the first row.
        current = -1
        if self.selected in nodes:
            current = nodes.index(self.selected)
        index = max(0, min(current + delta, len(nodes) - 1))
        self.select(nodes[index])

    def toggle_expanded(self) -> None:
        history = self.history
        if history is None or self.selected is None or not self.selected.children:
            return
        history.toggle_expanded(self.selected)
        self.dirty = True

    # History navigation

    def switch_history(self, index: int) -> bool:
        """Show the History at `index`, clearing the search and selection."""
        if not self.manager.select(index):
            return False
        self._reset_view()
        return True

    def next_history(self) -> bool:
        return self.switch_history(self.manager.current_index + 1)

    def prev_history(self) -> bool:
        return self.switch_history(self.manager.current_index - 1)

    def _reset_view(self) -> None:
        self.search.reset()
        self.selected = None
        self.dirty = True

    def history_lines(self) -> list[tuple[str, bool]]:
        """(label, is_current) for every History, e.g. `▶ Initial ✓`."""
        lines = []
        for i, history in enumerate(self.manager.histories):
            current = i == self.manager.current_index
            prefix = "▶ " if current else "  "
            lines.append((prefix + history.label(self.spinner), current))
        return lines

    # Log and search

    def log_events(self) -> tuple[Event, ...]:
        history = self.history
        if history is None:
            return ()
        return history.log_events(self.selected)

    def log_plain(self) -> str:
        return "".join(event.output for event in self.log_events())

    def log_text(self) -> str:
        """Log of the selected node as Rich markup, with search highlights."""
        if self.selected is None:
            return EMPTY_SELECTION_TEXT
        text = self.log_plain()
        if self.search.active:
            return self.search.render(text)
        return escape(text)

    @property
    def log_title(self) -> str:
        return self.search.title

    def search_for(self, query: str) -> bool:
        """Start a search in the current log; returns whether anything matched."""
        if not query:
            self.clear_search()
            return False
        found = self.search.search(self.log_plain(), query)
        self.dirty = True
        return found

    def next_match(self) -> None:
        if self.search.next() is not None:
            self.dirty = True

    def prev_match(self) -> None:
        if self.search.prev() is not None:
            self.dirty = True

    def clear_search(self) -> None:
        self.search.reset()
        self.dirty = True

    # Commands

    def rerun(self) -> History | None:
        """Rerun the selected package or test in a new History."""
        if self.selected is None:
            return None
        target = parse_rerun_target(self.selected.ref)
        if target is None:
            return None
        history = self.coordinator.start_rerun(target)
        self._reset_view()
        return history

    def export(self) -> str | None:
        """Export every event of the current History to a timestamped file.

        Returns:
            The file path written, or None when nothing was written.
        """
        history = self.history
        if history is None:
            return None
        events = history.all_events()
        if not events:
            self.set_message("Nothing to export")
            return None
        path = self.config.export_dir / export_filename(self.clock())
        try:
            count = export_events(path, events)
        except OSError as e:
            self.set_message(f"Export failed: {e}")
            return None
        self.set_message(f"Exported to {path} ({count} events)")
        return str(path)

    # Render-loop callbacks

    def set_message(self, text: str) -> None:
        self.message = text
        self.dirty = True

    def on_tick(self) -> None:
        if self.manager.any_running():
            self.spinner_index += 1
            self.dirty = True

    def on_history_updated(
        self, history: History, test_name: str, snapshot: tuple[Event, ...] | None,
    ) -> None:
        if history is not self.history:
            return
        if self.search.active:
            self.search.refresh(self.log_plain())
        self.dirty = True

    def on_history_finished(self, history: History) -> None:
        self.dirty = True
