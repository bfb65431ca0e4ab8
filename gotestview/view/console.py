"""Rich terminal front end for the viewer.

Draws the History, Tests and Log panels with `rich.live.Live` and reads
single keys from the controlling terminal, since stdin carries the event
stream. All drawing and key handling happens on the render thread.
"""

from __future__ import annotations

import os
import select
import sys
import termios
import tty
from typing import BinaryIO

from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text
from rich.tree import Tree

from gotestview.ingest.coordinator import RenderLoop
from gotestview.results.status import SPINNER_FRAMES
from gotestview.results.tree import PACKAGE_ICON, Node, format_node_text
from gotestview.session.history import History
from gotestview.view.controller import Controller

USAGE = (
    "q quit  j/k move  space expand  r rerun  e export  "
    "[/] history  / search  n/N next/prev match  esc clear"
)

# Extra lines taken by a panel border
_BORDER = 2
_MAX_HISTORY_LINES = 5

# Escape sequences of the arrow keys
_ARROW_KEYS = {"[A": "k", "[B": "j"}


class ConsoleView:
    """Interactive full-screen view driven by a Controller."""

    def __init__(
        self,
        controller: Controller,
        render_loop: RenderLoop,
        console: Console | None = None,
    ) -> None:
        self.controller = controller
        self.render_loop = render_loop
        self.console = console or Console()
        self.query_input: str | None = None
        self._tree_offset = 0

    # Drawing

    def render(self) -> Layout:
        height = self.console.size.height
        history_lines = self.controller.history_lines()
        history_height = min(len(history_lines), _MAX_HISTORY_LINES) + _BORDER
        body_height = max(height - 1, history_height + _BORDER + 1)

        layout = Layout()
        layout.split_column(
            Layout(name="body", ratio=1),
            Layout(self._footer(), name="footer", size=1),
        )
        layout["body"].split_row(
            Layout(name="left", ratio=2),
            Layout(name="log", ratio=3),
        )
        layout["left"].split_column(
            Layout(self._history_panel(history_lines), name="history", size=history_height),
            Layout(self._tree_panel(body_height - history_height - _BORDER), name="tests"),
        )
        layout["log"].update(self._log_panel(body_height - _BORDER))
        return layout

    def _history_panel(self, lines: list[tuple[str, bool]]) -> Panel:
        texts = [Text(label, style="bold" if current else "") for label, current in lines]
        return Panel(
            Group(*texts[-_MAX_HISTORY_LINES:]), title=Text("History"), border_style="blue",
        )

    def _tree_panel(self, visible: int) -> Panel:
        rows = self.controller.rows()
        selected = self.controller.selected
        spinner = self.controller.spinner

        index = next((i for i, (_, node) in enumerate(rows) if node is selected), -1)
        visible = max(visible, 1)
        if index >= 0:
            if index < self._tree_offset:
                self._tree_offset = index
            elif index >= self._tree_offset + visible:
                self._tree_offset = index - visible + 1
        self._tree_offset = max(0, min(self._tree_offset, max(len(rows) - visible, 0)))

        lines = []
        for depth, node in rows[self._tree_offset:self._tree_offset + visible]:
            style = node.color
            if node is selected:
                style = f"{style} reverse"
            lines.append(Text("  " * depth + node.text(spinner), style=style))
        title = "Tests"
        if self.controller.history is not None:
            title = f"Tests: {self.controller.history.name}"
        return Panel(Group(*lines), title=Text(title), border_style="blue")

    def _log_panel(self, visible: int) -> Panel:
        text = Text.from_markup(self.controller.log_text())
        lines = text.split("\n", allow_blank=True)
        visible = max(visible, 1)

        current_line = self.controller.search.current_line
        if current_line is not None:
            start = max(0, current_line - visible // 2)
        else:
            start = max(0, len(lines) - visible)
        return Panel(
            Group(*lines[start:start + visible]),
            title=Text(self.controller.log_title),
            border_style="blue",
        )

    def _footer(self) -> Text:
        if self.query_input is not None:
            return Text(f"/{self.query_input}", style="bold")
        if self.controller.message:
            return Text(self.controller.message, style="yellow")
        position = self.controller.search.position
        if position:
            return Text(f"{position}  {USAGE}", style="dim")
        return Text(USAGE, style="dim")

    # Input

    def handle_key(self, key: str) -> bool:
        """Dispatch one key press. Returns True when the viewer should quit."""
        if self.query_input is not None:
            self._handle_query_key(key)
            return False

        controller = self.controller
        controller.message = ""
        if key == "q":
            return True
        if key == "j":
            controller.move_selection(1)
        elif key == "k":
            controller.move_selection(-1)
        elif key in (" ", "\r", "\n"):
            controller.toggle_expanded()
        elif key == "r":
            controller.rerun()
        elif key == "e":
            controller.export()
        elif key == "]":
            controller.next_history()
        elif key == "[":
            controller.prev_history()
        elif key == "/":
            self.query_input = ""
        elif key == "n":
            controller.next_match()
        elif key == "N":
            controller.prev_match()
        elif key == "\x1b":
            controller.clear_search()
        controller.dirty = True
        return False

    def _handle_query_key(self, key: str) -> None:
        assert self.query_input is not None
        if key in ("\r", "\n"):
            query, self.query_input = self.query_input, None
            self.controller.search_for(query)
        elif key == "\x1b":
            self.query_input = None
        elif key in ("\x7f", "\b"):
            self.query_input = self.query_input[:-1]
        elif key.isprintable():
            self.query_input += key
        self.controller.dirty = True

    def _read_key(self, keyboard: BinaryIO) -> str:
        key = keyboard.read(1).decode(errors="replace")
        if key == "\x1b" and select.select([keyboard], [], [], 0.05)[0]:
            key = _ARROW_KEYS.get(keyboard.read(2).decode(errors="replace"), key)
        return key

    # Main loop

    def run(self, tty_path: str = "/dev/tty") -> None:
        """Run until the user quits.

        Raises:
            OSError: If the controlling terminal cannot be opened.
        """
        with open(tty_path, "rb", buffering=0) as keyboard:
            fd = keyboard.fileno()
            old_settings = termios.tcgetattr(fd)
            try:
                tty.setcbreak(fd)
                with Live(
                    self.render(),
                    console=self.console,
                    screen=True,
                    auto_refresh=False,
                ) as live:
                    while True:
                        if select.select([keyboard], [], [], 0.05)[0]:
                            if self.handle_key(self._read_key(keyboard)):
                                break
                        self.render_loop.run_pending()
                        if self.controller.dirty:
                            self.controller.dirty = False
                            live.update(self.render(), refresh=True)
            except KeyboardInterrupt:
                pass
            finally:
                termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


def has_terminal(tty_path: str = "/dev/tty") -> bool:
    """Check whether a controlling terminal is available for key input."""
    if not sys.stdout.isatty():
        return False
    try:
        fd = os.open(tty_path, os.O_RDONLY)
    except OSError:
        return False
    os.close(fd)
    return True


def _summary_label(node: Node) -> Text:
    if node.is_package:
        text = f"{PACKAGE_ICON} {node.label}"
    elif node.status is None:
        text = node.label
    else:
        text = format_node_text("", node.status.icon(SPINNER_FRAMES[0]), node.label,
                                node.status.elapsed)
    return Text(text, style=node.color)


def build_summary_tree(history: History) -> Tree:
    """Build a static Rich tree of a History's results."""
    tree = Tree(Text(history.label(SPINNER_FRAMES[0]), style="bold"))

    def add(parent: Tree, node: Node) -> None:
        branch = parent.add(_summary_label(node))
        for child in node.children:
            add(branch, child)

    with history.lock:
        for node in history.root.children:
            add(tree, node)
    return tree


def print_summary(history: History, console: Console | None = None) -> None:
    """Print the final result tree and counts of a History."""
    console = console or Console()
    console.print(build_summary_tree(history))
    results = history.results()
    console.print(
        f"[green]{results.passed} passed[/green], "
        f"[red]{results.failed} failed[/red], "
        f"[dark_cyan]{results.skipped} skipped[/dark_cyan]"
    )
