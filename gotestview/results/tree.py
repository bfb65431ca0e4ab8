"""Hierarchical result tree built from slash-delimited test names.

Each package gets one node; each prefix of a test name (`TestA`,
`TestA/sub`, `TestA/sub/case`) gets one node below it. Nodes are memoized
by (package, prefix) so re-ingesting events never duplicates them, and
siblings keep first-seen order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Union

from gotestview.events.event import Event
from gotestview.results.status import SPINNER_FRAMES, TestStatus, resolve_test_status

PACKAGE_ICON = "📦"
EXPANDED_ICON = "▼ "
COLLAPSED_ICON = "▶ "


@dataclass(frozen=True)
class PackageRef:
    """Node reference to a whole package (rerun-by-package)."""

    package: str


@dataclass(frozen=True)
class TestRef:
    """Node reference to the events of one exact test name."""

    events: tuple[Event, ...]

    @property
    def package(self) -> str:
        return self.events[0].package if self.events else ""

    @property
    def test_name(self) -> str:
        return self.events[0].test if self.events else ""


NodeRef = Union[PackageRef, TestRef, None]


@dataclass(eq=False)
class Node:
    """One element of the result tree."""

    label: str
    status: TestStatus | None = None
    expanded: bool = True
    ref: NodeRef = None
    children: list[Node] = field(default_factory=list)

    @property
    def is_package(self) -> bool:
        return isinstance(self.ref, PackageRef)

    def expand_icon(self) -> str:
        if not self.children:
            return ""
        return EXPANDED_ICON if self.expanded else COLLAPSED_ICON

    def text(self, spinner: str = SPINNER_FRAMES[0]) -> str:
        """Display line for this node."""
        if self.is_package:
            return f"{self.expand_icon()}{PACKAGE_ICON} {self.label}"
        if self.status is None:
            return f"{self.expand_icon()}{self.label}"
        return format_node_text(
            self.expand_icon(), self.status.icon(spinner), self.label, self.status.elapsed,
        )

    @property
    def color(self) -> str:
        if self.is_package:
            return "blue"
        if self.status is None:
            return "default"
        return self.status.color


def last_path_component(path: str) -> str:
    """Return the part after the last slash."""
    return path.rsplit("/", 1)[-1]


def format_node_text(expand_icon: str, status_icon: str, name: str, elapsed: float) -> str:
    if elapsed > 0:
        return f"{expand_icon}{status_icon} {name} [{elapsed:.3f}s]"
    return f"{expand_icon}{status_icon} {name}"


class ResultTree:
    """Result tree plus its (package, prefix) -> Node memoization map.

    Not thread-safe; the owning History serializes access.
    """

    def __init__(self) -> None:
        self.root = Node(label=".")
        self.node_map: dict[tuple[str, str], Node] = {}

    def _child(self, parent: Node, key: tuple[str, str], label: str) -> Node:
        node = self.node_map.get(key)
        if node is None:
            node = Node(label=label)
            self.node_map[key] = node
            parent.children.append(node)
        return node

    def package_node(self, package: str) -> Node:
        """Locate or create the node for a package."""
        key = (package, "")
        node = self.node_map.get(key)
        if node is None:
            node = self._child(self.root, key, last_path_component(package))
            node.ref = PackageRef(package)
        return node

    def update(self, test_name: str, events: Sequence[Event]) -> Node | None:
        """Place a test in the tree and refresh its status.

        Args:
            test_name: Full slash-delimited test name.
            events: Every event recorded so far for exactly this test name.

        Returns:
            The node addressed by `test_name`, or None when there are no
            events yet.
        """
        if not events:
            return None

        package = events[0].package
        parent = self.package_node(package)

        parts = test_name.split("/")
        for i, part in enumerate(parts):
            prefix = "/".join(parts[: i + 1])
            parent = self._child(parent, (package, prefix), part)

        parent.status = resolve_test_status(events)
        parent.ref = TestRef(tuple(events))
        return parent

    def find(self, package: str, test_name: str = "") -> Node | None:
        return self.node_map.get((package, test_name))

    def rows(self) -> list[tuple[int, Node]]:
        """Flatten the visible tree (collapsed subtrees hidden), depth-first."""
        result: list[tuple[int, Node]] = []

        def walk(node: Node, depth: int) -> None:
            for child in node.children:
                result.append((depth, child))
                if child.expanded:
                    walk(child, depth + 1)

        walk(self.root, 0)
        return result
