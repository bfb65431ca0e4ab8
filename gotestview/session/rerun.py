"""Rerun target selection from a tree node reference."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from gotestview.results.tree import NodeRef, PackageRef, TestRef, last_path_component

if TYPE_CHECKING:
    from gotestview.events.channel import EventChannel
    from gotestview.execution.executor import GoTestExecutor


@dataclass(frozen=True)
class RerunTarget:
    """A package, or one exact test within a package, to execute again."""

    history_name: str
    package: str
    test_name: str | None = None

    def run(self, executor: GoTestExecutor, channel: EventChannel) -> str:
        """Execute the target, streaming events into `channel`.

        Returns:
            The executor outcome.
        """
        if self.test_name is None:
            return executor.run_package(self.package, channel)
        return executor.run_test(self.package, self.test_name, channel)


def parse_rerun_target(ref: NodeRef) -> RerunTarget | None:
    """Derive the rerun target for a node reference.

    Args:
        ref: The node's reference.

    Returns:
        The target, or None when the node cannot be rerun (the tree root,
        an intermediate node, or a test without events).
    """
    if isinstance(ref, PackageRef):
        return RerunTarget(
            history_name=f"Rerun: pkg {last_path_component(ref.package)}",
            package=ref.package,
        )
    if isinstance(ref, TestRef):
        if not ref.events:
            return None
        return RerunTarget(
            history_name=f"Rerun: {last_path_component(ref.test_name)}",
            package=ref.package,
            test_name=ref.test_name,
        )
    return None
