"""Result model: status resolution and the hierarchical result tree."""

from gotestview.results.status import (
    SPINNER_FRAMES,
    TestStatus,
    is_test_running,
    resolve_test_status,
    spinner_frame,
)
from gotestview.results.tree import (
    Node,
    PackageRef,
    ResultTree,
    TestRef,
    format_node_text,
    last_path_component,
)

__all__ = [
    "SPINNER_FRAMES",
    "Node",
    "PackageRef",
    "ResultTree",
    "TestRef",
    "TestStatus",
    "format_node_text",
    "is_test_running",
    "last_path_component",
    "resolve_test_status",
    "spinner_frame",
]
