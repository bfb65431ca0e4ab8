"""Summary report generation for a History.

Produces a YAML document with the History's final state, outcome counts,
and per-package test results, mirroring the package/test hierarchy of the
result tree.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Any

import yaml

from gotestview.events.event import TERMINAL_ACTIONS, Event
from gotestview.results.status import TestStatus
from gotestview.session.history import History


class Reporter:
    """Builds summary reports from a History."""

    def __init__(self, history: History) -> None:
        self.history = history

    def generate_report(self) -> dict[str, Any]:
        """Generate the report data structure.

        Returns:
            Dictionary representing the full report, suitable for YAML
            serialization.
        """
        now = datetime.datetime.now(tz=datetime.timezone.utc).isoformat()
        snapshot = self.history.snapshot()
        results = self.history.results()

        packages = []
        for name, data in snapshot["packages"].items():
            packages.append(self._format_package(name, data["events"], data["tests"]))

        return {
            "report": {
                "generated_at": now,
                "history": snapshot["name"],
                "state": snapshot["state"],
                "summary": results.to_dict(),
                "packages": packages,
            }
        }

    def write_yaml(self, path: Path) -> None:
        """Write the report as a YAML file.

        Args:
            path: File path to write the YAML report to.
        """
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(
                report,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    def _format_package(
        self, name: str, events: list[Event], tests: dict[str, TestStatus],
    ) -> dict[str, Any]:
        statuses = [status.label for status in tests.values()]
        entry: dict[str, Any] = {
            "name": name,
            "status": _package_status(events, statuses),
        }

        elapsed = _package_elapsed(events)
        if elapsed:
            entry["elapsed_seconds"] = round(elapsed, 3)

        entry["tests"] = [
            _format_test(test_name, status) for test_name, status in tests.items()
        ]
        return entry


def _format_test(name: str, status: TestStatus) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": name, "status": status.label}
    if status.elapsed > 0:
        entry["elapsed_seconds"] = round(status.elapsed, 3)
    return entry


def _package_status(events: list[Event], statuses: list[str]) -> str:
    """Package verdict from its own terminal event, else from its tests."""
    for event in reversed(events):
        if event.action in TERMINAL_ACTIONS:
            return _aggregate_status([_ACTION_LABELS[event.action]])
    return _aggregate_status(statuses)


def _package_elapsed(events: list[Event]) -> float:
    for event in reversed(events):
        if event.elapsed > 0:
            return event.elapsed
    return 0.0


_ACTION_LABELS = {"pass": "passed", "fail": "failed", "skip": "skipped"}


def _aggregate_status(statuses: list[str]) -> str:
    """Compute aggregated status from child statuses.

    Args:
        statuses: List of child test statuses.

    Returns:
        Aggregated status string.
    """
    if not statuses:
        return "no_tests"

    if any(s == "failed" for s in statuses):
        return "failed"
    if any(s in ("running", "pending") for s in statuses):
        return "running"
    if all(s == "skipped" for s in statuses):
        return "skipped"
    return "passed"
