"""Unit tests for History and HistoryManager."""

from __future__ import annotations

import threading

from gotestview.events.event import (
    ACTION_FAIL,
    ACTION_OUTPUT,
    ACTION_PASS,
    ACTION_RUN,
    ACTION_SKIP,
    ACTION_START,
    Event,
)
from gotestview.results.tree import PackageRef, TestRef
from gotestview.session.history import (
    STATE_COMPLETED,
    STATE_FAILED,
    STATE_IDLE,
    STATE_RUNNING,
    History,
    HistoryManager,
    ingest,
)


def _ev(action: str, test: str = "", pkg: str = "p", **kwargs) -> Event:
    return Event(action=action, package=pkg, test=test, **kwargs)


class TestHistoryRecord:
    """Tests for History.record / ingest."""

    def test_root_event_creates_no_node(self):
        """Package-level events are kept but create no node."""
        h = History("Initial")
        assert ingest(h, _ev(ACTION_START)) is None
        assert h.root.children == []
        assert h.test_cases == {}
        assert h.package_events == {"p": [_ev(ACTION_START)]}
        assert h.events == [_ev(ACTION_START)]

    def test_record_returns_snapshot(self):
        """Ingest returns an immutable snapshot of the test's events."""
        h = History("Initial")
        ingest(h, _ev(ACTION_RUN, "T"))
        snapshot = ingest(h, _ev(ACTION_OUTPUT, "T", output="x"))
        assert snapshot == (_ev(ACTION_RUN, "T"), _ev(ACTION_OUTPUT, "T", output="x"))
        ingest(h, _ev(ACTION_PASS, "T"))
        # The earlier snapshot is not affected by later events.
        assert len(snapshot) == 2

    def test_event_map_and_tree_agree(self):
        """Every test node refers to its recorded events."""
        h = History("Initial")
        for event in [_ev(ACTION_RUN, "A"), _ev(ACTION_RUN, "A/b"), _ev(ACTION_PASS, "A/b")]:
            ingest(h, event)
        for name, events in h.test_cases.items():
            node = h.tree.find("p", name)
            assert node.ref == TestRef(tuple(events))

    def test_concurrent_ingestion_keeps_all_events(self):
        """Concurrent producers lose no events and keep per-test order."""
        h = History("Initial")

        def produce(test: str):
            ingest(h, _ev(ACTION_RUN, test))
            for i in range(200):
                ingest(h, _ev(ACTION_OUTPUT, test, output=f"{i}\n"))
            ingest(h, _ev(ACTION_PASS, test))

        threads = [threading.Thread(target=produce, args=(f"T{i}",)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(h.events) == 4 * 202
        for i in range(4):
            events = h.test_cases[f"T{i}"]
            assert [e.output for e in events[1:-1]] == [f"{n}\n" for n in range(200)]
            assert h.tree.find("p", f"T{i}").status.action == ACTION_PASS


class TestHistoryLifecycle:
    """Tests for start/finish state transitions."""

    def test_initial_state(self):
        """A new history is idle until started."""
        h = History("Initial")
        assert h.state == STATE_IDLE
        h.start()
        assert h.state == STATE_RUNNING
        assert h.is_running()

    def test_completed(self):
        """A run without failures completes."""
        h = History("Initial")
        h.start()
        ingest(h, _ev(ACTION_RUN, "A"))
        ingest(h, _ev(ACTION_PASS, "A"))
        assert h.finish() == STATE_COMPLETED

    def test_failed_even_if_later_tests_pass(self):
        """One failed test fails the whole history."""
        h = History("Initial")
        h.start()
        for event in [
            _ev(ACTION_RUN, "A"), _ev(ACTION_FAIL, "A"),
            _ev(ACTION_RUN, "B"), _ev(ACTION_PASS, "B"),
            _ev(ACTION_RUN, "C"), _ev(ACTION_PASS, "C"),
        ]:
            ingest(h, event)
        assert h.finish() == STATE_FAILED

    def test_package_failure_fails_history(self):
        """A package-level fail fails the history."""
        h = History("Initial")
        h.start()
        ingest(h, _ev(ACTION_OUTPUT, output="build failed\n"))
        ingest(h, _ev(ACTION_FAIL))
        assert h.finish() == STATE_FAILED

    def test_finish_only_once(self):
        """Finishing a second time changes nothing."""
        h = History("Initial")
        h.start()
        assert h.finish() == STATE_COMPLETED
        ingest(h, _ev(ACTION_FAIL, "late"))
        assert h.finish() == STATE_COMPLETED

    def test_empty_history_completes(self):
        """A history without events completes."""
        h = History("Initial")
        h.start()
        assert h.finish() == STATE_COMPLETED

    def test_label(self):
        """The label shows a spinner while running and the verdict after."""
        h = History("Initial")
        h.start()
        assert h.label("⠋") == "Initial ⠋"
        h.finish()
        assert h.label("⠋") == "Initial ✓"


class TestHistoryViews:
    """Tests for the lock-protected read helpers."""

    def test_log_events_for_test_node(self):
        """A test node's log is its own output."""
        h = History("Initial")
        ingest(h, _ev(ACTION_RUN, "T"))
        ingest(h, _ev(ACTION_OUTPUT, "T", output="log1"))
        node = h.tree.find("p", "T")
        assert "".join(e.output for e in h.log_events(node)) == "log1"

    def test_log_events_for_package_node(self):
        """A package node's log is its package-level output."""
        h = History("Initial")
        ingest(h, _ev(ACTION_RUN, "T"))
        ingest(h, _ev(ACTION_OUTPUT, output="ok  \tp\t0.01s\n"))
        pkg_node = h.tree.find("p")
        assert pkg_node.ref == PackageRef("p")
        assert h.log_events(pkg_node)[0].output == "ok  \tp\t0.01s\n"

    def test_log_events_for_root(self):
        """The root and no selection have no log."""
        h = History("Initial")
        assert h.log_events(h.root) == ()
        assert h.log_events(None) == ()

    def test_toggle_expanded(self):
        """Collapsing a node hides its children from the rows."""
        h = History("Initial")
        ingest(h, _ev(ACTION_RUN, "A/b"))
        node = h.tree.find("p", "A")
        h.toggle_expanded(node)
        assert not node.expanded
        assert [n.label for _, n in h.rows()] == ["p", "A"]

    def test_results(self):
        """Results count each verdict and running tests."""
        h = History("Initial")
        for event in [
            _ev(ACTION_RUN, "A"), _ev(ACTION_PASS, "A"),
            _ev(ACTION_RUN, "B"), _ev(ACTION_FAIL, "B"),
            _ev(ACTION_RUN, "C"), _ev(ACTION_SKIP, "C"),
            _ev(ACTION_RUN, "D"),
        ]:
            ingest(h, event)
        results = h.results()
        assert (results.passed, results.failed, results.skipped, results.running) == (1, 1, 1, 1)
        assert results.total == 4

    def test_all_events_is_a_copy(self):
        """all_events returns a copy."""
        h = History("Initial")
        ingest(h, _ev(ACTION_RUN, "A"))
        events = h.all_events()
        events.append(_ev(ACTION_PASS, "A"))
        assert len(h.events) == 1


class TestHistoryManager:
    """Tests for HistoryManager navigation."""

    def test_empty(self):
        """An empty manager has no current history."""
        hm = HistoryManager()
        assert hm.current() is None
        assert not hm.next()
        assert not hm.prev()

    def test_add_makes_current(self):
        """Adding a history makes it current."""
        hm = HistoryManager()
        first = hm.add_history("Initial")
        assert hm.current() is first
        second = hm.add_history("Rerun: T")
        assert hm.current() is second
        assert hm.current_index == 1

    def test_next_prev_no_wraparound(self):
        """Navigation stops at both ends."""
        hm = HistoryManager()
        a = hm.add_history("a")
        b = hm.add_history("b")
        assert not hm.next()
        assert hm.current() is b
        assert hm.prev()
        assert hm.current() is a
        assert not hm.prev()
        assert hm.current() is a
        assert hm.next()
        assert hm.current() is b

    def test_select_bounds(self):
        """Out-of-range selection is rejected."""
        hm = HistoryManager()
        hm.add_history("a")
        hm.add_history("b")
        assert hm.select(0)
        assert not hm.select(2)
        assert not hm.select(-1)
        assert hm.current_index == 0

    def test_any_running(self):
        """any_running follows the histories' states."""
        hm = HistoryManager()
        h = hm.add_history("a")
        assert not hm.any_running()
        h.start()
        assert hm.any_running()
        h.finish()
        assert not hm.any_running()
