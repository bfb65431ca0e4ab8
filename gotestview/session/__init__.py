"""Test run sessions: histories, the history manager, and rerun targets."""

from gotestview.session.history import (
    STATE_COMPLETED,
    STATE_FAILED,
    STATE_IDLE,
    STATE_RUNNING,
    History,
    HistoryManager,
    Results,
    ingest,
)
from gotestview.session.rerun import RerunTarget, parse_rerun_target

__all__ = [
    "STATE_COMPLETED",
    "STATE_FAILED",
    "STATE_IDLE",
    "STATE_RUNNING",
    "History",
    "HistoryManager",
    "RerunTarget",
    "Results",
    "ingest",
    "parse_rerun_target",
]
