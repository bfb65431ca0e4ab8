"""Viewer configuration file management.

Reads an optional JSON file with buffer sizes, the animation
interval, the go test command used for reruns, and the export directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "event_buffer": 1000,
    "rerun_buffer": 100,
    "tick_interval": 0.1,
    "go_command": ["go", "test", "-json"],
    "export_dir": ".",
}


class ViewerConfig:
    """Viewer settings: defaults, then the JSON file, then overrides."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        if path is not None and path.exists():
            self._load()

    def _load(self) -> None:
        """Load config from the file."""
        assert self.path is not None
        try:
            text = self.path.read_text()
            data = json.loads(text)
            if isinstance(data, dict):
                self._data = {**DEFAULT_CONFIG, **data}
        except (json.JSONDecodeError, OSError):
            self._data = dict(DEFAULT_CONFIG)

    @property
    def event_buffer(self) -> int:
        """Get the primary event channel size."""
        return max(1, int(self._data.get("event_buffer", DEFAULT_CONFIG["event_buffer"])))

    @property
    def rerun_buffer(self) -> int:
        """Get the rerun event channel size."""
        return max(1, int(self._data.get("rerun_buffer", DEFAULT_CONFIG["rerun_buffer"])))

    @property
    def tick_interval(self) -> float:
        """Get the animation tick interval in seconds."""
        return float(self._data.get("tick_interval", DEFAULT_CONFIG["tick_interval"]))

    @property
    def go_command(self) -> list[str]:
        """Get the command prefix used to run tests."""
        value = self._data.get("go_command", DEFAULT_CONFIG["go_command"])
        if isinstance(value, str):
            return value.split()
        return [str(part) for part in value]

    @property
    def export_dir(self) -> Path:
        """Get the directory export files are written to."""
        return Path(self._data.get("export_dir", DEFAULT_CONFIG["export_dir"]))

    def override(self, **values: Any) -> None:
        """Apply command-line overrides; None leaves the file value in place.

        Raises:
            ValueError: If a key is not a known setting.
        """
        unknown = sorted(set(values) - set(DEFAULT_CONFIG))
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")
        self._data.update({k: v for k, v in values.items() if v is not None})
