"""History summary reporting (YAML)."""

from gotestview.reporting.reporter import Reporter

__all__ = [
    "Reporter",
]
