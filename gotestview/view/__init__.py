"""Viewer state and the Rich terminal front end."""

from gotestview.view.console import ConsoleView, print_summary
from gotestview.view.controller import Controller

__all__ = [
    "Controller",
    "ConsoleView",
    "print_summary",
]
