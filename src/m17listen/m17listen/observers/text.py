"""Terminal front end built on rich.

Updates only touch an in-memory field map; rich's ``Live`` refresh thread
does the drawing, so the receive loop never waits on the terminal.
"""

from __future__ import annotations

import threading
from typing import Optional

from rich import box
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from m17listen.observers.base import (
    ERROR,
    FIELD_DISPLAY_NAMES,
    FIELD_ORDER,
    STATUS,
    Observer,
    format_value,
)

__all__ = ["TextObserver"]

TITLE = "M17 Listen Client"


class TextObserver(Observer):
    """Live-updating table of session and frame fields."""

    def __init__(self, console: Optional[Console] = None, refresh_per_second: float = 10) -> None:
        self.console = console or Console()
        self.refresh_per_second = refresh_per_second
        self._fields: dict[str, str] = {field: "" for field in FIELD_ORDER}
        self._lock = threading.Lock()

    def update(self, field: str, value: str) -> None:
        with self._lock:
            self._fields[field] = format_value(field, value)

    def snapshot(self) -> dict[str, str]:
        """Copy of the currently displayed values."""
        with self._lock:
            return dict(self._fields)

    def render(self) -> Panel:
        """Build the panel for the current field values."""
        fields = self.snapshot()
        table = Table(box=box.SIMPLE, show_header=False, pad_edge=False)
        table.add_column("Field", style="bold", min_width=26)
        table.add_column("Value", overflow="fold")
        for field in FIELD_ORDER:
            style = None
            if field == ERROR and fields[field]:
                style = "red"
            elif field == STATUS:
                style = "cyan"
            table.add_row(FIELD_DISPLAY_NAMES[field] + ":", fields[field], style=style)
        return Panel(table, title=TITLE, border_style="blue")

    def run(self, stop: threading.Event) -> None:
        with Live(
            console=self.console,
            refresh_per_second=self.refresh_per_second,
            get_renderable=self.render,
            screen=False,
        ):
            while not stop.wait(0.1):
                pass
