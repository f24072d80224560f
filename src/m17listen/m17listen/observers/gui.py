"""Qt window front end.

Labels are only touched on the GUI thread: ``update`` emits a signal that
Qt queues across threads, so the receive loop never blocks on the window.
Closing the window requests shutdown.
"""

from __future__ import annotations

import sys
import threading
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import QApplication, QGridLayout, QLabel, QMainWindow, QVBoxLayout, QWidget

from m17listen.observers.base import (
    ERROR,
    FIELD_DISPLAY_NAMES,
    FIELD_ORDER,
    STATUS,
    Observer,
    format_value,
)

__all__ = ["GraphicalObserver"]

TITLE = "M17 Listen Client"

# Status first, then the frame fields, Error last
GUI_FIELD_ORDER: tuple[str, ...] = (STATUS,) + tuple(f for f in FIELD_ORDER if f != STATUS)


class _Bridge(QObject):
    updated = pyqtSignal(str, str)


class _Window(QMainWindow):
    def __init__(self, on_close) -> None:
        super().__init__()
        self._on_close = on_close

    def closeEvent(self, event) -> None:  # noqa: N802
        self._on_close()
        super().closeEvent(event)


class GraphicalObserver(Observer):
    """Two-column grid of field names and values.

    Must be constructed on the main thread.
    """

    def __init__(self, app: Optional[QApplication] = None) -> None:
        self._app = app or QApplication.instance() or QApplication(sys.argv[:1])
        self._stop: Optional[threading.Event] = None
        self._labels: dict[str, QLabel] = {}

        self._window = _Window(self._request_stop)
        self._window.setWindowTitle(TITLE)
        self._window.resize(400, 400)

        mono = QFont("Monospace")
        mono.setStyleHint(QFont.StyleHint.Monospace)

        content = QWidget()
        layout = QVBoxLayout(content)
        heading = QLabel(TITLE)
        heading.setFont(mono)
        layout.addWidget(heading)

        grid = QGridLayout()
        for row, field in enumerate(GUI_FIELD_ORDER):
            name = QLabel(FIELD_DISPLAY_NAMES[field] + ":")
            value = QLabel("None" if field == ERROR else "")
            name.setFont(mono)
            value.setFont(mono)
            grid.addWidget(name, row, 0)
            grid.addWidget(value, row, 1)
            self._labels[field] = value
        layout.addLayout(grid)
        layout.addStretch()
        self._window.setCentralWidget(content)

        self._bridge = _Bridge()
        self._bridge.updated.connect(self._set_label)

    def _set_label(self, field: str, value: str) -> None:
        label = self._labels.get(field)
        if label is not None:
            label.setText(format_value(field, value))

    def _request_stop(self) -> None:
        if self._stop is not None:
            self._stop.set()

    def _quit_if_stopped(self) -> None:
        if self._stop is not None and self._stop.is_set():
            self._app.quit()

    def update(self, field: str, value: str) -> None:
        self._bridge.updated.emit(field, value)

    def run(self, stop: threading.Event) -> None:
        self._stop = stop
        timer = QTimer()
        timer.timeout.connect(self._quit_if_stopped)
        timer.start(100)
        self._window.show()
        self._app.exec()
        timer.stop()

    def close(self) -> None:
        self._window.close()
