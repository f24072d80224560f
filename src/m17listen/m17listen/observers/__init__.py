"""Presentation front ends.

Every front end consumes the same ``update(field, value)`` contract; the
variant is picked once at startup.
"""

from __future__ import annotations

from m17listen.observers.base import FIELD_ORDER, NullObserver, Observer, format_value

__all__ = [
    "FIELD_ORDER",
    "NullObserver",
    "Observer",
    "OBSERVER_MODES",
    "format_value",
    "make_observer",
]

OBSERVER_MODES = ("none", "text", "gui")


def make_observer(mode: str) -> Observer:
    """Create the observer for a front end mode.

    The rich and Qt front ends are imported on demand so a headless install
    does not need PyQt6.
    """
    if mode == "none":
        return NullObserver()
    if mode == "text":
        from m17listen.observers.text import TextObserver

        return TextObserver()
    if mode == "gui":
        from m17listen.observers.gui import GraphicalObserver

        return GraphicalObserver()
    raise ValueError(f"Unknown observer mode {mode!r}, expected one of {OBSERVER_MODES}")
