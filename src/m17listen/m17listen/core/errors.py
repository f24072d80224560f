"""
M17 Listen Client Exceptions

Input errors subclass ValueError so existing ``except ValueError``
handlers keep catching them.
"""

from __future__ import annotations

__all__ = [
    "M17ListenError",
    "InvalidCharacterError",
    "MalformedFrameError",
    "TransportClosedError",
    "StartupError",
]


class M17ListenError(Exception):
    """Base class for all m17listen errors."""


class InvalidCharacterError(M17ListenError, ValueError):
    """A callsign contains a character outside the base-40 alphabet."""

    def __init__(self, char: str, callsign: str) -> None:
        self.char = char
        self.callsign = callsign
        super().__init__(f"Invalid character in callsign: {char!r} in {callsign!r}")


class MalformedFrameError(M17ListenError, ValueError):
    """A stream datagram is too short to hold a full frame."""

    def __init__(self, length: int, minimum: int) -> None:
        self.length = length
        self.minimum = minimum
        super().__init__(f"invalid M17 packet length: {length} (minimum {minimum})")


class TransportClosedError(M17ListenError):
    """Read or write attempted on a closed transport."""


class StartupError(M17ListenError):
    """The client could not resolve or open its connection to the relay."""
