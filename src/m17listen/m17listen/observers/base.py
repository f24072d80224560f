"""Observer boundary for presentation front ends.

The protocol engine reports everything it wants shown through
``Observer.update(field, value)``. Updates are fire-and-forget: an
observer must return immediately and never raise back into the caller.
"""

from __future__ import annotations

import threading

__all__ = [
    "STREAM_ID",
    "FRAME_NUMBER",
    "DST",
    "SRC",
    "TYPE",
    "META",
    "PAYLOAD",
    "PACKET_STREAM_INDICATOR",
    "DATA_TYPE_INDICATOR",
    "ENCRYPTION_TYPE",
    "ENCRYPTION_SUBTYPE",
    "CHANNEL_ACCESS_NUMBER",
    "STATUS",
    "ERROR",
    "FIELD_ORDER",
    "FIELD_DISPLAY_NAMES",
    "HEX_FIELDS",
    "format_value",
    "Observer",
    "NullObserver",
]

STREAM_ID = "StreamID"
FRAME_NUMBER = "FrameNumber"
DST = "DST"
SRC = "SRC"
TYPE = "TYPE"
META = "META"
PAYLOAD = "Payload"
PACKET_STREAM_INDICATOR = "PacketStreamIndicator"
DATA_TYPE_INDICATOR = "DataTypeIndicator"
ENCRYPTION_TYPE = "EncryptionType"
ENCRYPTION_SUBTYPE = "EncryptionSubtype"
CHANNEL_ACCESS_NUMBER = "ChannelAccessNumber"
STATUS = "Status"
ERROR = "Error"

FIELD_ORDER: tuple[str, ...] = (
    STREAM_ID,
    FRAME_NUMBER,
    DST,
    SRC,
    TYPE,
    META,
    PACKET_STREAM_INDICATOR,
    DATA_TYPE_INDICATOR,
    ENCRYPTION_TYPE,
    ENCRYPTION_SUBTYPE,
    CHANNEL_ACCESS_NUMBER,
    PAYLOAD,
    STATUS,
    ERROR,
)

FIELD_DISPLAY_NAMES: dict[str, str] = {
    STREAM_ID: "Stream ID",
    FRAME_NUMBER: "Frame Number",
    DST: "Destination",
    SRC: "Source",
    TYPE: "Type",
    META: "Metadata",
    PACKET_STREAM_INDICATOR: "Packet Stream Indicator",
    DATA_TYPE_INDICATOR: "Data Type Indicator",
    ENCRYPTION_TYPE: "Encryption Type",
    ENCRYPTION_SUBTYPE: "Encryption Subtype",
    CHANNEL_ACCESS_NUMBER: "Channel Access Number",
    PAYLOAD: "Payload",
    STATUS: "Status",
    ERROR: "Error",
}

# Numeric identifiers arrive as decimal text and are shown in hex
HEX_FIELDS = frozenset({STREAM_ID, FRAME_NUMBER, TYPE})


def format_value(field: str, value: str) -> str:
    """Render a field value for display.

    >>> format_value("StreamID", "4660")
    '0x1234'
    >>> format_value("SRC", "W2FBI")
    'W2FBI'
    """
    if field in HEX_FIELDS:
        try:
            return f"0x{int(value):X}"
        except ValueError:
            return value
    return value


class Observer:
    """Base class for presentation front ends."""

    def update(self, field: str, value: str) -> None:
        """Set a named field to a text value."""
        raise NotImplementedError

    def run(self, stop: threading.Event) -> None:
        """Block the control thread until ``stop`` is set.

        Front ends that own an event loop override this and set ``stop``
        themselves when the user closes them.
        """
        while not stop.wait(0.1):
            pass

    def close(self) -> None:
        """Release any display resources."""


class NullObserver(Observer):
    """Discards every update."""

    def update(self, field: str, value: str) -> None:
        pass
