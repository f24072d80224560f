"""M17 Reflector Listen Protocol

Encoding/decoding of the control packets a listen-only client exchanges
with a relay or reflector.

Protocol messages:
- LSTN: Listen-only connect request (callsign + optional module)
- ACKN: Connection acknowledged
- NACK: Connection refused
- PING: Keep-alive request from reflector
- PONG: Keep-alive response to reflector
- DISC: Disconnect (either direction)
- M17 : Stream data frame
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional

from m17listen.core.address import decode_address, encode_address
from m17listen.core.constants import (
    ADDRESS_SIZE,
    M17_MAGIC_NUMBER,
    MAGIC_ACKN,
    MAGIC_DISC,
    MAGIC_LSTN,
    MAGIC_NACK,
    MAGIC_PING,
    MAGIC_PONG,
    MAGIC_SIZE,
)
from m17listen.frames.stream import StreamFrame

__all__ = [
    "ControlMessage",
    "Packet",
    "ListenProtocol",
    "parse_packet",
    "validate_module",
]

logger = logging.getLogger(__name__)


class ControlMessage(Enum):
    """Reflector protocol message types."""

    LSTN = MAGIC_LSTN
    ACKN = MAGIC_ACKN
    NACK = MAGIC_NACK
    PING = MAGIC_PING
    PONG = MAGIC_PONG
    DISC = MAGIC_DISC
    M17_FRAME = M17_MAGIC_NUMBER


_BY_MAGIC = {msg.value: msg for msg in ControlMessage}


class Packet(NamedTuple):
    """A parsed datagram.

    ``callsign`` is the decoded address that follows the magic of a control
    packet, if one was sent. ``frame`` is only set for stream frames.
    """

    kind: ControlMessage
    payload: bytes
    callsign: Optional[str] = None
    frame: Optional[StreamFrame] = None


def validate_module(module: Optional[str]) -> Optional[str]:
    """Normalize a module selector to a single upper case letter.

    Raises
    ------
        ValueError: If module is not a single letter A-Z.
    """
    if module is None:
        return None
    if len(module) != 1 or not (module.isascii() and module.isalpha()):
        raise ValueError(f"Module must be single letter A-Z, got {module!r}")
    return module.upper()


@dataclass
class ListenProtocol:
    """Builds the packets a listen-only client sends.

    The callsign is encoded once up front, so a callsign with characters
    outside the base-40 alphabet fails here rather than mid-session.
    """

    callsign: str
    module: Optional[str] = None
    _callsign_bytes: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._callsign_bytes = encode_address(self.callsign)
        self.module = validate_module(self.module)

    @property
    def callsign_bytes(self) -> bytes:
        return self._callsign_bytes

    def make_listen(self) -> bytes:
        """Create LSTN message, with the module byte appended when one is set."""
        msg = MAGIC_LSTN + self._callsign_bytes
        if self.module is not None:
            msg += self.module.encode("ascii")
        return msg

    def make_pong(self) -> bytes:
        """Create PONG message."""
        return MAGIC_PONG + self._callsign_bytes

    def make_disconnect(self) -> bytes:
        """Create DISC message."""
        return MAGIC_DISC + self._callsign_bytes


def parse_packet(data: bytes) -> Optional[Packet]:
    """Parse a received datagram.

    Args:
    ----
        data: Received bytes.

    Returns:
    -------
        Parsed packet, or None for datagrams shorter than the magic and for
        unknown magic tags.

    Raises:
    ------
        MalformedFrameError: If a stream frame is shorter than 54 bytes.
    """
    if len(data) < MAGIC_SIZE:
        return None

    kind = _BY_MAGIC.get(bytes(data[:MAGIC_SIZE]))
    if kind is None:
        logger.debug(f"Ignoring unknown message type: {bytes(data[:MAGIC_SIZE])!r}")
        return None

    payload = bytes(data[MAGIC_SIZE:])

    if kind is ControlMessage.M17_FRAME:
        return Packet(kind, payload, frame=StreamFrame.from_bytes(data))

    callsign = None
    if len(payload) >= ADDRESS_SIZE:
        callsign = decode_address(payload[:ADDRESS_SIZE])
    return Packet(kind, payload, callsign=callsign)
