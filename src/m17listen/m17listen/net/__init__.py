"""M17 Networking Layer

Listen-only reflector client components:
- Control packet encoding/decoding
- UDP transport bound to one reflector
- Session state machine (handshake, keep-alive, disconnect)
"""

from m17listen.net.protocol import (
    ControlMessage,
    ListenProtocol,
    Packet,
    parse_packet,
    validate_module,
)
from m17listen.net.session import ListenSession, SessionState
from m17listen.net.transport import UDPTransport

__all__ = [
    # Protocol
    "ControlMessage",
    "ListenProtocol",
    "Packet",
    "parse_packet",
    "validate_module",
    # Transport
    "UDPTransport",
    # Session
    "ListenSession",
    "SessionState",
]
