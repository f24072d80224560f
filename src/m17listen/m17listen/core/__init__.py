"""M17 Listen Client Core Components

This module contains the fundamental building blocks:
- Address encoding/decoding
- TYPE field definitions
- Protocol constants
- Exceptions
"""

from m17listen.core.address import (
    Address,
    decode_address,
    decode_callsign,
    encode_address,
    encode_callsign,
    random_listener_callsign,
)
from m17listen.core.constants import (
    CALLSIGN_ALPHABET,
    DEFAULT_PORT,
    IP_FRAME_SIZE,
    M17_MAGIC_NUMBER,
)
from m17listen.core.errors import (
    InvalidCharacterError,
    M17ListenError,
    MalformedFrameError,
    StartupError,
    TransportClosedError,
)
from m17listen.core.types import (
    M17DataType,
    M17EncryptionSubtype,
    M17EncryptionType,
    M17Type,
    TypeField,
    build_type_field,
    parse_type_field,
)

__all__ = [
    # Address
    "Address",
    "encode_callsign",
    "decode_callsign",
    "encode_address",
    "decode_address",
    "random_listener_callsign",
    # Constants
    "CALLSIGN_ALPHABET",
    "DEFAULT_PORT",
    "IP_FRAME_SIZE",
    "M17_MAGIC_NUMBER",
    # Errors
    "M17ListenError",
    "InvalidCharacterError",
    "MalformedFrameError",
    "TransportClosedError",
    "StartupError",
    # Types
    "M17Type",
    "M17DataType",
    "M17EncryptionType",
    "M17EncryptionSubtype",
    "TypeField",
    "parse_type_field",
    "build_type_field",
]
