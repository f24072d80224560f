"""
M17 Listen Client Constants

Contains wire sizes, magic tags, callsign alphabet and network defaults
for the reflector listen protocol.
"""

from __future__ import annotations

import string

__all__ = [
    # Address constants
    "CALLSIGN_ALPHABET",
    "ADDRESS_SIZE",
    "MAX_CALLSIGN_LENGTH",
    "LISTENER_CALLSIGN_PREFIX",
    "LISTENER_CALLSIGN_CHARSET",
    # Magic tags
    "MAGIC_SIZE",
    "MAGIC_LSTN",
    "MAGIC_ACKN",
    "MAGIC_NACK",
    "MAGIC_PING",
    "MAGIC_PONG",
    "MAGIC_DISC",
    "M17_MAGIC_NUMBER",
    # Stream frame sizes
    "LICH_SIZE",
    "META_SIZE",
    "PAYLOAD_SIZE_BYTES",
    "VOICE_SUBFRAME_SIZE",
    "IP_FRAME_SIZE",
    "EOT_FLAG",
    # Network
    "DEFAULT_PORT",
    "DEFAULT_RECV_BUFSIZE",
    "DEFAULT_DISCONNECT_TIMEOUT",
    "DEFAULT_POLL_INTERVAL",
    # Audio
    "AUDIO_SAMPLE_RATE",
    "SAMPLES_PER_SUBFRAME",
]

# ============================================================================
# Address Constants
# ============================================================================

# Base-40 callsign alphabet
# Space, A-Z, 0-9, -, /, .
CALLSIGN_ALPHABET: str = " " + string.ascii_uppercase + string.digits + "-/."

# Encoded address size (48 bits)
ADDRESS_SIZE: int = 6

# Longest callsign that fits in 48 bits of base-40 digits
MAX_CALLSIGN_LENGTH: int = 9

# Randomly generated listener callsigns look like LSTNXXXXX
LISTENER_CALLSIGN_PREFIX: str = "LSTN"
LISTENER_CALLSIGN_CHARSET: str = string.ascii_uppercase + string.digits

# ============================================================================
# Magic Tags (4 bytes, ASCII)
# ============================================================================

MAGIC_SIZE: int = 4

MAGIC_LSTN: bytes = b"LSTN"
MAGIC_ACKN: bytes = b"ACKN"
MAGIC_NACK: bytes = b"NACK"
MAGIC_PING: bytes = b"PING"
MAGIC_PONG: bytes = b"PONG"
MAGIC_DISC: bytes = b"DISC"

# M17 magic number for stream frames
M17_MAGIC_NUMBER: bytes = b"M17 "

# ============================================================================
# Stream Frame Sizes
# ============================================================================

# DST(6) + SRC(6) + TYPE(2) + META(14)
LICH_SIZE: int = 28
META_SIZE: int = 14

# Two Codec2 3200 bps frames
PAYLOAD_SIZE_BYTES: int = 16
VOICE_SUBFRAME_SIZE: int = 8

# MAGIC(4) + SID(2) + LICH(28) + FN(2) + PAYLOAD(16) + RESERVED(2) = 54 bytes
IP_FRAME_SIZE: int = 54

# Set in the frame number of the last frame of a stream
EOT_FLAG: int = 0x8000

# ============================================================================
# Network Constants
# ============================================================================

# Default M17 reflector UDP port
DEFAULT_PORT: int = 17000

# Large enough for any UDP payload a reflector sends us
DEFAULT_RECV_BUFSIZE: int = 2048

# Bounded wait for the reflector's DISC acknowledgment (seconds)
DEFAULT_DISCONNECT_TIMEOUT: float = 5.0

# Socket read timeout so the receive loop can observe cancellation
DEFAULT_POLL_INTERVAL: float = 0.5

# ============================================================================
# Audio Constants
# ============================================================================

AUDIO_SAMPLE_RATE: int = 8000

# Codec2 3200 bps: 160 samples (20 ms) per 8-byte frame
SAMPLES_PER_SUBFRAME: int = 160
