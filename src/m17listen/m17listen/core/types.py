"""
M17 TYPE Field Definitions

The 16-bit TYPE field carried in the LICH of every stream frame:
    - Bit 0: Packet/Stream indicator
    - Bits 1-2: Data type
    - Bits 3-4: Encryption type
    - Bits 5-6: Encryption subtype
    - Bits 7-10: CAN
    - Bits 11-15: Reserved
"""

from __future__ import annotations

from enum import IntEnum
from typing import NamedTuple

__all__ = [
    "M17Type",
    "M17DataType",
    "M17EncryptionType",
    "M17EncryptionSubtype",
    "TypeField",
    "parse_type_field",
    "build_type_field",
    "TYPE_VOICE_STREAM",
    "TYPE_DATA_STREAM",
    "TYPE_VOICE_DATA_STREAM",
    "TYPE_DATA_PACKET",
]


class M17Type(IntEnum):
    """Stream/packet type indicator (bit 0)."""

    PACKET = 0  # Packet mode
    STREAM = 1  # Stream mode


class M17DataType(IntEnum):
    """Data type field (bits 1-2)."""

    RESERVED = 0b00
    DATA = 0b01
    VOICE = 0b10
    VOICE_DATA = 0b11

    @property
    def carries_voice(self) -> bool:
        """True for the two data types with a Codec2 payload."""
        return self in (M17DataType.VOICE, M17DataType.VOICE_DATA)


class M17EncryptionType(IntEnum):
    """Encryption type field (bits 3-4)."""

    NONE = 0b00
    SCRAMBLER = 0b01
    AES = 0b10
    RESERVED = 0b11


class M17EncryptionSubtype(IntEnum):
    """Encryption subtype field (bits 5-6)."""

    TEXT = 0b00  # When encryption is NONE: META contains text
    GNSS = 0b01  # When encryption is NONE: META contains GNSS position
    EXT_CALL = 0b10  # When encryption is NONE: META contains extended callsign data
    RESERVED = 0b11


class TypeField(NamedTuple):
    """Parsed TYPE field components."""

    stream_type: M17Type
    data_type: M17DataType
    encryption_type: M17EncryptionType
    encryption_subtype: M17EncryptionSubtype
    can: int
    reserved: int

    @property
    def is_stream(self) -> bool:
        return self.stream_type == M17Type.STREAM

    @property
    def is_encrypted(self) -> bool:
        return self.encryption_type != M17EncryptionType.NONE


def parse_type_field(type_value: int) -> TypeField:
    """
    Parse a 16-bit TYPE field value into its components.

    Args:
        type_value: 16-bit TYPE field value.

    Returns:
        TypeField with parsed components.

    Examples:
        >>> tf = parse_type_field(0x0005)  # Voice stream
        >>> tf.stream_type == M17Type.STREAM
        True
        >>> tf.data_type == M17DataType.VOICE
        True
    """
    return TypeField(
        stream_type=M17Type(type_value & 0x01),
        data_type=M17DataType((type_value >> 1) & 0x03),
        encryption_type=M17EncryptionType((type_value >> 3) & 0x03),
        encryption_subtype=M17EncryptionSubtype((type_value >> 5) & 0x03),
        can=(type_value >> 7) & 0x0F,
        reserved=(type_value >> 11) & 0x1F,
    )


def build_type_field(
    stream_type: M17Type = M17Type.STREAM,
    data_type: M17DataType = M17DataType.VOICE,
    encryption_type: M17EncryptionType = M17EncryptionType.NONE,
    encryption_subtype: M17EncryptionSubtype = M17EncryptionSubtype.TEXT,
    can: int = 0,
    reserved: int = 0,
) -> int:
    """
    Build a 16-bit TYPE field from its components.

    Examples:
        >>> hex(build_type_field(M17Type.STREAM, M17DataType.VOICE))
        '0x5'
        >>> hex(build_type_field(M17Type.STREAM, M17DataType.VOICE_DATA))
        '0x7'
    """
    if not 0 <= can <= 15:
        raise ValueError(f"CAN must be 0-15, got {can}")
    if not 0 <= reserved <= 31:
        raise ValueError(f"Reserved must be 0-31, got {reserved}")

    return (
        (stream_type & 0x01)
        | ((data_type & 0x03) << 1)
        | ((encryption_type & 0x03) << 3)
        | ((encryption_subtype & 0x03) << 5)
        | ((can & 0x0F) << 7)
        | ((reserved & 0x1F) << 11)
    )


TYPE_VOICE_STREAM: int = build_type_field(M17Type.STREAM, M17DataType.VOICE)
TYPE_DATA_STREAM: int = build_type_field(M17Type.STREAM, M17DataType.DATA)
TYPE_VOICE_DATA_STREAM: int = build_type_field(M17Type.STREAM, M17DataType.VOICE_DATA)
TYPE_DATA_PACKET: int = build_type_field(M17Type.PACKET, M17DataType.DATA)
