"""
M17 Stream Frame (M17-over-IP)

A reflector relays voice as one UDP datagram per frame:
- Magic number "M17 " (4 bytes)
- Stream ID (2 bytes)
- LICH: DST (6) + SRC (6) + TYPE (2) + META (14) = 28 bytes
- Frame Number (2 bytes) - counter and EOT flag
- Payload (16 bytes) - two 8-byte Codec2 frames
- Reserved (2 bytes) - ignored on receive

Total: 54 bytes. Anything past byte 54 is ignored.
"""

from __future__ import annotations

import random
import struct
from dataclasses import dataclass, field
from typing import Optional, Union

from m17listen.core.address import Address
from m17listen.core.constants import (
    EOT_FLAG,
    IP_FRAME_SIZE,
    M17_MAGIC_NUMBER,
    META_SIZE,
    PAYLOAD_SIZE_BYTES,
    VOICE_SUBFRAME_SIZE,
)
from m17listen.core.errors import MalformedFrameError
from m17listen.core.types import TypeField, TYPE_VOICE_STREAM, parse_type_field

__all__ = ["LinkInfo", "StreamFrame"]


@dataclass(frozen=True)
class LinkInfo:
    """
    Link information (LICH) block of a stream frame.

    Attributes:
        dst: Destination address.
        src: Source address.
        type_field: Raw 16-bit TYPE value.
        meta: 14 bytes of metadata.
    """

    dst: Address
    src: Address
    type_field: int = TYPE_VOICE_STREAM
    meta: bytes = field(default_factory=lambda: bytes(META_SIZE))

    _STRUCT = struct.Struct(">6s6sH14s")

    def __post_init__(self) -> None:
        if len(self.meta) != META_SIZE:
            raise ValueError(f"META must be {META_SIZE} bytes, got {len(self.meta)}")

    @property
    def type_info(self) -> TypeField:
        """Get the unpacked TYPE field."""
        return parse_type_field(self.type_field)

    def to_bytes(self) -> bytes:
        return self._STRUCT.pack(bytes(self.dst), bytes(self.src), self.type_field, self.meta)

    @classmethod
    def from_bytes(cls, data: bytes) -> LinkInfo:
        dst, src, type_field, meta = cls._STRUCT.unpack(data)
        return cls(
            dst=Address.from_bytes(dst),
            src=Address.from_bytes(src),
            type_field=type_field,
            meta=meta,
        )


@dataclass(frozen=True)
class StreamFrame:
    """
    One received voice-stream frame.

    Attributes:
        stream_id: 16-bit stream identifier.
        lich: Link information block.
        frame_number: 16-bit frame counter (MSB marks the last frame).
        payload: 16 bytes of vocoder data.
    """

    stream_id: int
    lich: LinkInfo
    frame_number: int = 0
    payload: bytes = field(default_factory=lambda: bytes(PAYLOAD_SIZE_BYTES))

    # 4s: magic, H: stream_id, 28s: lich, H: fn, 16s: payload, 2s: reserved
    _STRUCT = struct.Struct(">4sH28sH16s2s")

    def __post_init__(self) -> None:
        if not 0 <= self.stream_id <= 0xFFFF:
            raise ValueError(f"Stream ID must be 0-65535, got {self.stream_id}")
        if not 0 <= self.frame_number <= 0xFFFF:
            raise ValueError(f"Frame number must be 0-65535, got {self.frame_number}")
        if len(self.payload) != PAYLOAD_SIZE_BYTES:
            raise ValueError(f"Payload must be {PAYLOAD_SIZE_BYTES} bytes, got {len(self.payload)}")

    @property
    def dst(self) -> Address:
        return self.lich.dst

    @property
    def src(self) -> Address:
        return self.lich.src

    @property
    def type_field(self) -> int:
        return self.lich.type_field

    @property
    def type_info(self) -> TypeField:
        return self.lich.type_info

    @property
    def meta(self) -> bytes:
        return self.lich.meta

    @property
    def is_last_frame(self) -> bool:
        """Check if this is the last frame (EOT)."""
        return (self.frame_number & EOT_FLAG) != 0

    @property
    def sequence_number(self) -> int:
        """Get the actual sequence number (without EOT flag)."""
        return self.frame_number & 0x7FFF

    @property
    def voice_subframes(self) -> tuple[bytes, bytes]:
        """Split the payload into its two 8-byte Codec2 frames, in order."""
        return (
            self.payload[:VOICE_SUBFRAME_SIZE],
            self.payload[VOICE_SUBFRAME_SIZE:],
        )

    def to_bytes(self) -> bytes:
        """
        Serialize to a 54-byte datagram with zeroed reserved bytes.
        """
        return self._STRUCT.pack(
            M17_MAGIC_NUMBER,
            self.stream_id,
            self.lich.to_bytes(),
            self.frame_number,
            self.payload,
            bytes(2),
        )

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> StreamFrame:
        """
        Parse a stream datagram.

        Args:
            data: At least 54 bytes starting with the "M17 " magic.

        Returns:
            Parsed StreamFrame.

        Raises:
            MalformedFrameError: If data is shorter than 54 bytes.
            ValueError: If the magic number is wrong.
        """
        if len(data) < IP_FRAME_SIZE:
            raise MalformedFrameError(len(data), IP_FRAME_SIZE)

        magic, stream_id, lich, frame_number, payload, _reserved = cls._STRUCT.unpack_from(data)

        if magic != M17_MAGIC_NUMBER:
            raise ValueError(f"Invalid magic number: {magic!r}")

        return cls(
            stream_id=stream_id,
            lich=LinkInfo.from_bytes(lich),
            frame_number=frame_number,
            payload=payload,
        )

    @classmethod
    def create(
        cls,
        dst: Union[str, Address],
        src: Union[str, Address],
        stream_id: Optional[int] = None,
        stream_type: int = TYPE_VOICE_STREAM,
        meta: bytes = b"",
        frame_number: int = 0,
        payload: bytes = b"",
    ) -> StreamFrame:
        """
        Build a frame from loose values, padding META and payload with zeros.
        """
        if isinstance(dst, str):
            dst = Address.from_callsign(dst)
        if isinstance(src, str):
            src = Address.from_callsign(src)

        if stream_id is None:
            stream_id = random.randint(1, 0xFFFF)

        meta = meta[:META_SIZE].ljust(META_SIZE, b"\x00")
        payload = payload[:PAYLOAD_SIZE_BYTES].ljust(PAYLOAD_SIZE_BYTES, b"\x00")

        lich = LinkInfo(dst=dst, src=src, type_field=stream_type, meta=meta)
        return cls(stream_id=stream_id, lich=lich, frame_number=frame_number, payload=payload)

    def __str__(self) -> str:
        return (
            f"StreamFrame[SID={self.stream_id:04x}]: "
            f"{self.src.callsign} -> {self.dst.callsign} "
            f"[FN={self.sequence_number}]"
        )
