"""M17 Address Encoding/Decoding

Handles the base-40 callsign encoding used for the 6-byte address fields
of reflector control packets and stream frames.

Encoding reads the callsign right to left, so the first character ends up
as the least significant base-40 digit. Space maps to 0, which means a
decoded address never carries the padding spaces it was encoded with.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Union

from m17listen.core.constants import (
    ADDRESS_SIZE,
    CALLSIGN_ALPHABET,
    LISTENER_CALLSIGN_CHARSET,
    LISTENER_CALLSIGN_PREFIX,
    MAX_CALLSIGN_LENGTH,
)
from m17listen.core.errors import InvalidCharacterError

__all__ = [
    "Address",
    "encode_callsign",
    "decode_callsign",
    "encode_address",
    "decode_address",
    "random_listener_callsign",
]


@dataclass(frozen=True, slots=True)
class Address:
    """M17 address as carried on the wire.

    Examples
    --------
        >>> Address.from_callsign("A").addr
        b'\\x00\\x00\\x00\\x00\\x00\\x01'
        >>> Address.from_bytes(b"\\x00\\x00\\x00\\x00\\x00\\x01").callsign
        'A'
    """

    numeric: int

    def __post_init__(self) -> None:
        if not 0 <= self.numeric <= 0xFFFFFFFFFFFF:
            raise ValueError(f"Address must be 0-0xFFFFFFFFFFFF, got {hex(self.numeric)}")

    @classmethod
    def from_callsign(cls, callsign: str) -> Address:
        """Encode a callsign string."""
        return cls(encode_callsign(callsign))

    @classmethod
    def from_bytes(cls, data: bytes) -> Address:
        """Read a 6-byte big-endian address."""
        if len(data) != ADDRESS_SIZE:
            raise ValueError(f"Address bytes must be {ADDRESS_SIZE} bytes, got {len(data)}")
        return cls(int.from_bytes(data, "big"))

    @property
    def addr(self) -> bytes:
        """Get the address as 6-byte big-endian bytes."""
        return self.numeric.to_bytes(ADDRESS_SIZE, "big")

    @property
    def callsign(self) -> str:
        """Get the decoded callsign string."""
        return decode_callsign(self.numeric)

    def __bytes__(self) -> bytes:
        return self.addr

    def __int__(self) -> int:
        return self.numeric

    def __str__(self) -> str:
        return self.callsign

    def __repr__(self) -> str:
        return f"Address(callsign={self.callsign!r}, numeric=0x{self.numeric:012x})"


def encode_callsign(callsign: str) -> int:
    """Encode a callsign string to its 48-bit numeric address.

    Args:
    ----
        callsign: Up to 9 characters from the base-40 alphabet
            (space, A-Z, 0-9, '-', '/', '.').

    Returns:
    -------
        Numeric address.

    Raises:
    ------
        InvalidCharacterError: If a character is outside the alphabet.
        ValueError: If the callsign is longer than 9 characters.

    Examples:
    --------
        >>> encode_callsign("A")
        1
        >>> hex(encode_callsign("W2FBI"))
        '0x161ae1f'
    """
    if len(callsign) > MAX_CALLSIGN_LENGTH:
        raise ValueError(f"Callsign too long: {callsign!r} (max {MAX_CALLSIGN_LENGTH} chars)")

    num = 0
    for char in reversed(callsign):
        idx = CALLSIGN_ALPHABET.find(char)
        if idx < 0:
            raise InvalidCharacterError(char, callsign)
        num = num * 40 + idx

    return num


def decode_callsign(addr: int) -> str:
    """Decode a numeric address to a callsign string.

    Digits are emitted least significant first until the remaining value
    is zero, so an all-zero address decodes to the empty string.

    Examples:
    --------
        >>> decode_callsign(0x161ae1f)
        'W2FBI'
        >>> decode_callsign(0)
        ''
    """
    chars = []
    while addr > 0:
        chars.append(CALLSIGN_ALPHABET[addr % 40])
        addr //= 40

    return "".join(chars)


def encode_address(callsign: str) -> bytes:
    """Encode a callsign straight to its 6-byte wire form."""
    return encode_callsign(callsign).to_bytes(ADDRESS_SIZE, "big")


def decode_address(data: Union[bytes, bytearray, memoryview]) -> str:
    """Decode a 6-byte wire address to a callsign string."""
    return Address.from_bytes(bytes(data)).callsign


def random_listener_callsign(rng: Optional[random.Random] = None) -> str:
    """Generate a throwaway callsign for a listen-only session.

    Returns
    -------
        ``"LSTN"`` followed by five random letters or digits.
    """
    rng = rng or random
    suffix = "".join(rng.choice(LISTENER_CALLSIGN_CHARSET) for _ in range(5))
    return LISTENER_CALLSIGN_PREFIX + suffix
