"""
M17 Codec2 Wrapper

Decodes the vocoder sub-frames carried in M17 voice streams.

M17 voice uses Codec2 at 3200 bps: 64-bit frames (8 bytes) per 20 ms of
8 kHz audio (160 samples). A stream frame's 16-byte payload holds two.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

try:
    import pycodec2
    HAS_CODEC2 = True
except ImportError:
    HAS_CODEC2 = False
    pycodec2 = None

from m17listen.core.constants import VOICE_SUBFRAME_SIZE

__all__ = [
    "CODEC2_BITRATE",
    "Codec2Wrapper",
    "HAS_CODEC2",
]

# Bitrate of M17 voice-only streams
CODEC2_BITRATE = 3200


@dataclass
class Codec2Wrapper:
    """
    Wrapper for the Codec2 voice codec in M17's 3200 bps mode.

    Example:
        codec = Codec2Wrapper()
        audio = codec.decode(bytes(8))  # 160 int16 samples
    """

    _codec: Optional[object] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize Codec2 instance."""
        if not HAS_CODEC2:
            raise ImportError(
                "pycodec2 not installed. Install with: pip install m17listen[audio]"
            )
        self._codec = pycodec2.Codec2(CODEC2_BITRATE)

    @property
    def bytes_per_frame(self) -> int:
        """Get bytes per encoded frame."""
        return VOICE_SUBFRAME_SIZE

    def decode(self, bits: bytes) -> np.ndarray:
        """
        Decode Codec2 bits to audio samples.

        Args:
            bits: One encoded sub-frame, exactly bytes_per_frame bytes.

        Returns:
            Decoded audio samples as int16 array.

        Raises:
            ValueError: If bits length is wrong.
        """
        if len(bits) != self.bytes_per_frame:
            raise ValueError(
                f"Bits must be {self.bytes_per_frame} bytes, got {len(bits)}"
            )

        return np.asarray(self._codec.decode(bytes(bits)), dtype=np.int16)
