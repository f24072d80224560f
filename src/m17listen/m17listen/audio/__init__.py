"""M17 Audio

Concrete vocoder and speaker collaborators:
- Codec2 wrapper for voice decoding
- Soundcard speaker sink

Note: Audio dependencies (pycodec2, soundcard) are optional.
Install with: pip install m17listen[audio]
"""

from m17listen.audio.codec2 import (
    CODEC2_BITRATE,
    HAS_CODEC2,
    Codec2Wrapper,
)
from m17listen.audio.sink import HAS_SOUNDCARD, SpeakerSink

__all__ = [
    "CODEC2_BITRATE",
    "Codec2Wrapper",
    "HAS_CODEC2",
    "SpeakerSink",
    "HAS_SOUNDCARD",
]
