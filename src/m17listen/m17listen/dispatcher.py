"""Voice frame filtering and playback.

Takes parsed stream frames from the session, reports their fields, drops
anything that is not an unencrypted voice stream, decodes both Codec2
sub-frames and hands the joined samples to the audio sink.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import numpy as np

from m17listen.frames.stream import StreamFrame
from m17listen.observers import base as fields
from m17listen.observers.base import NullObserver, Observer

__all__ = ["Vocoder", "AudioSink", "FrameDispatcher"]

logger = logging.getLogger(__name__)


class Vocoder(Protocol):
    def decode(self, bits: bytes) -> np.ndarray: ...


class AudioSink(Protocol):
    def write(self, audio: np.ndarray) -> None: ...

    def close(self) -> None: ...


class FrameDispatcher:
    """Routes voice frames from the network to the speaker.

    Args:
    ----
        vocoder: Decodes one 8-byte sub-frame into a sample block.
        sink: Accepts sample blocks for playback.
        observer: Receives field, status and error updates.
    """

    def __init__(
        self,
        vocoder: Vocoder,
        sink: AudioSink,
        observer: Optional[Observer] = None,
    ) -> None:
        self.vocoder = vocoder
        self.sink = sink
        self.observer = observer or NullObserver()

    def _status(self, text: str) -> None:
        logger.info(text)
        self.observer.update(fields.STATUS, text)

    def _error(self, text: str) -> None:
        logger.error(text)
        self.observer.update(fields.ERROR, text)

    def report(self, frame: StreamFrame) -> None:
        """Send every field of a frame to the observer."""
        tf = frame.type_info
        logger.debug(
            f"Received M17 packet: StreamID=0x{frame.stream_id:X}, FrameNumber=0x{frame.frame_number:X}, "
            f"DST={frame.dst.callsign}, SRC={frame.src.callsign}, TYPE=0x{frame.type_field:X}, "
            f"META={frame.meta.hex()}"
        )
        logger.debug(
            f"Type field breakdown: PacketStreamIndicator={tf.stream_type:d}, "
            f"DataTypeIndicator={tf.data_type:d}, EncryptionType={tf.encryption_type:d}, "
            f"EncryptionSubtype={tf.encryption_subtype:d}, ChannelAccessNumber={tf.can:d}"
        )

        update = self.observer.update
        update(fields.STREAM_ID, str(frame.stream_id))
        update(fields.FRAME_NUMBER, str(frame.frame_number))
        update(fields.DST, frame.dst.callsign)
        update(fields.SRC, frame.src.callsign)
        update(fields.TYPE, str(frame.type_field))
        update(fields.META, frame.meta.hex())
        update(fields.PAYLOAD, frame.payload.hex())
        update(fields.PACKET_STREAM_INDICATOR, str(int(tf.stream_type)))
        update(fields.DATA_TYPE_INDICATOR, str(int(tf.data_type)))
        update(fields.ENCRYPTION_TYPE, str(int(tf.encryption_type)))
        update(fields.ENCRYPTION_SUBTYPE, str(int(tf.encryption_subtype)))
        update(fields.CHANNEL_ACCESS_NUMBER, str(tf.can))

    def accepts(self, frame: StreamFrame) -> bool:
        """Apply the stream/encryption and voice filters, reporting drops."""
        tf = frame.type_info

        if not tf.is_stream or tf.is_encrypted:
            self._status(f"Ignoring packet mode or encrypted packet: TYPE={frame.type_field}")
            return False

        if not tf.data_type.carries_voice:
            self._status(f"Ignoring non-voice packet: TYPE={frame.type_field}")
            return False

        return True

    def decode(self, frame: StreamFrame) -> Optional[np.ndarray]:
        """Decode both sub-frames, or None if either fails."""
        blocks = []
        for name, bits in zip(("first", "second"), frame.voice_subframes):
            try:
                blocks.append(np.asarray(self.vocoder.decode(bits)))
            except Exception as e:
                self._error(f"failed to decode {name} voice frame: {e}")
                return None
        return np.concatenate(blocks)

    def dispatch(self, frame: StreamFrame) -> Optional[np.ndarray]:
        """Handle one stream frame.

        Returns
        -------
            The samples handed to the sink, or None if the frame was dropped
            or could not be played.
        """
        self.report(frame)

        if not self.accepts(frame):
            return None

        audio = self.decode(frame)
        if audio is None:
            return None

        try:
            self.sink.write(audio)
        except Exception as e:
            self._error(f"failed to play audio: {e}")
            return None

        if frame.is_last_frame:
            self._status("End of stream")

        return audio
