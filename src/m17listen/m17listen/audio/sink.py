"""
Speaker output for decoded voice.

Plays int16 sample blocks at 8 kHz mono through the default soundcard
speaker. ``write`` only queues the block; a playback thread drains the
queue so the receive loop never waits on the audio device.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

try:
    import soundcard as sc
    HAS_SOUNDCARD = True
except ImportError:
    HAS_SOUNDCARD = False
    sc = None

from m17listen.core.constants import AUDIO_SAMPLE_RATE, SAMPLES_PER_SUBFRAME

__all__ = ["SpeakerSink", "HAS_SOUNDCARD"]

logger = logging.getLogger(__name__)

# About two seconds of audio at 40 ms per stream frame
MAX_QUEUED_BLOCKS = 50


@dataclass
class SpeakerSink:
    """
    Audio sink to system speaker.

    Plays int16 numpy arrays at 8kHz mono.
    """

    samplerate: int = AUDIO_SAMPLE_RATE
    max_queued: int = MAX_QUEUED_BLOCKS
    _input_queue: queue.Queue = field(init=False)
    _running: bool = field(default=False, init=False)
    _thread: Optional[threading.Thread] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self._input_queue = queue.Queue(maxsize=self.max_queued)

    def start(self) -> None:
        """Start playback."""
        if not HAS_SOUNDCARD:
            raise ImportError("soundcard not installed. Install with: pip install m17listen[audio]")

        if self._running:
            return

        self._running = True
        self._thread = threading.Thread(target=self._playback_loop, name="speaker", daemon=True)
        self._thread.start()

    def write(self, audio: np.ndarray) -> None:
        """Queue one sample block for playback.

        Blocks are dropped while the queue is full.

        Raises:
            RuntimeError: If the sink is closed or playback has stopped.
        """
        if not self._running:
            raise RuntimeError("audio sink is closed")
        if self._thread is None or not self._thread.is_alive():
            raise RuntimeError("audio playback stopped")
        try:
            self._input_queue.put_nowait(audio)
        except queue.Full:
            logger.warning("Audio queue full, dropping block")

    def close(self) -> None:
        """Stop playback."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

    def _playback_loop(self) -> None:
        """Audio playback loop."""
        try:
            self._play()
        except Exception as e:
            logger.error(f"Audio playback failed: {e}")
        logger.debug("Playback loop stopped")

    def _play(self) -> None:
        speaker = sc.default_speaker()
        with speaker.player(samplerate=self.samplerate, channels=1) as player:
            while self._running:
                try:
                    audio = self._input_queue.get(timeout=0.1)
                except queue.Empty:
                    # Play silence if no data
                    player.play(np.zeros(SAMPLES_PER_SUBFRAME, dtype=np.float32))
                    continue
                # Convert int16 to float [-1, 1]
                player.play(audio.astype(np.float32) / 32767)
