"""Pytest configuration and fixtures for m17listen tests.

This module provides shared fixtures and in-memory stand-ins for the
transport, vocoder, audio sink and observer.
"""

import queue
import random
import threading

import numpy as np
import pytest

from m17listen.core.errors import TransportClosedError
from m17listen.dispatcher import FrameDispatcher
from m17listen.net.session import ListenSession

# Fixed seed for reproducible tests
RANDOM_SEED = 42

PEER = ("127.0.0.1", 17000)
CALLSIGN = "LSTN12345"


@pytest.fixture(autouse=True)
def seed_random():
    """Seed the random number generator for reproducible tests."""
    random.seed(RANDOM_SEED)
    yield


class FakeTransport:
    """Transport that records sends and serves queued datagrams."""

    def __init__(self, peer=PEER):
        self.peer = peer
        self.sent = []
        self.closed = False
        self.fail_send = False
        self.on_send = None
        self._inbox = queue.Queue()

    def is_peer(self, addr):
        return isinstance(addr, tuple) and addr[:2] == self.peer

    def feed(self, data, addr=None):
        self._inbox.put((data, addr or self.peer))

    def feed_error(self, exc):
        self._inbox.put(exc)

    def send(self, data):
        if self.closed:
            raise TransportClosedError("transport is closed")
        if self.fail_send:
            raise OSError("network is unreachable")
        self.sent.append(data)
        if self.on_send is not None:
            self.on_send(data)

    def receive(self, bufsize=2048):
        if self.closed:
            raise TransportClosedError("transport is closed")
        try:
            item = self._inbox.get(timeout=0.02)
        except queue.Empty:
            return None
        if item is None:
            raise TransportClosedError("transport is closed")
        if isinstance(item, Exception):
            raise item
        data, addr = item
        return data[:bufsize], addr

    def close(self):
        self.closed = True
        self._inbox.put(None)

    def sent_kinds(self):
        return [pkt[:4] for pkt in self.sent]


class FakeVocoder:
    """Returns 160 samples filled with the first byte of each sub-frame."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def decode(self, bits):
        self.calls.append(bytes(bits))
        if len(bits) != 8:
            raise ValueError(f"Bits must be 8 bytes, got {len(bits)}")
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise RuntimeError("codec2 decode failed")
        return np.full(160, bits[0], dtype=np.int16)


class FakeSink:
    def __init__(self, fail=False):
        self.blocks = []
        self.fail = fail
        self.closed = False

    def write(self, audio):
        if self.fail:
            raise RuntimeError("audio device gone")
        self.blocks.append(audio)

    def close(self):
        self.closed = True


class RecordingObserver:
    """Collects every update in order."""

    def __init__(self):
        self.updates = []
        self._lock = threading.Lock()

    def update(self, field, value):
        with self._lock:
            self.updates.append((field, value))

    def values(self, field):
        with self._lock:
            return [v for f, v in self.updates if f == field]

    def last(self, field):
        values = self.values(field)
        return values[-1] if values else None

    def run(self, stop):
        stop.wait()

    def close(self):
        pass


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def vocoder():
    return FakeVocoder()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def dispatcher(vocoder, sink, observer):
    return FrameDispatcher(vocoder, sink, observer)


@pytest.fixture
def session(transport, dispatcher, observer):
    s = ListenSession(
        transport,
        CALLSIGN,
        module="A",
        dispatcher=dispatcher,
        observer=observer,
        disconnect_timeout=0.5,
    )
    yield s
    transport.close()
    s.join(timeout=1.0)
