"""Tests for the listen session state machine."""

import threading
import time

import pytest

from conftest import CALLSIGN, PEER, FakeTransport
from m17listen.core.address import encode_address
from m17listen.core.constants import DEFAULT_DISCONNECT_TIMEOUT
from m17listen.frames.stream import StreamFrame
from m17listen.net.session import (
    STATUS_ACCEPTED,
    STATUS_PEER_DISC,
    STATUS_REJECTED,
    ListenSession,
    SessionState,
)

CALLSIGN_BYTES = encode_address(CALLSIGN)


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def voice_frame_bytes(frame_number=0):
    return StreamFrame.create(
        dst="M17-USA",
        src="W2FBI",
        stream_id=0x4242,
        frame_number=frame_number,
        payload=b"\x07" * 16,
    ).to_bytes()


class SlowConnectSession(ListenSession):
    """Holds the CONNECTING -> CONNECTED step open so close() can overlap it."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.connect_started = threading.Event()

    def _set_state(self, state):
        if state == SessionState.CONNECTED:
            self.connect_started.set()
            time.sleep(0.2)
        super()._set_state(state)


def connecting(session):
    session._set_state(SessionState.CONNECTING)
    return session


def connected(session):
    session._set_state(SessionState.CONNECTED)
    return session


class TestHandshake:
    def test_start_sends_listen(self, session, transport):
        session.start()

        assert transport.sent[0] == b"LSTN" + CALLSIGN_BYTES + b"A"
        assert session.state == SessionState.CONNECTING

    def test_start_twice(self, session):
        session.start()
        with pytest.raises(RuntimeError, match="already started"):
            session.start()

    def test_start_send_failure(self, session, transport):
        transport.fail_send = True
        with pytest.raises(OSError):
            session.start()
        assert session.state == SessionState.IDLE

    def test_listen_without_module(self, transport):
        session = ListenSession(transport, CALLSIGN)
        session.start()
        try:
            assert transport.sent[0] == b"LSTN" + CALLSIGN_BYTES
        finally:
            transport.close()
            session.join(1.0)

    def test_ackn_connects(self, session, observer):
        connecting(session).handle_datagram(b"ACKN", PEER)

        assert session.state == SessionState.CONNECTED
        assert session.is_connected
        assert observer.last("Status") == STATUS_ACCEPTED

    def test_ackn_over_loop(self, session, transport):
        session.start()
        transport.feed(b"ACKN")
        assert wait_for(lambda: session.is_connected)

    def test_duplicate_ackn_ignored(self, session, observer):
        connecting(session).handle_datagram(b"ACKN", PEER)
        session.handle_datagram(b"ACKN", PEER)

        assert session.state == SessionState.CONNECTED
        assert observer.values("Status") == [STATUS_ACCEPTED]

    def test_nack_rejects(self, transport, dispatcher, sink, observer):
        rejected = threading.Event()
        session = ListenSession(
            transport, CALLSIGN, module="A", dispatcher=dispatcher, observer=observer, on_rejected=rejected.set
        )
        connecting(session).handle_datagram(b"NACK", PEER)

        assert session.state == SessionState.REJECTED
        assert observer.last("Status") == STATUS_REJECTED
        assert transport.sent_kinds() == [b"DISC"]
        assert transport.closed
        assert sink.closed
        assert session.cancelled
        assert rejected.is_set()

    def test_nack_over_loop_stops_loop(self, transport, dispatcher):
        rejected = threading.Event()
        session = ListenSession(transport, CALLSIGN, dispatcher=dispatcher, on_rejected=rejected.set)
        session.start()
        transport.feed(b"NACK")

        assert rejected.wait(2.0)
        session.join(1.0)
        assert not session._thread.is_alive()
        assert transport.sent_kinds() == [b"LSTN", b"DISC"]

    def test_nack_after_connect_ignored(self, session):
        connected(session).handle_datagram(b"NACK", PEER)
        assert session.state == SessionState.CONNECTED


class TestConnected:
    def test_ping_answered_once(self, session, transport):
        connected(session).handle_datagram(b"PING" + encode_address("M17-USA"), PEER)

        assert transport.sent == [b"PONG" + CALLSIGN_BYTES]

    def test_ping_ignored_before_connect(self, session, transport):
        connecting(session).handle_datagram(b"PING", PEER)
        assert transport.sent == []

    def test_pong_failure_is_not_fatal(self, session, transport, observer):
        connected(session)
        transport.fail_send = True
        session.handle_datagram(b"PING", PEER)

        assert observer.last("Error").startswith("failed to send PONG packet")
        assert session.state == SessionState.CONNECTED

        transport.fail_send = False
        session.handle_datagram(b"PING", PEER)
        assert transport.sent_kinds() == [b"PONG"]

    def test_peer_disc(self, session, observer):
        connected(session).handle_datagram(b"DISC", PEER)

        assert session.disconnected.is_set()
        assert session.peer_closed
        assert observer.last("Status") == STATUS_PEER_DISC

    def test_stream_frame_dispatched(self, session, sink, observer):
        connected(session).handle_datagram(voice_frame_bytes(), PEER)

        assert len(sink.blocks) == 1
        assert observer.last("SRC") == "W2FBI"

    def test_stream_frame_dropped_before_connect(self, session, sink):
        connecting(session).handle_datagram(voice_frame_bytes(), PEER)
        assert sink.blocks == []

    def test_short_stream_frame_reported(self, session, sink, observer):
        connected(session).handle_datagram(voice_frame_bytes()[:53], PEER)

        assert sink.blocks == []
        assert observer.last("Error") == "invalid M17 packet length: 53 (minimum 54)"
        assert session.state == SessionState.CONNECTED

    def test_unknown_source_dropped(self, session, transport, observer):
        connected(session)
        session.handle_datagram(b"PING", ("127.0.0.1", 17001))
        session.handle_datagram(b"DISC", ("10.0.0.1", 17000))

        assert transport.sent == []
        assert not session.disconnected.is_set()
        assert observer.last("Error").startswith("received packet from unknown source")

    def test_noise_ignored(self, session, transport):
        connected(session)
        for data in (b"", b"AB", b"XXXXjunk", b"PONG", b"LSTN"):
            session.handle_datagram(data, PEER)

        assert transport.sent == []
        assert session.state == SessionState.CONNECTED

    def test_read_error_reported_and_loop_continues(self, session, transport, observer):
        session.start()
        transport.feed_error(OSError("connection refused"))
        transport.feed(b"ACKN")

        assert wait_for(lambda: session.is_connected)
        assert observer.last("Error") == "failed to read from UDP: connection refused"


class TestClose:
    def test_default_timeout(self):
        assert DEFAULT_DISCONNECT_TIMEOUT == 5.0

    def test_close_acknowledged(self, session, transport, sink):
        def reply(data):
            if data.startswith(b"DISC"):
                transport.feed(b"DISC")

        session.start()
        transport.feed(b"ACKN")
        assert wait_for(lambda: session.is_connected)

        transport.on_send = reply
        assert session.close() is True

        assert session.state == SessionState.CLOSED
        assert transport.sent[-1] == b"DISC" + CALLSIGN_BYTES
        assert transport.closed
        assert sink.closed
        assert not session.peer_closed
        assert not session._thread.is_alive()

    def test_close_timeout(self, session, transport):
        session.start()
        transport.feed(b"ACKN")
        assert wait_for(lambda: session.is_connected)

        started = time.monotonic()
        assert session.close() is False
        elapsed = time.monotonic() - started

        assert elapsed >= session.disconnect_timeout
        assert session.state == SessionState.CLOSED
        assert transport.closed

    def test_close_during_ackn_still_hears_disc(self, transport, dispatcher):
        def reply(data):
            if data.startswith(b"DISC"):
                transport.feed(b"DISC")

        session = SlowConnectSession(transport, CALLSIGN, dispatcher=dispatcher, disconnect_timeout=2.0)
        transport.on_send = reply
        session.start()
        try:
            transport.feed(b"ACKN")
            assert session.connect_started.wait(2.0)

            started = time.monotonic()
            assert session.close() is True
            assert time.monotonic() - started < session.disconnect_timeout
            assert session.state == SessionState.CLOSED
        finally:
            transport.close()
            session.join(1.0)

    def test_ackn_after_close_does_not_reconnect(self, session, transport):
        connecting(session)
        session._set_state(SessionState.DISCONNECTING)
        session.handle_datagram(b"ACKN", PEER)
        assert session.state == SessionState.DISCONNECTING

        # a stale CONNECTING snapshot must not win over the newer state
        assert not session._transition(SessionState.CONNECTING, SessionState.CONNECTED)
        assert session.state == SessionState.DISCONNECTING

    def test_frames_dropped_while_disconnecting(self, session, transport, sink):
        connected(session)
        session._set_state(SessionState.DISCONNECTING)
        session.handle_datagram(voice_frame_bytes(), PEER)
        session.handle_datagram(b"PING", PEER)

        assert sink.blocks == []
        assert transport.sent == []

    def test_close_from_connecting(self, session, transport):
        session.start()
        session.disconnect_timeout = 0.1
        assert session.close() is False
        assert transport.sent_kinds() == [b"LSTN", b"DISC"]

    def test_close_before_start_is_noop(self, session, transport):
        assert session.close() is False
        assert transport.sent == []
        assert session.state == SessionState.IDLE

    def test_close_after_peer_disc(self, session, transport):
        session.start()
        transport.feed(b"ACKN")
        assert wait_for(lambda: session.is_connected)
        transport.feed(b"DISC")
        assert session.disconnected.wait(2.0)

        # the completion signal already fired, so close does not wait
        started = time.monotonic()
        assert session.close() is True
        assert time.monotonic() - started < session.disconnect_timeout

    def test_close_twice(self, session, transport):
        session.start()
        session.disconnect_timeout = 0.05
        session.close()
        sent = len(transport.sent)
        session.close()
        assert len(transport.sent) == sent

    def test_disc_send_failure_still_closes(self, session, transport, observer):
        session.start()
        session.disconnect_timeout = 0.05
        transport.fail_send = True

        assert session.close() is False
        assert observer.last("Error").startswith("failed to send DISC packet")
        assert session.state == SessionState.CLOSED
        assert transport.closed

    def test_transport_closed_stops_loop(self, session, transport):
        session.start()
        transport.close()
        session.join(1.0)
        assert not session._thread.is_alive()


def test_invalid_callsign():
    with pytest.raises(ValueError):
        ListenSession(FakeTransport(), "bad#call")


def test_invalid_module():
    with pytest.raises(ValueError, match="Module must be single letter"):
        ListenSession(FakeTransport(), CALLSIGN, module="AB")
