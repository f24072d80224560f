"""M17 Reflector Listen Session

Connection state machine for a listen-only reflector client.

States::

    IDLE -> CONNECTING -> CONNECTED -> DISCONNECTING -> CLOSED
                 |
                 +-> REJECTED

The receive loop runs on its own thread and is the only reader of the
transport. The control thread calls ``start()`` and later ``close()``.
Both threads send through the transport, which serializes writes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Optional

from m17listen.core.constants import DEFAULT_DISCONNECT_TIMEOUT, DEFAULT_RECV_BUFSIZE
from m17listen.core.errors import MalformedFrameError, TransportClosedError
from m17listen.dispatcher import FrameDispatcher
from m17listen.net.protocol import ControlMessage, ListenProtocol, Packet, parse_packet
from m17listen.net.transport import UDPTransport
from m17listen.observers import base as fields
from m17listen.observers.base import NullObserver, Observer

__all__ = ["SessionState", "ListenSession"]

logger = logging.getLogger(__name__)

STATUS_ACCEPTED = "Connection accepted by relay/reflector"
STATUS_REJECTED = "Connection not accepted by relay/reflector"
STATUS_PEER_DISC = "Received DISC packet"


class SessionState(Enum):
    """Listen session state."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
    CLOSED = "closed"
    REJECTED = "rejected"


class ListenSession:
    """One listen-only session with one relay/reflector.

    Args:
    ----
        transport: Connected transport to the relay.
        callsign: Local callsign sent in every control packet.
        module: Optional module letter sent with the listen request.
        dispatcher: Receives stream frames while connected.
        observer: Receives status and error updates.
        on_rejected: Called from the receive loop once a NACK has been
            handled and resources released.
        disconnect_timeout: Bound on the wait for the reflector's DISC.
        bufsize: Receive buffer size.

    Raises:
    ------
        InvalidCharacterError: If the callsign cannot be encoded.
        ValueError: If the module is not a single letter.
    """

    def __init__(
        self,
        transport: UDPTransport,
        callsign: str,
        module: Optional[str] = None,
        dispatcher: Optional[FrameDispatcher] = None,
        observer: Optional[Observer] = None,
        on_rejected: Optional[Callable[[], None]] = None,
        disconnect_timeout: float = DEFAULT_DISCONNECT_TIMEOUT,
        bufsize: int = DEFAULT_RECV_BUFSIZE,
    ) -> None:
        self.transport = transport
        self.protocol = ListenProtocol(callsign, module)
        self.dispatcher = dispatcher
        self.observer = observer or NullObserver()
        self.on_rejected = on_rejected
        self.disconnect_timeout = disconnect_timeout
        self.bufsize = bufsize

        # One-shot: set when the reflector's DISC arrives
        self.disconnected = threading.Event()
        self.peer_closed = False

        self._cancel = threading.Event()
        self._state = SessionState.IDLE
        self._state_lock = threading.Lock()
        self._released = False
        self._thread: Optional[threading.Thread] = None

    @property
    def callsign(self) -> str:
        return self.protocol.callsign

    @property
    def module(self) -> Optional[str]:
        return self.protocol.module

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == SessionState.CONNECTED

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _set_state(self, state: SessionState) -> None:
        logger.debug(f"State {self._state.value} -> {state.value}")
        self._state = state

    def _transition(self, expected: SessionState, state: SessionState) -> bool:
        """Move from ``expected`` to ``state``, unless another thread got there first."""
        with self._state_lock:
            if self._state != expected:
                return False
            self._set_state(state)
            return True

    def _status(self, text: str) -> None:
        logger.info(text)
        self.observer.update(fields.STATUS, text)

    def _error(self, text: str) -> None:
        logger.error(text)
        self.observer.update(fields.ERROR, text)

    # ------------------------------------------------------------------
    # Control path
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Send the listen request and start the receive loop.

        Raises
        ------
            RuntimeError: If the session was already started.
            OSError: If the listen request cannot be sent.
        """
        with self._state_lock:
            if self._state != SessionState.IDLE:
                raise RuntimeError(f"Session already started ({self._state.value})")
            self.transport.send(self.protocol.make_listen())
            self._set_state(SessionState.CONNECTING)

        host, port = self.transport.peer
        module = f" module {self.module}" if self.module else ""
        self._status(f"Connecting to {host}:{port}{module} as {self.callsign}")

        self._thread = threading.Thread(target=self.run, name="m17listen-rx", daemon=True)
        self._thread.start()

    def close(self) -> bool:
        """Disconnect gracefully.

        Sends DISC, cancels the receive loop and waits up to
        ``disconnect_timeout`` seconds for the reflector's DISC. Not
        hearing back is not an error.

        Returns
        -------
            True if the reflector acknowledged the disconnect.
        """
        with self._state_lock:
            if self._state not in (SessionState.CONNECTING, SessionState.CONNECTED):
                logger.debug(f"close() ignored in state {self._state.value}")
                return self.disconnected.is_set()
            self._set_state(SessionState.DISCONNECTING)

        self._send_disconnect()
        self._cancel.set()

        acked = self.disconnected.wait(self.disconnect_timeout)
        if acked:
            logger.info("Received DISC packet from relay, closing connection")
        else:
            logger.info("Timeout waiting for DISC packet from relay, closing connection")

        with self._state_lock:
            self._set_state(SessionState.CLOSED)
        self._release()
        self.join(timeout=1.0)
        return acked

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the receive loop to exit."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _send_disconnect(self) -> None:
        try:
            self.transport.send(self.protocol.make_disconnect())
        except (OSError, TransportClosedError) as e:
            self._error(f"failed to send DISC packet: {e}")

    def _release(self) -> None:
        with self._state_lock:
            if self._released:
                return
            self._released = True

        self.transport.close()
        if self.dispatcher is not None:
            try:
                self.dispatcher.sink.close()
            except Exception as e:
                logger.warning(f"Failed to close audio sink: {e}")

    # ------------------------------------------------------------------
    # Receive loop
    # ------------------------------------------------------------------

    def _should_stop(self) -> bool:
        if not self._cancel.is_set():
            return False
        # Once cancelled, keep reading only to catch the DISC reply
        return self._state != SessionState.DISCONNECTING or self.disconnected.is_set()

    def run(self) -> None:
        """Receive loop. Returns once cancelled or the transport closes."""
        logger.debug("Receive loop started")
        while not self._should_stop():
            try:
                received = self.transport.receive(self.bufsize)
            except TransportClosedError:
                break
            except OSError as e:
                self._error(f"failed to read from UDP: {e}")
                continue

            if received is None:
                continue

            data, addr = received
            self.handle_datagram(data, addr)
        logger.debug("Receive loop stopped")

    def handle_datagram(self, data: bytes, addr: object) -> None:
        """Filter, parse and act on one received datagram."""
        if not self.transport.is_peer(addr):
            msg = f"received packet from unknown source: {addr}"
            logger.warning(msg)
            self.observer.update(fields.ERROR, msg)
            return

        try:
            packet = parse_packet(data)
        except MalformedFrameError as e:
            self._error(str(e))
            return

        if packet is not None:
            self.handle_packet(packet)

    def handle_packet(self, packet: Packet) -> None:
        """Advance the state machine for one parsed packet."""
        state = self._state
        kind = packet.kind

        if state == SessionState.DISCONNECTING:
            if kind is ControlMessage.DISC:
                self.disconnected.set()
            else:
                logger.debug(f"Dropping {kind.name} while disconnecting")
            return

        if kind is ControlMessage.ACKN:
            if self._transition(SessionState.CONNECTING, SessionState.CONNECTED):
                self._status(STATUS_ACCEPTED)
            else:
                logger.debug(f"Ignoring ACKN in state {self._state.value}")

        elif kind is ControlMessage.NACK:
            if self._transition(SessionState.CONNECTING, SessionState.REJECTED):
                self._reject()
            else:
                logger.warning(f"Ignoring NACK in state {self._state.value}")

        elif kind is ControlMessage.PING:
            if state == SessionState.CONNECTED:
                self._send_pong()
            else:
                logger.debug(f"Ignoring PING in state {state.value}")

        elif kind is ControlMessage.DISC:
            if state == SessionState.CONNECTED:
                self.peer_closed = True
                self.disconnected.set()
                self._status(STATUS_PEER_DISC)
            else:
                logger.debug(f"Ignoring DISC in state {state.value}")

        elif kind is ControlMessage.M17_FRAME:
            if state == SessionState.CONNECTED and self.dispatcher is not None:
                self.dispatcher.dispatch(packet.frame)
            else:
                logger.debug(f"Dropping stream frame in state {state.value}")

        else:
            logger.debug(f"Ignoring {kind.name} from reflector")

    def _send_pong(self) -> None:
        try:
            self.transport.send(self.protocol.make_pong())
        except (OSError, TransportClosedError) as e:
            self._error(f"failed to send PONG packet: {e}")
            return
        logger.debug("Responded to PING")

    def _reject(self) -> None:
        self._status(STATUS_REJECTED)
        self._send_disconnect()
        self._cancel.set()
        self._release()
        if self.on_rejected is not None:
            self.on_rejected()
