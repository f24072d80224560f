"""UDP transport bound to a single relay/reflector.

The socket is connected to the peer so the kernel fills in the
destination on every send. Reads use a short timeout so the receive loop
gets a chance to notice cancellation, and ``close()`` shuts the socket
down to wake a reader that is parked in ``recvfrom``.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Optional

from m17listen.core.constants import DEFAULT_POLL_INTERVAL, DEFAULT_RECV_BUFSIZE
from m17listen.core.errors import StartupError, TransportClosedError

__all__ = ["UDPTransport"]

logger = logging.getLogger(__name__)

PeerAddress = tuple[str, int]


class UDPTransport:
    """Datagram socket connected to one remote peer.

    ``send`` may be called from any thread; ``receive`` must only be called
    from the receive loop.
    """

    def __init__(self, sock: socket.socket, peer: PeerAddress) -> None:
        self._sock = sock
        self._peer = peer
        self._send_lock = threading.Lock()
        self._closed = False

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        poll_interval: Optional[float] = DEFAULT_POLL_INTERVAL,
    ) -> UDPTransport:
        """Resolve ``host:port`` and connect a UDP socket to it.

        Raises
        ------
            StartupError: If the address does not resolve or the socket
                cannot be created or connected.
        """
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
        except socket.gaierror as e:
            raise StartupError(f"failed to resolve address {host}:{port}: {e}") from e
        if not infos:
            raise StartupError(f"failed to resolve address {host}:{port}")

        family, socktype, proto, _canonname, sockaddr = infos[0]
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as e:
            raise StartupError(f"failed to create socket: {e}") from e

        try:
            sock.connect(sockaddr)
            sock.settimeout(poll_interval)
        except OSError as e:
            sock.close()
            raise StartupError(f"failed to dial {host}:{port}: {e}") from e

        peer = (sockaddr[0], sockaddr[1])
        logger.info(f"Connected UDP socket {sock.getsockname()} -> {peer}")
        return cls(sock, peer)

    @property
    def peer(self) -> PeerAddress:
        """Resolved (ip, port) of the relay."""
        return self._peer

    @property
    def closed(self) -> bool:
        return self._closed

    def is_peer(self, addr: object) -> bool:
        """Check that a datagram came from the exact bound peer ip and port."""
        if not isinstance(addr, tuple) or len(addr) < 2:
            return False
        return addr[0] == self._peer[0] and addr[1] == self._peer[1]

    def send(self, data: bytes) -> None:
        """Send one datagram to the peer.

        Raises
        ------
            TransportClosedError: If the transport has been closed.
            OSError: On any other socket error.
        """
        with self._send_lock:
            if self._closed:
                raise TransportClosedError("transport is closed")
            self._sock.send(data)
        logger.debug(f"SEND: {data[:4]!r} ({len(data)} bytes)")

    def receive(self, bufsize: int = DEFAULT_RECV_BUFSIZE) -> Optional[tuple[bytes, PeerAddress]]:
        """Read one datagram.

        Returns
        -------
            ``(data, addr)``, or None if the poll timeout expired.

        Raises
        ------
            TransportClosedError: If the transport is, or becomes, closed.
            OSError: On any other socket error.
        """
        if self._closed:
            raise TransportClosedError("transport is closed")
        try:
            data, addr = self._sock.recvfrom(bufsize)
        except socket.timeout:
            return None
        except OSError:
            if self._closed:
                raise TransportClosedError("transport is closed") from None
            raise
        if self._closed:
            raise TransportClosedError("transport is closed")
        return data, addr

    def close(self) -> None:
        """Close the socket, waking any pending ``receive``. Idempotent."""
        with self._send_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # not connected or already shut down
            pass
        self._sock.close()
        logger.debug("Transport closed")
