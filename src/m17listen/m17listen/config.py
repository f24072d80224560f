"""Listen client configuration."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import Optional

from m17listen.core.address import encode_callsign, random_listener_callsign
from m17listen.core.constants import (
    DEFAULT_DISCONNECT_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_RECV_BUFSIZE,
)
from m17listen.net.protocol import validate_module
from m17listen.observers import OBSERVER_MODES

__all__ = ["ListenConfig", "parse_relay_address"]


def parse_relay_address(address: str, default_port: int = DEFAULT_PORT) -> tuple[str, int]:
    """Split ``host[:port]`` into host and port.

    IPv6 literals must be bracketed when a port is given: ``[::1]:17000``.

    Raises:
    ------
        ValueError: If the host is empty or the port is not 1-65535.

    Examples:
    --------
        >>> parse_relay_address("ref.example.com:17001")
        ('ref.example.com', 17001)
        >>> parse_relay_address("ref.example.com")
        ('ref.example.com', 17000)
    """
    address = address.strip()
    port_text: Optional[str] = None

    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep:
            raise ValueError(f"Unterminated IPv6 address: {address!r}")
        if rest:
            if not rest.startswith(":"):
                raise ValueError(f"Invalid relay address: {address!r}")
            port_text = rest[1:]
    elif address.count(":") == 1:
        host, port_text = address.split(":")
    else:
        # bare host name, IPv4 address or unbracketed IPv6 address
        host = address

    if not host:
        raise ValueError(f"Missing host in relay address: {address!r}")

    if port_text is None:
        return host, default_port

    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"Invalid port in relay address: {address!r}") from None
    if not 0 < port <= 0xFFFF:
        raise ValueError(f"Port must be 1-65535, got {port}")
    return host, port


@dataclass
class ListenConfig:
    """Listen client configuration.

    Attributes
    ----------
        host: Relay/reflector host name or IP.
        port: Relay/reflector UDP port.
        module: Optional reflector module letter.
        callsign: Local callsign; a random LSTN callsign when not given.
        observer: Front end, one of "none", "text", "gui".
        bufsize: Receive buffer size in bytes.
        disconnect_timeout: Seconds to wait for the relay's DISC.
        poll_interval: Socket read timeout in seconds.
        log_level: Logging level.
        log_file: Where logs go when a front end owns the terminal.
    """

    host: str
    port: int = DEFAULT_PORT
    module: Optional[str] = None
    callsign: str = field(default_factory=random_listener_callsign)
    observer: str = "none"
    bufsize: int = DEFAULT_RECV_BUFSIZE
    disconnect_timeout: float = DEFAULT_DISCONNECT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    log_level: int = logging.INFO
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate fields."""
        if not 0 < self.port <= 0xFFFF:
            raise ValueError(f"Port must be 1-65535, got {self.port}")
        self.module = validate_module(self.module)
        # fail early on callsigns the wire format cannot carry
        encode_callsign(self.callsign)
        if self.observer not in OBSERVER_MODES:
            raise ValueError(f"Unknown observer mode {self.observer!r}, expected one of {OBSERVER_MODES}")
        if self.bufsize < 64:
            raise ValueError(f"Receive buffer too small: {self.bufsize}")
        if self.disconnect_timeout < 0:
            raise ValueError(f"Disconnect timeout must not be negative, got {self.disconnect_timeout}")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> ListenConfig:
        """Build a config from parsed command line arguments."""
        host, port = parse_relay_address(args.relay)
        observer = "none"
        if args.tui:
            observer = "text"
        elif args.gui:
            observer = "gui"

        kwargs = {}
        if args.callsign:
            kwargs["callsign"] = args.callsign.upper()

        return cls(
            host=host,
            port=port,
            module=args.module,
            observer=observer,
            log_level=logging.DEBUG if args.verbose else logging.INFO,
            log_file=args.log_file,
            **kwargs,
        )
