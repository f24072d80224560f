"""Command line entry point.

    python -m m17listen [--tui | --gui] <relay_address> [module_letter]

Connects to a relay/reflector as a listen-only client and plays the voice
streams it relays. Ctrl-C (or closing the window) disconnects.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import Optional

from m17listen.config import ListenConfig
from m17listen.core.errors import StartupError
from m17listen.dispatcher import AudioSink, FrameDispatcher, Vocoder
from m17listen.net.session import ListenSession, SessionState
from m17listen.net.transport import UDPTransport
from m17listen.observers import Observer, make_observer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="m17listen",
        description="Listen-only client for M17 relays and reflectors.",
    )
    front_end = parser.add_mutually_exclusive_group()
    front_end.add_argument("--tui", action="store_true", help="show a live terminal view")
    front_end.add_argument("--gui", action="store_true", help="show a window (needs PyQt6)")
    parser.add_argument("--callsign", help="callsign to connect as (default: random LSTNxxxxx)")
    parser.add_argument("--log-file", help="write logs here while --tui or --gui is active")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every packet")
    parser.add_argument("relay", help="relay address, host[:port]")
    parser.add_argument("module", nargs="?", help="reflector module letter")
    return parser


def configure_logging(config: ListenConfig) -> None:
    """Log to stderr, or keep the terminal clear for a front end."""
    if config.observer == "none":
        handlers: list[logging.Handler] = [logging.StreamHandler()]
    elif config.log_file:
        handlers = [logging.FileHandler(config.log_file)]
    else:
        handlers = [logging.NullHandler()]
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, handlers=handlers, force=True)


def _open_audio() -> tuple[Vocoder, AudioSink]:
    from m17listen.audio import Codec2Wrapper, SpeakerSink

    vocoder = Codec2Wrapper()
    sink = SpeakerSink()
    sink.start()
    return vocoder, sink


def run(
    config: ListenConfig,
    vocoder: Optional[Vocoder] = None,
    sink: Optional[AudioSink] = None,
    observer: Optional[Observer] = None,
) -> int:
    """Run one listen session until shutdown is requested.

    Returns
    -------
        Process exit status: 0 after a normal shutdown, 1 on startup failure
        or when the relay refuses the connection.
    """
    stop = threading.Event()

    try:
        if observer is None:
            observer = make_observer(config.observer)
        if vocoder is None or sink is None:
            vocoder, sink = _open_audio()
    except (ImportError, OSError, RuntimeError) as e:
        logger.error(f"failed to create client: {e}")
        return 1

    try:
        transport = UDPTransport.open(config.host, config.port, config.poll_interval)
    except StartupError as e:
        logger.error(f"failed to create client: {e}")
        sink.close()
        return 1

    dispatcher = FrameDispatcher(vocoder, sink, observer)
    session = ListenSession(
        transport,
        config.callsign,
        module=config.module,
        dispatcher=dispatcher,
        observer=observer,
        on_rejected=stop.set,
        disconnect_timeout=config.disconnect_timeout,
        bufsize=config.bufsize,
    )

    def request_stop(signum, _frame) -> None:
        logger.info(f"Received signal {signal.Signals(signum).name}")
        stop.set()

    previous = {sig: signal.signal(sig, request_stop) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        try:
            session.start()
        except OSError as e:
            logger.error(f"failed to send LSTN packet: {e}")
            transport.close()
            sink.close()
            return 1

        observer.run(stop)

        if session.state == SessionState.REJECTED:
            logger.error("Connection not accepted by relay/reflector")
            return 1

        logger.info("Shutting down client...")
        session.close()
        return 0
    finally:
        observer.close()
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = ListenConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))
    configure_logging(config)
    return run(config)


if __name__ == "__main__":
    sys.exit(main())
