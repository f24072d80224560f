from m17listen.core.address import Address
from m17listen.dispatcher import FrameDispatcher
from m17listen.frames import StreamFrame
from m17listen.net import ListenSession, SessionState, UDPTransport

__all__ = [
    'Address',
    'FrameDispatcher',
    'ListenSession',
    'SessionState',
    'StreamFrame',
    'UDPTransport',
]
