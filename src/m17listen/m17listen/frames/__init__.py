"""M17 Frame Definitions

Stream frames as relayed over IP by a reflector.
"""

from m17listen.frames.stream import LinkInfo, StreamFrame

__all__ = [
    "LinkInfo",
    "StreamFrame",
]
