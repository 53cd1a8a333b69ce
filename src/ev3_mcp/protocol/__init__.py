"""Protocol layer: operand encoding, framing, command catalogs, and reply parsing."""

from .framing import FrameBuilder, Reply, parse_reply
from .commands import DirectCommand
from .system import SystemRequest
