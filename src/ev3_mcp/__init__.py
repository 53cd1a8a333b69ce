"""Client library and MCP server for LEGO Mindstorms EV3 bricks over Bluetooth."""

from .brick import Brick
from .errors import (
    ArgumentError,
    ConnectError,
    DeviceError,
    EV3Error,
    FileError,
    ProtocolError,
    SessionPoisonedError,
    TransportError,
    TransportTimeout,
)
from .protocol.constants import Brake, Colour, LedPattern, Motor, SensorPort
from .session import Session

__version__ = "0.1.0"
