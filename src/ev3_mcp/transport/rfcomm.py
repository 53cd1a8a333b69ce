"""Bluetooth RFCOMM link to the EV3.

The brick exposes its command channel as a serial port profile on RFCOMM
channel 1. Python's socket module speaks RFCOMM directly on Linux (BlueZ).
"""

from __future__ import annotations

import logging
import re
import socket

from ..errors import ArgumentError, ConnectError, TransportError, TransportTimeout
from .base import Transport

logger = logging.getLogger(__name__)

RFCOMM_CHANNEL = 1
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT: float | None = None

MAC_ADDRESS_RE = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")


def validate_address(address: str) -> str:
    """Return ``address`` if it is a colon-separated Bluetooth MAC."""
    if not isinstance(address, str) or not MAC_ADDRESS_RE.match(address):
        raise ArgumentError("address", address, "expected XX:XX:XX:XX:XX:XX")
    return address.upper()


class RFCOMMTransport(Transport):
    """RFCOMM stream socket to one brick.

    Usage::

        link = RFCOMMTransport("00:16:53:56:55:D9")
        link.open()
        reply = link.send_and_receive(frame)
        link.close()
    """

    def __init__(
        self,
        address: str,
        channel: int = RFCOMM_CHANNEL,
        connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float | None = DEFAULT_READ_TIMEOUT,
    ) -> None:
        self._address = validate_address(address)
        self._channel = channel
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._sock: socket.socket | None = None

    @property
    def address(self) -> str:
        return self._address

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def open(self) -> None:
        """Connect to the brick.

        Raises:
            ConnectError: If Bluetooth sockets are unavailable or the brick
                refuses the connection.
        """
        if self._sock is not None:
            return
        if not hasattr(socket, "AF_BLUETOOTH") or not hasattr(socket, "BTPROTO_RFCOMM"):
            raise ConnectError(
                "Python Bluetooth socket support is unavailable on this platform"
            )

        logger.info("Connecting to %s (RFCOMM channel %d)", self._address, self._channel)
        try:
            sock = socket.socket(socket.AF_BLUETOOTH, socket.SOCK_STREAM, socket.BTPROTO_RFCOMM)
        except OSError as e:
            raise ConnectError(f"Failed to allocate RFCOMM socket: {e}") from e

        try:
            sock.settimeout(self._connect_timeout)
            sock.connect((self._address, self._channel))
            sock.settimeout(self._read_timeout)
        except OSError as e:
            sock.close()
            raise ConnectError(f"Could not connect to {self._address}: {e}") from e

        self._sock = sock
        logger.info("Connected to %s", self._address)

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            self._sock = None
            logger.info("Disconnected from %s", self._address)

    def write(self, data: bytes) -> int:
        if self._sock is None:
            raise TransportError("Not connected to brick")
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise TransportError(f"RFCOMM write failed: {e}") from e
        return len(data)

    def read(self, size: int) -> bytes:
        if self._sock is None:
            raise TransportError("Not connected to brick")
        try:
            return self._sock.recv(size)
        except socket.timeout as e:
            raise TransportTimeout(
                f"No reply from {self._address} within {self._read_timeout} s"
            ) from e
        except OSError as e:
            raise TransportError(f"RFCOMM read failed: {e}") from e
