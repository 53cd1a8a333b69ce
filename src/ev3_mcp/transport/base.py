"""Transport contract shared by the Bluetooth and USB links.

A transport is an opaque, synchronous byte stream. The one piece of
protocol knowledge it carries is how to read a whole reply frame: the
2-byte little-endian length prefix first, then exactly that many bytes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ..errors import ArgumentError, TransportError
from ..protocol.constants import MAX_FRAME_SIZE

logger = logging.getLogger(__name__)

LENGTH_PREFIX_SIZE = 2


class Transport(ABC):
    """Byte-stream link to a brick.

    Subclasses implement :meth:`open`, :meth:`close`, :meth:`write` and
    :meth:`read`. ``read`` returns at most ``size`` bytes and ``b""`` on EOF.
    """

    @property
    @abstractmethod
    def connected(self) -> bool: ...

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def read(self, size: int) -> bytes: ...

    def read_exact(self, size: int) -> bytes:
        """Read exactly ``size`` bytes.

        Raises:
            TransportError: If the stream ends first.
        """
        chunks = bytearray()
        while len(chunks) < size:
            chunk = self.read(size - len(chunks))
            if not chunk:
                raise TransportError(
                    f"Connection closed after {len(chunks)} of {size} bytes"
                )
            chunks.extend(chunk)
        return bytes(chunks)

    def receive_frame(self) -> bytes:
        """Read one complete reply frame, length prefix included."""
        prefix = self.read_exact(LENGTH_PREFIX_SIZE)
        length = int.from_bytes(prefix, "little")
        return prefix + self.read_exact(length)

    def send_and_receive(self, frame: bytes) -> bytes:
        """Write a request frame and return the reply frame verbatim.

        The reply is not interpreted beyond its length prefix.
        """
        self.send(frame)
        reply = self.receive_frame()
        logger.debug("<< %s", reply.hex(" "))
        return reply

    def send(self, frame: bytes) -> None:
        """Write a request frame without waiting for a reply."""
        if not self.connected:
            raise TransportError("Not connected to brick")
        if len(frame) > MAX_FRAME_SIZE:
            raise ArgumentError("frame", len(frame), f"exceeds {MAX_FRAME_SIZE} bytes")
        logger.debug(">> %s", frame.hex(" "))
        self.write(frame)

    def __enter__(self) -> Transport:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
