"""Request frame builder and reply frame header parser.

Request layout::

    +-----------+-----------+------+-------------------+---------------------+
    | Length    | Counter   | Type | Header            | Payload             |
    | 2 bytes   | 2 bytes   | 1 B  | 2 bytes (direct)  | opcodes + operands  |
    +-----------+-----------+------+-------------------+---------------------+

- Length: little-endian, total frame length minus 2
- Counter: little-endian message counter, echoed by the brick in its reply
- Type: 0x00/0x80 direct (reply / no reply), 0x01/0x81 system
- Header: direct commands only, ``(local_bytes << 10) | global_bytes``
- System frames carry the subcommand byte where direct frames carry the header

Reply layout: the same length and counter prefix, a reply-type byte at
offset 4, then the body (global memory for direct replies; echoed
subcommand, status and data for system replies).
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ArgumentError, ProtocolError
from .constants import MAX_BODY_SIZE, FrameType, ReplyType

PREFIX_SIZE = 5  # length(2) + counter(2) + type(1)
DIRECT_HEADER_SIZE = 2
MAX_GLOBAL_BYTES = 0x3FF
MAX_LOCAL_BYTES = 0x3F
COUNTER_MODULUS = 0x10000


@dataclass
class Reply:
    """A reply frame split into its fixed fields."""

    counter: int
    reply_type: int
    body: bytes
    raw: bytes

    def __repr__(self) -> str:
        return (
            f"Reply(counter={self.counter}, type=0x{self.reply_type:02X}, "
            f"body={self.body.hex(' ') if self.body else '(empty)'})"
        )


def encode_header(global_bytes: int, local_bytes: int) -> bytes:
    """Pack the direct-command memory reservation into two bytes."""
    if not 0 <= global_bytes <= MAX_GLOBAL_BYTES:
        raise ArgumentError("global_bytes", global_bytes, "must be 0-1023")
    if not 0 <= local_bytes <= MAX_LOCAL_BYTES:
        raise ArgumentError("local_bytes", local_bytes, "must be 0-63")
    value = (local_bytes << 10) | (global_bytes & MAX_GLOBAL_BYTES)
    return value.to_bytes(2, "little")


def decode_header(data: bytes) -> tuple[int, int]:
    """Return ``(global_bytes, local_bytes)`` from a two-byte header."""
    value = int.from_bytes(data[:2], "little")
    return value & MAX_GLOBAL_BYTES, value >> 10


class FrameBuilder:
    """Accumulates one request frame.

    Usage::

        fb = FrameBuilder.begin_direct(counter=1, global_bytes=4)
        fb.buffer.append(0x99)
        emit_gv(fb.buffer, 0)
        frame = fb.finish()
    """

    def __init__(self, counter: int, frame_type: FrameType) -> None:
        self.frame_type = FrameType(frame_type)
        self.counter = counter % COUNTER_MODULUS
        self.buffer = bytearray(2)
        self.buffer.extend(self.counter.to_bytes(2, "little"))
        self.buffer.append(self.frame_type)

    @classmethod
    def begin_direct(
        cls,
        counter: int,
        reply_expected: bool = True,
        global_bytes: int = 0,
        local_bytes: int = 0,
    ) -> FrameBuilder:
        frame_type = FrameType.DIRECT_REPLY if reply_expected else FrameType.DIRECT_NO_REPLY
        header = encode_header(global_bytes, local_bytes)
        builder = cls(counter, frame_type)
        builder.buffer.extend(header)
        return builder

    @classmethod
    def begin_system(
        cls,
        counter: int,
        reply_expected: bool,
        subcommand: int,
    ) -> FrameBuilder:
        frame_type = FrameType.SYSTEM_REPLY if reply_expected else FrameType.SYSTEM_NO_REPLY
        builder = cls(counter, frame_type)
        builder.buffer.append(subcommand)
        return builder

    def extend(self, data: bytes) -> FrameBuilder:
        self.buffer.extend(data)
        return self

    def finish(self) -> bytes:
        """Back-patch the length field and return the finished frame.

        Raises:
            ArgumentError: If the frame body exceeds the 1019-byte ceiling.
        """
        body_size = len(self.buffer) - PREFIX_SIZE
        if body_size > MAX_BODY_SIZE:
            raise ArgumentError(
                "frame", len(self.buffer), f"body of {body_size} bytes exceeds {MAX_BODY_SIZE}"
            )
        self.buffer[0:2] = (len(self.buffer) - 2).to_bytes(2, "little")
        return bytes(self.buffer)


def frame_length(frame: bytes) -> int:
    """Read the length field of a request or reply frame."""
    if len(frame) < 2:
        raise ProtocolError(f"Frame too short for a length field: {len(frame)} bytes")
    return int.from_bytes(frame[0:2], "little")


def frame_counter(frame: bytes) -> int:
    return int.from_bytes(frame[2:4], "little")


def parse_reply(data: bytes) -> Reply:
    """Split a complete reply frame into counter, type and body.

    Raises:
        ProtocolError: If the frame is shorter than its prefix, its length
            field disagrees with its size, or its type is not a reply type.
    """
    if len(data) < PREFIX_SIZE:
        raise ProtocolError(f"Reply too short: {len(data)} bytes")
    declared = frame_length(data)
    if declared != len(data) - 2:
        raise ProtocolError(
            f"Reply length field {declared} does not match frame size {len(data)}"
        )
    reply_type = data[4]
    if reply_type not in ReplyType._value2member_map_:
        raise ProtocolError(f"Unknown reply type 0x{reply_type:02X}")
    return Reply(
        counter=frame_counter(data),
        reply_type=reply_type,
        body=bytes(data[PREFIX_SIZE:]),
        raw=bytes(data),
    )
