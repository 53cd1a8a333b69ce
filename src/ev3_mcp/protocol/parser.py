"""Reply parsing for direct and system commands.

Direct replies carry the reserved global memory from reply byte 5 onward,
so a ``GV0(n)`` operand in the request maps to ``reply.body[n]``. System
replies echo the subcommand at byte 5 and put a status code at byte 6.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import NamedTuple

from ..errors import DeviceError, FileError, ProtocolError
from .constants import Colour, ReplyType, SystemCommand, SystemStatus
from .framing import Reply

logger = logging.getLogger(__name__)

OK_STATUSES = (SystemStatus.SUCCESS, SystemStatus.END_OF_FILE)


class RGB(NamedTuple):
    """Raw colour-sensor reflectance, each component in [0, 1020]."""

    red: int
    green: int
    blue: int


@dataclass
class TypeMode:
    """Sensor type and mode currently reported by an input port."""

    sensor_type: int
    mode: int


@dataclass
class FileListing:
    """Parsed LIST_FILES reply.

    ``text`` holds the newline-separated listing; directories end with ``/``
    and files read ``<md5> <size-hex> <name>``.
    """

    status: int
    total_size: int
    handle: int
    text: str
    complete: bool = True
    raw: bytes = field(default=b"", repr=False)

    @property
    def entries(self) -> list[str]:
        return [line for line in self.text.split("\n") if line]


@dataclass
class ListChunk:
    """Parsed CONTINUE_LIST_FILES reply."""

    status: int
    handle: int
    data: bytes


# ─── DIRECT REPLIES ──────────────────────────────────────────────────

def check_direct_reply(reply: Reply, command: str = "") -> Reply:
    """Accept a DIRECT_OK reply, raise for anything else.

    Raises:
        DeviceError: The brick answered DIRECT_ERROR.
        ProtocolError: The reply type is not a direct reply type.
    """
    if reply.reply_type == ReplyType.DIRECT_OK:
        return reply
    if reply.reply_type == ReplyType.DIRECT_ERROR:
        raise DeviceError(reply.reply_type, command)
    raise ProtocolError(
        f"Expected a direct reply for {command or 'command'}, got type 0x{reply.reply_type:02X}"
    )


def _global_memory(reply: Reply, size: int, command: str) -> bytes:
    check_direct_reply(reply, command)
    if len(reply.body) < size:
        raise ProtocolError(
            f"{command} reply carries {len(reply.body)} global bytes, expected {size}"
        )
    return reply.body[:size]


def parse_touch(reply: Reply) -> bool:
    return _global_memory(reply, 1, "read_touch")[0] != 0


def parse_colour(reply: Reply) -> Colour:
    value = _global_memory(reply, 1, "read_colour")[0]
    try:
        return Colour(value)
    except ValueError as e:
        raise ProtocolError(f"Colour index out of range: {value}") from e


def parse_colour_rgb(reply: Reply) -> RGB:
    data = _global_memory(reply, 12, "read_colour_rgb")
    return RGB(
        int.from_bytes(data[0:4], "little"),
        int.from_bytes(data[4:8], "little"),
        int.from_bytes(data[8:12], "little"),
    )


def parse_ultrasonic(reply: Reply) -> int:
    """Return the low-order byte of the distance in millimetres."""
    return _global_memory(reply, 1, "read_ultrasonic")[0]


def parse_gyro(reply: Reply) -> int:
    """Return the cumulative angle as a signed 32-bit value."""
    return int.from_bytes(_global_memory(reply, 4, "read_gyro"), "little", signed=True)


def parse_type_mode(reply: Reply) -> TypeMode:
    data = _global_memory(reply, 2, "get_type_mode")
    return TypeMode(sensor_type=data[0], mode=data[1])


# ─── SYSTEM REPLIES ──────────────────────────────────────────────────

def check_system_reply(
    reply: Reply,
    subcommand: SystemCommand,
    allowed: tuple[int, ...] = OK_STATUSES,
) -> int:
    """Validate a system reply and return its status byte.

    Raises:
        ProtocolError: Wrong reply type, truncated body, or the echoed
            subcommand does not match the request.
        FileError: The status is not in ``allowed``.
    """
    if reply.reply_type not in (ReplyType.SYSTEM_OK, ReplyType.SYSTEM_ERROR):
        raise ProtocolError(
            f"Expected a system reply for {subcommand.name}, got type 0x{reply.reply_type:02X}"
        )
    if len(reply.body) < 2:
        raise ProtocolError(f"{subcommand.name} reply too short: {len(reply.body)} body bytes")
    if reply.body[0] != subcommand:
        raise ProtocolError(
            f"{subcommand.name} reply echoes subcommand 0x{reply.body[0]:02X}"
        )
    status = reply.body[1]
    if reply.reply_type == ReplyType.SYSTEM_ERROR or status not in allowed:
        raise FileError(status, subcommand.name)
    return status


def decode_listing(data: bytes) -> str:
    return data.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def parse_list_files(reply: Reply) -> FileListing:
    """Parse a LIST_FILES reply.

    Body layout after the echoed subcommand and status: a 4-byte total
    listing size, a 1-byte handle, then listing text (reply byte 12 on).
    """
    status = check_system_reply(reply, SystemCommand.LIST_FILES)
    if len(reply.body) < 7:
        raise ProtocolError(f"LIST_FILES reply too short: {len(reply.body)} body bytes")
    total_size = int.from_bytes(reply.body[2:6], "little")
    data = reply.body[7:]
    return FileListing(
        status=status,
        total_size=total_size,
        handle=reply.body[6],
        text=decode_listing(data),
        complete=status == SystemStatus.END_OF_FILE or len(data) >= total_size,
        raw=bytes(data),
    )


def parse_continue_list_files(reply: Reply) -> ListChunk:
    status = check_system_reply(reply, SystemCommand.CONTINUE_LIST_FILES)
    if len(reply.body) < 3:
        raise ProtocolError(
            f"CONTINUE_LIST_FILES reply too short: {len(reply.body)} body bytes"
        )
    return ListChunk(status=status, handle=reply.body[2], data=bytes(reply.body[3:]))


def parse_begin_download(reply: Reply) -> int:
    """Return the brick-side file handle from reply byte 8.

    Stock firmware sends an 8-byte reply with the handle at byte 7; that
    form is accepted too.
    """
    check_system_reply(reply, SystemCommand.BEGIN_DOWNLOAD, allowed=(SystemStatus.SUCCESS,))
    if len(reply.body) == 3:
        logger.info("BEGIN_DOWNLOAD reply is 8 bytes; reading handle from byte 7")
        return reply.body[2]
    if len(reply.body) < 4:
        raise ProtocolError(f"BEGIN_DOWNLOAD reply too short: {len(reply.body)} body bytes")
    return reply.body[3]


def parse_continue_download(reply: Reply) -> int:
    """Return SUCCESS (more data expected) or END_OF_FILE (file complete)."""
    return check_system_reply(reply, SystemCommand.CONTINUE_DOWNLOAD)
