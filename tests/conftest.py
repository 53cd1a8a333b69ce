"""Shared fixtures: a scripted in-memory transport and reply builders."""

from __future__ import annotations

import pytest

from ev3_mcp.brick import Brick
from ev3_mcp.protocol.constants import ReplyType, SystemCommand
from ev3_mcp.session import Session
from ev3_mcp.transport.base import Transport


def make_reply(counter: int, reply_type: int, body: bytes = b"") -> bytes:
    """Build a well-formed reply frame."""
    frame = bytearray(2)
    frame.extend(counter.to_bytes(2, "little"))
    frame.append(reply_type)
    frame.extend(body)
    frame[0:2] = (len(frame) - 2).to_bytes(2, "little")
    return bytes(frame)


def direct_ok(counter: int, global_memory: bytes = b"") -> bytes:
    return make_reply(counter, ReplyType.DIRECT_OK, global_memory)


def system_reply(
    counter: int,
    subcommand: SystemCommand,
    status: int,
    data: bytes = b"",
    reply_type: int = ReplyType.SYSTEM_OK,
) -> bytes:
    return make_reply(counter, reply_type, bytes([subcommand, status]) + data)


class FakeTransport(Transport):
    """Records written frames and serves queued reply bytes.

    ``replies`` may hold bytes (served in order) or callables taking the
    request frame and returning the reply bytes.
    """

    def __init__(self, replies=None):
        self.written: list[bytes] = []
        self.replies = list(replies or [])
        self._rx = bytearray()
        self._connected = True
        self.close_calls = 0

    @property
    def connected(self) -> bool:
        return self._connected

    def open(self) -> None:
        self._connected = True

    def close(self) -> None:
        self.close_calls += 1
        self._connected = False

    def write(self, data: bytes) -> int:
        self.written.append(bytes(data))
        if self.replies:
            reply = self.replies.pop(0)
            if callable(reply):
                reply = reply(bytes(data))
            self._rx.extend(reply)
        return len(data)

    def read(self, size: int) -> bytes:
        chunk = bytes(self._rx[:size])
        del self._rx[:size]
        return chunk

    def queue(self, *replies) -> None:
        self.replies.extend(replies)


def echo_direct(global_memory: bytes = b""):
    """Reply callable: DIRECT_OK echoing the request's counter."""

    def reply(frame: bytes) -> bytes:
        return direct_ok(int.from_bytes(frame[2:4], "little"), global_memory)

    return reply


def echo_system(subcommand: SystemCommand, status: int, data: bytes = b""):
    """Reply callable: SYSTEM_OK echoing the request's counter."""

    def reply(frame: bytes) -> bytes:
        return system_reply(int.from_bytes(frame[2:4], "little"), subcommand, status, data)

    return reply


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def session(transport):
    return Session(transport)


@pytest.fixture
def brick(session):
    return Brick(session)
