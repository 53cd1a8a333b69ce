"""Tests for request frame building and reply frame parsing."""

import pytest

from ev3_mcp.errors import ArgumentError, ProtocolError
from ev3_mcp.protocol.constants import FrameType, ReplyType, SystemCommand
from ev3_mcp.protocol.framing import (
    FrameBuilder,
    decode_header,
    encode_header,
    frame_counter,
    frame_length,
    parse_reply,
)

from conftest import make_reply


def test_header_packs_local_and_global():
    """Header is (local << 10) | global, little-endian."""
    assert encode_header(0, 0) == b"\x00\x00"
    assert encode_header(1, 0) == b"\x01\x00"
    assert encode_header(0, 4) == b"\x00\x10"
    assert encode_header(12, 0) == b"\x0c\x00"
    assert decode_header(encode_header(1023, 63)) == (1023, 63)


def test_header_bounds():
    with pytest.raises(ArgumentError):
        encode_header(1024, 0)
    with pytest.raises(ArgumentError):
        encode_header(0, 64)


def test_direct_frame_layout():
    """Scenario: LED green with counter 1."""
    frame = FrameBuilder.begin_direct(1).extend(b"\x82\x1b\x01").finish()
    assert frame == bytes.fromhex("08 00 01 00 00 00 00 82 1B 01")


def test_length_field_is_size_minus_two():
    frame = FrameBuilder.begin_direct(7, global_bytes=4).extend(b"\x9e" * 20).finish()
    assert frame_length(frame) == len(frame) - 2
    assert frame_counter(frame) == 7


def test_no_reply_frame_type():
    frame = FrameBuilder.begin_direct(1, reply_expected=False).finish()
    assert frame[4] == FrameType.DIRECT_NO_REPLY


def test_system_frame_carries_subcommand():
    frame = FrameBuilder.begin_system(0x1234, True, SystemCommand.LIST_FILES).finish()
    assert frame == bytes([0x04, 0x00, 0x34, 0x12, 0x01, 0x99])


def test_counter_wraps_modulo_16_bits():
    frame = FrameBuilder.begin_direct(0x10001).finish()
    assert frame_counter(frame) == 1


def test_body_ceiling():
    """The body after the 5-byte prefix may be at most 1019 bytes."""
    ok = FrameBuilder.begin_system(1, True, SystemCommand.CONTINUE_DOWNLOAD)
    ok.extend(b"\x00" * 1018)
    assert len(ok.finish()) == 1024

    too_big = FrameBuilder.begin_system(1, True, SystemCommand.CONTINUE_DOWNLOAD)
    too_big.extend(b"\x00" * 1019)
    with pytest.raises(ArgumentError):
        too_big.finish()


def test_parse_reply_fields():
    reply = parse_reply(make_reply(5, ReplyType.DIRECT_OK, b"\x01"))
    assert reply.counter == 5
    assert reply.reply_type == ReplyType.DIRECT_OK
    assert reply.body == b"\x01"


def test_parse_reply_too_short():
    with pytest.raises(ProtocolError):
        parse_reply(b"\x02\x00\x01")


def test_parse_reply_length_mismatch():
    with pytest.raises(ProtocolError):
        parse_reply(bytes.fromhex("02 00 01 00 02 01"))


def test_parse_reply_unknown_type():
    with pytest.raises(ProtocolError):
        parse_reply(make_reply(1, 0x00))
