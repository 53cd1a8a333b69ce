"""Tests for reply parsing."""

import pytest

from ev3_mcp.errors import DeviceError, FileError, ProtocolError
from ev3_mcp.protocol.constants import Colour, ReplyType, SystemCommand, SystemStatus
from ev3_mcp.protocol.framing import parse_reply
from ev3_mcp.protocol.parser import (
    RGB,
    check_direct_reply,
    check_system_reply,
    parse_begin_download,
    parse_colour,
    parse_colour_rgb,
    parse_continue_download,
    parse_continue_list_files,
    parse_gyro,
    parse_list_files,
    parse_touch,
    parse_type_mode,
    parse_ultrasonic,
)

from conftest import direct_ok, make_reply, system_reply


def _direct(body: bytes):
    return parse_reply(direct_ok(1, body))


def test_rgb_reply():
    """A 17-byte reply decodes to three little-endian words."""
    raw = bytes.fromhex("0F 00 01 00 02 04 00 00 00 F4 03 00 00 FC 03 00 00")
    assert len(raw) == 17
    assert parse_colour_rgb(parse_reply(raw)) == RGB(4, 1012, 1020)


def test_touch_pressed_and_released():
    assert parse_touch(_direct(b"\x01")) is True
    assert parse_touch(_direct(b"\x64")) is True
    assert parse_touch(_direct(b"\x00")) is False


def test_colour_index():
    assert parse_colour(_direct(b"\x05")) is Colour.RED
    assert parse_colour(_direct(b"\x00")) is Colour.NONE


def test_colour_index_out_of_range():
    with pytest.raises(ProtocolError):
        parse_colour(_direct(b"\x08"))


def test_ultrasonic_low_byte():
    assert parse_ultrasonic(_direct(b"\xff")) == 255


def test_gyro_signed():
    assert parse_gyro(_direct((-90).to_bytes(4, "little", signed=True))) == -90
    assert parse_gyro(_direct((720).to_bytes(4, "little", signed=True))) == 720


def test_type_mode():
    result = parse_type_mode(_direct(b"\x1d\x02"))
    assert (result.sensor_type, result.mode) == (29, 2)


def test_short_global_memory():
    with pytest.raises(ProtocolError):
        parse_gyro(_direct(b"\x00\x00"))


def test_direct_error_raises_device_error():
    reply = parse_reply(make_reply(1, ReplyType.DIRECT_ERROR, b"\x00"))
    with pytest.raises(DeviceError) as exc_info:
        parse_touch(reply)
    assert exc_info.value.code == 0x04


def test_direct_check_rejects_system_reply():
    reply = parse_reply(system_reply(1, SystemCommand.LIST_FILES, 0))
    with pytest.raises(ProtocolError):
        check_direct_reply(reply)


def test_system_reply_must_echo_subcommand():
    reply = parse_reply(system_reply(1, SystemCommand.LIST_FILES, 0))
    with pytest.raises(ProtocolError):
        check_system_reply(reply, SystemCommand.BEGIN_DOWNLOAD)


def test_system_error_status():
    reply = parse_reply(
        system_reply(
            1,
            SystemCommand.BEGIN_DOWNLOAD,
            SystemStatus.ILLEGAL_PATH,
            reply_type=ReplyType.SYSTEM_ERROR,
        )
    )
    with pytest.raises(FileError) as exc_info:
        parse_begin_download(reply)
    assert exc_info.value.status == SystemStatus.ILLEGAL_PATH
    assert exc_info.value.status_name == "ILLEGAL_PATH"


def test_begin_download_handle_at_byte_8():
    raw = system_reply(1, SystemCommand.BEGIN_DOWNLOAD, SystemStatus.SUCCESS, b"\x00\x07")
    assert raw[8] == 0x07
    assert parse_begin_download(parse_reply(raw)) == 7


def test_begin_download_eight_byte_reply_uses_byte_7(caplog):
    """Stock firmware replies 06 00 cc cc 03 92 00 hh."""
    raw = system_reply(1, SystemCommand.BEGIN_DOWNLOAD, SystemStatus.SUCCESS, b"\x05")
    assert len(raw) == 8
    with caplog.at_level("INFO"):
        assert parse_begin_download(parse_reply(raw)) == 5
    assert "byte 7" in caplog.text


def test_begin_download_without_handle_is_protocol_error():
    raw = system_reply(1, SystemCommand.BEGIN_DOWNLOAD, SystemStatus.SUCCESS)
    with pytest.raises(ProtocolError):
        parse_begin_download(parse_reply(raw))


def test_begin_download_requires_success():
    raw = system_reply(1, SystemCommand.BEGIN_DOWNLOAD, SystemStatus.END_OF_FILE, b"\x00\x07")
    with pytest.raises(FileError):
        parse_begin_download(parse_reply(raw))


def test_continue_download_statuses():
    for status in (SystemStatus.SUCCESS, SystemStatus.END_OF_FILE):
        raw = system_reply(1, SystemCommand.CONTINUE_DOWNLOAD, status, b"\x00")
        assert parse_continue_download(parse_reply(raw)) == status
    raw = system_reply(1, SystemCommand.CONTINUE_DOWNLOAD, SystemStatus.UNKNOWN_HANDLE, b"\x00")
    with pytest.raises(FileError):
        parse_continue_download(parse_reply(raw))


def test_list_files_text_starts_at_byte_12():
    text = b"sound/\nbeep.rsf\n"
    data = len(text).to_bytes(4, "little") + b"\x03" + text
    raw = system_reply(1, SystemCommand.LIST_FILES, SystemStatus.END_OF_FILE, data)
    assert raw[12:] == text
    listing = parse_list_files(parse_reply(raw))
    assert listing.total_size == len(text)
    assert listing.handle == 3
    assert listing.entries == ["sound/", "beep.rsf"]
    assert listing.complete


def test_list_files_partial():
    data = (5000).to_bytes(4, "little") + b"\x00" + b"a/\n" * 10
    raw = system_reply(1, SystemCommand.LIST_FILES, SystemStatus.SUCCESS, data)
    listing = parse_list_files(parse_reply(raw))
    assert not listing.complete
    assert len(listing.entries) == 10


def test_continue_list_files_chunk():
    raw = system_reply(1, SystemCommand.CONTINUE_LIST_FILES, SystemStatus.END_OF_FILE, b"\x02b/\n")
    chunk = parse_continue_list_files(parse_reply(raw))
    assert chunk.handle == 2
    assert chunk.data == b"b/\n"
