"""Tests for the operand encoder and decoder."""

import pytest

from ev3_mcp.protocol.operands import (
    decode_operand,
    emit_gv,
    emit_lc,
    emit_lc0,
    emit_lcs,
    emit_lv,
)


def test_lc0_packs_small_constants():
    """Short constants occupy one byte, value in the low six bits."""
    assert emit_lc0(bytearray(), 0) == b"\x00"
    assert emit_lc0(bytearray(), 9) == b"\x09"
    assert emit_lc0(bytearray(), 31) == b"\x1f"


def test_lc0_negative_uses_sign_bit():
    assert emit_lc0(bytearray(), -1) == b"\x3f"
    assert emit_lc0(bytearray(), -32) == b"\x20"


def test_lc1_power():
    """Motor power 50 is sent as LC1 0x32."""
    assert emit_lc(bytearray(), 50, 1) == bytes([0x81, 0x32])


def test_lc1_negative_power_twos_complement():
    assert emit_lc(bytearray(), -100, 1) == bytes([0x81, 0x9C])


def test_lc2_little_endian():
    assert emit_lc(bytearray(), 262, 2) == bytes([0x82, 0x06, 0x01])
    assert emit_lc(bytearray(), 250, 2) == bytes([0x82, 0xFA, 0x00])


def test_lc4():
    assert emit_lc(bytearray(), 0x01020304, 4) == bytes([0x83, 0x04, 0x03, 0x02, 0x01])


def test_lc_compact_only_applies_to_small_one_byte_values():
    assert emit_lc(bytearray(), 1, 1, compact=True) == b"\x01"
    assert emit_lc(bytearray(), 40, 1, compact=True) == bytes([0x81, 40])
    assert emit_lc(bytearray(), 1, 2, compact=True) == bytes([0x82, 0x01, 0x00])


def test_lc_rejects_bad_width():
    with pytest.raises(ValueError):
        emit_lc(bytearray(), 1, 3)


def test_lcs_is_zero_terminated():
    assert emit_lcs(bytearray(), "R2D2") == b"\x84R2D2\x00"


def test_variables_short_and_long_form():
    assert emit_gv(bytearray(), 0) == b"\x60"
    assert emit_gv(bytearray(), 8) == b"\x68"
    assert emit_lv(bytearray(), 0) == b"\x40"
    assert emit_gv(bytearray(), 40) == bytes([0xE1, 40])
    assert emit_lv(bytearray(), 32) == bytes([0xC1, 32])


def test_emitters_append_and_chain():
    buf = bytearray([0x99])
    emit_lc0(emit_lc0(buf, 0), 1)
    assert buf == bytearray([0x99, 0x00, 0x01])


@pytest.mark.parametrize("value", [-32, -1, 0, 1, 31])
def test_lc0_decodes_back(value):
    operand, end = decode_operand(emit_lc0(bytearray(), value))
    assert operand.kind == "LC"
    assert operand.value == value
    assert end == 1


@pytest.mark.parametrize(
    "value,width",
    [(-128, 1), (127, 1), (-32768, 2), (32767, 2), (-(2**31), 4), (2**31 - 1, 4)],
)
def test_long_constants_decode_back(value, width):
    operand, end = decode_operand(emit_lc(bytearray(), value, width))
    assert operand == type(operand)("LC", value, width)
    assert end == 1 + width


def test_decode_string_and_variables():
    data = bytes(emit_gv(emit_lcs(bytearray(), "../prjs/x"), 4))
    text, offset = decode_operand(data)
    assert text.kind == "LCS"
    assert text.value == "../prjs/x"
    gv, end = decode_operand(data, offset)
    assert (gv.kind, gv.value) == ("GV", 4)
    assert end == len(data)


def test_decode_truncated_raises():
    with pytest.raises(ValueError):
        decode_operand(bytes([0x82, 0x01]))
    with pytest.raises(ValueError):
        decode_operand(b"\x84abc")
