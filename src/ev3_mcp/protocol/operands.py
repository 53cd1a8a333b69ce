"""Operand encoder for the EV3 parameter sublanguage.

Every operand starts with a descriptor byte::

    bit 7 : 0 = short form (value packed in the descriptor), 1 = long form
    bit 6 : 0 = constant, 1 = variable
    bit 5 : (variables) 0 = local, 1 = global
            (short constants) sign bit of the packed 6-bit value
    bits 0-2 (long form): 1 = 1 byte, 2 = 2 bytes, 3 = 4 bytes, 4 = zero-terminated string

The ``emit_*`` helpers append to a ``bytearray`` and return it so calls can
be chained. They do not range-check; the command catalog does that.
"""

from __future__ import annotations

from dataclasses import dataclass

LONG_FORM = 0x80
VARIABLE = 0x40
GLOBAL = 0x20

LC1 = 0x81
LC2 = 0x82
LC4 = 0x83
LCS = 0x84

LV0 = 0x40
GV0 = 0x60
LV1 = 0xC1
GV1 = 0xE1

SHORT_VALUE_MASK = 0x3F
SHORT_INDEX_MASK = 0x1F

LC_TAGS = {1: LC1, 2: LC2, 4: LC4}
_WIDTH_BY_SIZE_BITS = {1: 1, 2: 2, 3: 4}


@dataclass(frozen=True)
class Operand:
    """A decoded operand: ``kind`` is one of LC, LV, GV or LCS."""

    kind: str
    value: int | str
    width: int = 0


def emit_lc0(buf: bytearray, value: int) -> bytearray:
    """Append a short constant in [-32, 31] packed into one byte."""
    buf.append(value & SHORT_VALUE_MASK)
    return buf


def emit_lc(buf: bytearray, value: int, width: int, compact: bool = False) -> bytearray:
    """Append a long constant of ``width`` bytes (1, 2 or 4), little-endian.

    With ``compact`` set, one-byte values in [0, 31] are packed as LC0.
    """
    if width not in LC_TAGS:
        raise ValueError(f"Constant width must be 1, 2 or 4, got {width}")
    if compact and width == 1 and 0 <= value <= 31:
        return emit_lc0(buf, value)
    buf.append(LC_TAGS[width])
    buf.extend((value & ((1 << (8 * width)) - 1)).to_bytes(width, "little"))
    return buf


def _emit_variable(buf: bytearray, short_tag: int, long_tag: int, offset: int) -> bytearray:
    if offset <= SHORT_INDEX_MASK:
        buf.append(short_tag | offset)
    else:
        buf.append(long_tag)
        buf.append(offset & 0xFF)
    return buf


def emit_lv(buf: bytearray, offset: int) -> bytearray:
    """Append a reference to byte ``offset`` of the frame's local memory."""
    return _emit_variable(buf, LV0, LV1, offset)


def emit_gv(buf: bytearray, offset: int) -> bytearray:
    """Append a reference to byte ``offset`` of the reply's global memory."""
    return _emit_variable(buf, GV0, GV1, offset)


def emit_lcs(buf: bytearray, text: str) -> bytearray:
    """Append a zero-terminated ASCII string constant."""
    buf.append(LCS)
    buf.extend(text.encode("ascii"))
    buf.append(0x00)
    return buf


def decode_operand(data: bytes, offset: int = 0) -> tuple[Operand, int]:
    """Decode the operand starting at ``data[offset]``.

    Returns:
        The decoded operand and the offset just past it.

    Raises:
        ValueError: If the descriptor is unsupported or the data is truncated.
    """
    if offset >= len(data):
        raise ValueError("No operand at end of data")
    desc = data[offset]

    if not desc & LONG_FORM:
        if desc & VARIABLE:
            kind = "GV" if desc & GLOBAL else "LV"
            return Operand(kind, desc & SHORT_INDEX_MASK, 1), offset + 1
        value = desc & SHORT_VALUE_MASK
        if value & 0x20:
            value -= 0x40
        return Operand("LC", value, 0), offset + 1

    if desc == LCS:
        end = data.find(b"\x00", offset + 1)
        if end < 0:
            raise ValueError("Unterminated string operand")
        text = data[offset + 1 : end].decode("ascii")
        return Operand("LCS", text), end + 1

    width = _WIDTH_BY_SIZE_BITS.get(desc & 0x07)
    if width is None:
        raise ValueError(f"Unsupported operand descriptor 0x{desc:02X}")
    raw = data[offset + 1 : offset + 1 + width]
    if len(raw) != width:
        raise ValueError(f"Truncated operand at offset {offset}")

    if desc & VARIABLE:
        kind = "GV" if desc & GLOBAL else "LV"
        return Operand(kind, int.from_bytes(raw, "little"), width), offset + 1 + width
    return (
        Operand("LC", int.from_bytes(raw, "little", signed=True), width),
        offset + 1 + width,
    )
