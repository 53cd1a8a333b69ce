"""Direct-command catalog.

Each ``build_*`` function validates its arguments and returns a
:class:`DirectCommand` holding the opcode payload and the memory the brick
must reserve. The message counter is stamped later, when a session turns the
command into a frame, so the builders stay pure.

Global-memory offsets used with ``GV`` operands below are the offsets at
which the brick writes results into the reply body.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from ..errors import ArgumentError
from .constants import (
    LAYER,
    MAX_BODY_SIZE,
    Brake,
    ComSetCmd,
    DataFormat,
    InputDeviceCmd,
    LedPattern,
    Motor,
    Opcode,
    SensorType,
    SoundCmd,
    UIDrawCmd,
    UIWriteCmd,
)
from .framing import DIRECT_HEADER_SIZE, FrameBuilder
from .operands import emit_gv, emit_lc, emit_lc0, emit_lcs, emit_lv

MAX_TONES = 50
TONE_SENTINEL = -1
MAX_NAME_LENGTH = 12
MAX_IMAGE_PATH = 1004
SCREEN_MAX_X = 177
SCREEN_MAX_Y = 127
MAX_DISPLAY_SLOT = 31
MAX_LC2 = 0x7FFF

_NAME_RE = re.compile(r"^[A-Za-z0-9]+$")
_SINGLE_MOTORS = (Motor.A, Motor.B, Motor.C, Motor.D)


@dataclass(frozen=True)
class DirectCommand:
    """A validated direct command awaiting a message counter."""

    name: str
    payload: bytes
    global_bytes: int = 0
    local_bytes: int = 0
    reply_expected: bool = True

    def __post_init__(self) -> None:
        body = DIRECT_HEADER_SIZE + len(self.payload)
        if body > MAX_BODY_SIZE:
            raise ArgumentError(
                "payload", len(self.payload), f"frame body {body} exceeds {MAX_BODY_SIZE} bytes"
            )

    def to_frame(self, counter: int) -> bytes:
        builder = FrameBuilder.begin_direct(
            counter,
            reply_expected=self.reply_expected,
            global_bytes=self.global_bytes,
            local_bytes=self.local_bytes,
        )
        return builder.extend(self.payload).finish()

    def __repr__(self) -> str:
        return (
            f"DirectCommand({self.name}, global={self.global_bytes}, "
            f"local={self.local_bytes}, payload={self.payload.hex(' ')})"
        )


# ─── ARGUMENT CHECKS ─────────────────────────────────────────────────

def _check_range(field: str, value: int, low: int, high: int) -> int:
    if not isinstance(value, int) or not low <= value <= high:
        raise ArgumentError(field, value, f"must be {low}-{high}")
    return int(value)


def _check_ports(field: str, ports: int) -> int:
    return _check_range(field, ports, 1, int(Motor.ALL))


def _check_single_motor(field: str, port: int) -> int:
    if port not in _SINGLE_MOTORS:
        raise ArgumentError(field, port, "must be one of MOTOR_A/B/C/D")
    return int(port)


def _check_power(field: str, power: int) -> int:
    return _check_range(field, power, -100, 100)


def _check_sensor_port(port: int) -> int:
    return _check_range("sensor_port", port, 0, 3)


def _check_brake(brake: int) -> int:
    if brake not in (Brake.COAST, Brake.BRAKE):
        raise ArgumentError("brake_mode", brake, "must be 0 (coast) or 1 (brake)")
    return int(brake)


def _check_path(field: str, path: str, max_length: int | None = None) -> str:
    if not path or not path.isascii() or "\x00" in path:
        raise ArgumentError(field, path, "must be a non-empty ASCII path")
    if max_length is not None and len(path) > max_length:
        raise ArgumentError(field, path, f"longer than {max_length} characters")
    return path


# ─── UTILITY ─────────────────────────────────────────────────────────

def build_set_brick_name(name: str) -> DirectCommand:
    """Rename the brick (``opCOM_SET SET_BRICKNAME``).

    Args:
        name: Up to 12 letters or digits.
    """
    if (
        not isinstance(name, str)
        or not name.isascii()
        or len(name) > MAX_NAME_LENGTH
        or not _NAME_RE.match(name)
    ):
        raise ArgumentError(
            "name", name, "1-12 letters or digits, no whitespace or punctuation"
        )
    buf = bytearray([Opcode.COM_SET, ComSetCmd.SET_BRICKNAME])
    emit_lcs(buf, name)
    return DirectCommand("set_brick_name", bytes(buf))


# ─── SOUND ───────────────────────────────────────────────────────────

def build_play_tone_sequence(tones: Iterable[tuple[int, int, int]]) -> DirectCommand:
    """Play up to 50 ``(frequency_hz, duration_ms, volume)`` tones in order.

    A tone whose frequency or duration is -1 ends the list. Each tone is
    followed by ``opSOUND_READY`` so the brick waits for it to finish.
    """
    buf = bytearray()
    count = 0
    for entry in tones:
        freq, duration, volume = entry
        if freq == TONE_SENTINEL or duration == TONE_SENTINEL:
            break
        count += 1
        if count > MAX_TONES:
            raise ArgumentError("tones", count, f"at most {MAX_TONES} tones per sequence")
        _check_range("frequency", freq, 20, 20000)
        _check_range("duration", duration, 1, 5000)
        _check_range("volume", volume, 0, 63)
        buf.extend((Opcode.SOUND, SoundCmd.TONE))
        emit_lc(buf, volume, 1, compact=True)
        emit_lc(buf, freq, 2)
        emit_lc(buf, duration, 2)
        buf.append(Opcode.SOUND_READY)
    if count == 0:
        raise ArgumentError("tones", count, "sequence is empty")
    return DirectCommand("play_tone_sequence", bytes(buf))


def build_play_sound_file(path: str, volume: int) -> DirectCommand:
    """Play an ``.rsf`` file stored on the brick, given without its extension."""
    _check_path("path", path)
    _check_range("volume", volume, 0, 100)
    buf = bytearray([Opcode.SOUND, SoundCmd.PLAY])
    emit_lc(buf, volume, 1)
    emit_lcs(buf, path)
    return DirectCommand("play_sound_file", bytes(buf))


# ─── MOTORS ──────────────────────────────────────────────────────────

def _emit_power(buf: bytearray, ports: int, power: int) -> None:
    buf.append(Opcode.OUTPUT_POWER)
    emit_lc0(buf, LAYER)
    emit_lc0(buf, ports)
    emit_lc(buf, power, 1)


def _emit_start(buf: bytearray, ports: int) -> None:
    buf.append(Opcode.OUTPUT_START)
    emit_lc0(buf, LAYER)
    emit_lc0(buf, ports)


def _emit_stop(buf: bytearray, ports: int, brake: int) -> None:
    buf.append(Opcode.OUTPUT_STOP)
    emit_lc0(buf, LAYER)
    emit_lc0(buf, ports)
    emit_lc0(buf, brake)


def build_motor_start(ports: int, power: int) -> DirectCommand:
    """Set power on one or more output ports and start them.

    Args:
        ports: OR of ``Motor`` flags.
        power: -100 (full reverse) to 100 (full forward).
    """
    ports = _check_ports("ports", ports)
    power = _check_power("power", power)
    buf = bytearray()
    _emit_power(buf, ports, power)
    _emit_start(buf, ports)
    return DirectCommand("motor_start", bytes(buf))


def build_motor_stop(ports: int, brake: int = Brake.COAST) -> DirectCommand:
    """Stop output ports, coasting (0) or actively braking (1)."""
    ports = _check_ports("ports", ports)
    brake = _check_brake(brake)
    buf = bytearray()
    _emit_stop(buf, ports, brake)
    return DirectCommand("motor_stop", bytes(buf))


def build_all_stop(brake: int = Brake.COAST) -> DirectCommand:
    return build_motor_stop(Motor.ALL, brake)


def build_drive(left: int, right: int, power: int) -> DirectCommand:
    """Run two motors at the same power."""
    left = _check_single_motor("left_port", left)
    right = _check_single_motor("right_port", right)
    power = _check_power("power", power)
    ports = left | right
    buf = bytearray()
    _emit_power(buf, ports, power)
    _emit_start(buf, ports)
    return DirectCommand("drive", bytes(buf))


def build_turn(left: int, left_power: int, right: int, right_power: int) -> DirectCommand:
    """Run two motors at independent powers, e.g. to turn or spin in place."""
    left = _check_single_motor("left_port", left)
    right = _check_single_motor("right_port", right)
    left_power = _check_power("left_power", left_power)
    right_power = _check_power("right_power", right_power)
    buf = bytearray()
    _emit_power(buf, left, left_power)
    _emit_power(buf, right, right_power)
    _emit_start(buf, left | right)
    return DirectCommand("turn", bytes(buf))


def build_timed_motor_ramp(
    ports: int,
    power: int,
    ramp_up_ms: int,
    run_ms: int,
    ramp_down_ms: int,
    brake: int = Brake.COAST,
) -> DirectCommand:
    """Ramp up, hold, and ramp down a motor (``opOUTPUT_TIME_POWER``).

    The brick runs the profile on its own; the reply arrives immediately.
    """
    ports = _check_ports("ports", ports)
    power = _check_power("power", power)
    _check_range("ramp_up_ms", ramp_up_ms, 0, MAX_LC2)
    _check_range("run_ms", run_ms, 0, MAX_LC2)
    _check_range("ramp_down_ms", ramp_down_ms, 0, MAX_LC2)
    brake = _check_brake(brake)
    buf = bytearray([Opcode.OUTPUT_TIME_POWER])
    emit_lc0(buf, LAYER)
    emit_lc0(buf, ports)
    emit_lc(buf, power, 1)
    emit_lc(buf, ramp_up_ms, 2)
    emit_lc(buf, run_ms, 2)
    emit_lc(buf, ramp_down_ms, 2)
    emit_lc0(buf, brake)
    return DirectCommand("timed_motor_ramp", bytes(buf))


def build_timed_motor(
    ports: int, power: int, duration_ms: int, brake: int = Brake.COAST
) -> DirectCommand:
    """Run a motor for ``duration_ms`` and stop it; the reply waits for the stop.

    Uses a 4-byte timer handle in local memory (LV0(0)).
    """
    ports = _check_ports("ports", ports)
    power = _check_power("power", power)
    _check_range("duration_ms", duration_ms, 1, MAX_LC2)
    brake = _check_brake(brake)
    buf = bytearray()
    _emit_power(buf, ports, power)
    _emit_start(buf, ports)
    buf.append(Opcode.TIMER_WAIT)
    emit_lc(buf, duration_ms, 2)
    emit_lv(buf, 0)
    buf.append(Opcode.TIMER_READY)
    emit_lv(buf, 0)
    _emit_stop(buf, ports, brake)
    return DirectCommand("timed_motor", bytes(buf), local_bytes=4)


# ─── SENSORS ─────────────────────────────────────────────────────────

def _input_device_read(
    name: str,
    port: int,
    subcommand: InputDeviceCmd,
    sensor_type: int,
    mode: int,
    dataset: int,
    value_width: int,
) -> DirectCommand:
    port = _check_sensor_port(port)
    buf = bytearray([Opcode.INPUT_DEVICE, subcommand])
    emit_lc0(buf, LAYER)
    emit_lc0(buf, port)
    emit_lc0(buf, sensor_type)
    emit_lc0(buf, mode)
    emit_lc0(buf, dataset)
    for i in range(dataset):
        emit_gv(buf, i * value_width)
    return DirectCommand(name, bytes(buf), global_bytes=dataset * value_width)


def build_read_touch(port: int) -> DirectCommand:
    return _input_device_read(
        "read_touch", port, InputDeviceCmd.READY_PCT, SensorType.TOUCH, 0, 1, 1
    )


def build_read_colour(port: int) -> DirectCommand:
    """Indexed colour read (mode 2); the reply byte maps to ``Colour``."""
    return _input_device_read(
        "read_colour", port, InputDeviceCmd.READY_RAW, SensorType.COLOUR, 2, 1, 1
    )


def build_read_colour_rgb(port: int) -> DirectCommand:
    """Raw RGB read (mode 4): three 32-bit values at GV 0, 4 and 8."""
    return _input_device_read(
        "read_colour_rgb", port, InputDeviceCmd.READY_RAW, SensorType.COLOUR, 4, 3, 4
    )


def build_read_ultrasonic(port: int) -> DirectCommand:
    return _input_device_read(
        "read_ultrasonic", port, InputDeviceCmd.READY_RAW, SensorType.ULTRASONIC, 0, 1, 1
    )


def build_read_gyro(port: int) -> DirectCommand:
    """Read the gyro's cumulative angle without changing type or mode."""
    port = _check_sensor_port(port)
    buf = bytearray([Opcode.INPUT_READEXT])
    emit_lc0(buf, LAYER)
    emit_lc0(buf, port)
    emit_lc0(buf, SensorType.KEEP)
    emit_lc0(buf, -1)
    emit_lc0(buf, DataFormat.DATA_RAW)
    emit_lc0(buf, 1)
    emit_gv(buf, 0)
    return DirectCommand("read_gyro", bytes(buf), global_bytes=4)


def build_get_type_mode(port: int) -> DirectCommand:
    """Ask which sensor type and mode a port currently reports."""
    port = _check_sensor_port(port)
    buf = bytearray([Opcode.INPUT_DEVICE, InputDeviceCmd.GET_TYPEMODE])
    emit_lc0(buf, LAYER)
    emit_lc0(buf, port)
    emit_gv(buf, 0)
    emit_gv(buf, 1)
    return DirectCommand("get_type_mode", bytes(buf), global_bytes=2)


def build_clear_all_sensors() -> DirectCommand:
    """Reset every sensor on the layer (clears the gyro angle, among others)."""
    buf = bytearray([Opcode.INPUT_DEVICE, InputDeviceCmd.CLR_ALL])
    emit_lc0(buf, LAYER)
    return DirectCommand("clear_all_sensors", bytes(buf))


# ─── UI ──────────────────────────────────────────────────────────────

def build_set_led(pattern: int) -> DirectCommand:
    """Set the button backlight pattern (0-9, see ``LedPattern``)."""
    if pattern not in LedPattern._value2member_map_:
        raise ArgumentError("pattern", pattern, "must be a LedPattern value 0-9")
    buf = bytearray([Opcode.UI_WRITE, UIWriteCmd.LED])
    emit_lc0(buf, pattern)
    return DirectCommand("set_led", bytes(buf))


def build_draw_image(colour: int, x: int, y: int, path: str) -> DirectCommand:
    """Draw an ``.rgf`` image stored on the brick and refresh the screen.

    Args:
        colour: 0 (background) or 1 (foreground).
        x: Left edge, 0-177.
        y: Top edge, 0-127.
        path: Image path on the brick, at most 1004 characters.
    """
    _check_range("colour", colour, 0, 1)
    _check_range("x", x, 0, SCREEN_MAX_X)
    _check_range("y", y, 0, SCREEN_MAX_Y)
    _check_path("path", path, MAX_IMAGE_PATH)
    buf = bytearray([Opcode.UI_DRAW, UIDrawCmd.BMPFILE])
    emit_lc(buf, colour, 1)
    emit_lc(buf, x, 2)
    emit_lc(buf, y, 2)
    emit_lcs(buf, path)
    buf.extend((Opcode.UI_DRAW, UIDrawCmd.UPDATE))
    return DirectCommand("draw_image", bytes(buf))


def build_store_display(slot: int) -> DirectCommand:
    _check_range("slot", slot, 0, MAX_DISPLAY_SLOT)
    buf = bytearray([Opcode.UI_DRAW, UIDrawCmd.STORE])
    emit_lc0(buf, slot)
    return DirectCommand("store_display", bytes(buf))


def build_restore_display(slot: int) -> DirectCommand:
    _check_range("slot", slot, 0, MAX_DISPLAY_SLOT)
    buf = bytearray([Opcode.UI_DRAW, UIDrawCmd.RESTORE])
    emit_lc0(buf, slot)
    buf.extend((Opcode.UI_DRAW, UIDrawCmd.UPDATE))
    return DirectCommand("restore_display", bytes(buf))
