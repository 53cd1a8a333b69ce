"""Tests for the direct-command catalog."""

import pytest

from ev3_mcp.errors import ArgumentError
from ev3_mcp.protocol.commands import (
    DirectCommand,
    build_all_stop,
    build_clear_all_sensors,
    build_draw_image,
    build_drive,
    build_get_type_mode,
    build_motor_start,
    build_motor_stop,
    build_play_sound_file,
    build_play_tone_sequence,
    build_read_colour,
    build_read_colour_rgb,
    build_read_gyro,
    build_read_touch,
    build_read_ultrasonic,
    build_restore_display,
    build_set_brick_name,
    build_set_led,
    build_store_display,
    build_timed_motor,
    build_timed_motor_ramp,
    build_turn,
)
from ev3_mcp.protocol.constants import Brake, LedPattern, Motor, SensorPort
from ev3_mcp.protocol.framing import decode_header
from ev3_mcp.protocol.operands import decode_operand


def test_drive_frame():
    """Drive A and D at 50 with counter 1."""
    frame = build_drive(Motor.A, Motor.D, 50).to_frame(1)
    assert frame == bytes.fromhex("0D 00 01 00 00 00 00 A4 00 09 81 32 A6 00 09")


def test_all_stop_brake_frame():
    frame = build_all_stop(Brake.BRAKE).to_frame(1)
    assert frame == bytes.fromhex("09 00 01 00 00 00 00 A3 00 0F 01")


def test_read_touch_frame():
    """Touch read on port 1: READY_PCT, type 16, mode 0, one value into GV0(0)."""
    frame = build_read_touch(SensorPort.PORT_1).to_frame(1)
    assert frame == bytes.fromhex("0D 00 01 00 00 01 00 99 1B 00 00 10 00 01 60")


def test_set_led_frame():
    frame = build_set_led(LedPattern.GREEN).to_frame(1)
    assert frame == bytes.fromhex("08 00 01 00 00 00 00 82 1B 01")


def test_tone_payload():
    command = build_play_tone_sequence([(262, 250, 1)])
    assert command.payload == bytes.fromhex("94 01 01 82 06 01 82 FA 00 96")


def test_tone_sequence_repeats_per_tone():
    command = build_play_tone_sequence([(262, 250, 1), (330, 250, 40)])
    assert command.payload.count(0x96) == 2
    assert command.payload[10:] == bytes.fromhex("94 01 81 28 82 4A 01 82 FA 00 96")


def test_tone_bounds():
    with pytest.raises(ArgumentError):
        build_play_tone_sequence([(19, 100, 10)])
    with pytest.raises(ArgumentError):
        build_play_tone_sequence([(20001, 100, 10)])
    build_play_tone_sequence([(20, 1, 0)])
    build_play_tone_sequence([(20000, 5000, 63)])
    with pytest.raises(ArgumentError):
        build_play_tone_sequence([(440, 100, 64)])


def test_tone_sentinel_ends_sequence():
    command = build_play_tone_sequence([(440, 100, 10), (-1, -1, -1), (19, 0, 99)])
    assert command.payload.count(0x94) == 1


def test_tone_sequence_limit():
    build_play_tone_sequence([(440, 10, 1)] * 50)
    with pytest.raises(ArgumentError):
        build_play_tone_sequence([(440, 10, 1)] * 51)


def test_empty_tone_sequence_rejected():
    with pytest.raises(ArgumentError):
        build_play_tone_sequence([])
    with pytest.raises(ArgumentError):
        build_play_tone_sequence([(-1, -1, -1)])


def test_brick_name():
    command = build_set_brick_name("R2D2")
    assert command.payload == b"\xd4\x08\x84R2D2\x00"


@pytest.mark.parametrize("name", ["too_long_name!", "", "two words", "ABCDEFGHIJKLM", "café"])
def test_brick_name_rejected(name):
    with pytest.raises(ArgumentError):
        build_set_brick_name(name)


def test_motor_power_bounds():
    build_motor_start(Motor.B, 100)
    build_motor_start(Motor.B, -100)
    with pytest.raises(ArgumentError):
        build_motor_start(Motor.B, 101)
    with pytest.raises(ArgumentError):
        build_motor_start(Motor.B, -101)


def test_motor_start_accepts_masks():
    command = build_motor_start(Motor.B | Motor.C, -20)
    assert command.payload == bytes.fromhex("A4 00 06 81 EC A6 00 06")


def test_motor_port_bounds():
    with pytest.raises(ArgumentError):
        build_motor_start(0, 10)
    with pytest.raises(ArgumentError):
        build_motor_stop(16)


def test_motor_stop_brake_mode():
    assert build_motor_stop(Motor.A).payload == bytes.fromhex("A3 00 01 00")
    with pytest.raises(ArgumentError):
        build_motor_stop(Motor.A, 2)


def test_drive_requires_single_ports():
    with pytest.raises(ArgumentError):
        build_drive(Motor.A | Motor.B, Motor.D, 50)


def test_turn_sets_each_power():
    command = build_turn(Motor.B, 30, Motor.C, -30)
    assert command.payload == bytes.fromhex("A4 00 02 81 1E A4 00 04 81 E2 A6 00 06")


def test_timed_motor_ramp():
    command = build_timed_motor_ramp(Motor.A, 50, 100, 1000, 100, Brake.BRAKE)
    assert command.payload == bytes.fromhex("AD 00 01 81 32 82 64 00 82 E8 03 82 64 00 01")
    with pytest.raises(ArgumentError):
        build_timed_motor_ramp(Motor.A, 50, 0, 40000, 0)


def test_timed_motor_uses_local_timer():
    command = build_timed_motor(Motor.A, 50, 1000)
    assert command.local_bytes == 4
    frame = command.to_frame(1)
    assert decode_header(frame[5:7]) == (0, 4)
    assert command.payload == bytes.fromhex(
        "A4 00 01 81 32 A6 00 01 85 82 E8 03 40 86 40 A3 00 01 00"
    )


@pytest.mark.parametrize(
    "builder",
    [build_read_touch, build_read_colour, build_read_colour_rgb, build_read_ultrasonic, build_read_gyro],
)
def test_sensor_port_bounds(builder):
    builder(SensorPort.PORT_4)
    with pytest.raises(ArgumentError):
        builder(4)
    with pytest.raises(ArgumentError):
        builder(-1)


def test_read_colour_indexed_mode():
    command = build_read_colour(SensorPort.PORT_3)
    assert command.payload == bytes.fromhex("99 1C 00 02 1D 02 01 60")
    assert command.global_bytes == 1


def test_read_colour_rgb_reserves_three_words():
    command = build_read_colour_rgb(SensorPort.PORT_1)
    assert command.payload == bytes.fromhex("99 1C 00 00 1D 04 03 60 64 68")
    assert command.global_bytes == 12


def test_read_ultrasonic():
    command = build_read_ultrasonic(SensorPort.PORT_2)
    assert command.payload == bytes.fromhex("99 1C 00 01 1E 00 01 60")


def test_read_gyro_keeps_type_and_mode():
    command = build_read_gyro(SensorPort.PORT_2)
    assert command.payload == bytes.fromhex("9E 00 01 00 3F 12 01 60")
    assert command.global_bytes == 4


def test_global_bytes_cover_every_gv_operand():
    """Each GV operand's offset plus its value width fits in global memory."""
    for command, width in [
        (build_read_touch(0), 1),
        (build_read_colour(0), 1),
        (build_read_colour_rgb(0), 4),
        (build_read_ultrasonic(0), 1),
        (build_read_gyro(0), 4),
        (build_get_type_mode(0), 1),
    ]:
        payload = command.payload
        offset = 2 if payload[0] == 0x99 else 1
        highest = 0
        while offset < len(payload):
            operand, offset = decode_operand(payload, offset)
            if operand.kind == "GV":
                highest = max(highest, operand.value + width)
        assert command.global_bytes >= highest


def test_get_type_mode_and_clear_all():
    assert build_get_type_mode(1).payload == bytes.fromhex("99 05 00 01 60 61")
    assert build_clear_all_sensors().payload == bytes.fromhex("99 0A 00")


def test_led_accepts_every_pattern():
    for pattern in LedPattern:
        build_set_led(pattern)
    with pytest.raises(ArgumentError):
        build_set_led(10)


def test_play_sound_file():
    command = build_play_sound_file("../prjs/sound/beep", 100)
    assert command.payload == b"\x94\x02\x81\x64\x84../prjs/sound/beep\x00"
    with pytest.raises(ArgumentError):
        build_play_sound_file("beep", 101)


def test_draw_image_refreshes_screen():
    command = build_draw_image(1, 10, 20, "../apps/pic")
    assert command.payload == b"\x84\x1c\x81\x01\x82\x0a\x00\x82\x14\x00\x84../apps/pic\x00\x84\x00"


def test_draw_image_bounds():
    with pytest.raises(ArgumentError):
        build_draw_image(2, 0, 0, "pic")
    with pytest.raises(ArgumentError):
        build_draw_image(1, 178, 0, "pic")
    with pytest.raises(ArgumentError):
        build_draw_image(1, 0, 128, "pic")
    with pytest.raises(ArgumentError):
        build_draw_image(1, 0, 0, "x" * 1005)


def test_store_and_restore_display():
    assert build_store_display(3).payload == bytes.fromhex("84 19 03")
    assert build_restore_display(3).payload == bytes.fromhex("84 1A 03 84 00")
    with pytest.raises(ArgumentError):
        build_store_display(32)


def test_oversized_payload_rejected():
    with pytest.raises(ArgumentError):
        DirectCommand("big", b"\x00" * 1018)
    DirectCommand("max", b"\x00" * 1017)
