"""MCP server entry point for LEGO Mindstorms EV3 bricks.

Exposes motor, sensor, sound, display and file tools via the Model Context
Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from .audio import AudioConverter
from .brick import Brick
from .cli import upload_segments
from .errors import ArgumentError
from .protocol.constants import (
    LIST_FILES_MAX,
    SOUND_DIR,
    UPLOAD_ROOTS,
    Brake,
    Colour,
    LedPattern,
    Motor,
    SensorPort,
    SystemStatus,
)
from .session import Session

logger = logging.getLogger(__name__)

ADDRESS_ENV = "EV3_ADDRESS"

mcp = FastMCP(
    "ev3",
    instructions="MCP server for LEGO Mindstorms EV3 bricks over Bluetooth",
)

# Global connection state
_brick: Brick | None = None


def _get_brick() -> Brick:
    """Get the active brick, raising if not connected."""
    if _brick is None or _brick.session.closed:
        raise RuntimeError("Not connected to a brick. Use the 'connect' tool first.")
    return _brick


def _motor(name: str) -> Motor:
    """Resolve ``"A"``, ``"AD"`` or ``"ALL"`` to a port mask."""
    key = name.strip().upper()
    if key == "ALL":
        return Motor.ALL
    if not key or any(letter not in "ABCD" for letter in key):
        raise ArgumentError("ports", name, "use letters A-D or ALL")
    mask = Motor(0)
    for letter in key:
        mask |= Motor[letter]
    return mask


def _sensor_port(port: int) -> int:
    """Map the brick's 1-based port label to the wire index."""
    if not 1 <= port <= 4:
        raise ArgumentError("port", port, "must be 1-4")
    return port - 1


def _brake(brake: bool) -> Brake:
    return Brake.BRAKE if brake else Brake.COAST


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(address: str | None = None, read_timeout: float | None = 5.0) -> dict[str, Any]:
    """Open a Bluetooth connection to an EV3 brick.

    The brick must already be paired with this machine.

    Args:
        address: Bluetooth MAC address ``XX:XX:XX:XX:XX:XX``. Defaults to
            the ``EV3_ADDRESS`` environment variable.
        read_timeout: Seconds to wait for each reply (None blocks).
    """
    global _brick
    if _brick is not None and not _brick.session.closed and not _brick.session.poisoned:
        return {"connected": True, "message": "Already connected"}

    address = address or os.environ.get(ADDRESS_ENV)
    if not address:
        return {"error": f"No address given and {ADDRESS_ENV} is not set"}

    if _brick is not None:
        _brick.close()
        _brick = None

    try:
        session = Session.open(address, read_timeout=read_timeout)
    except ArgumentError as e:
        return {"error": str(e)}
    _brick = Brick(session)
    logger.info("Connected to %s", address)
    return {"connected": True, "address": address}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the brick."""
    global _brick
    if _brick is None:
        return {"disconnected": True}
    _brick.close()
    _brick = None
    return {"disconnected": True}


@mcp.tool()
def set_brick_name(name: str) -> dict[str, Any]:
    """Rename the brick.

    Args:
        name: 1-12 letters or digits.
    """
    try:
        _get_brick().set_brick_name(name)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"name": name}


# ─── SOUND TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def play_tones(tones: list[list[int]]) -> dict[str, Any]:
    """Play a sequence of tones; returns once the last one has finished.

    Args:
        tones: Up to 50 ``[frequency_hz, duration_ms, volume]`` triples,
            with frequency 20-20000 Hz, duration 1-5000 ms and volume 0-63.
    """
    try:
        sequence = [tuple(tone) for tone in tones]
        if any(len(tone) != 3 for tone in sequence):
            raise ArgumentError("tones", tones, "each tone is [frequency, duration, volume]")
        _get_brick().play_tone_sequence(sequence)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"played": len(sequence)}


@mcp.tool()
def play_sound_file(name: str, volume: int = 50) -> dict[str, Any]:
    """Play an RSF file stored on the brick.

    Args:
        name: Absolute brick path without ``.rsf``, or a bare name looked
            up in the sound directory.
        volume: 0-100.
    """
    path = name if name.startswith("/") else f"{SOUND_DIR}/{name}"
    try:
        _get_brick().play_sound_file(path, volume)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"playing": path}


# ─── MOTOR TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def motor_start(ports: str, power: int) -> dict[str, Any]:
    """Start one or more motors.

    Args:
        ports: Output letters, e.g. "A", "BC" or "ALL".
        power: -100..100; negative runs backwards.
    """
    try:
        mask = _motor(ports)
        _get_brick().motor_start(mask, power)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"ports": int(mask), "power": power}


@mcp.tool()
def motor_stop(ports: str = "ALL", brake: bool = False) -> dict[str, Any]:
    """Stop motors, braking or coasting.

    Args:
        ports: Output letters or "ALL".
        brake: Hold position instead of coasting.
    """
    try:
        mask = _motor(ports)
        _get_brick().motor_stop(mask, _brake(brake))
    except ArgumentError as e:
        return {"error": str(e)}
    return {"stopped": int(mask)}


@mcp.tool()
def drive(left: str, right: str, power: int) -> dict[str, Any]:
    """Drive two motors forward or backward at the same power.

    Args:
        left: Single output letter of the left motor.
        right: Single output letter of the right motor.
        power: -100..100.
    """
    try:
        _get_brick().drive(_motor(left), _motor(right), power)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"left": left.upper(), "right": right.upper(), "power": power}


@mcp.tool()
def turn(left: str, left_power: int, right: str, right_power: int) -> dict[str, Any]:
    """Drive two motors at different powers to turn.

    Args:
        left: Single output letter of the left motor.
        left_power: -100..100.
        right: Single output letter of the right motor.
        right_power: -100..100.
    """
    try:
        _get_brick().turn(_motor(left), left_power, _motor(right), right_power)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"left_power": left_power, "right_power": right_power}


@mcp.tool()
def timed_motor(ports: str, power: int, duration_ms: int, brake: bool = False) -> dict[str, Any]:
    """Run motors for a fixed time; returns once they have stopped.

    Args:
        ports: Output letters or "ALL".
        power: -100..100.
        duration_ms: 1-32767 ms.
        brake: Brake at the end instead of coasting.
    """
    try:
        mask = _motor(ports)
        _get_brick().timed_motor(mask, power, duration_ms, _brake(brake))
    except ArgumentError as e:
        return {"error": str(e)}
    return {"ports": int(mask), "duration_ms": duration_ms}


# ─── SENSOR TOOLS ────────────────────────────────────────────────────

SENSOR_KINDS = ("touch", "colour", "rgb", "ultrasonic", "gyro")


@mcp.tool()
def read_sensor(kind: str, port: int) -> dict[str, Any]:
    """Read a sensor value.

    Args:
        kind: One of touch, colour, rgb, ultrasonic, gyro.
        port: Input port 1-4 as labelled on the brick.
    """
    kind = kind.lower()
    if kind == "color":
        kind = "colour"
    if kind not in SENSOR_KINDS:
        return {"error": f"Unknown sensor kind {kind!r}; use one of {', '.join(SENSOR_KINDS)}"}
    try:
        wire_port = _sensor_port(port)
        brick = _get_brick()
        if kind == "touch":
            value: Any = brick.read_touch_sensor(wire_port)
        elif kind == "colour":
            value = brick.read_colour_sensor(wire_port).name.lower()
        elif kind == "rgb":
            value = brick.read_colour_sensor_rgb(wire_port)._asdict()
        elif kind == "ultrasonic":
            value = brick.read_ultrasonic_sensor(wire_port)
        else:
            value = brick.read_gyro_sensor(wire_port)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"kind": kind, "port": port, "value": value}


# ─── UI TOOLS ────────────────────────────────────────────────────────

@mcp.tool()
def set_led(pattern: str) -> dict[str, Any]:
    """Set the brick's status LED.

    Args:
        pattern: off, green, red, orange, optionally with _flash or _pulse,
            e.g. "green_pulse".
    """
    try:
        led = LedPattern[pattern.strip().upper()]
    except KeyError:
        names = ", ".join(p.name.lower() for p in LedPattern)
        return {"error": f"Unknown LED pattern {pattern!r}; use one of {names}"}
    try:
        _get_brick().set_led(led)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"led": led.name.lower()}


@mcp.tool()
def draw_image(path: str, x: int = 0, y: int = 0, colour: int = 1) -> dict[str, Any]:
    """Draw an RGF image file stored on the brick and refresh the screen.

    Args:
        path: Absolute brick path of the image.
        x: Left edge, 0-177.
        y: Top edge, 0-127.
        colour: 1 draws black on white, 0 inverts.
    """
    try:
        _get_brick().draw_image_from_file(colour, x, y, path)
    except ArgumentError as e:
        return {"error": str(e)}
    return {"drawn": path, "x": x, "y": y}


# ─── FILE TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def list_files(path: str = "/home/root/lms2012/prjs/", follow: bool = True) -> dict[str, Any]:
    """List a directory on the brick.

    Args:
        path: Absolute brick directory.
        follow: Fetch the whole listing rather than the first 1012 bytes.
    """
    try:
        listing = _get_brick().list_files(path, LIST_FILES_MAX, follow=follow)
    except ArgumentError as e:
        return {"error": str(e)}
    return {
        "path": path,
        "entries": listing.entries,
        "total_size": listing.total_size,
        "complete": listing.complete,
    }


@mcp.tool()
def upload_file(source: str, destination: str) -> dict[str, Any]:
    """Copy a local file to the brick.

    Args:
        source: Local file path.
        destination: Absolute brick path under apps/, prjs/ or tools/.
    """
    try:
        progress = _get_brick().upload_file(destination, Path(source))
    except ArgumentError as e:
        return {"error": str(e)}
    return {
        "destination": destination,
        "bytes": progress.sent_bytes,
        "chunks": progress.chunks_sent,
    }


@mcp.tool()
def convert_audio(source: str, name: str | None = None, upload: bool = False) -> dict[str, Any]:
    """Convert an audio file to RSF segments, optionally uploading them.

    Each segment holds at most 65535 samples (about 8 s). Play them with
    play_sound_file using ``<name>_1``, ``<name>_2`` and so on.

    Args:
        source: Local audio file in any format ffmpeg can read.
        name: Segment base name; defaults to the source file name.
        upload: Upload the segments to the brick's sound directory.
    """
    source_path = Path(source)
    name = name or source_path.stem
    paths = AudioConverter.convert_file(source_path, source_path.with_name(name))
    result: dict[str, Any] = {"name": name, "segments": [str(p) for p in paths]}
    if upload:
        try:
            result["uploaded"] = upload_segments(_get_brick(), name, paths)
        except ArgumentError as e:
            return {"error": str(e), **result}
    return result


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("ev3://ports")
def resource_ports() -> str:
    """Port names, LED patterns, colours and upload roots."""
    return json.dumps({
        "motors": {m.name: int(m) for m in (Motor.A, Motor.B, Motor.C, Motor.D, Motor.ALL)},
        "sensors": {p.name: int(p) for p in SensorPort},
        "led_patterns": {p.name.lower(): int(p) for p in LedPattern},
        "colours": {c.name.lower(): int(c) for c in Colour},
        "upload_roots": list(UPLOAD_ROOTS),
        "sound_dir": SOUND_DIR,
        "file_statuses": {s.name: int(s) for s in SystemStatus},
    })


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
