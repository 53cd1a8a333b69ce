"""High-level brick API: every catalog entry bound to a session.

Each method validates its arguments (raising :class:`ArgumentError` before
any I/O), sends one frame, and decodes the reply into a typed result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

from .errors import ArgumentError, ProtocolError
from .protocol import commands
from .protocol.commands import DirectCommand
from .protocol.constants import LIST_FILES_MAX, Brake, Colour, SystemStatus
from .protocol.parser import (
    RGB,
    FileListing,
    TypeMode,
    check_direct_reply,
    decode_listing,
    parse_colour,
    parse_colour_rgb,
    parse_continue_list_files,
    parse_gyro,
    parse_list_files,
    parse_touch,
    parse_type_mode,
    parse_ultrasonic,
)
from .protocol.framing import Reply
from .protocol.system import build_continue_list_files, build_list_files
from .session import Session
from .transfer import FileUploader, UploadProgress

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Brick:
    """Operations on one EV3 brick.

    Usage::

        with Brick.connect("00:16:53:56:55:D9") as brick:
            brick.drive(Motor.A, Motor.D, 50)
            if brick.read_touch_sensor(SensorPort.PORT_1):
                brick.all_stop(Brake.BRAKE)
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @classmethod
    @contextmanager
    def connect(cls, address: str, **kwargs) -> Iterator[Brick]:
        """Open a session to ``address`` and close it on every exit path."""
        session = Session.open(address, **kwargs)
        try:
            yield cls(session)
        finally:
            session.close()

    def close(self) -> None:
        self.session.close()

    def _run(self, command: DirectCommand, parser: Callable[[Reply], T] | None = None):
        reply = self.session.execute(command)
        if reply is None:
            return None
        if parser is None:
            return self._decode(check_direct_reply, reply, command.name)
        return self._decode(parser, reply)

    def _decode(self, parser: Callable[..., T], *args) -> T:
        """Apply ``parser``; a reply it rejects as malformed poisons the session."""
        try:
            return parser(*args)
        except ProtocolError as e:
            self.session.poison(e)
            raise

    # ─── Utility ─────────────────────────────────────────────────────

    def set_brick_name(self, name: str) -> None:
        self._run(commands.build_set_brick_name(name))

    # ─── Sound ───────────────────────────────────────────────────────

    def play_tone_sequence(self, tones: Iterable[tuple[int, int, int]]) -> None:
        """Play ``(frequency_hz, duration_ms, volume)`` tones back to back."""
        self._run(commands.build_play_tone_sequence(tones))

    def play_sound_file(self, path: str, volume: int) -> None:
        self._run(commands.build_play_sound_file(path, volume))

    # ─── Motors ──────────────────────────────────────────────────────

    def motor_start(self, ports: int, power: int) -> None:
        self._run(commands.build_motor_start(ports, power))

    def motor_stop(self, ports: int, brake: int = Brake.COAST) -> None:
        self._run(commands.build_motor_stop(ports, brake))

    def all_stop(self, brake: int = Brake.COAST) -> None:
        self._run(commands.build_all_stop(brake))

    def drive(self, left: int, right: int, power: int) -> None:
        self._run(commands.build_drive(left, right, power))

    def turn(self, left: int, left_power: int, right: int, right_power: int) -> None:
        self._run(commands.build_turn(left, left_power, right, right_power))

    def timed_motor_ramp(
        self,
        ports: int,
        power: int,
        ramp_up_ms: int,
        run_ms: int,
        ramp_down_ms: int,
        brake: int = Brake.COAST,
    ) -> None:
        self._run(
            commands.build_timed_motor_ramp(ports, power, ramp_up_ms, run_ms, ramp_down_ms, brake)
        )

    def timed_motor(
        self, ports: int, power: int, duration_ms: int, brake: int = Brake.COAST
    ) -> None:
        """Run a motor for ``duration_ms``; returns once the brick has stopped it."""
        self._run(commands.build_timed_motor(ports, power, duration_ms, brake))

    # ─── Sensors ─────────────────────────────────────────────────────

    def read_touch_sensor(self, port: int) -> bool:
        return self._run(commands.build_read_touch(port), parse_touch)

    def read_colour_sensor(self, port: int) -> Colour:
        return self._run(commands.build_read_colour(port), parse_colour)

    def read_colour_sensor_rgb(self, port: int) -> RGB:
        return self._run(commands.build_read_colour_rgb(port), parse_colour_rgb)

    def read_ultrasonic_sensor(self, port: int) -> int:
        return self._run(commands.build_read_ultrasonic(port), parse_ultrasonic)

    def read_gyro_sensor(self, port: int) -> int:
        return self._run(commands.build_read_gyro(port), parse_gyro)

    def get_type_mode(self, port: int) -> TypeMode:
        return self._run(commands.build_get_type_mode(port), parse_type_mode)

    def clear_all_sensors(self) -> None:
        self._run(commands.build_clear_all_sensors())

    # ─── UI ──────────────────────────────────────────────────────────

    def set_led(self, pattern: int) -> None:
        self._run(commands.build_set_led(pattern))

    def draw_image_from_file(self, colour: int, x: int, y: int, path: str) -> None:
        self._run(commands.build_draw_image(colour, x, y, path))

    def store_display(self, slot: int) -> None:
        self._run(commands.build_store_display(slot))

    def restore_display(self, slot: int) -> None:
        self._run(commands.build_restore_display(slot))

    # ─── Files ───────────────────────────────────────────────────────

    def list_files(
        self, path: str, max_bytes: int = LIST_FILES_MAX, follow: bool = False
    ) -> FileListing:
        """List a directory on the brick.

        By default a single reply is read, so long listings are truncated to
        ``max_bytes``. With ``follow`` set, CONTINUE_LIST_FILES is issued
        until the brick reports END_OF_FILE or the declared size arrives.
        """
        reply = self.session.execute(build_list_files(path, max_bytes))
        listing = self._decode(parse_list_files, reply)
        if not follow or listing.complete:
            return listing

        data = bytearray(listing.raw)
        status = listing.status
        while status != SystemStatus.END_OF_FILE and len(data) < listing.total_size:
            request = build_continue_list_files(listing.handle, max_bytes)
            chunk = self._decode(parse_continue_list_files, self.session.execute(request))
            if not chunk.data and chunk.status != SystemStatus.END_OF_FILE:
                error = ProtocolError("CONTINUE_LIST_FILES returned no data")
                self.session.poison(error)
                raise error
            data.extend(chunk.data)
            status = chunk.status

        listing.raw = bytes(data)
        listing.text = decode_listing(bytes(data))
        listing.status = status
        listing.complete = True
        return listing

    def upload_bytes(
        self,
        destination: str,
        data: bytes,
        progress_callback: Callable[[UploadProgress], None] | None = None,
    ) -> UploadProgress:
        uploader = FileUploader(self.session, progress_callback=progress_callback)
        return uploader.upload(destination, bytes(data))

    def upload_file(
        self,
        destination: str,
        source: str | Path,
        progress_callback: Callable[[UploadProgress], None] | None = None,
    ) -> UploadProgress:
        """Copy a local file to ``destination`` on the brick."""
        source = Path(source)
        if not source.is_file():
            raise ArgumentError("source", str(source), "file not found")
        return self.upload_bytes(destination, source.read_bytes(), progress_callback)
