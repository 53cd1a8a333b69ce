"""Command-line tools for brick sound files.

``ev3-rsf-convert <audio> [mac]``
    Transcode an audio file to numbered RSF segments and, when a brick
    address is given, upload them to the brick's sound directory.

``ev3-rsf-play <mac> <name> <segments> <volume>``
    Play uploaded segments back to back.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from .audio import AudioConverter
from .brick import Brick
from .errors import EV3Error
from .models.rsf import segment_name
from .protocol.constants import SOUND_DIR

logger = logging.getLogger(__name__)

SEGMENT_DELAY = 8.0


def sound_path(name: str, index: int, suffix: str = "") -> str:
    """Brick path of segment ``index``; the player omits the ``.rsf`` suffix."""
    return f"{SOUND_DIR}/{segment_name(name, index)}{suffix}"


def upload_segments(brick: Brick, name: str, paths: Sequence[Path]) -> list[str]:
    """Upload local RSF segments as ``<name>_<n>.rsf`` in order."""
    destinations = []
    for index, path in enumerate(paths, start=1):
        destination = sound_path(name, index, ".rsf")
        logger.info("Uploading %s -> %s", path, destination)
        brick.upload_file(destination, path)
        destinations.append(destination)
    return destinations


def play_segments(
    brick: Brick,
    name: str,
    count: int,
    volume: int,
    delay: float = SEGMENT_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Play ``<name>_1`` .. ``<name>_<count>``, pausing ``delay`` seconds between them."""
    for index in range(1, count + 1):
        path = sound_path(name, index)
        logger.info("Playing %s", path)
        brick.play_sound_file(path, volume)
        if index < count:
            sleep(delay)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_convert_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ev3-rsf-convert",
        description="Convert an audio file to EV3 RSF segments.",
    )
    parser.add_argument("audio", type=Path, help="input audio file (any format ffmpeg reads)")
    parser.add_argument("mac", nargs="?", help="brick address to upload the segments to")
    parser.add_argument("-o", "--output", type=Path, help="segment base path (default: input without suffix)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log frames at DEBUG")
    return parser


def _build_play_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ev3-rsf-play",
        description="Play RSF segments stored in the brick's sound directory.",
    )
    parser.add_argument("mac", help="brick address, XX:XX:XX:XX:XX:XX")
    parser.add_argument("name", help="segment base name")
    parser.add_argument("segments", type=int, help="number of segments")
    parser.add_argument("volume", type=int, help="volume 0-100")
    parser.add_argument("--delay", type=float, default=SEGMENT_DELAY, help="seconds between segments")
    parser.add_argument("-v", "--verbose", action="store_true", help="log frames at DEBUG")
    return parser


def convert_main(argv: Sequence[str] | None = None) -> int:
    args = _build_convert_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        paths = AudioConverter.convert_file(args.audio, args.output)
        for path in paths:
            print(path)
        if args.mac:
            name = (args.output or args.audio.with_suffix("")).name
            with Brick.connect(args.mac) as brick:
                upload_segments(brick, name, paths)
    except (EV3Error, OSError) as e:
        logger.error("%s", e)
        return 1
    return 0


def play_main(argv: Sequence[str] | None = None) -> int:
    args = _build_play_parser().parse_args(argv)
    _configure_logging(args.verbose)

    if args.segments < 1:
        logger.error("segments must be at least 1")
        return 2
    try:
        with Brick.connect(args.mac) as brick:
            play_segments(brick, args.name, args.segments, args.volume, delay=args.delay)
    except EV3Error as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(convert_main())
