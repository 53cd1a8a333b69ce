"""Audio transcoding to the brick's PCM format.

The brick plays unsigned 8-bit, 8 kHz, mono PCM. Any file pydub can read
(through ffmpeg) is loaded, downmixed, resampled and requantized here, then
packed into RSF segments by :mod:`ev3_mcp.models.rsf`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydub import AudioSegment

from .errors import AudioProcessingError
from .models.rsf import RSF_SAMPLE_RATE, export_rsf_segments

logger = logging.getLogger(__name__)

# pydub keeps 8-bit audio signed internally; the brick wants it unsigned.
_SIGNED_TO_UNSIGNED = bytes((i ^ 0x80) for i in range(256))


class AudioConverter:
    """Convert audio files for playback on the brick.

    Target format:
    - Sample rate: 8000 Hz
    - Channels: 1 (mono)
    - Samples: unsigned 8-bit
    """

    TARGET_SAMPLE_RATE = RSF_SAMPLE_RATE
    TARGET_CHANNELS = 1
    TARGET_SAMPLE_WIDTH = 1

    @classmethod
    def to_pcm(cls, audio: AudioSegment) -> bytes:
        """Convert an AudioSegment to unsigned 8-bit 8 kHz mono PCM."""
        if audio.channels != cls.TARGET_CHANNELS:
            logger.debug("Converting from %d channels to mono", audio.channels)
            audio = audio.set_channels(cls.TARGET_CHANNELS)
        if audio.frame_rate != cls.TARGET_SAMPLE_RATE:
            logger.debug(
                "Resampling from %d Hz to %d Hz", audio.frame_rate, cls.TARGET_SAMPLE_RATE
            )
            audio = audio.set_frame_rate(cls.TARGET_SAMPLE_RATE)
        if audio.sample_width != cls.TARGET_SAMPLE_WIDTH:
            audio = audio.set_sample_width(cls.TARGET_SAMPLE_WIDTH)
        return audio.raw_data.translate(_SIGNED_TO_UNSIGNED)

    @classmethod
    def load_pcm(cls, input_path: str | Path) -> bytes:
        """Load any audio file and return brick-ready PCM.

        Raises:
            FileNotFoundError: If the input file doesn't exist.
            AudioProcessingError: If decoding or conversion fails.
        """
        input_path = Path(input_path)
        if not input_path.exists():
            raise FileNotFoundError(f"Input audio file not found: {input_path}")

        logger.info("Transcoding audio file: %s", input_path)
        try:
            audio = AudioSegment.from_file(str(input_path))
            logger.debug(
                "Loaded audio: %d Hz, %d channels, %.2f seconds",
                audio.frame_rate,
                audio.channels,
                len(audio) / 1000.0,
            )
            pcm = cls.to_pcm(audio)
        except Exception as exc:
            logger.exception("Failed to transcode audio file: %s", input_path)
            raise AudioProcessingError(f"Audio transcoding failed: {exc}") from exc

        logger.info(
            "Transcoded %s: %d samples (%.2f seconds)",
            input_path,
            len(pcm),
            len(pcm) / cls.TARGET_SAMPLE_RATE,
        )
        return pcm

    @classmethod
    def convert_file(
        cls, input_path: str | Path, output_base: str | Path | None = None
    ) -> list[Path]:
        """Transcode ``input_path`` and write its RSF segments.

        Args:
            input_path: Any audio file readable by pydub.
            output_base: Segment path without suffix; defaults to the input
                path with its extension removed.

        Returns:
            Paths of ``<base>_1.rsf``, ``<base>_2.rsf``, ... in order.
        """
        input_path = Path(input_path)
        pcm = cls.load_pcm(input_path)
        base = Path(output_base) if output_base is not None else input_path.with_suffix("")
        paths = export_rsf_segments(pcm, base)
        logger.info("Wrote %d RSF segment(s) for %s", len(paths), input_path)
        return paths
