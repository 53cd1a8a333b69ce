"""RSF sound container used by the brick's ``opSOUND PLAY``.

Layout::

    +---------+---------------+-------------+---------+----------------------+
    | Format  | Sample count  | Sample rate | Reserved| PCM samples          |
    | 01 00   | 2 bytes (BE)  | 1F 40       | 00 00   | unsigned 8-bit, mono |
    +---------+---------------+-------------+---------+----------------------+

One file holds at most 65535 samples (about 8.2 s at 8 kHz). Longer audio
is split into numbered segments ``<name>_<n>.rsf`` with ``n`` counting from 1.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path

from ..errors import ArgumentError

RSF_FORMAT = 0x0100
RSF_SAMPLE_RATE = 8000
RSF_HEADER = struct.Struct(">HHHH")
RSF_HEADER_SIZE = RSF_HEADER.size
RSF_MAX_SAMPLES = 0xFFFF
RSF_SUFFIX = ".rsf"


@dataclass
class RsfSound:
    """A decoded RSF file."""

    samples: bytes
    sample_rate: int = RSF_SAMPLE_RATE

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate

    def __repr__(self) -> str:
        return f"RsfSound(samples={len(self.samples)}, duration={self.duration:.2f}s)"


def encode_rsf(samples: bytes) -> bytes:
    """Wrap unsigned 8-bit 8 kHz mono PCM in an RSF header."""
    if len(samples) > RSF_MAX_SAMPLES:
        raise ArgumentError(
            "samples", len(samples), f"an RSF file holds at most {RSF_MAX_SAMPLES} samples"
        )
    header = RSF_HEADER.pack(RSF_FORMAT, len(samples), RSF_SAMPLE_RATE, 0)
    return header + bytes(samples)


def decode_rsf(data: bytes) -> RsfSound:
    """Parse an RSF file.

    Raises:
        ValueError: If the header is missing or malformed.
    """
    if len(data) < RSF_HEADER_SIZE:
        raise ValueError(f"RSF data too small: {len(data)} bytes")
    fmt, count, rate, _ = RSF_HEADER.unpack_from(data)
    if fmt != RSF_FORMAT:
        raise ValueError(f"Unsupported RSF format 0x{fmt:04X}")
    samples = data[RSF_HEADER_SIZE : RSF_HEADER_SIZE + count]
    if len(samples) != count:
        raise ValueError(
            f"RSF header declares {count} samples but only {len(samples)} follow"
        )
    return RsfSound(samples=bytes(samples), sample_rate=rate)


def split_samples(samples: bytes, size: int = RSF_MAX_SAMPLES) -> list[bytes]:
    """Split PCM into segments of at most ``size`` samples."""
    if not 0 < size <= RSF_MAX_SAMPLES:
        raise ArgumentError("segment_size", size, f"must be 1-{RSF_MAX_SAMPLES}")
    return [samples[i : i + size] for i in range(0, len(samples), size)]


def segment_name(name: str, index: int) -> str:
    """Return ``<name>_<index>``, the on-brick stem of segment ``index``."""
    return f"{name}_{index}"


def export_rsf_segments(samples: bytes, base: str | Path) -> list[Path]:
    """Write ``<base>_<n>.rsf`` for every 65535-sample segment of ``samples``.

    Args:
        samples: Unsigned 8-bit 8 kHz mono PCM.
        base: Output path without suffix, e.g. ``sounds/hello``.

    Returns:
        The written paths in segment order.
    """
    base = Path(base)
    paths: list[Path] = []
    for index, segment in enumerate(split_samples(samples), start=1):
        path = base.with_name(segment_name(base.name, index) + RSF_SUFFIX)
        path.write_bytes(encode_rsf(segment))
        paths.append(path)
    return paths


def import_rsf(path: str | Path) -> RsfSound:
    return decode_rsf(Path(path).read_bytes())
