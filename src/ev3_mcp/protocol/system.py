"""System-command builders: directory listing and file download to the brick.

System frames carry the subcommand byte right after the frame type, then
subcommand-specific arguments. Strings are zero-terminated without an
operand descriptor.

"Download" is the brick's point of view: the host uploads a file by sending
``BEGIN_DOWNLOAD`` (size and destination path), which returns a handle, then
a series of ``CONTINUE_DOWNLOAD`` frames of at most ``PARTITION_SIZE`` bytes.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ArgumentError
from .constants import LIST_FILES_MAX, MAX_BODY_SIZE, PARTITION_SIZE, UPLOAD_ROOTS, SystemCommand
from .framing import FrameBuilder

MAX_FILE_SIZE = 0xFFFFFFFF


@dataclass(frozen=True)
class SystemRequest:
    """A validated system command awaiting a message counter."""

    name: str
    subcommand: SystemCommand
    payload: bytes
    reply_expected: bool = True

    def __post_init__(self) -> None:
        body = 1 + len(self.payload)
        if body > MAX_BODY_SIZE:
            raise ArgumentError(
                "payload", len(self.payload), f"frame body {body} exceeds {MAX_BODY_SIZE} bytes"
            )

    def to_frame(self, counter: int) -> bytes:
        builder = FrameBuilder.begin_system(counter, self.reply_expected, self.subcommand)
        return builder.extend(self.payload).finish()

    def __repr__(self) -> str:
        preview = self.payload[:16].hex(" ")
        if len(self.payload) > 16:
            preview += f" ... ({len(self.payload)} bytes)"
        return f"SystemRequest({self.name}, payload={preview})"


def _zstring(field: str, text: str) -> bytes:
    if not text or not text.isascii() or "\x00" in text:
        raise ArgumentError(field, text, "must be a non-empty ASCII path")
    return text.encode("ascii") + b"\x00"


def _check_handle(handle: int) -> int:
    if not isinstance(handle, int) or not 0 <= handle <= 0xFF:
        raise ArgumentError("handle", handle, "must be 0-255")
    return handle


def validate_destination(path: str) -> str:
    """Check that an upload destination is one the brick will accept.

    Absolute paths must live under ``apps``, ``prjs`` or ``tools`` of
    ``/home/root/lms2012``. Relative paths are resolved by the brick under
    ``/home/root/lms2012/sys`` and are passed through.
    """
    if not path or not path.isascii():
        raise ArgumentError("destination", path, "must be a non-empty ASCII path")
    if path.startswith("/") and not any(
        path == root or path.startswith(root + "/") for root in UPLOAD_ROOTS
    ):
        raise ArgumentError(
            "destination", path, f"absolute paths must begin with one of {', '.join(UPLOAD_ROOTS)}"
        )
    return path


def build_list_files(path: str, max_bytes: int = LIST_FILES_MAX) -> SystemRequest:
    """List a directory on the brick; the reply carries at most ``max_bytes``."""
    if not isinstance(max_bytes, int) or max_bytes < 1:
        raise ArgumentError("max_bytes", max_bytes, "must be positive")
    max_bytes = min(max_bytes, LIST_FILES_MAX)
    payload = max_bytes.to_bytes(2, "little") + _zstring("path", path)
    return SystemRequest("list_files", SystemCommand.LIST_FILES, payload)


def build_continue_list_files(handle: int, max_bytes: int = LIST_FILES_MAX) -> SystemRequest:
    """Fetch the next part of a listing that did not fit in one reply."""
    handle = _check_handle(handle)
    if not isinstance(max_bytes, int) or max_bytes < 1:
        raise ArgumentError("max_bytes", max_bytes, "must be positive")
    max_bytes = min(max_bytes, LIST_FILES_MAX)
    payload = bytes([handle]) + max_bytes.to_bytes(2, "little")
    return SystemRequest("continue_list_files", SystemCommand.CONTINUE_LIST_FILES, payload)


def build_begin_download(size: int, destination: str) -> SystemRequest:
    """Announce a file of ``size`` bytes to be written at ``destination``."""
    if not isinstance(size, int) or not 0 <= size <= MAX_FILE_SIZE:
        raise ArgumentError("size", size, "must fit in 32 bits")
    destination = validate_destination(destination)
    payload = size.to_bytes(4, "little") + _zstring("destination", destination)
    return SystemRequest("begin_download", SystemCommand.BEGIN_DOWNLOAD, payload)


def build_continue_download(handle: int, chunk: bytes) -> SystemRequest:
    """Send one chunk of file data for an open download handle."""
    handle = _check_handle(handle)
    if len(chunk) > PARTITION_SIZE:
        raise ArgumentError("chunk", len(chunk), f"at most {PARTITION_SIZE} bytes per chunk")
    return SystemRequest(
        "continue_download", SystemCommand.CONTINUE_DOWNLOAD, bytes([handle]) + bytes(chunk)
    )


def partition(data: bytes, size: int = PARTITION_SIZE) -> list[bytes]:
    """Split file data into download chunks of at most ``size`` bytes.

    An empty file yields no chunks.
    """
    if not 0 < size <= PARTITION_SIZE:
        raise ArgumentError("partition_size", size, f"must be 1-{PARTITION_SIZE}")
    return [data[i : i + size] for i in range(0, len(data), size)]
