"""Multi-chunk file upload to the brick.

The upload is a small state machine::

    IDLE --BEGIN_DOWNLOAD / SUCCESS--> DOWNLOADING(handle, remaining)
    DOWNLOADING --CONTINUE_DOWNLOAD / SUCCESS, remaining > 0--> DOWNLOADING
    DOWNLOADING --CONTINUE_DOWNLOAD / END_OF_FILE, remaining = 0--> DONE
    any state --error reply--> FAILED

The brick should acknowledge the last chunk with END_OF_FILE. A SUCCESS on
the last chunk is accepted with a warning; END_OF_FILE while data remains is
a protocol error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .errors import EV3Error, ProtocolError
from .protocol.constants import PARTITION_SIZE, SystemStatus
from .protocol.parser import parse_begin_download, parse_continue_download
from .protocol.system import build_begin_download, build_continue_download, partition

if TYPE_CHECKING:
    from .session import Session

logger = logging.getLogger(__name__)


class UploadState(Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UploadProgress:
    """Track one upload."""

    destination: str
    total_size: int
    state: UploadState = UploadState.IDLE
    handle: int | None = None
    sent_bytes: int = 0
    chunks_sent: int = 0

    @property
    def remaining(self) -> int:
        return self.total_size - self.sent_bytes

    @property
    def progress_percent(self) -> int:
        if self.total_size == 0:
            return 100 if self.state is UploadState.DONE else 0
        return int((self.sent_bytes / self.total_size) * 100)


class FileUploader:
    """Upload byte strings to the brick through a session.

    Args:
        session: An open session.
        partition_size: Bytes per CONTINUE_DOWNLOAD frame (at most 1017).
        progress_callback: Called with the progress after every chunk.
    """

    def __init__(
        self,
        session: Session,
        partition_size: int = PARTITION_SIZE,
        progress_callback: Callable[[UploadProgress], None] | None = None,
    ) -> None:
        self._session = session
        self._partition_size = partition_size
        self._progress_callback = progress_callback
        self.progress: UploadProgress | None = None

    def upload(self, destination: str, data: bytes) -> UploadProgress:
        """Write ``data`` to ``destination`` on the brick.

        Raises:
            ArgumentError: Bad destination or size; nothing was sent.
            FileError: The brick refused BEGIN_DOWNLOAD or a chunk.
            ProtocolError, TransportError: The session failed mid-transfer.
        """
        progress = UploadProgress(destination=destination, total_size=len(data))
        self.progress = progress
        try:
            chunks = partition(data, self._partition_size)
            begin = build_begin_download(len(data), destination)
            handle = parse_begin_download(self._session.execute(begin))
            progress.handle = handle
            progress.state = UploadState.DOWNLOADING
            logger.info(
                "Uploading %d bytes to %s in %d chunks (handle %d)",
                len(data),
                destination,
                len(chunks),
                handle,
            )

            for chunk in chunks:
                request = build_continue_download(handle, chunk)
                status = parse_continue_download(self._session.execute(request))
                progress.sent_bytes += len(chunk)
                progress.chunks_sent += 1
                self._check_status(status, progress)
                if self._progress_callback is not None:
                    self._progress_callback(progress)
        except ProtocolError as e:
            progress.state = UploadState.FAILED
            self._session.poison(e)
            raise
        except EV3Error:
            progress.state = UploadState.FAILED
            raise

        progress.state = UploadState.DONE
        logger.info("Upload to %s complete", destination)
        return progress

    @staticmethod
    def _check_status(status: int, progress: UploadProgress) -> None:
        if status == SystemStatus.END_OF_FILE and progress.remaining > 0:
            raise ProtocolError(
                f"Brick closed {progress.destination} with {progress.remaining} bytes unsent"
            )
        if status == SystemStatus.SUCCESS and progress.remaining == 0:
            logger.warning(
                "Last chunk of %s acknowledged with SUCCESS instead of END_OF_FILE",
                progress.destination,
            )
