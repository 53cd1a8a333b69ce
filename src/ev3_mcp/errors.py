"""Exception hierarchy shared by every layer of the client."""

from __future__ import annotations


class EV3Error(Exception):
    """Base class for all errors raised by this package."""


class ArgumentError(EV3Error, ValueError):
    """A precondition on a caller-supplied value was violated.

    Raised before any I/O takes place.
    """

    def __init__(self, field: str, value: object, reason: str = "") -> None:
        self.field = field
        self.value = value
        message = f"Invalid {field}: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ConnectError(EV3Error, ConnectionError):
    """The transport to the brick could not be established."""


class TransportError(EV3Error, OSError):
    """A read or write on the transport failed, or a reply was truncated."""


class TransportTimeout(TransportError):
    """No reply arrived within the session's read timeout."""


class ProtocolError(EV3Error):
    """A reply frame was malformed or did not pair with its request."""


class SessionPoisonedError(EV3Error):
    """The session saw a transport or protocol failure and must be reopened."""


class DeviceError(EV3Error):
    """The brick rejected a well-formed direct command."""

    def __init__(self, code: int, command: str = "") -> None:
        self.code = code
        self.command = command
        where = f" for {command}" if command else ""
        super().__init__(f"Brick rejected command{where} (reply type 0x{code:02X})")


class FileError(EV3Error):
    """A system command finished with a status other than SUCCESS/END_OF_FILE."""

    def __init__(self, status: int, command: str = "") -> None:
        from .protocol.constants import SystemStatus

        self.status = status
        self.command = command
        try:
            self.status_name = SystemStatus(status).name
        except ValueError:
            self.status_name = "UNKNOWN"
        where = f" during {command}" if command else ""
        super().__init__(
            f"System command failed{where}: status 0x{status:02X} ({self.status_name})"
        )


class AudioProcessingError(EV3Error):
    """Audio could not be transcoded to the brick's PCM format."""
