"""Session state: one transport and its message counter.

A session allows a single request in flight. Each request is stamped with
the current counter, the counter is advanced once per send attempt
(wrapping at 2^16), and the reply must echo the stamped value.

Transport and protocol failures poison the session. After that every
request fails fast with :class:`SessionPoisonedError` until the session is
closed and a new one opened. Device-level rejections do not poison it.
"""

from __future__ import annotations

import logging
from typing import Union

from .errors import ProtocolError, SessionPoisonedError, TransportError
from .protocol.commands import DirectCommand
from .protocol.constants import ReplyType
from .protocol.framing import COUNTER_MODULUS, Reply, parse_reply
from .protocol.system import SystemRequest
from .transport.base import Transport
from .transport.rfcomm import DEFAULT_CONNECT_TIMEOUT, RFCOMM_CHANNEL, RFCOMMTransport

logger = logging.getLogger(__name__)

Request = Union[DirectCommand, SystemRequest]

INITIAL_COUNTER = 1

DIRECT_REPLY_TYPES = (ReplyType.DIRECT_OK, ReplyType.DIRECT_ERROR)
SYSTEM_REPLY_TYPES = (ReplyType.SYSTEM_OK, ReplyType.SYSTEM_ERROR)


def check_reply_kind(request: Request, reply: Reply) -> None:
    """Reject a reply whose type tag or subcommand echo does not fit ``request``."""
    if isinstance(request, SystemRequest):
        if reply.reply_type not in SYSTEM_REPLY_TYPES:
            raise ProtocolError(f"{request.name} got reply type 0x{reply.reply_type:02X}")
        if len(reply.body) < 2:
            raise ProtocolError(
                f"{request.name} reply too short: {len(reply.body)} body bytes"
            )
        if reply.body[0] != request.subcommand:
            raise ProtocolError(
                f"{request.name} reply echoes subcommand 0x{reply.body[0]:02X}"
            )
    elif reply.reply_type not in DIRECT_REPLY_TYPES:
        raise ProtocolError(f"{request.name} got reply type 0x{reply.reply_type:02X}")


class Session:
    """Owns the transport to one brick.

    Usage::

        with Session.open("00:16:53:56:55:D9") as session:
            reply = session.execute(build_drive(Motor.A, Motor.D, 50))
    """

    def __init__(self, transport: Transport, counter: int = INITIAL_COUNTER) -> None:
        self._transport = transport
        self._counter = counter % COUNTER_MODULUS
        self._poisoned = False
        self._closed = False

    @classmethod
    def open(
        cls,
        address: str,
        *,
        channel: int = RFCOMM_CHANNEL,
        connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float | None = None,
    ) -> Session:
        """Connect to the brick at a Bluetooth MAC address.

        Args:
            address: ``XX:XX:XX:XX:XX:XX``.
            read_timeout: Seconds to wait for each reply; ``None`` blocks.

        Raises:
            ArgumentError: If the address is malformed.
            ConnectError: If the transport refuses the connection.
        """
        transport = RFCOMMTransport(
            address,
            channel=channel,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )
        transport.open()
        return cls(transport)

    @classmethod
    def open_usb(cls, **kwargs) -> Session:
        """Connect to a brick over USB HID; ``kwargs`` go to :class:`USBTransport`."""
        from .transport.usb_connection import USBTransport

        transport = USBTransport(**kwargs)
        transport.open()
        return cls(transport)

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def counter(self) -> int:
        """The counter value the next request will carry."""
        return self._counter

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._transport.close()

    def poison(self, reason: object) -> None:
        """Refuse every later request, e.g. after a reply failed to decode."""
        if not self._poisoned:
            self._poisoned = True
            logger.error("Session poisoned: %s", reason)

    def execute(self, request: Request) -> Reply | None:
        """Send one request and return its reply.

        Returns ``None`` for requests sent without a reply.

        Raises:
            SessionPoisonedError: The session is closed or poisoned.
            TransportError: The link failed; the session is now poisoned.
            ProtocolError: The reply was malformed, carried the wrong
                counter, or does not match the request kind; the session
                is now poisoned.
        """
        if self._closed:
            raise SessionPoisonedError("Session is closed")
        if self._poisoned:
            raise SessionPoisonedError(
                "Session failed earlier; close it and open a new one"
            )

        counter = self._counter
        frame = request.to_frame(counter)
        self._counter = (counter + 1) % COUNTER_MODULUS
        logger.debug("%r (counter=%d)", request, counter)

        try:
            if not request.reply_expected:
                self._transport.send(frame)
                return None
            reply = parse_reply(self._transport.send_and_receive(frame))
            if reply.counter != counter:
                raise ProtocolError(
                    f"Reply counter {reply.counter} does not match request counter {counter}"
                )
            check_reply_kind(request, reply)
        except (TransportError, ProtocolError) as e:
            self.poison(f"{type(e).__name__}: {e}")
            raise
        return reply

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
