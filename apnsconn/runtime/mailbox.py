"""
Mailbox messages understood by a connection actor.

The set is closed: anything else that reaches the mailbox is treated as
unrecognized input and terminates the actor.
"""

from __future__ import annotations

from dataclasses import dataclass
from queue import Queue
from typing import Any, Optional, Union

from apnsconn.domain.models import NotificationMessage


@dataclass(frozen=True)
class Send:
    """
    Write one notification.

    `payload` and `frame` are set when the sender already encoded the
    message; otherwise the actor encodes it.
    """

    message: NotificationMessage
    payload: Optional[bytes] = None
    frame: Optional[bytes] = None


@dataclass(frozen=True)
class Stop:
    """Owner-requested shutdown."""


@dataclass(frozen=True, eq=False)
class SocketClosed:
    """The transport reports that the socket `handle` was closed by the peer."""

    handle: Any


@dataclass(frozen=True, eq=False)
class Readable:
    """The socket `handle` has input waiting to be read by the actor."""

    handle: Any


@dataclass(frozen=True)
class Unrecognized:
    """Input outside the protocol (stray socket data, read errors, foreign objects)."""

    payload: Any


@dataclass(frozen=True, eq=False)
class Call:
    """Synchronous request; the answer is put on `reply`."""

    request: Any
    reply: "Queue[Any]"


@dataclass(frozen=True)
class UnknownRequest:
    """Error result returned for any synchronous request."""

    request: Any


MailboxMessage = Union[Send, Stop, SocketClosed, Readable, Unrecognized, Call]
