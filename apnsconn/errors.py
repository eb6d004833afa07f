"""
Exception hierarchy for the gateway connection layer.

Startup and registry errors are raised to the owner directly. Transport
errors raised inside a running actor never escape its thread; they become
the ``detail`` of the actor's termination reason instead.
"""

from __future__ import annotations

from typing import Any


class ApnsConnectionError(Exception):
    """Base class for all errors raised by this package."""


class StartupError(ApnsConnectionError):
    """
    The TLS session to the gateway could not be established.

    Parameters
    ----------
    reason
        Underlying transport exception (DNS, connect, TLS or certificate error).
    """

    def __init__(self, reason: BaseException):
        super().__init__(f"gateway handshake failed: {reason!r}")
        self.reason = reason


class ActorTerminatedError(ApnsConnectionError):
    """A synchronous call was made on an actor that already terminated."""


class AlreadyStartedError(ApnsConnectionError):
    """
    A live connection is already registered under the requested name.

    Parameters
    ----------
    actor
        The running actor holding the name.
    """

    def __init__(self, name: str, actor: Any):
        super().__init__(f"connection {name!r} already started")
        self.actor = actor


class FrameError(ApnsConnectionError, ValueError):
    """A notification cannot be represented in the binary frame."""


class InvalidTokenError(FrameError):
    """Device token is not exactly 64 hexadecimal characters."""


class InvalidPayloadError(FrameError):
    """Notification text cannot be encoded as UTF-8 (e.g. a lone surrogate)."""


class PayloadTooLargeError(FrameError):
    """
    Encoded JSON payload does not fit the 16-bit length field.

    Parameters
    ----------
    size
        Size of the encoded payload in bytes.
    """

    def __init__(self, size: int, limit: int):
        super().__init__(f"payload is {size} bytes, limit is {limit}")
        self.size = size
        self.limit = limit


class UnknownConnectionError(ApnsConnectionError, KeyError):
    """No connection is registered under the given name."""

    def __init__(self, conn_id: Any):
        super().__init__(conn_id)
        self.conn_id = conn_id

    def __str__(self) -> str:
        return f"unknown connection: {self.conn_id!r}"


class ConfigError(ApnsConnectionError, ValueError):
    """The configuration file is missing required fields or is malformed."""
