"""
Domain models and enums.

This module defines the core types shared by the encoder, the transport and
the connection actor:
- ConnectionConfig, the immutable connection parameters of one actor
- NotificationMessage and LocalizedAlert, the inputs of one send
- ActorState, the lifecycle of a connection actor

All models are frozen dataclasses so a message can be handed from the
owner's thread to the actor's thread without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Sequence, Union

from apnsconn.transport.client_config import CERT_FILE, HOST, PORT, TIMEOUT_S


class ActorState(str, Enum):
    """
    Lifecycle state of a connection actor.

    Members
    -------
    STARTING : str
        Created, handshake not yet completed.
    CONNECTED : str
        TLS session established; the actor accepts notifications.
    TERMINATED : str
        Final state. The socket is closed and no further work is done.
    """

    STARTING = "STARTING"
    CONNECTED = "CONNECTED"
    TERMINATED = "TERMINATED"


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Connection parameters for one gateway session.

    Parameters
    ----------
    host
        Gateway host name.
    port
        Gateway TLS port.
    cert_file
        Path to the client certificate (PEM). The file may also hold the key.
    timeout_s
        Upper bound (seconds) for TCP connect plus TLS handshake.
    ssl_seed
        Optional bytes mixed into the TLS library's random pool before the
        handshake.
    key_file
        Optional separate private key file (PEM).
    verify_tls
        Whether to verify the gateway's server certificate.
    """

    host: str = HOST
    port: int = PORT
    cert_file: str = CERT_FILE
    timeout_s: float = TIMEOUT_S
    ssl_seed: Optional[bytes] = None
    key_file: Optional[str] = None
    verify_tls: bool = True


@dataclass(frozen=True)
class LocalizedAlert:
    """
    Alert that references a localization key instead of literal text.

    Parameters
    ----------
    key
        Localization key (``loc-key``).
    args
        Format arguments for the localized string (``loc-args``), in order.
    body
        Optional literal body text.
    action
        Optional localization key for the action button (``action-loc-key``).
    image
        Optional launch image file name (``launch-image``).
    """

    key: str
    args: Sequence[str] = ()
    body: Optional[str] = None
    action: Optional[str] = None
    image: Optional[str] = None


Alert = Union[str, LocalizedAlert, None]
ExtraValue = Union[str, int]


@dataclass(frozen=True)
class NotificationMessage:
    """
    One push notification addressed to one device.

    Parameters
    ----------
    device_token
        Device token as 64 hexadecimal characters (32 bytes once decoded).
    alert
        Plain alert text, a :class:`LocalizedAlert`, or None.
    badge
        Optional badge count.
    sound
        Optional sound name.
    extra
        Additional top-level payload fields. Only text and integer values are
        sent; other values are dropped by the encoder.
    """

    device_token: str
    alert: Alert = None
    badge: Optional[int] = None
    sound: Optional[str] = None
    extra: Mapping[str, object] = field(default_factory=dict)
