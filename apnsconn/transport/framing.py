"""
Binary frame layout for the gateway's simple notification format.

    |COMMAND:1|TOKEN-LEN:2|TOKEN:32|PAYLOAD-LEN:2|PAYLOAD:N|

All integers are big-endian. The command byte is always 0 and the token
length is always 32.
"""

from __future__ import annotations

import binascii
import struct
from typing import Tuple

from apnsconn.domain.models import NotificationMessage
from apnsconn.errors import InvalidTokenError, PayloadTooLargeError
from apnsconn.notification.payload import encode_notification

COMMAND: int = 0
TOKEN_LENGTH: int = 32
MAX_PAYLOAD_LENGTH: int = 0xFFFF

HEADER_FORMAT = "!BH%dsH" % TOKEN_LENGTH
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)


def hexstr_to_bin(token_hex: str) -> bytes:
    """
    Decode a device token from hexadecimal text to raw bytes.

    Parameters
    ----------
    token_hex
        Device token, two hex characters per byte.

    Returns
    -------
    bytes
        The 32 raw token bytes.

    Raises
    ------
    InvalidTokenError
        If the token is not exactly 64 hexadecimal characters.
    """
    if not isinstance(token_hex, str) or len(token_hex) != TOKEN_LENGTH * 2:
        raise InvalidTokenError(
            f"device token must be {TOKEN_LENGTH * 2} hex characters, got {token_hex!r}"
        )
    try:
        return binascii.unhexlify(token_hex)
    except (binascii.Error, ValueError) as e:
        raise InvalidTokenError(f"device token is not hexadecimal: {token_hex!r}") from e


def pack_frame(token: bytes, payload: bytes) -> bytes:
    """
    Assemble one notification frame.

    Parameters
    ----------
    token
        Raw device token (32 bytes).
    payload
        Encoded JSON payload.

    Returns
    -------
    bytes
        Frame of ``HEADER_SIZE + len(payload)`` bytes.

    Raises
    ------
    InvalidTokenError
        If the token is not 32 bytes.
    PayloadTooLargeError
        If the payload does not fit the 16-bit length field.
    """
    if len(token) != TOKEN_LENGTH:
        raise InvalidTokenError(f"device token must be {TOKEN_LENGTH} bytes, got {len(token)}")
    if len(payload) > MAX_PAYLOAD_LENGTH:
        raise PayloadTooLargeError(len(payload), MAX_PAYLOAD_LENGTH)
    return struct.pack(HEADER_FORMAT, COMMAND, TOKEN_LENGTH, token, len(payload)) + payload


def unpack_frame(frame: bytes) -> Tuple[bytes, bytes]:
    """
    Split a frame back into ``(token, payload)``.

    Used for diagnostics and tests; the gateway never sends these frames back.

    Raises
    ------
    ValueError
        If the header is malformed or the payload length does not match.
    """
    if len(frame) < HEADER_SIZE:
        raise ValueError(f"frame too short: {len(frame)} bytes")
    command, token_len, token, payload_len = struct.unpack(HEADER_FORMAT, frame[:HEADER_SIZE])
    if command != COMMAND or token_len != TOKEN_LENGTH:
        raise ValueError(f"unexpected frame header: command={command} token_len={token_len}")
    payload = frame[HEADER_SIZE:]
    if len(payload) != payload_len:
        raise ValueError(f"payload length mismatch: header={payload_len} actual={len(payload)}")
    return token, payload


def encode_frame(msg: NotificationMessage) -> Tuple[bytes, bytes]:
    """
    Encode a message into ``(payload, frame)``.

    Raises
    ------
    InvalidTokenError
        If the device token is malformed.
    PayloadTooLargeError
        If the encoded payload is too large.
    """
    payload = encode_notification(msg)
    token = hexstr_to_bin(msg.device_token)
    return payload, pack_frame(token, payload)
