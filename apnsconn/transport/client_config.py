from __future__ import annotations

"""
Default gateway connection settings.

These values are used by :class:`~apnsconn.domain.models.ConnectionConfig`
and by the YAML loader when a field is omitted.

Attributes
----------
HOST
    Default gateway host (sandbox environment).
PORT
    Default gateway TLS port.
CERT_FILE
    Default client certificate path, relative to the working directory.
TIMEOUT_S
    Default handshake timeout (seconds).
"""

HOST: str = "gateway.sandbox.push.apple.com"
PORT: int = 2195
CERT_FILE: str = "priv/cert.pem"
TIMEOUT_S: float = 30.0
