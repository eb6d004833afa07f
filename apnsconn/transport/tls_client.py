from __future__ import annotations

import logging
import select
import socket
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from apnsconn.domain.models import ConnectionConfig
from apnsconn.transport.client_config import CERT_FILE, HOST, PORT, TIMEOUT_S

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TLSGatewayClient:
    """
    TLS client holding one session with the notification gateway.

    The client is a thin transport adapter: it connects, writes whole frames,
    reads raw bytes and closes. It does not know about notifications or
    decide what a closed socket means; the connection actor does. Waiting for
    input is split from reading it so that only the writing thread uses the
    TLS session.

    Parameters
    ----------
    host
        Gateway host name.
    port
        Gateway TLS port.
    cert_file
        Client certificate (PEM). Relative paths are resolved against the
        working directory at connect time.
    timeout_s
        Timeout (seconds) applied to TCP connect and the TLS handshake only.
    ssl_seed
        Optional bytes fed to the TLS library's random pool before the
        handshake.
    key_file
        Optional separate private key (PEM).
    verify_tls
        Whether to verify the gateway's server certificate.

    Attributes
    ----------
    _sock
        Active TLS socket once connected; None when not connected.
    """

    host: str = HOST
    port: int = PORT
    cert_file: str = CERT_FILE
    timeout_s: float = TIMEOUT_S
    ssl_seed: Optional[bytes] = None
    key_file: Optional[str] = None
    verify_tls: bool = True

    _sock: Optional[ssl.SSLSocket] = None

    @classmethod
    def from_config(cls, cfg: ConnectionConfig) -> "TLSGatewayClient":
        return cls(
            host=cfg.host,
            port=cfg.port,
            cert_file=cfg.cert_file,
            timeout_s=cfg.timeout_s,
            ssl_seed=cfg.ssl_seed,
            key_file=cfg.key_file,
            verify_tls=cfg.verify_tls,
        )

    def _ssl_context(self) -> ssl.SSLContext:
        """
        Build the client context and load the certificate chain.

        Raises
        ------
        OSError
            If the certificate or key file cannot be read.
        ssl.SSLError
            If the certificate or key is invalid.
        """
        ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        if not self.verify_tls:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE

        certfile = str(Path(self.cert_file).expanduser().resolve())
        keyfile = str(Path(self.key_file).expanduser().resolve()) if self.key_file else None
        ctx.load_cert_chain(certfile=certfile, keyfile=keyfile)
        return ctx

    def connect(self) -> None:
        """
        Open the TLS session to the configured host/port.

        Notes
        -----
        - The timeout covers the TCP connect and the handshake.
        - After the handshake the socket is put in blocking mode; writes are
          not time-bounded.

        Raises
        ------
        OSError
            DNS, connect or handshake failure (``ssl.SSLError`` and
            ``socket.timeout`` are subclasses).
        """
        if self.ssl_seed:
            ssl.RAND_add(self.ssl_seed, float(len(self.ssl_seed)))

        ctx = self._ssl_context()
        raw = socket.create_connection((self.host, self.port), timeout=self.timeout_s)
        try:
            sock = ctx.wrap_socket(raw, server_hostname=self.host)
        except BaseException:
            raw.close()
            raise
        sock.settimeout(None)
        self._sock = sock
        logger.info("Connected to gateway at %s:%s", self.host, self.port)

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def send(self, frame: bytes) -> None:
        """
        Write one frame as a single transmission.

        Raises
        ------
        RuntimeError
            If called before :meth:`connect` or after :meth:`close`.
        OSError
            If the write fails.
        """
        if not self._sock:
            raise RuntimeError("Not connected")
        self._sock.sendall(frame)

    def wait_readable(self, timeout: Optional[float]) -> bool:
        """
        Wait until the underlying socket has input, without touching the TLS
        session.

        Returns
        -------
        bool
            True if the socket is readable, False on timeout.

        Raises
        ------
        RuntimeError
            If called before :meth:`connect` or after :meth:`close`.
        OSError, ValueError
            If the socket is closed while waiting.
        """
        sock = self._sock
        if not sock:
            raise RuntimeError("Not connected")
        readable, _, _ = select.select([sock], [], [], timeout)
        return bool(readable)

    def recv_nowait(self, bufsize: int = 4096) -> Optional[bytes]:
        """
        Read whatever application data the session has, without blocking.

        The socket is switched to non-blocking mode for the read only, then
        back to blocking mode for writes. Call it from the thread that writes.

        Returns
        -------
        bytes or None
            Received bytes; ``b""`` when the peer closed the connection;
            None when the readable input held no application data (for
            example a TLS session ticket).

        Raises
        ------
        RuntimeError
            If called before :meth:`connect` or after :meth:`close`.
        OSError
            If the read fails.
        """
        sock = self._sock
        if not sock:
            raise RuntimeError("Not connected")
        sock.setblocking(False)
        try:
            return sock.recv(bufsize)
        except (ssl.SSLWantReadError, BlockingIOError):
            return None
        finally:
            sock.setblocking(True)

    def close(self) -> None:
        """
        Close the session if open.

        Notes
        -----
        The socket is shut down first so a thread blocked in :meth:`wait_readable`
        wakes up. Errors on this shutdown path are ignored.
        """
        sock = self._sock
        if sock is None:
            return
        self._sock = None
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            sock.close()
        except OSError:
            pass
