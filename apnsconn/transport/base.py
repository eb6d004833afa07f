from __future__ import annotations

from typing import Optional, Protocol


class GatewayClient(Protocol):
    """
    Protocol interface for a gateway session.

    Any object providing these methods can back a connection actor.
    :class:`~apnsconn.transport.tls_client.TLSGatewayClient` is the
    production implementation; tests use in-memory fakes.

    The client object itself is the socket *handle*: socket-closed
    notifications name the client they refer to, and the actor compares
    handles by identity.

    Methods
    -------
    connect()
        Establish the session (bounded by the configured timeout).
    send(frame)
        Write one frame as a single transmission.
    wait_readable(timeout)
        Block until the underlying socket has input or `timeout` elapses.
        Must not touch the TLS session, since it runs on the watcher thread.
    recv_nowait(bufsize)
        Non-blocking read. ``None`` means no application data was available,
        ``b""`` means the peer closed the session.
    close()
        Release the session. Must be safe to call more than once.
    """

    def connect(self) -> None:
        ...

    def send(self, frame: bytes) -> None:
        ...

    def wait_readable(self, timeout: Optional[float]) -> bool:
        ...

    def recv_nowait(self, bufsize: int = 4096) -> Optional[bytes]:
        ...

    def close(self) -> None:
        ...
