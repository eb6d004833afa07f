"""
Shared test doubles for the connection layer.

FakeGatewayClient implements the GatewayClient protocol in memory:
- connect()/send() can be told to fail
- sent frames are recorded in order
- wait_readable() blocks until the test feeds bytes, hangs up (b""), makes
  the socket fail or the client is closed (OSError), mirroring select() on a
  real socket; recv_nowait() then returns or raises what was fed
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from queue import Empty, Queue
from typing import Any, Callable, List, Optional

import pytest

from apnsconn.domain.models import ConnectionConfig

_NOTHING = object()
_CLOSED = object()


@dataclass(frozen=True)
class _WaitFailure:
    error: BaseException


@dataclass(eq=False)
class FakeGatewayClient:
    connect_error: Optional[BaseException] = None
    send_error: Optional[BaseException] = None
    cfg: Optional[ConnectionConfig] = None
    sent: List[bytes] = field(default_factory=list)
    connected: bool = False
    close_calls: int = 0
    sent_event: threading.Event = field(default_factory=threading.Event)
    _incoming: "Queue[Any]" = field(default_factory=Queue)
    _ready: Any = _NOTHING

    def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def send(self, frame: bytes) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(frame)
        self.sent_event.set()

    def wait_readable(self, timeout: Optional[float]) -> bool:
        if self._ready is _NOTHING:
            try:
                self._ready = self._incoming.get(timeout=timeout)
            except Empty:
                return False
        if self._ready is _CLOSED:
            raise OSError("closed locally")
        if isinstance(self._ready, _WaitFailure):
            raise self._ready.error
        return True

    def recv_nowait(self, bufsize: int = 4096) -> Optional[bytes]:
        item, self._ready = self._ready, _NOTHING
        if item is _NOTHING or item is None:
            return None
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.close_calls += 1
        self.connected = False
        self._incoming.put(_CLOSED)

    # ---- test controls ----

    def feed(self, data: bytes) -> None:
        """Simulate bytes arriving from the gateway."""
        self._incoming.put(data)

    def hang_up(self) -> None:
        """Simulate the gateway closing the connection."""
        self._incoming.put(b"")

    def fail_read(self, error: BaseException) -> None:
        """Make the next read from the session raise `error`."""
        self._incoming.put(error)

    def fail_wait(self, error: BaseException) -> None:
        """Make waiting for input on the socket raise `error`."""
        self._incoming.put(_WaitFailure(error))

    def ticket(self) -> None:
        """Simulate readable input that carries no application data."""
        self._incoming.put(None)

    @property
    def closed(self) -> bool:
        return self.close_calls > 0


class FakeClientFactory:
    """
    Client factory recording every client it builds.

    Keyword arguments are forwarded to each FakeGatewayClient.
    """

    def __init__(self, **client_kwargs: Any) -> None:
        self.client_kwargs = client_kwargs
        self.clients: List[FakeGatewayClient] = []

    def __call__(self, cfg: ConnectionConfig) -> FakeGatewayClient:
        client = FakeGatewayClient(cfg=cfg, **self.client_kwargs)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeGatewayClient:
        return self.clients[-1]


@pytest.fixture
def make_client_factory() -> Callable[..., FakeClientFactory]:
    """Build a FakeClientFactory; e.g. ``make_client_factory(send_error=OSError())``."""
    return FakeClientFactory


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def token_hex() -> str:
    return "ac812b2d723f40f206204402f1c870c8d8587799370bd41d6723145c4e4ebbd7"
