from __future__ import annotations

import itertools
import logging
import threading
from queue import Empty, Queue
from typing import Any, Callable, Optional

from apnsconn.domain.events import Termination, TerminationKind
from apnsconn.domain.models import ActorState, ConnectionConfig, NotificationMessage
from apnsconn.errors import ActorTerminatedError, FrameError, StartupError
from apnsconn.runtime.mailbox import (
    Call,
    MailboxMessage,
    Readable,
    Send,
    SocketClosed,
    Stop,
    UnknownRequest,
    Unrecognized,
)
from apnsconn.transport.base import GatewayClient
from apnsconn.transport.framing import encode_frame
from apnsconn.transport.tls_client import TLSGatewayClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ConnectionConfig], GatewayClient]
TerminateCallback = Callable[["ConnectionActor", Termination], None]

WATCH_INTERVAL_S = 0.5

_TERMINATED = object()
_ids = itertools.count(1)


class ConnectionActor:
    """
    Single-threaded owner of one gateway session.

    Responsibilities
    ----------------
    - Establish the TLS session during :meth:`start` (blocking, time-bounded).
    - Consume the mailbox strictly in FIFO order on its own thread:
      encode, frame and write each notification.
    - Turn every failure or anomaly into a final :class:`Termination`.
    - Close the session on every exit path and report the termination to
      the owner.

    Concurrency Model
    -----------------
    - One mailbox thread runs all handlers; the gateway client is read and
      written only from that thread.
    - One watcher thread waits for the socket to become readable and posts
      :class:`Readable`, then waits until the mailbox thread has read. The
      read turns EOF into :class:`SocketClosed` and stray data or read
      errors into unrecognized input.
    - Public methods only enqueue, so they are safe from any thread.

    There is no reconnection. Once terminated the actor stays terminated;
    the owner creates a new actor to resume service.

    Parameters
    ----------
    cfg
        Connection parameters.
    on_terminate
        Optional callback ``(actor, termination)`` invoked once from the
        mailbox thread after the session is closed.
    name
        Thread name prefix and identifier in logs.
    client_factory
        Builds the gateway client from ``cfg``. Defaults to
        :meth:`TLSGatewayClient.from_config`.
    """

    def __init__(
        self,
        cfg: ConnectionConfig,
        on_terminate: Optional[TerminateCallback] = None,
        name: Optional[str] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self._cfg = cfg
        self._on_terminate = on_terminate
        self.name = name or f"apns-connection-{next(_ids)}"
        self._client_factory = client_factory or TLSGatewayClient.from_config

        self._mailbox: "Queue[Any]" = Queue()
        self._lock = threading.Lock()
        self._accepting = True
        self._done = threading.Event()
        self._read_done = threading.Event()

        self._state = ActorState.STARTING
        self._termination: Optional[Termination] = None
        self._client: Optional[GatewayClient] = None

        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._watcher = threading.Thread(target=self._watch, name=f"{self.name}-watcher", daemon=True)

    def __repr__(self) -> str:
        return f"<ConnectionActor {self.name} {self._state.value}>"

    @property
    def config(self) -> ConnectionConfig:
        return self._cfg

    @property
    def state(self) -> ActorState:
        return self._state

    @property
    def termination(self) -> Optional[Termination]:
        """Terminal reason, or None while running (or after a failed start)."""
        return self._termination

    @property
    def handle(self) -> Optional[GatewayClient]:
        """
        The session handle, for matching socket-closed notifications.

        Only the actor writes to it.
        """
        return self._client

    # ---- owner API ----

    def start(self) -> "ConnectionActor":
        """
        Open the gateway session and start the mailbox thread.

        Returns
        -------
        ConnectionActor
            ``self``, now in ``CONNECTED``.

        Raises
        ------
        StartupError
            If the handshake fails. The actor is then ``TERMINATED`` and
            never processes messages.
        RuntimeError
            If the actor was already started.
        """
        if self._state is not ActorState.STARTING:
            raise RuntimeError(f"{self.name} already started")

        client: Optional[GatewayClient] = None
        try:
            client = self._client_factory(self._cfg)
            client.connect()
        except Exception as e:
            if client is not None:
                client.close()
            with self._lock:
                self._accepting = False
                self._state = ActorState.TERMINATED
            self._done.set()
            logger.warning(
                "%s: connection to %s:%s failed: %r", self.name, self._cfg.host, self._cfg.port, e
            )
            raise StartupError(e) from e

        self._client = client
        self._state = ActorState.CONNECTED
        self._thread.start()
        self._watcher.start()
        return self

    def send(self, msg: NotificationMessage) -> None:
        """
        Queue a notification for delivery (fire-and-forget).

        The message is validated in the caller's thread so a malformed token or
        an oversized payload never reaches the socket. Delivery failures are
        reported later through the termination reason.

        Raises
        ------
        InvalidTokenError
            If the device token is not 64 hex characters.
        InvalidPayloadError
            If some text in the message cannot be encoded as UTF-8.
        PayloadTooLargeError
            If the encoded payload exceeds 65535 bytes.
        """
        payload, frame = encode_frame(msg)
        self._post(Send(msg, payload=payload, frame=frame))

    def stop(self) -> None:
        """Ask the actor to end the session (fire-and-forget)."""
        self._post(Stop())

    def post(self, info: Any) -> None:
        """
        Deliver an asynchronous notification to the mailbox.

        Used by the socket watcher; anything that is not one of the mailbox
        messages terminates the actor as unrecognized input.
        """
        self._post(info)

    def call(self, request: Any, timeout: Optional[float] = None) -> Any:
        """
        Send a synchronous request.

        The actor has no synchronous protocol: every request is answered with
        :class:`UnknownRequest` and the actor then terminates.

        Raises
        ------
        ActorTerminatedError
            If the actor terminated before answering, or did not answer
            within `timeout`.
        """
        reply: "Queue[Any]" = Queue(maxsize=1)
        if not self._post(Call(request=request, reply=reply)):
            raise ActorTerminatedError(f"{self.name} is terminated")
        try:
            answer = reply.get(timeout=timeout)
        except Empty:
            raise ActorTerminatedError(f"{self.name} did not answer within {timeout}s") from None
        if answer is _TERMINATED:
            raise ActorTerminatedError(f"{self.name} is terminated")
        return answer

    def wait(self, timeout: Optional[float] = None) -> Optional[Termination]:
        """
        Block until the actor terminates.

        Returns
        -------
        Termination or None
            The terminal reason, or None on timeout or after a failed start.
        """
        self._done.wait(timeout)
        return self._termination

    def is_alive(self) -> bool:
        return not self._done.is_set()

    # ---- internals ----

    def _post(self, msg: Any) -> bool:
        with self._lock:
            if not self._accepting:
                logger.debug("%s: discarding %r, actor is terminated", self.name, msg)
                return False
            self._mailbox.put(msg)
            return True

    def _run(self) -> None:
        """
        Mailbox loop: dispatch messages until one of them is terminal.
        """
        termination: Optional[Termination] = None
        try:
            while termination is None:
                termination = self._dispatch(self._mailbox.get())
        except Exception as e:
            logger.exception("%s: unexpected failure in mailbox loop", self.name)
            termination = Termination(TerminationKind.UNRECOGNIZED_INPUT, e)
        finally:
            self._terminate(termination or Termination(TerminationKind.NORMAL))

    def _dispatch(self, msg: MailboxMessage) -> Optional[Termination]:
        if isinstance(msg, Send):
            return self._handle_send(msg)

        if isinstance(msg, Stop):
            return Termination(TerminationKind.NORMAL)

        if isinstance(msg, Readable) and msg.handle is self._client:
            return self._handle_readable()

        if isinstance(msg, SocketClosed) and msg.handle is self._client:
            return Termination(TerminationKind.PEER_CLOSED)

        if isinstance(msg, Call):
            msg.reply.put(UnknownRequest(msg.request))
            return Termination(TerminationKind.UNRECOGNIZED_INPUT, msg.request)

        if isinstance(msg, Unrecognized):
            return Termination(TerminationKind.UNRECOGNIZED_INPUT, msg.payload)

        # anything else, including socket events for another handle
        return Termination(TerminationKind.UNRECOGNIZED_INPUT, msg)

    def _handle_send(self, msg: Send) -> Optional[Termination]:
        payload, frame = msg.payload, msg.frame
        if payload is None or frame is None:
            # posted directly, not through send()
            try:
                payload, frame = encode_frame(msg.message)
            except FrameError as e:
                return Termination(TerminationKind.UNRECOGNIZED_INPUT, e)

        logger.info("%s: Sending: %s", self.name, payload.decode("utf-8"))
        try:
            self._client.send(frame)  # type: ignore[union-attr]
        except (OSError, RuntimeError) as e:
            return Termination(TerminationKind.TRANSPORT_ERROR, e)
        return None

    def _handle_readable(self) -> Optional[Termination]:
        client = self._client
        try:
            data = client.recv_nowait()  # type: ignore[union-attr]
        except Exception as e:
            return Termination(TerminationKind.UNRECOGNIZED_INPUT, ("ssl_error", e))
        finally:
            self._read_done.set()

        if data is None:
            return None
        if not data:
            return self._dispatch(SocketClosed(client))
        return Termination(TerminationKind.UNRECOGNIZED_INPUT, ("ssl", data))

    def _terminate(self, termination: Termination) -> None:
        """
        Enter the final state: stop accepting input, close the session,
        answer pending calls and notify the owner.
        """
        with self._lock:
            self._accepting = False
            self._state = ActorState.TERMINATED
            self._termination = termination

        if self._client is not None:
            try:
                self._client.close()
            except Exception:
                logger.exception("%s: closing the gateway session failed", self.name)
        self._read_done.set()

        while True:
            try:
                pending = self._mailbox.get_nowait()
            except Empty:
                break
            if isinstance(pending, Call):
                pending.reply.put(_TERMINATED)

        if termination.is_normal:
            logger.info("%s: terminated: %s", self.name, termination)
        else:
            logger.warning("%s: terminated: %s", self.name, termination)

        try:
            if self._on_terminate is not None:
                self._on_terminate(self, termination)
        except Exception:
            logger.exception("%s: on_terminate callback failed", self.name)
        finally:
            self._done.set()

    def _watch(self) -> None:
        """
        Socket watcher loop: report readable input to the mailbox thread.

        The watcher never reads from the session itself. After posting
        :class:`Readable` it waits until the mailbox thread has done the read.
        """
        client = self._client
        if client is None:
            return
        while self._state is not ActorState.TERMINATED:
            try:
                ready = client.wait_readable(WATCH_INTERVAL_S)
            except Exception as e:
                if self._state is not ActorState.TERMINATED:
                    self._post(Unrecognized(("ssl_error", e)))
                return
            if not ready:
                continue
            self._read_done.clear()
            if not self._post(Readable(client)):
                return
            self._read_done.wait()
