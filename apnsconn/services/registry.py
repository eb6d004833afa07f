from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Union

from apnsconn.domain.events import Termination
from apnsconn.domain.models import ActorState, ConnectionConfig, NotificationMessage
from apnsconn.errors import AlreadyStartedError, UnknownConnectionError
from apnsconn.runtime.connection_actor import ClientFactory, ConnectionActor, TerminateCallback

logger = logging.getLogger(__name__)

ConnId = Union[str, ConnectionActor]


class ConnectionRegistry:
    """
    Owner-side helper that starts connection actors and addresses them by name.

    A connection can be addressed either by the name it was started under or
    by the actor itself. Terminated actors drop out of the registry
    automatically; restarting them is left to the caller.

    Parameters
    ----------
    on_terminate
        Optional callback forwarded every actor termination.
    client_factory
        Gateway client factory handed to every actor (tests inject fakes).
    """

    def __init__(
        self,
        on_terminate: Optional[TerminateCallback] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self._on_terminate = on_terminate
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._by_name: Dict[str, ConnectionActor] = {}

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._by_name

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._by_name)

    def connect(self, cfg: ConnectionConfig, name: Optional[str] = None) -> ConnectionActor:
        """
        Start a connection actor, optionally registered under `name`.

        Raises
        ------
        AlreadyStartedError
            If a live actor already holds `name`.
        StartupError
            If the gateway handshake fails.
        """
        if name is not None:
            with self._lock:
                existing = self._by_name.get(name)
            if existing is not None and existing.is_alive():
                raise AlreadyStartedError(name, existing)

        actor = ConnectionActor(
            cfg,
            on_terminate=self._terminated,
            name=name,
            client_factory=self._client_factory,
        )
        actor.start()

        if name is not None:
            with self._lock:
                existing = self._by_name.get(name)
                if existing is not None and existing.is_alive():
                    actor.stop()
                    raise AlreadyStartedError(name, existing)
                if actor.state is not ActorState.TERMINATED:
                    self._by_name[name] = actor
        return actor

    def lookup(self, conn_id: ConnId) -> ConnectionActor:
        """
        Resolve a name or actor to an actor.

        Raises
        ------
        UnknownConnectionError
            If no connection is registered under the name.
        """
        if isinstance(conn_id, ConnectionActor):
            return conn_id
        with self._lock:
            actor = self._by_name.get(conn_id)
        if actor is None:
            raise UnknownConnectionError(conn_id)
        return actor

    def send_message(self, conn_id: ConnId, msg: NotificationMessage) -> None:
        self.lookup(conn_id).send(msg)

    def stop(self, conn_id: ConnId) -> None:
        self.lookup(conn_id).stop()

    def stop_all(self, timeout: Optional[float] = 2.0) -> None:
        """
        Stop every registered connection and wait briefly for each.
        """
        with self._lock:
            actors = list(self._by_name.values())
        for actor in actors:
            actor.stop()
        for actor in actors:
            actor.wait(timeout)

    def _terminated(self, actor: ConnectionActor, termination: Termination) -> None:
        with self._lock:
            if self._by_name.get(actor.name) is actor:
                del self._by_name[actor.name]
        logger.debug("Connection %s removed from registry (%s)", actor.name, termination)
        if self._on_terminate is not None:
            self._on_terminate(actor, termination)
