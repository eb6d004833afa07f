"""
Termination events reported by a connection actor.

A `Termination` says *why* an actor stopped. It is delivered once to the
owner's callback and kept on the actor for later inspection.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class TerminationKind(str, Enum):
    """
    Cause category of an actor termination.

    Members
    -------
    NORMAL : str
        The owner asked the actor to stop.
    TRANSPORT_ERROR : str
        Writing a frame to the socket failed.
    PEER_CLOSED : str
        The gateway closed the actor's socket.
    UNRECOGNIZED_INPUT : str
        The actor received input outside its protocol.
    """

    NORMAL = "NORMAL"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    PEER_CLOSED = "PEER_CLOSED"
    UNRECOGNIZED_INPUT = "UNRECOGNIZED_INPUT"


@dataclass(frozen=True)
class Termination:
    """
    Terminal reason of a connection actor.

    Parameters
    ----------
    kind
        Cause category.
    detail
        The transport exception for ``TRANSPORT_ERROR``, the offending input
        for ``UNRECOGNIZED_INPUT``, None otherwise.
    """

    kind: TerminationKind
    detail: Any = None

    @property
    def is_normal(self) -> bool:
        return self.kind is TerminationKind.NORMAL

    def __str__(self) -> str:
        if self.detail is None:
            return self.kind.value
        return f"{self.kind.value}({self.detail!r})"
