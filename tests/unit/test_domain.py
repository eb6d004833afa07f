"""
Unit tests for apnsconn.domain.models and apnsconn.domain.events.

These tests verify:
- Enum stability for ActorState and TerminationKind
- Immutability of configs, messages and terminations
- Defaults of ConnectionConfig and NotificationMessage
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from apnsconn.domain.events import Termination, TerminationKind
from apnsconn.domain.models import ActorState, ConnectionConfig, LocalizedAlert, NotificationMessage


def test_actor_state_enum_values() -> None:
    assert ActorState.STARTING.value == "STARTING"
    assert ActorState.CONNECTED.value == "CONNECTED"
    assert ActorState.TERMINATED.value == "TERMINATED"


def test_termination_kind_enum_values() -> None:
    assert {k.value for k in TerminationKind} == {
        "NORMAL",
        "TRANSPORT_ERROR",
        "PEER_CLOSED",
        "UNRECOGNIZED_INPUT",
    }


def test_connection_config_defaults() -> None:
    cfg = ConnectionConfig()
    assert cfg.host == "gateway.sandbox.push.apple.com"
    assert cfg.port == 2195
    assert cfg.cert_file == "priv/cert.pem"
    assert cfg.timeout_s == 30.0
    assert cfg.ssl_seed is None
    assert cfg.key_file is None
    assert cfg.verify_tls is True


def test_connection_config_is_frozen() -> None:
    cfg = ConnectionConfig()
    with pytest.raises(FrozenInstanceError):
        cfg.port = 1  # type: ignore[misc]


def test_notification_message_defaults(token_hex: str) -> None:
    msg = NotificationMessage(device_token=token_hex)
    assert msg.alert is None
    assert msg.badge is None
    assert msg.sound is None
    assert dict(msg.extra) == {}


def test_notification_message_is_frozen(token_hex: str) -> None:
    msg = NotificationMessage(device_token=token_hex, alert="hi")
    with pytest.raises(FrozenInstanceError):
        msg.alert = "changed"  # type: ignore[misc]


def test_localized_alert_defaults() -> None:
    alert = LocalizedAlert(key="K")
    assert tuple(alert.args) == ()
    assert alert.body is None
    assert alert.action is None
    assert alert.image is None


def test_termination_normal_and_str() -> None:
    normal = Termination(TerminationKind.NORMAL)
    assert normal.is_normal
    assert str(normal) == "NORMAL"

    err = Termination(TerminationKind.TRANSPORT_ERROR, OSError("pipe"))
    assert not err.is_normal
    assert str(err).startswith("TRANSPORT_ERROR(")
    assert "pipe" in str(err)


def test_peer_closed_distinct_from_error() -> None:
    """
    Owners must be able to tell "gateway dropped us" from "we errored".
    """
    assert Termination(TerminationKind.PEER_CLOSED) != Termination(TerminationKind.TRANSPORT_ERROR)
