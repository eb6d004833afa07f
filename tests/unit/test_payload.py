"""
Unit tests for apnsconn.notification.payload.

These tests validate the JSON payload encoder:
- plain alert / badge / sound are emitted with correct JSON types
- localized alerts produce the nested alert object, omitting absent fields
- None values and unsupported extra values are dropped (never null)
- extras are merged at the top level; reserved keys win on collision
- text that cannot be encoded as UTF-8 raises InvalidPayloadError

Key order is not asserted except where the wire order is documented.
No I/O is involved.
"""

from __future__ import annotations

import json

import pytest

from apnsconn.domain.models import LocalizedAlert, NotificationMessage
from apnsconn.errors import FrameError, InvalidPayloadError
from apnsconn.notification.payload import build_payload, encode_notification


def _decode(payload: bytes) -> dict:
    return json.loads(payload.decode("utf-8"))


def test_plain_alert_badge_sound() -> None:
    """
    alert="Hello", badge=5, sound="default" -> exactly those three typed keys.
    """
    doc = _decode(build_payload("Hello", 5, "default"))
    assert doc == {"alert": "Hello", "badge": 5, "sound": "default"}
    assert isinstance(doc["badge"], int)


def test_payload_is_compact_utf8_json() -> None:
    """
    The encoder emits no whitespace between tokens and keeps non-ASCII text as UTF-8.
    """
    payload = build_payload("Grüße", 1, None)
    assert b" " not in payload
    assert "Grüße".encode("utf-8") in payload
    assert _decode(payload)["alert"] == "Grüße"


def test_absent_fields_are_dropped_not_null() -> None:
    """
    None alert/badge/sound must not appear in the object at all.
    """
    assert _decode(build_payload(None, None, None)) == {}
    assert b"null" not in build_payload(None, 3, None)
    assert _decode(build_payload(None, 3, None)) == {"badge": 3}


def test_localized_alert_minimal() -> None:
    """
    key="GREETING", args=["Bob"] -> only loc-key and loc-args in the alert object.
    """
    alert = LocalizedAlert(key="GREETING", args=["Bob"])
    doc = _decode(build_payload(alert, None, None))
    assert doc == {"alert": {"loc-key": "GREETING", "loc-args": ["Bob"]}}


def test_localized_alert_all_fields_in_order() -> None:
    """
    Optional fields come first (body, action-loc-key, launch-image), then loc-key, loc-args.
    """
    alert = LocalizedAlert(
        key="INVITE",
        args=("Ann", "Bob", "3"),
        body="You have an invite",
        action="VIEW",
        image="splash.png",
    )
    obj = _decode(build_payload(alert, None, None))["alert"]
    assert list(obj) == ["body", "action-loc-key", "launch-image", "loc-key", "loc-args"]
    assert obj["body"] == "You have an invite"
    assert obj["action-loc-key"] == "VIEW"
    assert obj["launch-image"] == "splash.png"
    assert obj["loc-args"] == ["Ann", "Bob", "3"]


def test_localized_alert_with_empty_args() -> None:
    """
    loc-args is always emitted, even when there are no arguments.
    """
    obj = _decode(build_payload(LocalizedAlert(key="PING"), None, None))["alert"]
    assert obj == {"loc-key": "PING", "loc-args": []}


def test_reserved_fields_are_prepended() -> None:
    """
    Reserved keys come out in reverse processing order, ahead of extras.
    """
    doc = _decode(build_payload("a", 1, "s", {"x": 1}))
    assert list(doc) == ["sound", "badge", "alert", "x"]


def test_extra_fields_text_and_int_are_merged() -> None:
    doc = _decode(build_payload("Hi", None, None, {"conversation": "c-42", "count": 7}))
    assert doc == {"alert": "Hi", "conversation": "c-42", "count": 7}


def test_extra_fields_of_other_kinds_are_silently_dropped() -> None:
    """
    Nested structures, floats, booleans and None extras are omitted, never null.
    """
    extra = {
        "nested": {"a": 1},
        "items": [1, 2],
        "ratio": 0.5,
        "flag": True,
        "missing": None,
        "kept": "yes",
    }
    payload = build_payload(None, None, None, extra)
    assert _decode(payload) == {"kept": "yes"}
    assert b"null" not in payload


def test_bool_badge_is_not_an_integer() -> None:
    assert _decode(build_payload(None, True, None)) == {}


def test_extra_cannot_override_reserved_field() -> None:
    doc = _decode(build_payload("real", None, None, {"alert": "fake", "badge": 9}))
    assert doc["alert"] == "real"
    assert doc["badge"] == 9


def test_encode_notification_uses_message_fields(token_hex: str) -> None:
    msg = NotificationMessage(
        device_token=token_hex,
        alert="Hello",
        badge=2,
        sound="chime",
        extra={"id": 12},
    )
    assert _decode(encode_notification(msg)) == {
        "alert": "Hello",
        "badge": 2,
        "sound": "chime",
        "id": 12,
    }


def test_extra_keys_are_compared_as_text() -> None:
    """
    A non-text key is converted before the collision check, so it cannot replace
    an existing key with the same text.
    """
    doc = _decode(build_payload(None, None, None, {"1": "first", 1: "second"}))
    assert doc == {"1": "first"}


def test_unencodable_text_raises_invalid_payload() -> None:
    with pytest.raises(InvalidPayloadError) as excinfo:
        build_payload("bad \ud800", None, None)
    assert isinstance(excinfo.value, FrameError)
    assert isinstance(excinfo.value.__cause__, UnicodeEncodeError)


def test_unencodable_extra_value_raises_invalid_payload() -> None:
    with pytest.raises(InvalidPayloadError):
        build_payload(None, None, None, {"note": "\udfff"})
