from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

from apnsconn.domain.models import Alert, LocalizedAlert, NotificationMessage
from apnsconn.errors import InvalidPayloadError


def _is_int(value: Any) -> bool:
    # bool is an int subclass but is not a badge count
    return isinstance(value, int) and not isinstance(value, bool)


def _localized_alert_obj(alert: LocalizedAlert) -> Dict[str, Any]:
    """
    Build the nested ``alert`` object for a localized alert.

    Optional fields come first and only when present; ``loc-key`` and
    ``loc-args`` are always emitted.

    Parameters
    ----------
    alert
        Localized alert to convert.

    Returns
    -------
    dict
        Alert object with gateway key names.
    """
    obj: Dict[str, Any] = {}
    if alert.body is not None:
        obj["body"] = str(alert.body)
    if alert.action is not None:
        obj["action-loc-key"] = str(alert.action)
    if alert.image is not None:
        obj["launch-image"] = str(alert.image)
    obj["loc-key"] = str(alert.key)
    obj["loc-args"] = [str(a) for a in alert.args]
    return obj


def _json_value(value: Any) -> Optional[Any]:
    """
    Classify a field value; None means the field is dropped.
    """
    if isinstance(value, str):
        return value
    if _is_int(value):
        return value
    if isinstance(value, LocalizedAlert):
        return _localized_alert_obj(value)
    return None


def build_payload(
    alert: Alert,
    badge: Optional[int],
    sound: Optional[str],
    extra: Optional[Mapping[str, Any]] = None,
) -> bytes:
    """
    Encode notification fields into the gateway's JSON payload.

    The reserved fields are processed in the order alert, badge, sound, and
    each emitted one is placed in front of the previous ones, so the object
    reads ``sound``, ``badge``, ``alert`` followed by the extras. The gateway
    parses the object by key name; callers must not rely on the order.

    Parameters
    ----------
    alert
        Plain text, a :class:`~apnsconn.domain.models.LocalizedAlert`, or None.
    badge
        Badge count or None.
    sound
        Sound name or None.
    extra
        Additional top-level fields. Values that are neither text nor integer
        are dropped. A key that collides with an emitted reserved field is
        ignored.

    Returns
    -------
    bytes
        Compact UTF-8 encoded JSON object.

    Raises
    ------
    InvalidPayloadError
        If some text cannot be encoded as UTF-8.
    """
    emitted: List[Tuple[str, Any]] = []
    for key, value in (("alert", alert), ("badge", badge), ("sound", sound)):
        encoded = _json_value(value)
        if encoded is None:
            continue
        emitted.insert(0, (key, encoded))

    doc: Dict[str, Any] = dict(emitted)
    for key, value in (extra or {}).items():
        key = str(key)
        if key in doc:
            continue
        if isinstance(value, str) or _is_int(value):
            doc[key] = value

    text = json.dumps(doc, ensure_ascii=False, separators=(",", ":"))
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidPayloadError(f"payload is not valid UTF-8 text: {e.reason}") from e


def encode_notification(msg: NotificationMessage) -> bytes:
    """
    Encode the payload of a :class:`~apnsconn.domain.models.NotificationMessage`.
    """
    return build_payload(msg.alert, msg.badge, msg.sound, msg.extra)
