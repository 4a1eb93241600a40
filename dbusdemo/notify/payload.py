"""Serialization of notification requests into Notify call payloads."""

import typing as t
from dataclasses import dataclass

from dbus_next.errors import SignatureBodyMismatchError
from dbus_next.signature import SignatureTree, Variant

from ..bus.errors import InvalidRequest
from ..bus.transport import MethodCall
from .models import (
    HINT_SIGNATURES,
    NEW_NOTIFICATION,
    SERVER_DEFAULT_TIMEOUT,
    NotificationRequest,
)

NOTIFICATIONS_BUS_NAME = "org.freedesktop.Notifications"
NOTIFICATIONS_PATH = "/org/freedesktop/Notifications"
NOTIFICATIONS_INTERFACE = "org.freedesktop.Notifications"
NOTIFY_METHOD = "Notify"
NOTIFY_SIGNATURE = "susssasa{sv}i"
NOTIFY_REPLY_SIGNATURE = "u"

INT_RANGES = {
    "y": (0, 0xFF),
    "n": (-(2 ** 15), 2 ** 15 - 1),
    "q": (0, 0xFFFF),
    "i": (-(2 ** 31), 2 ** 31 - 1),
    "u": (0, 0xFFFFFFFF),
    "x": (-(2 ** 63), 2 ** 63 - 1),
    "t": (0, 2 ** 64 - 1),
}


@dataclass(frozen=True)
class SerializedPayload:
    """Argument tuple of a Notify call, in protocol order.

    ``body`` holds app name, replaces id, icon, summary, body, flattened
    actions, hints and expire timeout. The order is fixed by the protocol.
    """

    body: t.Tuple[t.Any, ...]
    signature: str = NOTIFY_SIGNATURE

    def as_call(self) -> MethodCall:
        return MethodCall(
            destination=NOTIFICATIONS_BUS_NAME,
            path=NOTIFICATIONS_PATH,
            interface=NOTIFICATIONS_INTERFACE,
            member=NOTIFY_METHOD,
            signature=self.signature,
            body=self.body,
        )


def _check_text(field_name: str, value: t.Any, allow_empty: bool = True) -> str:
    if not isinstance(value, str):
        raise InvalidRequest(f"{field_name} must be a string, got {type(value).__name__}")
    if "\x00" in value:
        raise InvalidRequest(f"{field_name} contains an embedded NUL character")
    if not allow_empty and not value:
        raise InvalidRequest(f"{field_name} must not be empty")
    return value


def _check_int(field_name: str, value: t.Any, signature: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRequest(f"{field_name} must be an integer, got {type(value).__name__}")
    low, high = INT_RANGES[signature]
    if not low <= value <= high:
        raise InvalidRequest(f"{field_name}={value} is out of range for type '{signature}'")
    return int(value)


def _replaces_id(value: t.Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value == NEW_NOTIFICATION:
        return 0
    return _check_int("replaces_id", value, "u")


def _expire_timeout(value: t.Any) -> int:
    timeout = _check_int("expire_timeout", value, "i")
    if timeout < SERVER_DEFAULT_TIMEOUT:
        raise InvalidRequest(f"expire_timeout must be -1, 0 or positive, got {timeout}")
    return timeout


def flatten_actions(actions: t.Any) -> t.List[str]:
    """Flatten (id, label) pairs into the alternating list the protocol uses.

    Raises:
        InvalidRequest: If the actions cannot form whole (id, label) pairs
    """
    if isinstance(actions, (str, bytes)):
        raise InvalidRequest("actions must be a sequence of (id, label) pairs")

    items = list(actions)
    if all(isinstance(item, str) for item in items):
        flat = items
    elif all(isinstance(item, (tuple, list)) and len(item) == 2 for item in items):
        flat = [part for pair in items for part in pair]
    else:
        raise InvalidRequest("actions must be (id, label) pairs or a flat list of strings")

    if len(flat) % 2:
        raise InvalidRequest(f"actions must hold id/label pairs, got {len(flat)} strings")

    for index, value in enumerate(flat):
        role = "label" if index % 2 else "id"
        _check_text(f"action {role} #{index // 2}", value)
    return flat


def _infer_signature(name: str, value: t.Any) -> str:
    if isinstance(value, bool):
        return "b"
    if isinstance(value, int):
        for signature in ("i", "x", "t"):
            low, high = INT_RANGES[signature]
            if low <= value <= high:
                return signature
        raise InvalidRequest(f"hint {name!r}={value} does not fit a 64-bit integer")
    if isinstance(value, str):
        return "s"
    if isinstance(value, float):
        return "d"
    if isinstance(value, (bytes, bytearray)):
        return "ay"
    raise InvalidRequest(f"hint {name!r} has unsupported value type {type(value).__name__}")


def hint_variant(name: str, value: t.Any) -> Variant:
    """Wrap a hint value in a variant of the type the hint requires.

    Raises:
        InvalidRequest: If the value does not suit the hint
    """
    if isinstance(value, Variant):
        return value

    signature = HINT_SIGNATURES.get(name) or _infer_signature(name, value)
    if signature == "b":
        if not isinstance(value, bool):
            raise InvalidRequest(f"hint {name!r} must be a boolean")
    elif signature in INT_RANGES:
        value = _check_int(f"hint {name!r}", value, signature)
    elif signature == "s":
        value = _check_text(f"hint {name!r}", value)
    elif signature == "ay":
        value = bytes(value)

    try:
        return Variant(signature, value)
    except SignatureBodyMismatchError as e:
        raise InvalidRequest(f"hint {name!r} does not match type '{signature}': {e}") from e


def serialize_hints(hints: t.Mapping[str, t.Any]) -> t.Dict[str, Variant]:
    if not isinstance(hints, t.Mapping):
        raise InvalidRequest("hints must be a mapping of hint name to value")
    serialized = {}
    for name, value in hints.items():
        _check_text("hint name", name, allow_empty=False)
        serialized[name] = hint_variant(name, value)
    return serialized


def build(request: NotificationRequest) -> SerializedPayload:
    """Serialize ``request`` into the ``(susssasa{sv}i)`` Notify arguments.

    Nothing is sent here; any problem is reported before a call can be
    issued. Building the same request twice gives equal payloads.

    Args:
        request: Notification to serialize

    Returns:
        SerializedPayload ready for delivery

    Raises:
        InvalidRequest: If a field is malformed, the actions do not pair up
            or a hint value has an unsupported type
    """
    body = (
        _check_text("app_name", request.app_name, allow_empty=False),
        _replaces_id(request.replaces_id),
        _check_text("icon", request.icon),
        _check_text("summary", request.summary),
        _check_text("body", request.body),
        flatten_actions(request.actions),
        serialize_hints(request.hints),
        _expire_timeout(request.expire_timeout),
    )

    try:
        SignatureTree(NOTIFY_SIGNATURE).verify(list(body))
    except SignatureBodyMismatchError as e:
        raise InvalidRequest(f"Notification payload does not match {NOTIFY_SIGNATURE}: {e}") from e

    return SerializedPayload(body=body)
