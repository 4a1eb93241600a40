"""Notification request and result models."""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Sequence, Tuple, Union

NEW_NOTIFICATION = -1
SERVER_DEFAULT_TIMEOUT = -1


class Urgency(enum.IntEnum):
    """Values of the ``urgency`` hint."""

    LOW = 0
    NORMAL = 1
    CRITICAL = 2


# Standard hints and their wire types, from the Desktop Notifications spec
HINT_SIGNATURES: Dict[str, str] = {
    "action-icons": "b",
    "category": "s",
    "desktop-entry": "s",
    "image-path": "s",
    "resident": "b",
    "sound-file": "s",
    "sound-name": "s",
    "suppress-sound": "b",
    "transient": "b",
    "urgency": "y",
    "x": "i",
    "y": "i",
}

ActionPairs = Sequence[Tuple[str, str]]
FlatActions = Sequence[str]


@dataclass(frozen=True)
class NotificationRequest:
    """Arguments of one org.freedesktop.Notifications.Notify call.

    Built right before a call and discarded afterwards. Validation happens
    when the request is serialized, see :func:`dbusdemo.notify.payload.build`.
    """

    app_name: str
    summary: str
    body: str = ""
    replaces_id: int = NEW_NOTIFICATION
    icon: str = ""
    actions: Union[ActionPairs, FlatActions] = field(default_factory=tuple)
    hints: Mapping[str, Any] = field(default_factory=dict)
    expire_timeout: int = SERVER_DEFAULT_TIMEOUT


@dataclass(frozen=True)
class NotificationResult:
    """Notification id assigned by the notification daemon."""

    id: int
