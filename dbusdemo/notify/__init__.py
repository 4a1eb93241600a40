"""Desktop notification module initialization."""

from .models import NotificationRequest, NotificationResult, Urgency
from .payload import SerializedPayload, build
from .sender import NotificationSender

__all__ = [
    "NotificationRequest",
    "NotificationResult",
    "NotificationSender",
    "SerializedPayload",
    "Urgency",
    "build",
]
