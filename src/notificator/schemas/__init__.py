from .push import (
    ActionOperation,
    NotificationAction,
    NotificationDescriptor,
    NotificationRequest,
    PushPayload,
    PushSubscriptionInfo,
    PushSubscriptionKeys,
)

__all__ = [
    "ActionOperation",
    "NotificationAction",
    "NotificationDescriptor",
    "NotificationRequest",
    "PushPayload",
    "PushSubscriptionInfo",
    "PushSubscriptionKeys",
]
