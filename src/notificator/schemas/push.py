"""
Pydantic schemas for web push notifications
"""

import json
from enum import Enum
from typing import Annotated, Any, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ActionOperation(str, Enum):
    """What the service worker does when an action is clicked"""
    OPEN_WINDOW = "OpenWindow"
    FOCUS_LAST_FOCUSED_OR_OPEN = "FocusLastFocusedOrOpen"
    NAVIGATE_LAST_FOCUSED_OR_OPEN = "NavigateLastFocusedOrOpen"
    SEND_REQUEST = "SendRequest"


class NotificationAction(BaseModel):
    """A notification button. The title "default" marks the body click handler."""
    title: str
    operation: ActionOperation
    url: str


VibrationDuration = Annotated[int, Field(ge=0, le=65535)]


class NotificationDescriptor(BaseModel):
    """https://developer.mozilla.org/en-US/docs/Web/API/Notification#instance_properties"""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    badge: Optional[str] = None
    body: Optional[str] = None
    # Opaque JSON handed to the application's service worker
    data: Optional[Any] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    lang: Optional[str] = None
    renotify: Optional[bool] = None
    require_interaction: Optional[bool] = Field(default=None, alias="requireInteraction")
    silent: Optional[bool] = None
    tag: Optional[str] = None
    # Unix time in milliseconds, defaults to the time the push is processed
    timestamp: Optional[int] = Field(default=None, ge=0)
    vibrate: Optional[List[VibrationDuration]] = None
    actions: Optional[List[NotificationAction]] = None

    @model_validator(mode="after")
    def check_data_for_actions(self):
        if self.actions and self.data is not None and not isinstance(self.data, dict):
            raise ValueError("data must be a JSON object when actions are present")
        return self

    @model_validator(mode="after")
    def check_utf8(self):
        # JSON escapes can smuggle lone surrogates that UTF-8 cannot carry
        try:
            json.dumps(self.model_dump(), ensure_ascii=False).encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("notification must only contain valid Unicode text")
        return self


class PushPayload(BaseModel):
    notification: NotificationDescriptor


class PushSubscriptionKeys(BaseModel):
    """Keys for push subscription encryption"""
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class PushSubscriptionInfo(BaseModel):
    """Subscription as produced by PushSubscription.toJSON() in the browser"""
    endpoint: str
    keys: PushSubscriptionKeys

    @field_validator("endpoint")
    @classmethod
    def check_endpoint(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("endpoint must be an http(s) URL")
        return value

    def to_subscription_info(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.keys.p256dh, "auth": self.keys.auth},
        }


class NotificationRequest(BaseModel):
    """Request to send one notification to one subscription"""
    subscription: PushSubscriptionInfo
    payload: PushPayload
