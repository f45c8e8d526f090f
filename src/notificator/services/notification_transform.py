"""
Notification Transform

Turns a NotificationDescriptor into the payload the service worker receives.

Action buttons are sent index-coded: each action gets the key "A1", "A2", ...
in input order and the click routing for every key travels in
``data.onActionClick``. An action titled "default" is the handler for a
click on the notification body: it consumes its index, is routed under the
literal key "default" and is not shown as a button.
"""

import copy
import json
import time
from typing import Optional

from src.notificator.schemas.push import NotificationDescriptor

DEFAULT_ACTION = "default"


def current_time_ms() -> int:
    return int(time.time() * 1000)


def encode_actions(actions):
    """Return (visible buttons, onActionClick map) for a list of actions."""
    buttons = []
    on_action_click = {}

    for index, action in enumerate(actions, start=1):
        key = f"A{index}"
        if action.title == DEFAULT_ACTION:
            key = DEFAULT_ACTION
        else:
            buttons.append({"action": key, "title": action.title})
        on_action_click[key] = {"operation": action.operation.value, "url": action.url}

    return buttons, on_action_click


def to_wire_payload(notification: NotificationDescriptor, now_ms: Optional[int] = None) -> dict:
    """
    Build the wire payload for a notification.

    Args:
        notification: Validated notification descriptor (left untouched)
        now_ms: Timestamp to use when the descriptor has none; defaults to
            the current epoch milliseconds

    Returns:
        ``{"notification": {...}}`` with absent optional fields omitted
    """
    timestamp = notification.timestamp
    if timestamp is None:
        timestamp = now_ms if now_ms is not None else current_time_ms()

    wire = notification.model_copy(update={"timestamp": timestamp}).model_dump(
        by_alias=True, exclude_none=True, exclude={"data", "actions"}
    )

    data = copy.deepcopy(notification.data)

    if notification.actions:
        buttons, on_action_click = encode_actions(notification.actions)
        if data is None:
            data = {}
        data["onActionClick"] = on_action_click
        if buttons:
            wire["actions"] = buttons

    if data is not None:
        wire["data"] = data

    return {"notification": wire}


def serialize_payload(payload: dict) -> bytes:
    """Compact JSON; every byte counts against the push service's size limit."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
