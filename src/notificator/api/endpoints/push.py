"""
Web Push Notification Endpoints

Send a notification to a subscription and expose the VAPID public key the
frontend subscribes with.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from src.notificator.core.context import AppContext, get_context
from src.notificator.core.errors import KeyFileCorrupt
from src.notificator.schemas.push import NotificationRequest
from src.notificator.services.notification_transform import to_wire_payload
from src.notificator.services.push_service import PushDelivered, dispatch

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Push Notifications"])

NOTIFY_RESPONSES = {
    200: {"description": "Push sent successfully"},
    400: {"description": "Request body doesn't match the expected shape"},
    401: {"description": "Missing or wrong api_key header"},
    500: {"description": "Signature, encryption or delivery failed"},
}


@router.post("/notify", responses=NOTIFY_RESPONSES)
def notify(data: NotificationRequest, context: AppContext = Depends(get_context)):
    """
    Send one notification to one push subscription.

    The notification's actions are index-coded for the service worker and
    the message is signed with the service's VAPID key.
    """
    endpoint = data.subscription.endpoint
    logger.info(f"Notify request for {endpoint}: {data.payload.notification.title!r}")

    payload = to_wire_payload(data.payload.notification)
    outcome = dispatch(
        data.subscription.to_subscription_info(),
        payload,
        context.keys,
        context.settings,
    )

    if isinstance(outcome, PushDelivered):
        return JSONResponse(status_code=200, content="Push sent successfully")
    return JSONResponse(status_code=500, content=outcome.message)


@router.get(
    "/get_public_key",
    response_class=PlainTextResponse,
    responses={200: {"description": "base64url encoded VAPID public key"}},
)
def get_public_key(context: AppContext = Depends(get_context)):
    """
    Get VAPID public key for frontend subscription.

    The frontend passes it as applicationServerKey to pushManager.subscribe().
    """
    if not context.keys.public_key:
        raise KeyFileCorrupt("VAPID public key not configured")
    return PlainTextResponse(context.keys.public_key)
