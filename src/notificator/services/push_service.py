"""
Web Push Dispatch Pipeline

Sends one notification to one subscription:

1. sign a VAPID token for the endpoint's origin
2. serialize the wire payload
3. encrypt it for the subscriber (aes128gcm)
4. POST it to the push service

Every stage failure is logged with its library detail and returned as a
PushFailed outcome carrying only a generic message. Nothing is retried.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlparse

import requests
from py_vapid import Vapid, VapidException
from pywebpush import WebPusher

from src.notificator.core.config import Settings
from src.notificator.core.errors import (
    DeliveryError,
    EncryptionError,
    PushError,
    SerializationError,
    SignatureError,
)
from src.notificator.services.notification_transform import serialize_payload
from src.notificator.services.vapid_keys import VapidKeyPair

logger = logging.getLogger(__name__)

CONTENT_ENCODING = "aes128gcm"


@dataclass(frozen=True)
class PushDelivered:
    status_code: int


@dataclass(frozen=True)
class PushFailed:
    stage: str
    message: str
    status_code: Optional[int] = None
    subscription_gone: bool = False

    @classmethod
    def from_error(cls, error: PushError) -> "PushFailed":
        if isinstance(error, DeliveryError):
            return cls(
                stage=error.stage,
                message=error.message,
                status_code=error.response_status,
                subscription_gone=error.subscription_gone,
            )
        return cls(stage=error.stage, message=error.message)


DispatchOutcome = Union[PushDelivered, PushFailed]


def endpoint_audience(endpoint: str) -> str:
    # The 'aud' claim is the origin (scheme + host) of the push service
    parsed = urlparse(endpoint)
    return f"{parsed.scheme}://{parsed.netloc}"


def build_vapid_headers(endpoint: str, keys: VapidKeyPair, settings: Settings) -> dict:
    """Sign a VAPID token bound to the endpoint's origin.

    Returns the ``Authorization: vapid t=...,k=...`` header.

    Raises:
        SignatureError: the stored key or the claims could not be used
    """
    claims = {
        "sub": settings.vapid_claim_email,
        "aud": endpoint_audience(endpoint),
        "exp": int(time.time()) + settings.vapid_token_expire_hours * 3600,
    }
    try:
        vapid = Vapid.from_raw(keys.private_key.encode("ascii"))
        return vapid.sign(claims)
    except (VapidException, ValueError, TypeError) as e:
        logger.error(f"Failed to build VAPID signature for aud={claims['aud']}: {e}")
        raise SignatureError() from e


def encrypt_payload(subscription_info: dict, data: bytes) -> dict:
    """Encrypt the payload for the subscriber.

    Returns the encoder output: ``body`` plus ``crypto_key``/``salt`` when
    the content encoding needs them in headers.

    Raises:
        EncryptionError: the subscription keys are unusable or encryption failed
    """
    try:
        pusher = WebPusher(subscription_info)
        return pusher.encode(data, content_encoding=CONTENT_ENCODING)
    except Exception as e:
        logger.error(f"Failed to encrypt push payload for {subscription_info.get('endpoint')}: {e}")
        raise EncryptionError() from e


def serialize(payload: dict) -> bytes:
    try:
        return serialize_payload(payload)
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to serialize push payload: {e}")
        raise SerializationError() from e


def build_push_headers(vapid_headers: dict, ttl: int) -> dict:
    # aes128gcm carries the sender key and salt in the body, so no Crypto-Key
    headers = dict(vapid_headers)
    headers.update({
        "Content-Encoding": CONTENT_ENCODING,
        "Content-Type": "application/octet-stream",
        "TTL": str(ttl),
    })
    return headers


def deliver(endpoint: str, body: bytes, headers: dict, timeout: float) -> int:
    """POST the encrypted message to the push service.

    Returns:
        The 2xx status code of the push service

    Raises:
        DeliveryError: transport failure or non-2xx answer
    """
    try:
        response = requests.post(endpoint, data=body, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"Failed to send push to {endpoint}: {e}")
        raise DeliveryError() from e

    if 200 <= response.status_code < 300:
        return response.status_code

    logger.error(
        f"Push service rejected message: {response.status_code} {response.reason}\n"
        f"Response body:{response.text}"
    )
    error = DeliveryError(status_code=response.status_code)
    if error.subscription_gone:
        logger.info(f"Subscription {endpoint} is no longer valid ({response.status_code})")
        error.message = "Failed to send push: subscription is no longer valid"
    raise error


def dispatch(
    subscription_info: dict,
    payload: dict,
    keys: VapidKeyPair,
    settings: Settings,
) -> DispatchOutcome:
    """
    Send one notification to one subscription.

    Args:
        subscription_info: ``{"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}}``
        payload: Wire payload from ``to_wire_payload``
        keys: The service's VAPID identity
        settings: Claim, token lifetime, TTL and timeout

    Returns:
        PushDelivered or PushFailed
    """
    endpoint = subscription_info["endpoint"]
    try:
        vapid_headers = build_vapid_headers(endpoint, keys, settings)
        data = serialize(payload)
        encoded = encrypt_payload(subscription_info, data)
        headers = build_push_headers(vapid_headers, settings.push_ttl)
        status_code = deliver(endpoint, encoded["body"], headers, settings.push_timeout)
    except PushError as e:
        logger.warning(f"Push to {endpoint} failed at {e.stage} stage")
        return PushFailed.from_error(e)

    logger.info(f"Push sent to {endpoint} ({status_code}, {len(data)} bytes plaintext)")
    return PushDelivered(status_code=status_code)
