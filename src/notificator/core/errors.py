"""
Error taxonomy for the notificator service.

Every error carries a public ``message`` that is safe to return to callers
and an HTTP ``status_code``. Library error text is logged where the error
is raised and never placed in ``message``.
"""

from typing import Optional


class NotificatorError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ConfigError(NotificatorError):
    message = "Invalid configuration"


# Key file


class KeyFileError(NotificatorError):
    message = "VAPID key file error"


class KeyFileMissing(KeyFileError):
    message = "VAPID key file not found"


class KeyFileCorrupt(KeyFileError):
    message = "VAPID key file couldn't be parsed"


# Auth gate


class AuthError(NotificatorError):
    status_code = 401
    message = "Unauthorized"


class MissingCredential(AuthError):
    message = "Missing api_key header"


class CredentialMismatch(AuthError):
    message = "api_key header doesn't match"


class MalformedRequest(NotificatorError):
    status_code = 400
    message = "Malformed request"


# Dispatch pipeline


class PushError(NotificatorError):
    stage = "push"


class SignatureError(PushError):
    stage = "signature"
    message = "VAPID signature error"


class SerializationError(PushError):
    stage = "serialization"
    message = "Payload serialization error"


class EncryptionError(PushError):
    stage = "encryption"
    message = "Payload encryption error"


class DeliveryError(PushError):
    stage = "delivery"
    message = "Failed to send push"

    # Push services answer 404/410 once a subscription has expired or was
    # revoked by the user agent.
    GONE_STATUS_CODES = (404, 410)

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.response_status = status_code

    @property
    def subscription_gone(self) -> bool:
        return self.response_status in self.GONE_STATUS_CODES
