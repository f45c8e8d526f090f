import logging
import secrets
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from src.notificator.core.errors import AuthError, CredentialMismatch, MissingCredential

logger = logging.getLogger(__name__)

# The OpenAPI document and its viewers stay reachable without the key
PUBLIC_PATHS = ("/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc")


def verify_api_key(expected: str, provided: Optional[str], header_name: str = "api_key") -> None:
    """Check the shared secret sent by the caller.

    Raises:
        MissingCredential: no header was sent
        CredentialMismatch: the header doesn't equal the configured key
    """
    if provided is None:
        raise MissingCredential(f"Missing {header_name} header")
    if not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise CredentialMismatch(f"{header_name} header doesn't match")


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Rejects every request without the configured API key before routing."""

    def __init__(self, app, api_key: str, header_name: str = "api_key"):
        super().__init__(app)
        self.api_key = api_key
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        try:
            verify_api_key(self.api_key, request.headers.get(self.header_name), self.header_name)
        except AuthError as e:
            logger.info(f"401 on {request.method} {request.url.path}: {e.message}")
            return JSONResponse(status_code=e.status_code, content=e.message)

        return await call_next(request)
