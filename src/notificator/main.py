import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.notificator.api.api import api_router
from src.notificator.api.deps import ApiKeyMiddleware
from src.notificator.core.config import Settings
from src.notificator.core.context import AppContext
from src.notificator.core.errors import MalformedRequest, NotificatorError
from src.notificator.services.vapid_keys import load_or_create_keys

logger = logging.getLogger(__name__)

API_TITLE = "Webpush Notificator"
API_DESCRIPTION = "This sends notifications through webpush"
API_VERSION = "0.1.0"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.logging_level,
        format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s",
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error on {request.method} {request.url.path}")

    error_messages = []
    for error in exc.errors():
        logger.error(
            f"Field: {error.get('loc')}, Error: {error.get('msg')}, Type: {error.get('type')}"
        )
        field = " -> ".join(str(loc) for loc in error.get("loc", []))
        error_messages.append(f"{field}: {error.get('msg', 'Validation error')}")

    error = MalformedRequest("; ".join(error_messages) or None)
    return JSONResponse(status_code=error.status_code, content=error.message)


async def notificator_exception_handler(request: Request, exc: NotificatorError):
    logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    Loads (or creates) the VAPID key file before anything is served; a
    corrupt or unwritable key file aborts startup.
    """
    if settings is None:
        settings = Settings.from_env()
    configure_logging(settings)

    keys = load_or_create_keys(settings.key_file)
    context = AppContext(settings=settings, keys=keys)

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        openapi_url="/openapi.json",
    )
    app.state.context = context

    app.add_middleware(
        ApiKeyMiddleware,
        api_key=settings.api_key,
        header_name=settings.api_key_header,
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(NotificatorError, notificator_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(api_router)

    logger.info(f"{API_TITLE} ready, public key {keys.public_key}")
    return app
