from dataclasses import dataclass

from fastapi import Request

from src.notificator.core.config import Settings
from src.notificator.services.vapid_keys import VapidKeyPair


@dataclass(frozen=True)
class AppContext:
    """Everything a request handler needs, built once at startup and never mutated."""
    settings: Settings
    keys: VapidKeyPair


def get_context(request: Request) -> AppContext:
    return request.app.state.context
