from fastapi import APIRouter

from src.notificator.api.endpoints import push

api_router = APIRouter()
api_router.include_router(push.router)
