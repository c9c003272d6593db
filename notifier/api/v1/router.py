from fastapi import APIRouter

from notifier.api.v1.sessions import router as sessions_router
from notifier.api.v1.triggers import router as triggers_router

api_router = APIRouter()
api_router.include_router(triggers_router)
api_router.include_router(sessions_router)
