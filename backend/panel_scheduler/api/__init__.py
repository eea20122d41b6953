"""API routers."""

from fastapi import APIRouter

from . import health, history, interviews, scheduling

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(scheduling.router)
api_router.include_router(interviews.router)
api_router.include_router(history.router)
