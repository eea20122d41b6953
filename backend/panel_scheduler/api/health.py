"""Health check endpoints."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict[str, str]:
    """Return service health and the store backing it."""
    store = request.app.state.service.store
    return {"status": "ok", "store": type(store).__name__}
