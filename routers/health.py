# routers/health.py
from fastapi import APIRouter, Depends

from services.backend import BackendClient, get_backend

router = APIRouter()


@router.get("/health", summary="Health check")
async def healthcheck(backend: BackendClient = Depends(get_backend)):
    return {"status": "ok", "subscribers": backend.feed.subscriber_count()}
