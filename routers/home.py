import logging

from fastapi import APIRouter, Depends, HTTPException, status

from core.errors import TransportError
from schemas.home import HomeRead
from services.backend import BackendClient, get_backend

router = APIRouter(tags=["home"])
logger = logging.getLogger("uvicorn.error")

APP_NAME = "Keepsake"


@router.get("/", response_model=HomeRead, summary="Home page summary")
async def home(backend: BackendClient = Depends(get_backend)) -> HomeRead:
    try:
        return HomeRead(
            name=APP_NAME,
            photos=await backend.count("photos"),
            memories=await backend.count("memories"),
            notes=await backend.count("notes"),
        )
    except TransportError as exc:
        logger.exception("Error loading home page: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not load home page") from exc
