import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from core.errors import TransportError, ValidationError
from schemas.memory import MemoryRead
from services.backend import BackendClient, get_backend
from services.memories import create_memory, list_memories
from services.uploads import IncomingFile

router = APIRouter(prefix="/memories", tags=["memories"])
logger = logging.getLogger("uvicorn.error")


@router.get(
    "/",
    response_model=List[MemoryRead],
    summary="Memories timeline, latest memory date first",
)
async def timeline(backend: BackendClient = Depends(get_backend)) -> List[MemoryRead]:
    try:
        return await list_memories(backend)
    except TransportError as exc:
        logger.exception("Error loading memories: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not load memories") from exc


@router.post(
    "/",
    response_model=MemoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a memory: upload its photo and save the record",
)
async def add_memory(
    photo: UploadFile = File(..., description="Memory photo"),
    caption: str = Form(..., description="Caption"),
    memory_date: date = Form(..., description="When it happened (YYYY-MM-DD)"),
    description: Optional[str] = Form(None, description="The story behind it"),
    backend: BackendClient = Depends(get_backend),
) -> MemoryRead:
    incoming = IncomingFile(
        file_name=photo.filename or "memory",
        data=await photo.read(),
        content_type=photo.content_type,
    )
    try:
        memory = await create_memory(backend, incoming, caption, memory_date, description)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.message)
    except TransportError as exc:
        logger.exception("Failed to save memory: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to save memory") from exc

    return MemoryRead.model_validate(memory)
