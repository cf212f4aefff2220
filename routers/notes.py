import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from core.errors import NotFoundError, TransportError, ValidationError
from schemas.note import NoteCreate, NoteForest, NoteRead, NoteUpdate, ThreadEntry
from services.backend import BackendClient, get_backend
from services.notes import delete_note, edit_note, load_note_forest, send_note, validate_note
from services.notes_tree import flatten_forest

router = APIRouter(prefix="/notes", tags=["notes"])
logger = logging.getLogger("uvicorn.error")


async def _load_forest(backend: BackendClient) -> NoteForest:
    try:
        return await load_note_forest(backend)
    except TransportError as exc:
        logger.exception("Error loading notes: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not load messages") from exc


@router.get(
    "/",
    response_model=NoteForest,
    summary="Chat messages as a reply tree, oldest first",
)
async def get_notes(backend: BackendClient = Depends(get_backend)) -> NoteForest:
    return await _load_forest(backend)


@router.get(
    "/thread",
    response_model=List[ThreadEntry],
    summary="Chat messages flattened in display order with their depth",
)
async def get_thread(backend: BackendClient = Depends(get_backend)) -> List[ThreadEntry]:
    return flatten_forest(await _load_forest(backend))


@router.post(
    "/",
    response_model=NoteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message or a reply",
)
async def create_note(
    payload: NoteCreate,
    backend: BackendClient = Depends(get_backend),
) -> NoteRead:
    try:
        draft = validate_note(payload.sender, payload.message)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.message)

    try:
        note = await send_note(backend, draft, parent_id=payload.parent_id)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.message)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    except TransportError as exc:
        logger.exception("Failed to send message: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send message") from exc

    return NoteRead.model_validate(note)


@router.patch(
    "/{note_id}",
    response_model=NoteRead,
    summary="Edit the text of a message",
)
async def update_note(
    payload: NoteUpdate,
    note_id: int = Path(..., description="Message ID"),
    backend: BackendClient = Depends(get_backend),
) -> NoteRead:
    try:
        note = await edit_note(backend, note_id, payload.message)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.message)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    except TransportError as exc:
        logger.exception("Failed to update message %s: %s", note_id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to update message") from exc

    return NoteRead.model_validate(note)


@router.delete(
    "/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a message together with its replies",
)
async def remove_note(
    note_id: int = Path(..., description="Message ID"),
    backend: BackendClient = Depends(get_backend),
):
    try:
        await delete_note(backend, note_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    except TransportError as exc:
        logger.exception("Delete failed for message %s: %s", note_id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Delete failed") from exc
    return
