import logging
from typing import Optional

from core.config import settings
from core.errors import NotFoundError, ValidationError
from schemas.note import NoteDraft, NoteForest, Sender
from services.backend import BackendClient
from services.notes_tree import depth_of, descendant_ids, organize_notes

logger = logging.getLogger(__name__)

TABLE = "notes"


def validate_message(message: Optional[str], max_length: Optional[int] = None) -> str:
    """Trims the body and checks 1..max_length characters (code points, not bytes)."""
    max_length = max_length or settings.NOTE_MAX_LENGTH
    text = (message or "").strip()
    if not text:
        raise ValidationError("message cannot be empty")
    if len(text) > max_length:
        raise ValidationError("message is too long")
    return text


def validate_note(sender: Optional[str], message: Optional[str]) -> NoteDraft:
    """Checks a candidate note before anything is written. The sender must match exactly."""
    try:
        normalized = Sender(sender or "")
    except ValueError:
        raise ValidationError("sender must be selected")
    return NoteDraft(sender=normalized, message=validate_message(message))


async def load_note_forest(backend: BackendClient) -> NoteForest:
    rows = await backend.query(TABLE, order_by=["created_at", "id"])
    return organize_notes(rows)


async def send_note(backend: BackendClient, draft: NoteDraft, parent_id: Optional[int] = None):
    if parent_id is not None:
        rows = await backend.query(TABLE)
        if not any(row.id == parent_id for row in rows):
            raise NotFoundError("The message you are replying to no longer exists")
        if depth_of(rows, parent_id) + 1 > settings.NOTE_MAX_DEPTH:
            raise ValidationError("reply chain is too deep")

    return await backend.insert(TABLE, {
        "sender": draft.sender.value,
        "message": draft.message,
        "parent_id": parent_id,
    })


async def edit_note(backend: BackendClient, note_id: int, message: str):
    text = validate_message(message)
    return await backend.update(TABLE, note_id, {"message": text})


async def delete_note(backend: BackendClient, note_id: int) -> int:
    """Deletes a note with all of its replies. Returns the number of rows removed."""
    note = await backend.get(TABLE, note_id)
    if note is None:
        raise NotFoundError("Message not found")

    rows = await backend.query(TABLE)
    ids = descendant_ids(rows, note_id)
    logger.info("Deleting note %s with %s repl(ies)", note_id, len(ids) - 1)
    return await backend.delete(TABLE, ids)
