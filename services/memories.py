import logging
from datetime import date
from typing import List, Optional

from core.config import settings
from core.errors import ValidationError
from schemas.memory import MemoryRead
from services.backend import BackendClient
from services.uploads import IncomingFile, store_image

logger = logging.getLogger(__name__)


async def create_memory(
    backend: BackendClient,
    photo: IncomingFile,
    caption: Optional[str],
    memory_date: date,
    description: Optional[str] = None,
):
    caption = (caption or "").strip()
    if not caption:
        raise ValidationError("caption cannot be empty")
    if len(caption) > settings.CAPTION_MAX_LENGTH:
        raise ValidationError("caption is too long")

    try:
        stored = await store_image(backend, photo, prefix="memories/")
    except ValueError as e:
        raise ValidationError(str(e))

    row = await backend.insert("memories", {
        "photo_url": stored.url,
        "caption": caption,
        "description": (description or "").strip() or None,
        "memory_date": memory_date,
    })
    logger.info("Memory %s saved for %s", row.id, memory_date)
    return row


async def list_memories(backend: BackendClient) -> List[MemoryRead]:
    """Timeline order: latest memory date first."""
    rows = await backend.query("memories", order_by=["memory_date", "created_at"], descending=True)
    return [MemoryRead.model_validate(row) for row in rows]
