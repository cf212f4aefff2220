import logging
import re
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from core.config import settings
from core.errors import TransportError
from schemas.photo import PhotoRead, UploadFailure, UploadReport
from services.backend import BackendClient
from utils.image_tools import compress_image_bytes, inspect_image

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass
class IncomingFile:
    file_name: str
    data: bytes
    content_type: Optional[str] = None


@dataclass
class StoredImage:
    path: str
    url: str


def sanitize_file_name(file_name: str) -> str:
    name = _UNSAFE_CHARS.sub("_", file_name or "").strip("._")
    return name[:100] or "photo"


def storage_path(file_name: str, ext: Optional[str] = None, prefix: str = "") -> str:
    """
    Builds a collision resistant object name:
    <epoch ms>-<random hex>-<sanitized name>
    """
    name = sanitize_file_name(file_name)
    if ext and not name.lower().endswith(f".{ext}"):
        name = f"{name.rsplit('.', 1)[0]}.{ext}"
    return f"{prefix}{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}-{name}"


def prepare_image(incoming: IncomingFile) -> tuple[bytes, str, str]:
    """
    Returns (data, ext, content_type) ready for storage.
    Raises ValueError for anything that is not an image.
    """
    if incoming.content_type and not incoming.content_type.startswith("image/"):
        raise ValueError("Only image files are allowed")

    quality = settings.PHOTO_COMPRESS_QUALITY
    if quality:
        return compress_image_bytes(incoming.data, quality=quality)

    ext, content_type = inspect_image(incoming.data)
    return incoming.data, ext, content_type


async def store_image(backend: BackendClient, incoming: IncomingFile, prefix: str = "") -> StoredImage:
    data, ext, content_type = prepare_image(incoming)
    path = storage_path(incoming.file_name, ext=ext, prefix=prefix)
    bucket = settings.AWS_S3_BUCKET_NAME
    await backend.upload_blob(bucket, path, data, content_type)
    return StoredImage(path=path, url=backend.get_public_url(bucket, path))


async def upload_photos(
    backend: BackendClient,
    files: Sequence[IncomingFile],
    captions: Sequence[Optional[str]] = (),
) -> UploadReport:
    """
    Stores each file and records it in ``photos``.

    Files are independent: a failed file is reported and the rest of the
    batch carries on. Nothing already stored is rolled back.
    """
    report = UploadReport()

    for index, incoming in enumerate(files):
        caption = captions[index] if index < len(captions) else None
        caption = (caption or "").strip() or None

        try:
            stored = await store_image(backend, incoming)
        except ValueError as e:
            logger.info("Skipping %s: %s", incoming.file_name, e)
            report.failures.append(UploadFailure(file_name=incoming.file_name, reason=str(e)))
            continue
        except TransportError as e:
            logger.error("Upload error for %s: %s", incoming.file_name, e)
            report.failures.append(UploadFailure(
                file_name=incoming.file_name,
                reason=f"Failed to upload {incoming.file_name}",
            ))
            continue
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected error while storing %s: %s", incoming.file_name, e)
            report.failures.append(UploadFailure(
                file_name=incoming.file_name,
                reason=f"Failed to upload {incoming.file_name}",
            ))
            continue

        try:
            row = await backend.insert("photos", {
                "file_path": stored.url,
                "file_name": incoming.file_name,
                "caption": caption,
            })
        except TransportError as e:
            logger.error("Database error for %s: %s", incoming.file_name, e)
            report.failures.append(UploadFailure(
                file_name=incoming.file_name,
                reason=f"Failed to save {incoming.file_name} to database",
            ))
            continue

        report.uploaded.append(PhotoRead.model_validate(row))

    logger.info(
        "Upload batch finished: %s stored, %s failed",
        report.success_count, len(report.failures),
    )
    return report


async def list_photos(backend: BackendClient) -> List[PhotoRead]:
    rows = await backend.query("photos", order_by=["created_at", "id"], descending=True)
    return [PhotoRead.model_validate(row) for row in rows]
