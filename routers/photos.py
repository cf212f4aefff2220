import logging
import random
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile, status

from core.errors import TransportError
from schemas.photo import PhotoRead, UploadReport
from services.backend import BackendClient, get_backend
from services.uploads import IncomingFile, list_photos, upload_photos

router = APIRouter(prefix="/photos", tags=["photos"])
logger = logging.getLogger("uvicorn.error")


@router.post(
    "/",
    response_model=UploadReport,
    status_code=status.HTTP_201_CREATED,
    summary="Upload one or more photos with optional captions",
)
async def upload(
    files: List[UploadFile] = File(..., description="Image files"),
    captions: List[str] = Form([], description="Captions, matched to files by position"),
    backend: BackendClient = Depends(get_backend),
) -> UploadReport:
    incoming = [
        IncomingFile(
            file_name=f.filename or "photo",
            data=await f.read(),
            content_type=f.content_type,
        )
        for f in files
    ]

    report = await upload_photos(backend, incoming, captions)

    if report.success_count == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "No photos were uploaded",
                "failures": [failure.model_dump() for failure in report.failures],
            },
        )
    return report


@router.get(
    "/",
    response_model=List[PhotoRead],
    summary="Gallery, newest photo first",
)
async def gallery(
    shuffle: bool = Query(False, description="Return the photos in random order"),
    backend: BackendClient = Depends(get_backend),
) -> List[PhotoRead]:
    try:
        photos = await list_photos(backend)
    except TransportError as exc:
        logger.exception("Error loading photos: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not load photos") from exc

    if shuffle:
        random.shuffle(photos)
    return photos


@router.get(
    "/{photo_id}",
    response_model=PhotoRead,
    summary="Single photo",
)
async def get_photo(
    photo_id: int = Path(..., description="Photo ID"),
    backend: BackendClient = Depends(get_backend),
) -> PhotoRead:
    try:
        photo = await backend.get("photos", photo_id)
    except TransportError as exc:
        logger.exception("Error loading photo %s: %s", photo_id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not load photo") from exc

    if photo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
    return PhotoRead.model_validate(photo)
