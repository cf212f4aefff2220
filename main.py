import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from core.config import settings
from core.database import engine, AsyncSessionLocal
from models.base import Base
from services.backend import BackendClient
from utils.s3 import MinioStorage, StorageError

from routers.home import router as home_router
from routers.photos import router as photos_router
from routers.memories import router as memories_router
from routers.notes import router as notes_router
from routers.realtime import router as realtime_router
from routers.health import router as health_router

logging.basicConfig(level=settings.LOG_LEVEL.upper())

app = FastAPI(
    title="Keepsake Backend",
    version="0.1.0",
    description="Backend for the Keepsake gallery, memories timeline and notes chat"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger("uvicorn.error")


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} completed in {process_time:.2f} ms"
    )
    return response

app.include_router(home_router)
app.include_router(photos_router)
app.include_router(memories_router)
app.include_router(notes_router)
app.include_router(realtime_router)
app.include_router(health_router)


@app.on_event("startup")
async def on_startup():

    # Create the tables first
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # A client injected before startup (tests, embedding) is kept as is
    if getattr(app.state, "backend", None) is not None:
        return

    storage = MinioStorage.from_settings(settings)
    try:
        await run_in_threadpool(storage.ensure_bucket, settings.AWS_S3_BUCKET_NAME)
    except StorageError as exc:
        logger.warning("Object storage is not ready, uploads will fail: %s", exc)

    # One client for the whole process, handed out by get_backend
    app.state.backend = BackendClient(AsyncSessionLocal, storage)


@app.on_event("shutdown")
async def shutdown():
    # Let change notifications already scheduled finish
    backend = getattr(app.state, "backend", None)
    if backend is not None:
        await backend.feed.drain()

    # Close every pooled connection
    await engine.dispose()
