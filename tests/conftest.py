import os
import struct
import zlib
from io import BytesIO

# Settings are read on import, keep tests off real services
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AWS_S3_ENDPOINT_URL", "http://storage.test")

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

from core.database import build_engine, build_sessionmaker
from models.base import Base
from services.backend import BackendClient
from utils.s3 import StorageError


class MemoryStorage:
    """Blob store kept in a dict. Paths containing a name in fail_on are refused."""

    def __init__(self):
        self.objects = {}
        self.fail_on = set()

    def put(self, bucket_name, path, data, content_type):
        if any(marker in path for marker in self.fail_on):
            raise StorageError(f"Upload to S3 failed: {path}")
        self.objects[(bucket_name, path)] = (data, content_type)

    def public_url(self, bucket_name, path):
        return f"http://storage.test/{bucket_name}/{path}"


def make_image(fmt: str = "PNG", size=(4, 4)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, (200, 80, 120)).save(buf, fmt)
    return buf.getvalue()


def _png_chunk(kind: bytes, body: bytes) -> bytes:
    return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body))


def oversized_png_header(width: int = 20000, height: int = 20000) -> bytes:
    """A PNG that declares huge dimensions but carries no pixel data."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + _png_chunk(b"IHDR", ihdr) + _png_chunk(b"IEND", b"")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def backend(tmp_path, storage):
    db_path = tmp_path / "test.db"
    schema_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(schema_engine)
    schema_engine.dispose()

    # NullPool: tests drive the engine from more than one event loop
    engine = build_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return BackendClient(build_sessionmaker(engine), storage)


@pytest.fixture
def client(backend):
    from fastapi.testclient import TestClient
    from main import app

    app.state.backend = backend
    with TestClient(app) as test_client:
        yield test_client
    app.state.backend = None


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def broken_client(tmp_path, storage):
    """App client whose database has no tables, so every query fails."""
    from fastapi.testclient import TestClient
    from main import app

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}", poolclass=NullPool)
    app.state.backend = BackendClient(build_sessionmaker(engine), storage)
    with TestClient(app) as test_client:
        yield test_client
    app.state.backend = None


@pytest.fixture
def oversized_png():
    return oversized_png_header()
