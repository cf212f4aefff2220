import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from fastapi import Request
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from core.errors import NotFoundError, TransportError
from models.base import Base
from models.memory import Memory
from models.note import Note
from models.photo import Photo
from services.realtime import ChangeFeed, ChangeCallback, Subscription, INSERT, UPDATE, DELETE
from utils.s3 import StorageError

logger = logging.getLogger(__name__)

TABLES: dict[str, type[Base]] = {
    "photos": Photo,
    "memories": Memory,
    "notes": Note,
}


def model_for(table: str) -> type[Base]:
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f"Unknown table: {table}")


class BackendClient:
    """
    Row storage, blob storage and change notifications behind one object.

    Created once at startup and handed to routers through get_backend.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        storage,
        feed: Optional[ChangeFeed] = None,
    ):
        self.sessionmaker = sessionmaker
        self.storage = storage
        self.feed = feed or ChangeFeed()

    # ---------------- rows ----------------

    async def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Union[str, Iterable[str], None] = None,
        descending: bool = False,
    ) -> List[Any]:
        model = model_for(table)
        stmt = select(model)
        for column, value in (filters or {}).items():
            stmt = stmt.where(getattr(model, column) == value)

        if isinstance(order_by, str):
            order_by = [order_by]
        for column in order_by or []:
            col = getattr(model, column)
            stmt = stmt.order_by(col.desc() if descending else col.asc())

        try:
            async with self.sessionmaker() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise TransportError(f"Could not read {table}: {e}", operation="query") from e

    async def get(self, table: str, row_id: int) -> Optional[Any]:
        model = model_for(table)
        try:
            async with self.sessionmaker() as session:
                return await session.get(model, row_id)
        except SQLAlchemyError as e:
            raise TransportError(f"Could not read {table}: {e}", operation="get") from e

    async def count(self, table: str) -> int:
        model = model_for(table)
        try:
            async with self.sessionmaker() as session:
                return (await session.execute(select(func.count(model.id)))).scalar_one()
        except SQLAlchemyError as e:
            raise TransportError(f"Could not count {table}: {e}", operation="count") from e

    async def insert(self, table: str, record: Mapping[str, Any]) -> Any:
        model = model_for(table)
        row = model(**record)
        try:
            async with self.sessionmaker() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise TransportError(f"Could not insert into {table}: {e}", operation="insert") from e

        logger.info("Inserted %s id=%s", table, row.id)
        await self.feed.publish(table, INSERT)
        return row

    async def update(self, table: str, row_id: int, partial: Mapping[str, Any]) -> Any:
        model = model_for(table)
        try:
            async with self.sessionmaker() as session:
                row = await session.get(model, row_id)
                if row is None:
                    raise NotFoundError(f"{table} row {row_id} not found")
                for column, value in partial.items():
                    setattr(row, column, value)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise TransportError(f"Could not update {table}: {e}", operation="update") from e

        logger.info("Updated %s id=%s", table, row_id)
        await self.feed.publish(table, UPDATE)
        return row

    async def delete(self, table: str, ids: Iterable[int]) -> int:
        model = model_for(table)
        ids = list(ids)
        if not ids:
            return 0
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(delete(model).where(model.id.in_(ids)))
                await session.commit()
        except SQLAlchemyError as e:
            raise TransportError(f"Could not delete from {table}: {e}", operation="delete") from e

        deleted = result.rowcount or 0
        logger.info("Deleted %s row(s) from %s", deleted, table)
        if deleted:
            await self.feed.publish(table, DELETE)
        return deleted

    # ---------------- blobs ----------------

    async def upload_blob(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        try:
            await run_in_threadpool(self.storage.put, bucket, path, data, content_type)
        except (StorageError, OSError) as e:
            raise TransportError(str(e), operation="upload") from e

    def get_public_url(self, bucket: str, path: str) -> str:
        return self.storage.public_url(bucket, path)

    # ---------------- realtime ----------------

    def subscribe(
        self,
        table: str,
        events: Union[str, Iterable[str]],
        callback: ChangeCallback,
    ) -> Subscription:
        model_for(table)
        return self.feed.subscribe(table, events, callback)

    def unsubscribe(self, subscription: Subscription) -> None:
        self.feed.unsubscribe(subscription)


def get_backend(request: Request) -> BackendClient:
    """Used as Depends(get_backend) in routers."""
    return request.app.state.backend
