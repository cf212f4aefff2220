from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine

from .config import settings


def build_engine(url: str, **kwargs) -> AsyncEngine:
    options = {"echo": False, "future": True}
    if not url.startswith("sqlite"):
        # Check the connection before handing it out of the pool
        options["pool_pre_ping"] = True
    options.update(kwargs)
    return create_async_engine(url, **options)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = build_sessionmaker(engine)

