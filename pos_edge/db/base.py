from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_engine(db_url: str) -> AsyncEngine:
    # an in-memory sqlite database only lives as long as its one connection
    if db_url.startswith("sqlite") and (db_url.endswith("://") or ":memory:" in db_url):
        return create_async_engine(
            db_url,
            future=True,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(db_url, future=True, echo=False)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    # model modules register their tables on Base.metadata when imported
    from pos_edge.db.models import accounts, products, transaction_items, transactions  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
