"""
Database engine, sessions and shared column types.

PostgreSQL (asyncpg) in production, SQLite (aiosqlite) for local runs
and tests. Ids are UUIDs on both.
"""

import uuid
from typing import AsyncGenerator

from sqlalchemy import CHAR, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from delivery_backend.config import get_settings


class GUID(TypeDecorator):
    """UUID column: native on PostgreSQL, 32-char hex string elsewhere."""
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name == "postgresql":
            return value
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return value.hex

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


def enum_values(enum_cls) -> list:
    """Persist enum members by value ("in_transit") rather than by name."""
    return [member.value for member in enum_cls]


def _engine_options(url: str, echo: bool) -> dict:
    options = {"echo": echo}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
    return options


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url, settings.debug),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Routers commit their own writes; anything left pending is committed
    here, and any exception rolls the whole request back.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables. Alembic owns the schema in production."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping(session: AsyncSession) -> bool:
    """Round-trip a trivial query through the session."""
    result = await session.execute(text("SELECT 1"))
    return result.scalar() == 1
