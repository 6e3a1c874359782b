from typing import AsyncGenerator

from sqlalchemy import Enum, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.config import settings
from app.core.exceptions import UnavailableError

Base = declarative_base()


def configure_sqlite_locking(engine: AsyncEngine) -> None:
    """SQLite has no row locks: every transaction takes the write lock up front."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False, **engine_kwargs) -> AsyncEngine:
    new_engine = create_async_engine(url, echo=echo, **engine_kwargs)
    if new_engine.dialect.name == "sqlite":
        configure_sqlite_locking(new_engine)
    return new_engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """جلسة لكل طلب: تثبيت عند النجاح، وتراجع كامل عند أي خطأ"""
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except OperationalError as exc:
            await session.rollback()
            raise UnavailableError("قاعدة البيانات") from exc
        except BaseException:
            await session.rollback()
            raise


def value_enum(enum_cls, name: str) -> Enum:
    """Enum column persisted by value (``picked_up``) rather than member name."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )
