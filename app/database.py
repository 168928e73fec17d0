from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app import config

Base = declarative_base()


def make_engine(url: str):
    engine = create_async_engine(url, echo=config.SQL_ECHO)

    if engine.dialect.name == "sqlite":
        # SQLite only enforces foreign keys when asked to, per connection
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(config.DATABASE_URL)
SessionLocal = make_sessionmaker(engine)


async def init_db(bind=None):
    # models must be imported so their tables are registered on Base
    from app import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    async with SessionLocal() as db:
        yield db
