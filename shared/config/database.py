import asyncio
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

load_dotenv()

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost") # In Docker, this will be 'postgres'
DB_PORT = os.getenv("POSTGRES_PORT", "5433")
DB_NAME = os.getenv("POSTGRES_DB", "bakery")

# A full DATABASE_URL wins over the POSTGRES_* parts (tests point it at sqlite+aiosqlite)
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

engine = create_async_engine(DATABASE_URL, echo=os.getenv("SQL_ECHO", "false").lower() == "true")

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession, timeout: float | None = None):
    """
    Runs the enclosed block as one transaction on `db`.

    Commits when the block exits cleanly, rolls back on any error. A caller
    supplied `timeout` (seconds) cancels the block with TimeoutError; since
    the commit is the last step inside the deadline, a timed out operation
    never leaves a partial write behind.
    """
    try:
        async with asyncio.timeout(timeout):
            yield db
            await db.commit()
    except BaseException:
        await db.rollback()
        raise


def insert_ignore(db: AsyncSession, model):
    """INSERT ... ON CONFLICT DO NOTHING for the dialect `db` is bound to."""
    dialect = db.bind.dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model)
    else:
        raise NotImplementedError(f"insert-or-ignore is not supported on '{dialect}'")
    return stmt.on_conflict_do_nothing()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
