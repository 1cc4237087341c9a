import os
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
import logging

from config.settings import settings

logger = logging.getLogger(__name__)
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

# Load environment variables from .env file
load_dotenv()

DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "127.0.0.1")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME")
DB_DRIVER = os.getenv("DB_DRIVER", "postgresql+asyncpg")

DB_ECHO = os.getenv("DB_ECHO", "False").lower() in ("true", "1", "yes")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_TIMEOUT = int(os.getenv("DB_TIMEOUT", "30"))

# DATABASE_URL wins over the individual DB_* parts
DATABASE_URL = (
    os.getenv("DATABASE_URL")
    or f"{DB_DRIVER}://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)


def _engine_kwargs(url: str) -> dict:
    kw: dict = {"echo": DB_ECHO}
    if url.startswith("sqlite"):
        # SQLite (local dev / tests) manages its own pool
        return kw
    kw.update(
        pool_size=DB_POOL_SIZE,
        max_overflow=DB_MAX_OVERFLOW,
        connect_args={"timeout": DB_TIMEOUT},
        pool_pre_ping=True,
    )
    return kw


try:
    engine = create_async_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
except SQLAlchemyError as e:
    logger.error(f"Error creating database engine: {e}")
    raise Exception(f"Database connection failed: {e}")

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,  # rows stay readable after commit
)

Base = declarative_base()

# FastAPI dependency: one session per request, always closed
async def get_db():
    try:
        async with AsyncSessionLocal() as session:
            yield session
    except SQLAlchemyError as e:
        logger.error(f"Error: while interacting with the database: {e}")
        raise HTTPException(status_code=500, detail=f"Database operation failed: {e}")
