from typing import Optional
import logging
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from roomchat.core.config import settings

# Base class for SQLAlchemy models
Base = declarative_base()

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite는 연결마다 외래키(ON DELETE CASCADE)를 켜야 함"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine for the relational store"""
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            # 인메모리 DB는 단일 연결을 공유해야 테이블이 유지됨
            options["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=settings.debug, **options)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(
            url,
            echo=settings.debug,  # Log SQL queries in debug mode
            pool_size=10,
            max_overflow=20,
            pool_recycle=3600,  # Recycle connections after 1 hour
            pool_pre_ping=True,  # Validate connections before use
        )

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Async session factory"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


async def init_db(engine: AsyncEngine):
    """Initialize database tables"""
    import roomchat.models  # noqa: F401  모델을 metadata에 등록

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def check_connection(engine: AsyncEngine) -> bool:
    """Check database connection"""
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.fetchone() is not None
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


async def close_db(engine: AsyncEngine):
    """Close database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
