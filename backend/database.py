"""Database connection and session management."""
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.engine.url import make_url
from backend.config import Settings, get_settings

logger = logging.getLogger(__name__)

CLOUD_HOST_MARKERS = ("heroku", "amazonaws", "rds.")


def engine_options(settings: Settings) -> dict:
    """Keyword arguments for ``create_async_engine`` under the given settings.

    Remote Postgres hosts get ``ssl=require``; production pools stay at two
    connections plus two overflow so several dynos fit in a small plan.
    """
    is_sqlite = make_url(settings.database_url).drivername.startswith("sqlite")

    connect_args = {}
    if not is_sqlite and (
        settings.environment == "production"
        or any(marker in settings.database_url for marker in CLOUD_HOST_MARKERS)
    ):
        connect_args["ssl"] = "require"

    pool_size = max(1, settings.db_pool_size)
    max_overflow = max(0, settings.db_max_overflow)
    if settings.environment == "production":
        pool_size = min(pool_size, 2)
        max_overflow = min(max_overflow, 2)

    return {
        "echo": settings.environment == "development",
        "connect_args": connect_args,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
    }


settings = get_settings()
_options = engine_options(settings)
logger.debug(
    f"Creating engine (ssl={'ssl' in _options['connect_args']}, pool_size={_options['pool_size']}, "
    f"max_overflow={_options['max_overflow']})"
)

engine = create_async_engine(settings.database_url, **_options)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """FastAPI dependency to get database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
