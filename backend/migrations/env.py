"""Alembic environment for the feedback backend."""
import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from backend.config import get_settings
from backend.database import Base
import backend.models  # noqa: F401  (registers every table on Base.metadata)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def get_sync_url() -> str:
    """Database URL for migrations, with the async driver suffix removed.

    Alembic runs schema operations synchronously, so ``+aiosqlite`` and
    ``+asyncpg`` are stripped from the configured URL.
    """
    url = config.get_main_option("sqlalchemy.url") or get_settings().database_url
    for async_driver in ("+aiosqlite", "+asyncpg"):
        url = url.replace(async_driver, "")
    return url


def run_migrations_offline() -> None:
    """Emit migration SQL to the script output without connecting."""
    context.configure(
        url=get_sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live connection."""
    url = get_sync_url()
    logger.info(f"Running migrations against {url.split('@')[-1]}")
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
