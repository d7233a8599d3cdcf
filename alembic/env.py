"""Alembic migrations for the Brickvest schema.

Online migrations run on the application's async driver (aiomysql).
Offline (--sql) runs render against the matching sync dialect.
DATABASE_URL comes from the environment or the project's .env file.
"""

import asyncio
import os
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

from alembic import context

load_dotenv()

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Registers every table on SQLModel.metadata for autogenerate
import brickvest.models  # noqa: F401, E402

target_metadata = SQLModel.metadata

# async driver -> sync driver for offline rendering
SYNC_DRIVERS = {"+aiomysql": "+pymysql", "+aiosqlite": ""}


def database_url(sync: bool = False) -> str:
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url") or ""
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    if sync:
        for async_driver, sync_driver in SYNC_DRIVERS.items():
            url = url.replace(async_driver, sync_driver)
    return url


def _configure(**kwargs) -> None:
    url = kwargs.get("url") or str(kwargs["connection"].engine.url)
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        # SQLite cannot ALTER most columns in place
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout without connecting."""
    _configure(
        url=database_url(sync=True),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
