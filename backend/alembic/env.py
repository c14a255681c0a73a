"""
Alembic Migration Environment
===============================

What:  Runs Alembic against the async engine described by jokes_api.config.
How:   The URL comes from Settings.sqlalchemy_url (DATABASE_URL, or the
       DB_HOST/DB_PORT/... parts), not from alembic.ini. Migrations run inside
       connection.run_sync() on an async connection.
Who:   `alembic upgrade head` from the backend/ directory.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from jokes_api.config import settings
from jokes_api.database import Base

# Every model must be imported so its table is registered on Base.metadata
from jokes_api.models.user import User  # noqa: F401
from jokes_api.models.joke import Joke  # noqa: F401
from jokes_api.models.favorite import Favorite  # noqa: F401
from jokes_api.models.comment import Comment  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

config.set_main_option("sqlalchemy.url", settings.sqlalchemy_url.replace("%", "%%"))


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting (`alembic upgrade head --sql`)."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
