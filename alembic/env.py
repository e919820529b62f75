"""
Alembic Migration Environment
===============================

What:  Runs IdeaVerse schema migrations through the async SQLAlchemy engine.
Why:   The app only ships the asyncpg driver, so Alembic's default sync
       engine has nothing to connect with.
How:   The database URL comes from ideaverse.config (DATABASE_URL), not from
       alembic.ini; migrations run inside connection.run_sync().
Who:   `alembic upgrade head`, `alembic downgrade -1`, `alembic revision`.
When:  On deploy, before the app starts serving; by hand in development.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from ideaverse.config import settings
from ideaverse.database import Base

# Registers the ideas table on Base.metadata for --autogenerate
from ideaverse.models.idea import Idea  # noqa: F401

# Alembic Config object: access to the values in alembic.ini
config = context.config

# Logger levels and handlers come from the [loggers] sections of alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# What --autogenerate diffs the live schema against
target_metadata = Base.metadata

# Same URL the app uses; alembic.ini carries no credentials
config.set_main_option("sqlalchemy.url", settings.database_url)


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout without connecting (alembic upgrade --sql)."""
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
    """Sync half of the online run; called through connection.run_sync()."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        # Autogenerate also reports column type changes (e.g. VARCHAR → TEXT)
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """
    Connect with a throwaway async engine and apply pending migrations.

    NullPool: the migration run holds one connection and exits.
    """
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
