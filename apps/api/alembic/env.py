"""Alembic environment (async engine, autogenerate against the portal models)."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

# Model modules register their tables on Base.metadata when imported
import coop_portal.modules.amendments.models  # noqa: F401
import coop_portal.modules.auditors.models  # noqa: F401
import coop_portal.modules.complaints.models  # noqa: F401
import coop_portal.modules.compliance.models  # noqa: F401
import coop_portal.modules.cooperatives.models  # noqa: F401
import coop_portal.modules.counties.models  # noqa: F401
import coop_portal.modules.documents.models  # noqa: F401
import coop_portal.modules.integrations.models  # noqa: F401
import coop_portal.modules.members.models  # noqa: F401
import coop_portal.modules.notifications.models  # noqa: F401
import coop_portal.modules.registrations.models  # noqa: F401
import coop_portal.modules.searches.models  # noqa: F401
import coop_portal.modules.trainers.models  # noqa: F401
import coop_portal.modules.users.models  # noqa: F401
from coop_portal.core.config import settings
from coop_portal.core.database import Base

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
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


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
