import os
from logging.config import fileConfig
from typing import Any

from sqlalchemy import create_engine, pool
from sqlmodel import SQLModel

from alembic import context
from src.pureflow.core.config import get_settings
from src.pureflow.models import RefreshToken, User  # noqa: F401  (registers tables)

config = context.config
if config.config_file_name is not None and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name)

MIGRATION_OPTIONS: dict[str, Any] = {
    "target_metadata": SQLModel.metadata,
    "compare_type": True,
}


def sync_database_url() -> str:
    # Alembic runs synchronously, so swap the asyncpg driver for psycopg2
    return get_settings().database_url.replace("+asyncpg", "+psycopg2")


if context.is_offline_mode():
    context.configure(
        url=sync_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **MIGRATION_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    engine = create_engine(sync_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **MIGRATION_OPTIONS)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()
