"""Alembic environment: picks up the SQLModel table definitions.

Reads DATABASE_URL from tracer.config.settings (same as the app),
so migrations run against the database the server uses.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlmodel import SQLModel, create_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Table classes must be imported for the metadata to include them
from tracer.models import Agent, PlanningSession, Project, Task  # noqa: F401, E402

target_metadata = SQLModel.metadata

from tracer.config import settings  # noqa: E402

DATABASE_URL = settings.database_url


def run_migrations_offline() -> None:
    """Emit SQL without a database connection."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,  # SQLite needs batch mode for ALTER TABLE
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(DATABASE_URL, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
