"""
Alembic migration environment for the Trade Services CRM.

The URL comes from DATABASE_URL, falling back to the active config class
(FLASK_ENV) so `alembic upgrade head` also works against the development
SQLite file.
"""

import os
import sys
from logging.config import fileConfig

from sqlalchemy import pool, create_engine
from alembic import context

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import get_config  # noqa: E402
from database.connection import Base, normalize_database_url  # noqa: E402
from database import models  # noqa: E402,F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url():
    return normalize_database_url(os.environ.get('DATABASE_URL') or get_config().DATABASE_URL)


def _configure(**kwargs):
    # SQLite cannot ALTER columns in place
    is_sqlite = get_url().startswith('sqlite')
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=is_sqlite,
        **kwargs
    )


def run_migrations_offline() -> None:
    """Emit SQL for the migrations without connecting"""
    _configure(url=get_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(get_url(), poolclass=pool.NullPool)
    try:
        with connectable.connect() as connection:
            _configure(connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
