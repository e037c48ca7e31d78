"""Alembic environment for the stocky ledger database.

Expects MigrationManager to supply an open connection through
``config.attributes["connection"]``; falls back to STOCKY_DB_URL when
alembic is run by hand.
"""

import os

from sqlalchemy import create_engine, pool
from alembic import context

from stocky.database.base import StockyBase
from stocky.database.tables import *  # noqa: F401,F403
from stocky.database.types import DecimalType, UTCDateTime

config = context.config
target_metadata = StockyBase.metadata


def render_item(type_, obj, autogen_context):
    """Render our column types with their imports in generated revisions"""
    if type_ == 'type':
        if isinstance(obj, DecimalType):
            autogen_context.imports.add("from stocky.database.types import DecimalType")
            return f"DecimalType(precision={obj.precision!r}, scale={obj.scale!r})"
        if isinstance(obj, UTCDateTime):
            autogen_context.imports.add("from stocky.database.types import UTCDateTime")
            return "UTCDateTime()"
    return False


def get_database_url() -> str:
    url = os.getenv("STOCKY_DB_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("No database connection supplied and STOCKY_DB_URL is not set")
    return url


def run_migrations_offline() -> None:
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_item=render_item,
    )

    with context.begin_transaction():
        context.run_migrations()


def _run_with_connection(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_item=render_item,
        render_as_batch=connection.dialect.name == 'sqlite',
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        _run_with_connection(connection)
        return

    connectable = create_engine(get_database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        _run_with_connection(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
