"""Alembic environment for the Huddle chat schema."""
from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from huddle.core.settings import settings
from huddle.db.session import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    """ALEMBIC_URL wins, then an explicit ini value, then the app settings."""
    return (
        os.getenv("ALEMBIC_URL")
        or config.get_main_option("sqlalchemy.url")
        or settings.effective_database_url
    )


def skip_version_table(obj, name, type_, reflected, compare_to) -> bool:
    return not (type_ == "table" and name == "alembic_version")


def _configure(**options) -> None:
    context.configure(
        target_metadata=Base.metadata,
        include_object=skip_version_table,
        compare_type=True,
        **options,
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_offline() -> None:
    """Emit SQL for the configured URL without connecting."""
    _configure(url=database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})


def migrate_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = database_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        # SQLite cannot ALTER most constraints in place.
        _configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")


if context.is_offline_mode():
    migrate_offline()
else:
    migrate_online()
