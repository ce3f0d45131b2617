"""Alembic environment configuration for the talent report tables."""
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
import sys
import os

# Import snowflake-sqlalchemy to register the dialect
import snowflake.sqlalchemy

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# Importing the ORM package registers every table on Base.metadata
from talent_reports.database.orm import (
    Base,
    ReportData,
    AssignmentDimensionScore,
    FeedbackLibrary,
    ReportTemplate,
)
from talent_reports.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url():
    """Build Snowflake connection URL from settings."""
    settings = get_settings()
    return (
        f"snowflake://{settings.snowflake_user}:{settings.snowflake_password}"
        f"@{settings.snowflake_account}/{settings.snowflake_database}/{settings.snowflake_schema}"
        f"?warehouse={settings.snowflake_warehouse}"
    )


def run_migrations_offline() -> None:
    """Emit SQL for the report tables without a live connection."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations against the configured Snowflake schema."""
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
