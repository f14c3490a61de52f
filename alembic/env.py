import logging
import os
import sys
from logging.config import fileConfig

# Add project root to Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlmodel import SQLModel

from segment_service.db import sqlmodel_models  # noqa - Ensure models are registered

load_dotenv()

logger = logging.getLogger(__name__)

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config


def _sync_database_url() -> str:
    """Build a psycopg2-compatible URL from DATABASE_URL or the DB_* variables."""
    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        logger.info("Using DATABASE_URL for Alembic connection.")
        if database_url.startswith("postgresql+asyncpg://"):
            return database_url.replace("postgresql+asyncpg://", "postgresql://", 1)
        if database_url.startswith("postgres://"):
            return database_url.replace("postgres://", "postgresql://", 1)
        return database_url

    if os.environ.get("DB_USER") and os.environ.get("DB_PASSWORD") and os.environ.get("DB_NAME"):
        logger.warning("DATABASE_URL not set. Falling back to individual DB_* variables for Alembic.")
        user = os.environ["DB_USER"]
        password = os.environ["DB_PASSWORD"]
        host = os.environ.get("DB_HOST", "localhost")
        port = os.environ.get("DB_PORT", "5432")
        name = os.environ["DB_NAME"]
        return f"postgresql://{user}:{password}@{host}:{port}/{name}"

    raise ValueError(
        "Database connection requires either DATABASE_URL environment variable "
        "or DB_USER, DB_PASSWORD, and DB_NAME to be set."
    )


config.set_main_option("sqlalchemy.url", _sync_database_url())

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode.

    Creates a synchronous connection to the database to run migrations.
    """
    connectable = create_engine(config.get_main_option("sqlalchemy.url"))

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
