#!/usr/bin/env python3
"""
Create the segment service tables straight from the SQLModel definitions.
This is a manual alternative to using Alembic, useful for local testing.
"""

import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from sqlmodel import SQLModel

from segment_service.db import sqlmodel_models  # noqa - Ensure models are registered
from segment_service.db.database_async import close_db_engine, create_db_engine
from segment_service.exceptions import SegmentDBException
from segment_service.settings import Settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def create_tables() -> bool:
    """Create all tables defined in SQLModel models."""
    env_file = Path(__file__).parent.parent / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=env_file)
        logger.info(f"Loaded environment variables from {env_file}")
    else:
        logger.warning(f".env file not found at {env_file}, using system environment variables")

    try:
        engine = await create_db_engine(Settings())
    except SegmentDBException as e:
        logger.error(f"Failed to create database engine: {e}")
        return False

    try:
        async with engine.begin() as conn:
            logger.info("Creating tables from SQLModel definitions...")
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Tables created successfully!")
        return True
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        return False
    finally:
        await close_db_engine(engine)


if __name__ == "__main__":
    success = asyncio.run(create_tables())
    sys.exit(0 if success else 1)
