"""Database lifecycle: database creation, schema creation, engine disposal."""

from urllib.parse import urlparse

import asyncpg
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from logger import get_logger

from .config import DatabaseConfig
from .models import Base

logger = get_logger()


class DatabaseManager:
    """Manager for working with the database."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = create_async_engine(config.url, echo=False)
        self.async_session = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def create_database_if_not_exists(self):
        """Create the database if it does not exist."""
        try:
            parsed = urlparse(self.config.url)

            conn = await asyncpg.connect(
                host=parsed.hostname,
                port=parsed.port or 5432,
                user=parsed.username,
                password=parsed.password,
                database="postgres",
            )

            result = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", self.config.database)

            if not result:
                await conn.execute(f'CREATE DATABASE "{self.config.database}"')
                logger.info(f"Database created: database={self.config.database}")

            await conn.close()

        except Exception as e:
            logger.error(f"Error creating database: database={self.config.database} | error={e}")
            raise

    async def create_tables(self):
        """Create tables in the database."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Tables created")
        except Exception as e:
            logger.error(f"Error creating tables: error={e}")
            raise

    async def close(self):
        """Close database connection."""
        if hasattr(self, "engine") and self.engine is not None:
            await self.engine.dispose()
            logger.info("Database connection closed")
