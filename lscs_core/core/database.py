"""
Database Configuration and Session Management
"""

from typing import AsyncIterator

import structlog
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from lscs_core.core.config import Settings

logger = structlog.get_logger()

# Create declarative base
Base = declarative_base()


class Database:
    """Async engine plus session factory built from the application settings"""

    def __init__(self, settings: Settings) -> None:
        self.engine = create_async_engine(settings.async_database_url, **settings.database_config())
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        """Create tables for every registered model"""
        try:
            async with self.engine.begin() as conn:
                # Import models to ensure they are registered
                from lscs_core.models import api_key, member, role, session  # noqa: F401

                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error("Database initialization failed", error=str(e))
            raise

    async def check_health(self) -> bool:
        """Check database connectivity, used by the health endpoint"""
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close database connections"""
        try:
            await self.engine.dispose()
            logger.info("Database connections closed")
        except Exception as e:
            logger.error("Error closing database connections", error=str(e))


# Database dependency for FastAPI
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Database session dependency for FastAPI endpoints
    Ensures proper session cleanup and error handling
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
