"""
Base Repository Pattern
Generic repository with the common database operations
"""

from typing import Any, Generic, Optional, Type, TypeVar

import structlog
from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from lscs_core.core.database import Base

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """
    Base repository with generic database operations
    """

    def __init__(self, model: Type[ModelType]):
        """
        Initialize repository

        Args:
            model: SQLAlchemy model class
        """
        self.model = model
        self.pk = inspect(model).primary_key[0]

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """
        Get a single record by primary key

        Args:
            db: Database session
            id: Record ID

        Returns:
            Model instance or None
        """
        try:
            result = await db.execute(select(self.model).where(self.pk == id))
            record = result.scalar_one_or_none()

            if record:
                logger.debug("Record retrieved", model=self.model.__name__, id=id)
            else:
                logger.debug("Record not found", model=self.model.__name__, id=id)

            return record

        except Exception as e:
            logger.error("Error retrieving record", model=self.model.__name__, id=id, error=str(e))
            raise

    async def add(self, db: AsyncSession, *, db_obj: ModelType, commit: bool = True) -> ModelType:
        """
        Persist a new record

        Args:
            db: Database session
            db_obj: Transient model instance
            commit: Whether to commit the transaction

        Returns:
            Persisted model instance
        """
        try:
            db.add(db_obj)

            if commit:
                await db.commit()
            else:
                await db.flush()

            logger.debug("Record created", model=self.model.__name__)
            return db_obj

        except Exception as e:
            if commit:
                await db.rollback()
            logger.error("Error creating record", model=self.model.__name__, error=str(e))
            raise
