"""
Base repository class with common operations using async SQLAlchemy.
Repositories only flush; committing is left to the unit of work so that
several repositories can write inside one transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from rentalhub.database import Base
from typing import TypeVar, Generic, Optional, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common operations.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session shared with the unit of work
        """
        self.model = model
        self.db = db

    async def add(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Stage a new record and flush it so generated values are populated.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance (not yet committed)
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.flush()
            await self.db.refresh(db_obj)
            logger.debug(f"Staged {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get a record by its public ID.

        Returns:
            Model instance if found, None otherwise
        """
        try:
            query = select(self.model).where(self.model.id == id)
            result = await self.db.execute(query)
            obj = result.scalar_one_or_none()

            if obj:
                logger.debug(f"Retrieved {self.model.__name__} with id: {id}")
            else:
                logger.debug(f"{self.model.__name__} with id {id} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    async def exists(self, id: uuid.UUID) -> bool:
        """Check whether a record with the given ID exists."""
        query = select(self.model.id).where(self.model.id == id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none() is not None
