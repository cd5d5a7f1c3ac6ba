"""
Base Repository - Common data access for all repositories
Implements shared database operations following the Repository Pattern
"""

from typing import TypeVar, Generic, Optional, Dict, Any, Type
from sqlalchemy.orm import Session, Query
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)

# Type variable for model classes
T = TypeVar('T')


class BaseRepository(Generic[T]):
    """
    Base repository with common CRUD operations.

    Writes flush but do not commit; the service that owns the unit of work
    calls commit() once the whole operation has succeeded.
    """

    def __init__(self, session: Session, model_class: Type[T]):
        """
        Initialize repository with database session and model class.

        Args:
            session: SQLAlchemy database session
            model_class: The model class this repository manages
        """
        self.session = session
        self.model_class = model_class

    # CREATE Operations

    def create(self, **kwargs) -> T:
        """
        Create a new entity.

        Raises:
            SQLAlchemyError: If database operation fails
        """
        try:
            entity = self.model_class(**kwargs)
            self.session.add(entity)
            self.session.flush()  # Flush to get ID without committing
            logger.debug(f"Created {self.model_class.__name__} with id {entity.id}")
            return entity
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model_class.__name__}: {e}")
            self.session.rollback()
            raise

    # READ Operations

    def get_by_id(self, entity_id: Any) -> Optional[T]:
        """
        Get entity by primary key.

        Returns:
            Entity instance or None if not found
        """
        try:
            return self.session.get(self.model_class, entity_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model_class.__name__} by id {entity_id}: {e}")
            return None

    def find_one_by(self, **filters) -> Optional[T]:
        """
        Find single entity by specific field values.

        Returns:
            First matching entity or None
        """
        try:
            return self._build_query(filters).first()
        except SQLAlchemyError as e:
            logger.error(f"Error finding {self.model_class.__name__} by filters: {e}")
            return None

    # UPDATE Operations

    def update(self, entity: T, **updates) -> T:
        """
        Update an entity with new values.

        Raises:
            SQLAlchemyError: If database operation fails
        """
        try:
            for field, value in updates.items():
                if hasattr(entity, field):
                    setattr(entity, field, value)
            self.session.flush()
            logger.debug(f"Updated {self.model_class.__name__} with id {entity.id}")
            return entity
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.model_class.__name__}: {e}")
            self.session.rollback()
            raise

    # Transaction Management

    def commit(self) -> None:
        """Commit the current transaction."""
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error committing transaction: {e}")
            self.session.rollback()
            raise

    # Helper Methods

    def _build_query(self, filters: Optional[Dict[str, Any]] = None) -> Query:
        """
        Build a query with filters.

        None becomes IS NULL.
        """
        query = self.session.query(self.model_class)

        if filters:
            for field, value in filters.items():
                if hasattr(self.model_class, field):
                    if value is None:
                        query = query.filter(getattr(self.model_class, field).is_(None))
                    else:
                        query = query.filter(getattr(self.model_class, field) == value)

        return query
